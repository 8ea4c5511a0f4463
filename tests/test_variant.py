"""Variant text codec tests."""

from __future__ import annotations

import pytest

from gsettings_codegen.core.variant import (
    VariantError,
    format_value,
    infer_signature,
    is_valid_signature,
    parse_value,
    split_signature,
)


class TestSignatures:
    def test_split_into_complete_types(self):
        assert split_signature("sai(ii)a{sv}") == ["s", "ai", "(ii)", "a{sv}"]

    @pytest.mark.parametrize("signature", ["b", "as", "(ii)", "a{sv}", "mas", "((ii)s)"])
    def test_valid(self, signature):
        assert is_valid_signature(signature)

    @pytest.mark.parametrize("signature", ["", "ii", "(i", "a", "a{vs}", "z", "{sv}x"])
    def test_invalid(self, signature):
        assert not is_valid_signature(signature)


class TestParse:
    def test_scalars(self):
        assert parse_value("true", "b") is True
        assert parse_value("600", "i") == 600
        assert parse_value("-0x1f", "x") == -31
        assert parse_value("uint32 5", "u") == 5

    def test_double_accepts_integers(self):
        value = parse_value("1", "d")
        assert value == 1.0
        assert isinstance(value, float)

    def test_strings_with_either_quote(self):
        assert parse_value("'bark'", "s") == "bark"
        assert parse_value('"it\'s"', "s") == "it's"
        assert parse_value(r"'tab\there'", "s") == "tab\there"

    def test_containers(self):
        assert parse_value("(800,600)", "(ii)") == (800, 600)
        assert parse_value("['a', 'b']", "as") == ["a", "b"]
        assert parse_value("{'x': <1>}", "a{sv}") == {"x": 1}

    def test_empty_arrays(self):
        assert parse_value("[]", "as") == []
        assert parse_value("@as []", "as") == []

    def test_maybe(self):
        assert parse_value("nothing", "ms") is None
        assert parse_value("just 'x'", "ms") == "x"

    def test_bytestrings_keep_their_terminator(self):
        assert parse_value("b''", "ay") == [0]
        assert parse_value('b"hi"', "ay") == [104, 105, 0]
        assert parse_value(r"b'a\n\377'", "ay") == [97, 10, 255, 0]

    def test_without_type_code(self):
        assert parse_value("(1, 'a', [true])") == (1, "a", [True])

    @pytest.mark.parametrize(
        "text, type_code",
        [
            ("'x'", "i"),
            ("4294967296", "u"),
            ("-1", "t"),
            ("1", "b"),
            ("(1, 2, 3)", "(ii)"),
            ("['a', 1]", "as"),
        ],
    )
    def test_shape_mismatch(self, text, type_code):
        with pytest.raises(VariantError):
            parse_value(text, type_code)

    @pytest.mark.parametrize("text", ["", "'open", "[1, 2", "(1 2)", "bogus", "1 2", "é", "b'open"])
    def test_malformed(self, text):
        with pytest.raises(VariantError):
            parse_value(text)


class TestFormat:
    def test_scalars(self):
        assert format_value(True, "b") == "true"
        assert format_value(600, "i") == "600"
        assert format_value(1, "d") == "1.0"

    def test_strings_prefer_single_quotes(self):
        assert format_value("bark", "s") == "'bark'"
        assert format_value("it's", "s") == '"it\'s"'
        assert format_value("a\nb", "s") == r"'a\nb'"

    def test_containers(self):
        assert format_value((1, 2), "(ii)") == "(1, 2)"
        assert format_value(["a", "b"], "as") == "['a', 'b']"
        assert format_value(("a", "b"), "as") == "['a', 'b']"
        assert format_value(("x",), "(s)") == "('x',)"

    def test_byte_arrays(self):
        assert format_value([104, 105, 0], "ay") == "b'hi'"
        assert format_value([39, 255, 0], "ay") == r"b'\'\377'"
        assert format_value([1, 2], "ay") == "[1, 2]"
        assert format_value(parse_value("b''", "ay"), "ay") == "b''"

    def test_empty_containers_carry_their_type(self):
        assert format_value([], "as") == "@as []"
        assert format_value({}, "a{sv}") == "@a{sv} {}"

    def test_canonicalizes_parsed_text(self):
        assert format_value(parse_value("(800,600)", "(ii)"), "(ii)") == "(800, 600)"
        assert format_value(parse_value('"Untitled"', "s"), "s") == "'Untitled'"

    def test_rejects_mismatched_values(self):
        with pytest.raises(VariantError):
            format_value("wide", "i")
        with pytest.raises(VariantError):
            format_value(1, "b")


def test_infer_signature():
    assert infer_signature((1, "a")) == "(is)"
    assert infer_signature([True]) == "ab"
    assert infer_signature(2**40) == "x"
    assert infer_signature({"k": 1.5}) == "a{sd}"
