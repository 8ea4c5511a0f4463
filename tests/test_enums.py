"""Value-set registry tests."""

from __future__ import annotations

import pytest

from gsettings_codegen.core.enums import (
    EnumSet,
    FlagSet,
    ValueSetRegistry,
    build_value_set,
    collect_value_sets,
)
from gsettings_codegen.core.errors import (
    DuplicateTypeNameError,
    DuplicateVariantError,
    FlagOverflowError,
)
from gsettings_codegen.core.schema import ValueSetDeclaration, ValueSetKind, load_schema


def _enum(set_id: str, *nicks: str) -> ValueSetDeclaration:
    return ValueSetDeclaration(set_id, ValueSetKind.ENUM, nicks)


def _flags(set_id: str, *nicks: str) -> ValueSetDeclaration:
    return ValueSetDeclaration(set_id, ValueSetKind.FLAGS, nicks)


class TestBuildValueSet:
    def test_enum_identifiers_and_ordinals(self):
        value_set = build_value_set(_enum("org.example.Mode", "fast-forward", "pause", "stop"))

        assert isinstance(value_set, EnumSet)
        assert value_set.type_name == "Mode"
        assert [e.identifier for e in value_set.entries] == ["FastForward", "Pause", "Stop"]
        assert [e.value for e in value_set.entries] == [0, 1, 2]

    def test_flag_identifiers_and_bits(self):
        value_set = build_value_set(_flags("org.example.Spacing", "before-colon", "after-comma"))

        assert isinstance(value_set, FlagSet)
        assert [e.identifier for e in value_set.entries] == ["BEFORE_COLON", "AFTER_COMMA"]
        assert [e.value for e in value_set.entries] == [1, 2]
        assert value_set.all_bits == 3

    def test_nicks_keep_document_order(self):
        value_set = build_value_set(_enum("e", "zeta", "alpha"))
        assert value_set.nicks == ["zeta", "alpha"]
        assert value_set.get_entry("alpha").value == 1
        assert value_set.get_entry("missing") is None

    def test_inline_set_named_after_key(self):
        value_set = build_value_set(_enum("org.example.App.color-scheme", "light"))
        assert value_set.type_name == "ColorScheme"

    def test_keyword_nick(self):
        value_set = build_value_set(_enum("e", "none", "all"))
        assert [e.identifier for e in value_set.entries] == ["None_", "All"]

    def test_colliding_identifiers(self):
        with pytest.raises(DuplicateVariantError) as exc_info:
            build_value_set(_enum("org.example.E", "foo-bar", "foo_bar"))

        error = exc_info.value
        assert error.identifier == "FooBar"
        assert (error.first_nick, error.second_nick) == ("foo-bar", "foo_bar")

    def test_flag_overflow(self):
        nicks = [f"bit{i}" for i in range(33)]
        with pytest.raises(FlagOverflowError) as exc_info:
            build_value_set(_flags("org.example.F", *nicks))
        assert exc_info.value.count == 33
        assert exc_info.value.width == 32

    def test_flag_width_is_configurable(self):
        assert len(build_value_set(_flags("f", "a", "b"), flag_width=2).entries) == 2
        with pytest.raises(FlagOverflowError):
            build_value_set(_flags("f", "a", "b", "c"), flag_width=2)


class TestRegistry:
    def test_duplicate_type_name(self):
        registry = ValueSetRegistry()
        registry.add(build_value_set(_enum("org.one.Mode", "a")))

        with pytest.raises(DuplicateTypeNameError) as exc_info:
            registry.add(build_value_set(_enum("org.two.Mode", "b")))
        assert exc_info.value.type_name == "Mode"

    def test_collect_in_order_of_first_reference(self, app_schema):
        registry = collect_value_sets(load_schema(app_schema))

        assert [s.type_name for s in registry] == ["Theme", "Alignment", "Spacing"]
        assert [s.type_name for s in registry.enums] == ["Theme", "Alignment"]
        assert [s.type_name for s in registry.flags] == ["Spacing"]
        assert "org.example.Alignment" in registry
        assert len(registry) == 3

    def test_unreferenced_sets_are_not_collected(self, write_schema):
        path = write_schema(
            '<enum id="org.example.Unused"><value nick="a" value="0"/></enum>'
            '<schema id="s"><key name="k" type="i"><default>1</default></key></schema>'
        )
        assert len(collect_value_sets(load_schema(path))) == 0

    def test_for_key(self, app_schema):
        document = load_schema(app_schema)
        registry = collect_value_sets(document)

        assert registry.for_key(document.schema.get_key("spacing")).type_name == "Spacing"
        assert registry.for_key(document.schema.get_key("zoom")) is None
