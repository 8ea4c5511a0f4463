"""Type mapping and naming tests."""

from __future__ import annotations

import pytest

from gsettings_codegen.core.naming import (
    NamingCase,
    create_python_sanitizer,
    to_pascal_case,
    to_snake_case,
)
from gsettings_codegen.core.types import AccessorType, TypeMapper


class TestTypeMapper:
    @pytest.mark.parametrize(
        "type_code, arg_type, ret_type",
        [
            ("b", "bool", "bool"),
            ("i", "int", "int"),
            ("u", "int", "int"),
            ("x", "int", "int"),
            ("t", "int", "int"),
            ("d", "float", "float"),
            ("s", "str", "str"),
            ("(ii)", "tuple[int, int]", "tuple[int, int]"),
            ("as", "Sequence[str]", "list[str]"),
        ],
    )
    def test_table(self, type_code, arg_type, ret_type):
        assert TypeMapper().map_type_code(type_code) == AccessorType(arg_type, ret_type)

    @pytest.mark.parametrize("type_code", ["(ss)", "a{sv}", "y", "ai", "ms"])
    def test_unsupported(self, type_code):
        mapper = TypeMapper()
        assert mapper.map_type_code(type_code) is None
        assert not mapper.is_supported(type_code)

    def test_overrides_extend_table(self):
        mapper = TypeMapper({"ai": AccessorType("Sequence[int]", "list[int]")})
        assert mapper.map_type_code("ai").ret_type == "list[int]"
        assert "ai" in mapper.supported_type_codes


class TestNaming:
    def test_case_conversions(self):
        assert to_snake_case("window-width") == "window_width"
        assert to_snake_case("HTTPProxy") == "http_proxy"
        assert to_pascal_case("high-contrast") == "HighContrast"

    def test_keywords_get_suffix(self):
        sanitizer = create_python_sanitizer()
        assert sanitizer.sanitize_name("class", NamingCase.SNAKE_CASE) == "class_"
        assert sanitizer.sanitize_name("none", NamingCase.PASCAL_CASE) == "None_"
        assert sanitizer.sanitize_name("width", NamingCase.SNAKE_CASE) == "width"

    def test_shadowed_names_get_suffix(self):
        sanitizer = create_python_sanitizer({"reset"})
        assert sanitizer.sanitize_name("reset") == "reset_"

    def test_leading_digit(self):
        sanitizer = create_python_sanitizer()
        assert sanitizer.sanitize_name("2d-mode", NamingCase.SNAKE_CASE) == "_2d_mode"
        assert sanitizer.sanitize_name("---", NamingCase.SNAKE_CASE) == "_"

    def test_screaming_snake(self):
        sanitizer = create_python_sanitizer()
        assert sanitizer.sanitize_name("before-colon", NamingCase.SCREAMING_SNAKE) == "BEFORE_COLON"

    def test_only_generated_cases_are_offered(self):
        assert [case.name for case in NamingCase] == [
            "SNAKE_CASE",
            "PASCAL_CASE",
            "SCREAMING_SNAKE",
        ]
