"""
Python generator tests.

Generated modules are executed and driven through the in-memory backend, so
these tests check the rendered source and the behavior of the bindings.
"""

from __future__ import annotations

import pytest

from gsettings_codegen import generate_bindings
from gsettings_codegen.core.overrides import define, skip
from gsettings_codegen.core.variant import VariantError
from gsettings_codegen.runtime import MemoryBackend, ReadOnlyKeyError


class Widget:
    pass


class TestGeneratedSource:
    def test_module_layout(self, app_schema):
        result = generate_bindings(app_schema)

        assert result.success
        assert "from __future__ import annotations" in result.code
        assert "class Theme(VariantEnum):" in result.code
        assert "class Alignment(VariantEnum):" in result.code
        assert "class Spacing(VariantFlags):" in result.code
        assert "class AppSettings(SettingsBinding):" in result.code
        assert "    SCHEMA_ID = 'org.example.App'" in result.code
        assert "def set_window_width(self, value: int) -> None:" in result.code
        assert "def recent_files(self) -> list[str]:" in result.code
        assert "def set_recent_files(self, value: Sequence[str]) -> None:" in result.code
        assert result.code.endswith("\n")
        compile(result.code, "<generated>", "exec")

    def test_metadata(self, app_schema):
        result = generate_bindings(app_schema, directives=[skip("zoom")])

        assert result.metadata["schema_id"] == "org.example.App"
        assert result.metadata["accessor_count"] == 9
        assert result.metadata["skipped_count"] == 1
        assert result.metadata["enum_count"] == 2
        assert result.metadata["flags_count"] == 1
        assert result.metadata["default_constructible"] is True

    def test_getter_docstring(self, app_schema):
        code = generate_bindings(app_schema).code

        assert '"""Window maximized' in code
        assert "Whether the main window is maximized." in code
        assert "Default: ``(800, 600)``" in code
        assert "This key is read-only." in code
        assert "reach the store when ``push()`` is called" in code

    def test_no_comments(self, app_schema):
        code = generate_bindings(app_schema, config={"add_comments": False}).code

        assert '"""Set ``' not in code
        assert "Default: ``" not in code
        compile(code, "<generated>", "exec")

    def test_class_name_option(self, app_schema):
        code = generate_bindings(app_schema, config={"class_name": "Prefs"}).code
        assert "class Prefs(SettingsBinding):" in code
        assert "Callable[[Prefs, str], None]" in code

    def test_indent_size_option(self, app_schema):
        code = generate_bindings(app_schema, config={"indent_size": 2}).code
        assert "\n  def __init__(self, schema_id: str = SCHEMA_ID" in code
        assert "\n    super().__init__(schema_id, backend)" in code
        compile(code, "<generated>", "exec")

    def test_require_schema_id_option(self, app_schema):
        code = generate_bindings(app_schema, config={"require_schema_id": True}).code
        assert "def __init__(self, schema_id: str, backend: SettingsBackend | None = None):" in code

    def test_class_name_clash_fails(self, app_schema):
        result = generate_bindings(app_schema, config={"class_name": "Alignment"})

        assert not result.success
        assert "clashes" in result.error_message
        assert result.code == ""

    def test_type_name_clashing_with_import_fails(self, write_schema):
        path = write_schema(
            '<enum id="org.example.KeyCodec"><value nick="plain" value="0"/></enum>'
            '<schema id="org.example.Codecs">'
            '<key name="codec" enum="org.example.KeyCodec"><default>\'plain\'</default></key>'
            "</schema>"
        )
        result = generate_bindings(path)

        assert not result.success
        assert "'KeyCodec'" in result.error_message
        assert "imports" in result.error_message

    @pytest.mark.parametrize("class_name", ["SettingsBinding", "Callable"])
    def test_class_name_clashing_with_import_fails(self, app_schema, class_name):
        result = generate_bindings(app_schema, config={"class_name": class_name})

        assert not result.success
        assert "imports" in result.error_message

    def test_skipped_byte_array_key(self, write_schema, load_bindings):
        path = write_schema(
            '<schema id="org.example.Blobs">'
            "<key name=\"blob\" type=\"ay\"><default>b''</default></key>"
            '<key name="size" type="u"><default>0</default></key>'
            "</schema>"
        )
        module = load_bindings(path, directives=[skip(signature="ay")])

        settings = module.BlobsSettings()
        assert module.BlobsSettings._DEFAULTS["blob"] == "b''"
        assert settings.backend.read("blob") == "b''"
        assert not hasattr(settings, "blob")
        assert settings.size() == 0

    def test_skipped_value_sets_are_not_rendered(self, app_schema):
        code = generate_bindings(app_schema, directives=[skip("alignment"), skip("spacing")]).code

        assert "class Alignment" not in code
        assert "VariantFlags" not in code
        assert "def alignment(" not in code
        assert "'alignment': " in code  # Default stays known to the backend

    def test_renamed_getter_warning(self, write_schema):
        path = write_schema(
            '<schema id="org.example.W"><key name="reset" type="b"><default>false</default></key></schema>'
        )
        result = generate_bindings(path)

        assert "def reset_(self) -> bool:" in result.code
        assert "def set_reset(self, value: bool) -> None:" in result.code
        assert any("reset_" in warning for warning in result.warnings)

    def test_unused_directive_warning(self, app_schema):
        result = generate_bindings(app_schema, directives=[skip("missing")])
        assert any("skip(key_name='missing')" in warning for warning in result.warnings)


class TestGeneratedBindings:
    def test_defaults(self, app_module):
        settings = app_module.AppSettings()

        assert settings.schema_id == "org.example.App"
        assert settings.is_maximized() is False
        assert settings.window_width() == 600
        assert settings.window_size() == (800, 600)
        assert settings.recent_files() == []
        assert settings.theme() is app_module.Theme.Light
        assert settings.alignment() is app_module.Alignment.Center
        assert settings.spacing() == app_module.Spacing.BEFORE_COLON
        assert settings.zoom() == 1.0
        assert settings.title() == "Untitled"
        assert settings.build_id() == 42

    def test_set_and_get(self, app_module):
        settings = app_module.AppSettings()

        settings.set_is_maximized(True)
        settings.set_window_width(100)
        settings.set_window_size((1, 2))
        settings.set_recent_files(["a", "b"])

        assert settings.is_maximized() is True
        assert settings.window_width() == 100
        assert settings.window_size() == (1, 2)
        assert settings.recent_files() == ["a", "b"]

    def test_values_are_stored_as_text(self, app_module):
        settings = app_module.AppSettings()

        settings.set_recent_files(("a", "b"))
        settings.set_alignment(app_module.Alignment.Right)

        assert settings.backend.read("recent-files") == "['a', 'b']"
        assert settings.backend.read("alignment") == "'right'"

    def test_enum_members(self, app_module):
        assert app_module.Theme.HighContrast.nick == "high-contrast"
        assert app_module.Theme.from_nick("dark") is app_module.Theme.Dark
        assert [member.value for member in app_module.Alignment] == [0, 1, 2]
        assert app_module.Alignment.Left < app_module.Alignment.Right

    def test_flags_union(self, app_module):
        settings = app_module.AppSettings()
        spacing = app_module.Spacing

        settings.set_spacing(spacing.BEFORE_COLON | spacing.BEFORE_COMMA)

        assert settings.spacing() == spacing.BEFORE_COLON | spacing.BEFORE_COMMA
        assert settings.backend.read("spacing") == "['before-colon', 'before-comma']"
        assert spacing.AFTER_COMMA.value == 4

    def test_empty_flags(self, app_module):
        settings = app_module.AppSettings()
        settings.set_spacing(app_module.Spacing(0))

        assert settings.backend.read("spacing") == "@as []"
        assert settings.spacing() == app_module.Spacing(0)

    def test_wrong_value_type(self, app_module):
        settings = app_module.AppSettings()

        with pytest.raises(VariantError):
            settings.set_window_width("wide")
        with pytest.raises(VariantError):
            settings.set_alignment("left")

    def test_read_only_key(self, app_module):
        settings = app_module.AppSettings()

        with pytest.raises(ReadOnlyKeyError) as exc_info:
            settings.set_build_id(7)
        assert exc_info.value.key_name == "build-id"
        assert settings.try_set_build_id(7) is False
        assert settings.build_id() == 42

    def test_try_set_writable_key(self, app_module):
        settings = app_module.AppSettings()
        assert settings.try_set_zoom(1.5) is True
        assert settings.zoom() == 1.5

    def test_reset(self, app_module):
        settings = app_module.AppSettings()
        settings.set_window_width(1)

        settings.reset("window-width")

        assert settings.window_width() == 600

    def test_change_notification(self, app_module):
        settings = app_module.AppSettings()
        calls = []

        handler_id = settings.connect_window_width_changed(
            lambda source, key: calls.append((source, key))
        )
        settings.set_window_width(700)
        settings.set_window_width(700)
        settings.set_zoom(2.0)

        assert calls == [(settings, "window-width")]

        settings.disconnect(handler_id)
        settings.set_window_width(800)
        assert len(calls) == 1

    def test_bind_property(self, app_module):
        settings = app_module.AppSettings()
        widget = Widget()

        binding = settings.bind_window_width(widget, "width")
        assert widget.width == 600

        settings.set_window_width(800)
        assert widget.width == 800

        widget.width = 1024
        assert settings.window_width() == 800
        assert binding.push() is True
        assert settings.window_width() == 1024

        binding.unbind()
        settings.set_window_width(10)
        assert widget.width == 1024
        assert not binding.active

    def test_bind_enum_property(self, app_module):
        settings = app_module.AppSettings()
        widget = Widget()

        settings.bind_theme(widget, "theme")
        settings.set_theme(app_module.Theme.Dark)

        assert widget.theme is app_module.Theme.Dark

    def test_boolean_action_toggles(self, app_module):
        settings = app_module.AppSettings()
        action = settings.create_is_maximized_action()

        assert action.name == "is-maximized"
        assert action.state is False
        action.activate()
        assert settings.is_maximized() is True
        action.activate()
        assert settings.is_maximized() is False

    def test_action_with_parameter(self, app_module):
        settings = app_module.AppSettings()
        action = settings.create_alignment_action()

        action.activate(app_module.Alignment.Left)

        assert settings.alignment() is app_module.Alignment.Left
        with pytest.raises(ValueError):
            action.activate()

    def test_read_only_action_is_disabled(self, app_module):
        action = app_module.AppSettings().create_build_id_action()

        assert action.enabled is False
        assert action.change_state(1) is False

    def test_explicit_backend_and_schema_id(self, app_module):
        backend = MemoryBackend(
            "org.example.App.Copy", app_module.AppSettings._DEFAULTS, ["window-width"]
        )
        settings = app_module.AppSettings("org.example.App.Copy", backend)

        assert settings.schema_id == "org.example.App.Copy"
        assert settings.backend is backend
        assert settings.try_set_window_width(1) is False

    def test_instances_do_not_share_state(self, app_module):
        first = app_module.AppSettings()
        second = app_module.AppSettings()

        first.set_zoom(3.0)

        assert second.zoom() == 1.0


ROUND_TRIP_SCHEMA = """
<schema id="org.example.Limits">
  <key name="flag" type="b"><default>false</default></key>
  <key name="signed32" type="i"><default>0</default></key>
  <key name="unsigned32" type="u"><default>0</default></key>
  <key name="signed64" type="x"><default>0</default></key>
  <key name="unsigned64" type="t"><default>0</default></key>
  <key name="ratio" type="d"><default>0.0</default></key>
  <key name="label" type="s"><default>''</default></key>
  <key name="point" type="(ii)"><default>(0, 0)</default></key>
  <key name="names" type="as"><default>[]</default></key>
</schema>
"""


@pytest.fixture
def limits_module(write_schema, load_bindings):
    return load_bindings(write_schema(ROUND_TRIP_SCHEMA))


@pytest.mark.parametrize(
    "key, value",
    [
        ("flag", True),
        ("signed32", -(2**31)),
        ("signed32", 2**31 - 1),
        ("unsigned32", 2**32 - 1),
        ("signed64", -(2**63)),
        ("signed64", 2**63 - 1),
        ("unsigned64", 2**64 - 1),
        ("ratio", -1.5e300),
        ("ratio", 0.1),
        ("label", "it's \"quoted\" \\ and\ttabbed"),
        ("label", "caf\u00e9 \u2603"),
        ("point", (-(2**31), 2**31 - 1)),
        ("names", ["", "'", "a\\b"]),
    ],
)
def test_setter_getter_round_trip(limits_module, key, value):
    settings = limits_module.LimitsSettings()

    getattr(settings, f"set_{key}")(value)

    assert getattr(settings, key)() == value


@pytest.mark.parametrize(
    "key, value",
    [
        ("signed32", 2**31),
        ("unsigned32", -1),
        ("unsigned64", 2**64),
        ("signed64", -(2**63) - 1),
    ],
)
def test_setter_rejects_out_of_range(limits_module, key, value):
    settings = limits_module.LimitsSettings()

    with pytest.raises(VariantError):
        getattr(settings, f"set_{key}")(value)
    assert getattr(settings, key)() == 0


class TestCustomTypes:
    def test_define_types_are_annotations(self, write_schema, load_bindings):
        path = write_schema(
            '<schema id="org.example.Pairs">'
            "<key name=\"pair\" type=\"(ss)\"><default>('a', 'b')</default></key>"
            "</schema>"
        )
        module = load_bindings(
            path, directives=[define(signature="(ss)", arg_type="Pair", ret_type="Pair")]
        )
        settings = module.PairsSettings()

        assert settings.pair() == ("a", "b")
        settings.set_pair(("c", "d"))
        assert settings.backend.read("pair") == "('c', 'd')"

    def test_values_serialize_themselves(self, write_schema, load_bindings):
        class Pair:
            def __init__(self, first, second):
                self.first = first
                self.second = second

            def to_variant(self):
                return f"('{self.first}', '{self.second}')"

        path = write_schema(
            '<schema id="org.example.Pairs">'
            "<key name=\"pair\" type=\"(ss)\"><default>('a', 'b')</default></key>"
            "</schema>"
        )
        module = load_bindings(
            path, directives=[define("pair", arg_type="Pair", ret_type="tuple[str, str]")]
        )
        settings = module.PairsSettings()

        settings.set_pair(Pair("x", "y"))

        assert settings.pair() == ("x", "y")

    def test_unsupported_type_without_define_raises(self, write_schema):
        from gsettings_codegen.core.errors import UnmappedTypeError

        path = write_schema(
            '<schema id="org.example.Pairs">'
            "<key name=\"pair\" type=\"(ss)\"><default>('a', 'b')</default></key>"
            "</schema>"
        )
        with pytest.raises(UnmappedTypeError):
            generate_bindings(path)


def test_pinned_schema_in_multi_schema_document(write_schema, load_bindings):
    path = write_schema(
        '<schema id="org.example.First"><key name="a" type="i"><default>1</default></key></schema>'
        '<schema id="org.example.Second"><key name="b" type="b"><default>true</default></key></schema>'
    )
    module = load_bindings(path, schema_id="org.example.Second")

    settings = module.SecondSettings()
    assert settings.schema_id == "org.example.Second"
    assert settings.b() is True
    assert not hasattr(settings, "a")


def test_class_name_keeps_settings_suffix(write_schema, load_bindings):
    path = write_schema(
        '<schema id="org.example.DesktopSettings">'
        '<key name="a" type="i"><default>1</default></key></schema>'
    )
    module = load_bindings(path)
    assert module.DesktopSettings().a() == 1
