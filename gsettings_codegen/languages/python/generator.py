"""
Python binding generator implementation.

Renders a compiled schema into one Python module: enum and flags classes for
the value sets in use and a settings class with six methods per key.
"""

from typing import Dict, List, Any, Optional
from pathlib import Path

from ...core.accessors import AccessorSpec, CompiledSchema
from ...core.config import GeneratorConfig, load_config
from ...core.enums import ValueSet
from ...core.generator import CodeGenerator, GeneratorError
from ...core.naming import NamingCase, create_python_sanitizer
from ...core.schema import ValueSetKind
from ...core.variant import format_value
from ...logging_config import get_logger

logger = get_logger(__name__)

RUNTIME_MODULE = "gsettings_codegen.runtime"


class PythonGenerator(CodeGenerator):
    """Binding generator for Python modules."""

    def __init__(self, config: Optional[GeneratorConfig] = None):
        """Initialize Python generator with configuration."""
        super().__init__(config or load_config("python"))
        self.sanitizer = create_python_sanitizer()

    @property
    def language_name(self) -> str:
        """Return the language name."""
        return "python"

    @property
    def file_extension(self) -> str:
        """Return Python file extension."""
        return ".py"

    def get_template_directory(self) -> Path:
        """Return the Python templates directory."""
        return Path(__file__).parent / "templates"

    def generate(self, compiled: CompiledSchema) -> str:
        """Generate the complete module for a compiled schema."""
        class_name = self._class_name(compiled)
        value_sets = compiled.used_value_sets

        imported = set(self._get_runtime_imports(compiled)) | set(self._get_import_names(compiled))
        for value_set in value_sets:
            if value_set.type_name in imported:
                raise GeneratorError(
                    f"Type name '{value_set.type_name}' of '{value_set.set_id}' "
                    "clashes with a name the generated module imports"
                )

        type_names = {value_set.type_name for value_set in value_sets}
        if class_name in type_names:
            raise GeneratorError(
                f"Settings class name '{class_name}' clashes with a generated enum/flags type"
            )
        if class_name in imported:
            raise GeneratorError(
                f"Settings class name '{class_name}' clashes with a name the generated module imports"
            )

        accessors = [self._accessor_data(spec) for spec in compiled.accessors]
        context = {
            "module_docstring": self._module_docstring(compiled),
            "imports": self._get_imports(compiled),
            "runtime_module": RUNTIME_MODULE,
            "runtime_imports": self._get_runtime_imports(compiled),
            "enums": [
                self._value_set_data(s) for s in value_sets if s.kind is ValueSetKind.ENUM
            ],
            "flags": [
                self._value_set_data(s) for s in value_sets if s.kind is ValueSetKind.FLAGS
            ],
            "class_name": class_name,
            "class_docstring": self._class_docstring(compiled),
            "schema_id": compiled.schema_id,
            "default_constructible": self._default_constructible(compiled),
            "defaults": [
                (key.name, format_value(key.default_value, key.type_code))
                for key in compiled.definition.keys
            ],
            "read_only": [key.name for key in compiled.definition.keys if key.read_only],
            "accessors": accessors,
            "add_comments": self.config.add_comments,
        }

        logger.debug("Rendering %s with %d accessors", class_name, len(accessors))
        return self.render_template("settings_module.py.j2", context)

    def _class_name(self, compiled: CompiledSchema) -> str:
        if self.config.class_name:
            return self.config.class_name

        last_segment = compiled.schema_id.rsplit(".", 1)[-1]
        name = self.sanitizer.sanitize_name(last_segment, NamingCase.PASCAL_CASE)
        if not name.endswith("Settings"):
            name = f"{name}Settings"
        return name

    def _default_constructible(self, compiled: CompiledSchema) -> bool:
        if self.config.custom.get("require_schema_id", False):
            return False
        return compiled.default_constructible

    def _module_docstring(self, compiled: CompiledSchema) -> str:
        if self.config.module_docstring:
            return self.config.module_docstring
        return (
            f"Typed settings bindings for the ``{compiled.schema_id}`` schema.\n\n"
            f"Generated by gsettings-codegen from {compiled.document.path.name}; "
            "do not edit."
        )

    def _class_docstring(self, compiled: CompiledSchema) -> str:
        if compiled.definition.path:
            return f"Settings of ``{compiled.schema_id}`` at ``{compiled.definition.path}``."
        return f"Settings of ``{compiled.schema_id}``."

    def _value_set_data(self, value_set: ValueSet) -> Dict[str, Any]:
        """Generate enum/flags class data for template."""
        is_flags = value_set.kind is ValueSetKind.FLAGS
        return {
            "type_name": value_set.type_name,
            "set_id": value_set.set_id,
            "nicks": repr(tuple(value_set.nicks)),
            "members": [
                {
                    "name": entry.identifier,
                    "value": f"1 << {index}" if is_flags else str(entry.value),
                }
                for index, entry in enumerate(value_set.entries)
            ],
        }

    def _accessor_data(self, spec: AccessorSpec) -> Dict[str, Any]:
        """Generate per-key method data for template."""
        codec_args = [repr(spec.type_code)]
        if spec.value_set is not None:
            codec_args.append(spec.value_set.type_name)

        return {
            "key_name": spec.key_name,
            "names": spec.names,
            "arg_type": spec.arg_type,
            "ret_type": spec.ret_type,
            "codec": f"KeyCodec({', '.join(codec_args)})",
            "read_only": spec.read_only,
            "doc_summary": spec.summary or f"Get ``{spec.key_name}``.",
            "doc_paragraphs": self._getter_paragraphs(spec),
        }

    def _getter_paragraphs(self, spec: AccessorSpec) -> List[Dict[str, Any]]:
        """Getter docstring paragraphs after the summary line."""
        paragraphs = []
        if spec.description:
            paragraphs.append({"text": spec.description, "wrap": True})
        paragraphs.append({"text": f"Default: ``{spec.default}``", "wrap": False})
        if spec.read_only:
            paragraphs.append({"text": "This key is read-only.", "wrap": True})
        return paragraphs

    def _get_import_names(self, compiled: CompiledSchema) -> List[str]:
        names = ["Callable"]
        if any("Sequence[" in spec.arg_type for spec in compiled.accessors):
            names.append("Sequence")
        return names

    def _get_imports(self, compiled: CompiledSchema) -> List[str]:
        """Standard library imports the module needs."""
        return [f"from collections.abc import {', '.join(self._get_import_names(compiled))}"]

    def _get_runtime_imports(self, compiled: CompiledSchema) -> List[str]:
        names = [
            "KeyCodec",
            "PropertyBinding",
            "SettingsAction",
            "SettingsBackend",
            "SettingsBinding",
        ]
        kinds = {value_set.kind for value_set in compiled.used_value_sets}
        if ValueSetKind.ENUM in kinds:
            names.append("VariantEnum")
        if ValueSetKind.FLAGS in kinds:
            names.append("VariantFlags")
        return sorted(names)

    def validate(self, compiled: CompiledSchema) -> List[str]:
        """Validate a compiled schema for Python generation."""
        warnings = super().validate(compiled)

        for spec in compiled.accessors:
            if spec.names.getter != spec.names.setter[len("set_"):]:
                warnings.append(
                    f"Getter for key '{spec.key_name}' renamed to {spec.names.getter}"
                )
            if spec.is_custom_type:
                warnings.append(
                    f"Key '{spec.key_name}' uses {spec.arg_type}/{spec.ret_type}; "
                    "the type must provide to_variant() or match the key's shape"
                )

        return warnings

    def format_code(self, code: str) -> str:
        """Clean up blank lines and apply the configured indent size."""
        code = super().format_code(code)
        indent_size = self.config.indent_size
        if indent_size == 4:
            return code

        # Templates indent in steps of four spaces
        lines = []
        for line in code.split("\n"):
            stripped = line.lstrip(" ")
            depth, rest = divmod(len(line) - len(stripped), 4)
            lines.append(" " * (depth * indent_size + rest) + stripped)
        return "\n".join(lines)


def create_python_generator(config: GeneratorConfig = None) -> PythonGenerator:
    """Create a Python generator, using language defaults when no config is given."""
    return PythonGenerator(config)
