"""
Configuration management for binding generation.

Handles loading and merging generator configuration from JSON files,
providing defaults and validation, and reading JSON generation requests.
"""

import json
from pathlib import Path
from typing import Dict, Any, List, Optional, Union
from dataclasses import dataclass, field, fields, asdict

from .errors import InvalidDirectiveError
from .overrides import DefineDirective, Directive, SkipDirective


class ConfigError(Exception):
    """Exception raised for configuration-related errors."""
    pass


@dataclass
class GeneratorConfig:
    """Base configuration for binding generators."""

    # Output settings
    class_name: Optional[str] = None  # Derived from the schema id when unset
    module_docstring: Optional[str] = None

    # Code style settings
    indent_size: int = 4

    # Generated value sets
    flag_width: int = 32

    # Additional metadata
    add_comments: bool = True

    # Custom settings (language-specific)
    custom: Dict[str, Any] = field(default_factory=dict)


class ConfigManager:
    """Manages configuration loading and merging."""

    def __init__(self):
        """Initialize configuration manager."""
        self._configs: Dict[str, Dict[str, Any]] = {}
        self._load_defaults()

    def _load_defaults(self):
        """Load default configurations for supported languages."""
        self._configs["python"] = {
            "indent_size": 4,
            "flag_width": 32,
            "add_comments": True,
            "custom": {
                "require_schema_id": False,
            },
        }

    def get_config(self, language: str, custom_config: Optional[Dict[str, Any]] = None,
                   config_file: Optional[Union[str, Path]] = None) -> GeneratorConfig:
        """
        Get complete configuration for a language.

        Args:
            language: Target language name
            custom_config: Custom configuration overrides
            config_file: Path to JSON configuration file

        Returns:
            Merged configuration for the language
        """
        base_config = dict(self._configs.get(language, {}))
        base_config["custom"] = dict(base_config.get("custom", {}))

        if config_file:
            base_config.update(self._load_config_file(config_file))

        if custom_config:
            base_config.update(custom_config)

        return self._dict_to_config(base_config)

    def _load_config_file(self, config_path: Union[str, Path]) -> Dict[str, Any]:
        """Load configuration from JSON file."""
        path = Path(config_path)

        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        if not path.suffix.lower() == '.json':
            raise ConfigError(f"Configuration file must be JSON: {path}")

        config = _read_json_object(path)
        return config

    def _dict_to_config(self, config_dict: Dict[str, Any]) -> GeneratorConfig:
        """Convert dictionary to GeneratorConfig instance."""
        known_fields = {f.name for f in fields(GeneratorConfig)}

        config_args = {}
        custom_args = {}

        for key, value in config_dict.items():
            if key in known_fields:
                config_args[key] = value
            else:
                custom_args[key] = value

        # Unknown keys are kept for language-specific use
        if custom_args:
            existing_custom = dict(config_args.get('custom') or {})
            existing_custom.update(custom_args)
            config_args['custom'] = existing_custom

        return GeneratorConfig(**config_args)

    def save_config(self, config: GeneratorConfig, output_path: Union[str, Path]):
        """Save configuration to JSON file."""
        path = Path(output_path)

        config_dict = asdict(config)
        custom = config_dict.pop("custom")
        config_dict.update(custom)

        try:
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(config_dict, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise ConfigError(f"Failed to save configuration to {path}: {e}") from e

    def list_languages(self) -> list[str]:
        """Get list of languages with default configuration."""
        return list(self._configs.keys())

    def validate_config(self, config: GeneratorConfig, language: str) -> list[str]:
        """
        Validate configuration for a language.

        Returns:
            List of validation warnings
        """
        warnings = []

        if config.class_name is not None and not config.class_name.isidentifier():
            warnings.append(f"Invalid class_name: {config.class_name}")

        if not isinstance(config.indent_size, int) or config.indent_size < 1:
            warnings.append(f"Invalid indent_size: {config.indent_size}")

        if not isinstance(config.flag_width, int) or not 1 <= config.flag_width <= 64:
            warnings.append(f"Invalid flag_width: {config.flag_width}")

        if language not in self._configs:
            warnings.append(f"No default configuration for language: {language}")

        return warnings


# Global configuration manager instance
_config_manager = None

def get_config_manager() -> ConfigManager:
    """Get the global configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def load_config(language: str, custom_config: Optional[Dict[str, Any]] = None,
                config_file: Optional[Union[str, Path]] = None) -> GeneratorConfig:
    """
    Convenience function to load configuration.

    Args:
        language: Target language name
        custom_config: Custom configuration overrides
        config_file: Path to JSON configuration file

    Returns:
        Merged configuration for the language
    """
    manager = get_config_manager()
    return manager.get_config(language, custom_config, config_file)


@dataclass
class GenerationRequest:
    """What to compile: a schema file, an optional id and override directives."""

    file: Path
    schema_id: Optional[str] = None
    directives: List[Directive] = field(default_factory=list)
    language: str = "python"
    generator_options: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any],
                  base_dir: Optional[Union[str, Path]] = None) -> "GenerationRequest":
        """
        Build a request from its JSON form.

        Args:
            data: Parsed request object
            base_dir: Directory relative schema paths are resolved against

        Raises:
            ConfigError: If a field is missing or malformed
        """
        if "file" not in data or not isinstance(data["file"], str):
            raise ConfigError("Request requires a 'file' string")

        file = Path(data["file"])
        if base_dir is not None and not file.is_absolute():
            file = Path(base_dir) / file

        schema_id = data.get("id")
        if schema_id is not None and not isinstance(schema_id, str):
            raise ConfigError("Request 'id' must be a string")

        directives: List[Directive] = []
        try:
            for entry in _entries(data, "skip"):
                directives.append(SkipDirective(
                    key_name=entry.get("key_name"),
                    signature=entry.get("signature"),
                ))
            for entry in _entries(data, "define"):
                directives.append(DefineDirective(
                    key_name=entry.get("key_name"),
                    signature=entry.get("signature"),
                    arg_type=entry.get("arg_type", ""),
                    ret_type=entry.get("ret_type", ""),
                ))
        except InvalidDirectiveError as e:
            raise ConfigError(f"Invalid directive in request: {e}") from e

        generator = dict(data.get("generator") or {})
        language = generator.pop("language", "python")

        return cls(
            file=file,
            schema_id=schema_id,
            directives=directives,
            language=language,
            generator_options=generator,
        )


def load_request(path: Union[str, Path]) -> GenerationRequest:
    """
    Load a generation request from a JSON file.

    The schema path in the request is relative to the request file.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Request file not found: {path}")

    return GenerationRequest.from_dict(_read_json_object(path), base_dir=path.parent)


def _entries(data: Dict[str, Any], name: str) -> List[Dict[str, Any]]:
    entries = data.get(name) or []
    if not isinstance(entries, list) or not all(isinstance(e, dict) for e in entries):
        raise ConfigError(f"Request '{name}' must be a list of objects")
    return entries


def _read_json_object(path: Path) -> Dict[str, Any]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a JSON object")
    return data

