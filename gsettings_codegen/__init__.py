"""
gsettings-codegen

Generates typed Python bindings for GSettings-style schema documents.
"""

from pathlib import Path
from typing import Iterable, Optional, Union

from .registry import GeneratorRegistry, get_generator, list_supported_languages
from .core.accessors import CompiledSchema, compile_schema
from .core.config import GenerationRequest, GeneratorConfig, load_config, load_request
from .core.errors import BindingError
from .core.generator import CodeGenerator, GenerationResult, generate_code
from .core.overrides import DefineDirective, SkipDirective, define, skip

__version__ = "0.1.0"


def generate_bindings(
    file: Union[str, Path],
    schema_id: Optional[str] = None,
    directives: Iterable[Union[SkipDirective, DefineDirective]] = (),
    language: str = "python",
    config=None,
) -> GenerationResult:
    """
    Compile a schema file and render bindings for it.

    Args:
        file: Path to the schema document
        schema_id: Schema to generate; optional when the file defines one
        directives: Skip and define directives
        language: Target language name or alias
        config: Generator configuration (GeneratorConfig, dict or JSON path)

    Returns:
        GenerationResult with generated code

    Raises:
        BindingError: If the schema cannot be compiled
    """
    request = GenerationRequest(
        file=Path(file), schema_id=schema_id, directives=list(directives), language=language
    )
    return generate_from_request(request, config)


def generate_from_request(request: GenerationRequest, config=None) -> GenerationResult:
    """
    Run both stages for a generation request.

    Generator options carried by the request are merged under ``config``
    when ``config`` is a dict or omitted.
    """
    if config is None or isinstance(config, dict):
        config = {**request.generator_options, **(config or {})}

    generator = get_generator(request.language, config)
    compiled = compile_schema(request, flag_width=generator.config.flag_width)
    return generate_code(generator, compiled)


__all__ = [
    "BindingError",
    "CodeGenerator",
    "CompiledSchema",
    "GenerationRequest",
    "GenerationResult",
    "GeneratorConfig",
    "GeneratorRegistry",
    "compile_schema",
    "define",
    "generate_bindings",
    "generate_from_request",
    "get_generator",
    "list_supported_languages",
    "load_config",
    "load_request",
    "skip",
]
