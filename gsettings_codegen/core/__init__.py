"""
Core binding compilation components.

Provides the compile stage (schema loading, type mapping, value sets,
override resolution, accessor specs) and the base classes used by all
language generators.
"""

from .errors import (
    BindingError,
    NotFoundError,
    ParseError,
    SchemaNotFoundError,
    AmbiguousSchemaError,
    DuplicateKeyError,
    UnmappedTypeError,
    ConflictingOverrideError,
    InvalidDirectiveError,
    DuplicateVariantError,
    DuplicateTypeNameError,
    FlagOverflowError,
)
from .schema import (
    Key,
    SchemaDefinition,
    SchemaDocument,
    ValueSetDeclaration,
    ValueSetKind,
    ValueSetRef,
    load_schema,
)
from .types import AccessorType, TypeMapper
from .enums import EnumSet, FlagSet, ValueSet, ValueSetRegistry, collect_value_sets
from .overrides import (
    DefineDirective,
    Generate,
    OverrideResolver,
    ResolutionSource,
    Skip,
    SkipDirective,
    define,
    resolve,
    skip,
)
from .accessors import (
    AccessorSpec,
    CompiledSchema,
    MethodNames,
    compile_schema,
    generate_accessor_specs,
)
from .naming import NameSanitizer, NamingCase
from .config import (
    GeneratorConfig,
    ConfigManager,
    ConfigError,
    GenerationRequest,
    load_config,
    load_request,
)
from .generator import CodeGenerator, GeneratorError, GenerationResult, generate_code
from .templates import TemplateEngine, TemplateError, create_template_engine
from .variant import VariantError, format_value, parse_value

__all__ = [
    # Errors
    "BindingError",
    "NotFoundError",
    "ParseError",
    "SchemaNotFoundError",
    "AmbiguousSchemaError",
    "DuplicateKeyError",
    "UnmappedTypeError",
    "ConflictingOverrideError",
    "InvalidDirectiveError",
    "DuplicateVariantError",
    "DuplicateTypeNameError",
    "FlagOverflowError",
    # Schema loader
    "Key",
    "SchemaDefinition",
    "SchemaDocument",
    "ValueSetDeclaration",
    "ValueSetKind",
    "ValueSetRef",
    "load_schema",
    # Type mapping and value sets
    "AccessorType",
    "TypeMapper",
    "EnumSet",
    "FlagSet",
    "ValueSet",
    "ValueSetRegistry",
    "collect_value_sets",
    # Overrides
    "DefineDirective",
    "Generate",
    "OverrideResolver",
    "ResolutionSource",
    "Skip",
    "SkipDirective",
    "define",
    "resolve",
    "skip",
    # Accessor specs
    "AccessorSpec",
    "CompiledSchema",
    "MethodNames",
    "compile_schema",
    "generate_accessor_specs",
    # Naming utilities
    "NameSanitizer",
    "NamingCase",
    # Configuration system
    "GeneratorConfig",
    "ConfigManager",
    "ConfigError",
    "GenerationRequest",
    "load_config",
    "load_request",
    # Base generator interface
    "CodeGenerator",
    "GeneratorError",
    "GenerationResult",
    "generate_code",
    # Template system
    "TemplateEngine",
    "TemplateError",
    "create_template_engine",
    # Variant codec
    "VariantError",
    "format_value",
    "parse_value",
]
