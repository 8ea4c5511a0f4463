"""
Accessor spec generation and the compile pipeline.

Combines a schema definition with the resolved per-key behaviors into the
ordered list of accessor specs a language generator renders, and runs the
whole compile stage for a generation request.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..logging_config import get_logger
from .config import GenerationRequest
from .enums import DEFAULT_FLAG_WIDTH, ValueSet, ValueSetRegistry, collect_value_sets
from .errors import DuplicateKeyError
from .naming import NamingCase, create_python_sanitizer
from .overrides import (
    Directive,
    EffectiveBehavior,
    OverrideResolver,
    ResolutionSource,
    Skip,
)
from .schema import Key, SchemaDefinition, SchemaDocument, load_schema
from .types import TypeMapper
from .variant import format_value, parse_value

logger = get_logger(__name__)

# Members of the generated class's base that a getter must not replace
SETTINGS_BASE_MEMBERS = {"schema_id", "backend", "disconnect", "reset"}


@dataclass(frozen=True)
class MethodNames:
    """Names of the six methods generated for one key."""

    setter: str
    try_setter: str
    getter: str
    connect_changed: str
    binder: str
    action_factory: str

    @classmethod
    def for_key(cls, key_name: str) -> "MethodNames":
        """Derive method names from a key name (``key-name`` -> ``key_name``)."""
        base = create_python_sanitizer().sanitize_name(key_name, NamingCase.SNAKE_CASE)
        # A keyword base already carries its suffix; only the bare getter can shadow
        getter = create_python_sanitizer(SETTINGS_BASE_MEMBERS).sanitize_name(
            key_name, NamingCase.SNAKE_CASE
        )
        base = base.rstrip("_") or base
        return cls(
            setter=f"set_{base}",
            try_setter=f"try_set_{base}",
            getter=getter,
            connect_changed=f"connect_{base}_changed",
            binder=f"bind_{base}",
            action_factory=f"create_{base}_action",
        )

    def as_tuple(self) -> tuple:
        return (
            self.setter,
            self.try_setter,
            self.getter,
            self.connect_changed,
            self.binder,
            self.action_factory,
        )


@dataclass(frozen=True)
class AccessorSpec:
    """Everything a generator needs to emit the accessors of one key."""

    key: Key
    arg_type: str
    ret_type: str
    source: ResolutionSource
    names: MethodNames
    default: str  # Canonical text form of the key default
    value_set: Optional[ValueSet] = None

    @property
    def key_name(self) -> str:
        return self.key.name

    @property
    def type_code(self) -> str:
        return self.key.type_code

    @property
    def summary(self) -> Optional[str]:
        return self.key.summary

    @property
    def description(self) -> Optional[str]:
        return self.key.description

    @property
    def read_only(self) -> bool:
        return self.key.read_only

    @property
    def is_custom_type(self) -> bool:
        """True when a define directive chose the types."""
        return self.source in (
            ResolutionSource.DEFINE_BY_NAME,
            ResolutionSource.DEFINE_BY_SIGNATURE,
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly view of the spec."""
        return {
            "key": self.key_name,
            "type_code": self.type_code,
            "arg_type": self.arg_type,
            "ret_type": self.ret_type,
            "source": self.source.value,
            "methods": {
                "setter": self.names.setter,
                "try_setter": self.names.try_setter,
                "getter": self.names.getter,
                "connect_changed": self.names.connect_changed,
                "binder": self.names.binder,
                "action_factory": self.names.action_factory,
            },
            "value_set": self.value_set.type_name if self.value_set else None,
            "summary": self.summary,
            "description": self.description,
            "default": self.default,
            "read_only": self.read_only,
        }


def generate_accessor_specs(
    definition: SchemaDefinition, behaviors: Dict[str, EffectiveBehavior]
) -> List[AccessorSpec]:
    """
    Build accessor specs for every key that is not skipped.

    Args:
        definition: Schema definition providing keys in document order
        behaviors: Resolved behavior per key name

    Returns:
        Accessor specs in document order

    Raises:
        DuplicateKeyError: If two keys derive the same method names
    """
    specs: List[AccessorSpec] = []
    owners: Dict[str, str] = {}

    for key in definition.keys:
        behavior = behaviors[key.name]
        if isinstance(behavior, Skip):
            continue

        names = MethodNames.for_key(key.name)
        for method_name in names.as_tuple():
            other = owners.get(method_name)
            if other is not None:
                raise DuplicateKeyError(definition.schema_id, key.name, other)
            owners[method_name] = key.name

        specs.append(
            AccessorSpec(
                key=key,
                arg_type=behavior.arg_type,
                ret_type=behavior.ret_type,
                source=behavior.source,
                names=names,
                default=format_value(parse_value(key.default, key.type_code), key.type_code),
                value_set=behavior.value_set,
            )
        )

    logger.debug(
        "Generated %d accessor specs for '%s' (%d skipped)",
        len(specs),
        definition.schema_id,
        len(definition.keys) - len(specs),
    )
    return specs


@dataclass
class CompiledSchema:
    """Result of the compile stage."""

    document: SchemaDocument
    definition: SchemaDefinition
    value_sets: ValueSetRegistry
    accessors: List[AccessorSpec]
    directives: List[Directive] = field(default_factory=list)
    unused_directives: List[Directive] = field(default_factory=list)

    @property
    def schema_id(self) -> str:
        return self.definition.schema_id

    @property
    def default_constructible(self) -> bool:
        """Whether the schema id can be baked in as a constructor default."""
        return self.document.id_pinned or len(self.document.definitions) == 1

    @property
    def used_value_sets(self) -> List[ValueSet]:
        """Value sets some generated accessor uses, in registry order."""
        used = {spec.value_set.set_id for spec in self.accessors if spec.value_set}
        return [value_set for value_set in self.value_sets if value_set.set_id in used]


def compile_schema(
    request: GenerationRequest,
    mapper: Optional[TypeMapper] = None,
    flag_width: int = DEFAULT_FLAG_WIDTH,
) -> CompiledSchema:
    """
    Run the compile stage: load, build value sets, resolve, generate specs.

    Args:
        request: Schema file, optional schema id and directives
        mapper: Type mapper (defaults to the Python table)
        flag_width: Number of bits available to flags

    Returns:
        CompiledSchema

    Raises:
        BindingError: Any compile error; nothing is returned partially
    """
    document = load_schema(request.file, request.schema_id)
    definition = document.schema

    registry = collect_value_sets(document, flag_width, create_python_sanitizer())
    resolver = OverrideResolver(request.directives, registry, mapper)
    behaviors = resolver.resolve_all(definition)
    accessors = generate_accessor_specs(definition, behaviors)

    logger.info(
        "Compiled '%s': %d accessors, %d value sets",
        definition.schema_id,
        len(accessors),
        len(registry),
    )

    return CompiledSchema(
        document=document,
        definition=definition,
        value_sets=registry,
        accessors=accessors,
        directives=list(resolver.directives),
        unused_directives=resolver.unused_directives(),
    )

