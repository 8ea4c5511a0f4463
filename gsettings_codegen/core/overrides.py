"""
Override directives and per-key behavior resolution.

Users can skip keys or replace their generated types, selecting keys either by
name or by type code (signature). The resolver combines those directives with
the value-set registry and the type mapper to decide, for every key, whether
and with which types accessors are generated.

Precedence, most specific first:
    1. skip by key name
    2. skip by signature
    3. define by key name
    4. define by signature
    5. enum/flags value set of the key
    6. type mapper table
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Union

from ..logging_config import get_logger
from .enums import ValueSet, ValueSetRegistry
from .errors import ConflictingOverrideError, InvalidDirectiveError, UnmappedTypeError
from .schema import Key, SchemaDefinition
from .types import TypeMapper
from .variant import is_valid_signature

logger = get_logger(__name__)


class _Selector:
    """Selects keys by exact name or by type code; exactly one must be set."""

    key_name: Optional[str]
    signature: Optional[str]

    def _check_selector(self):
        if (self.key_name is None) == (self.signature is None):
            raise InvalidDirectiveError(
                self, "exactly one of key_name or signature is required"
            )
        if self.key_name is not None and not self.key_name:
            raise InvalidDirectiveError(self, "key_name must not be empty")
        if self.signature is not None and not is_valid_signature(self.signature):
            raise InvalidDirectiveError(self, f"invalid signature '{self.signature}'")

    @property
    def selector(self) -> str:
        if self.key_name is not None:
            return f"key_name={self.key_name!r}"
        return f"signature={self.signature!r}"

    def matches_name(self, key: Key) -> bool:
        return self.key_name is not None and self.key_name == key.name

    def matches_signature(self, key: Key) -> bool:
        return self.signature is not None and self.signature == key.type_code


@dataclass(frozen=True)
class SkipDirective(_Selector):
    """Do not generate accessors for the selected keys."""

    key_name: Optional[str] = None
    signature: Optional[str] = None

    def __post_init__(self):
        self._check_selector()

    def __str__(self) -> str:
        return f"skip({self.selector})"


@dataclass(frozen=True)
class DefineDirective(_Selector):
    """Use explicit argument and return types for the selected keys."""

    key_name: Optional[str] = None
    signature: Optional[str] = None
    arg_type: str = ""
    ret_type: str = ""

    def __post_init__(self):
        self._check_selector()
        if not self.arg_type or not self.ret_type:
            raise InvalidDirectiveError(self, "arg_type and ret_type are required")

    def __str__(self) -> str:
        return (
            f"define({self.selector}, arg_type={self.arg_type!r}, "
            f"ret_type={self.ret_type!r})"
        )


Directive = Union[SkipDirective, DefineDirective]


def skip(key_name: Optional[str] = None, signature: Optional[str] = None) -> SkipDirective:
    """Create a skip directive."""
    return SkipDirective(key_name=key_name, signature=signature)


def define(
    key_name: Optional[str] = None,
    signature: Optional[str] = None,
    *,
    arg_type: str,
    ret_type: str,
) -> DefineDirective:
    """Create a define directive."""
    return DefineDirective(
        key_name=key_name, signature=signature, arg_type=arg_type, ret_type=ret_type
    )


class ResolutionSource(Enum):
    """Which rule decided a key's behavior."""

    SKIP_BY_NAME = "skip_by_name"
    SKIP_BY_SIGNATURE = "skip_by_signature"
    DEFINE_BY_NAME = "define_by_name"
    DEFINE_BY_SIGNATURE = "define_by_signature"
    VALUE_SET = "value_set"
    TYPE_TABLE = "type_table"


@dataclass(frozen=True)
class Generate:
    """Generate accessors with these types."""

    arg_type: str
    ret_type: str
    source: ResolutionSource
    value_set: Optional[ValueSet] = None
    directive: Optional[DefineDirective] = None


@dataclass(frozen=True)
class Skip:
    """Generate nothing for the key."""

    source: ResolutionSource
    directive: SkipDirective


EffectiveBehavior = Union[Generate, Skip]


class OverrideResolver:
    """Resolves the effective behavior of keys against a directive set."""

    def __init__(
        self,
        directives: Iterable[Directive],
        registry: ValueSetRegistry,
        mapper: Optional[TypeMapper] = None,
    ):
        """
        Initialize resolver.

        Args:
            directives: Skip and define directives of the generation request
            registry: Value sets of the schema being compiled
            mapper: Type mapper for keys without directives or value sets
        """
        self.directives: List[Directive] = list(directives)
        for directive in self.directives:
            if not isinstance(directive, (SkipDirective, DefineDirective)):
                raise InvalidDirectiveError(directive, "unknown directive type")

        self.registry = registry
        self.mapper = mapper or TypeMapper()
        self._used: List[Directive] = []

    def _matching(self, key: Key) -> Dict[ResolutionSource, List[Directive]]:
        skips = [d for d in self.directives if isinstance(d, SkipDirective)]
        defines = [d for d in self.directives if isinstance(d, DefineDirective)]

        levels = {
            ResolutionSource.SKIP_BY_NAME: [d for d in skips if d.matches_name(key)],
            ResolutionSource.SKIP_BY_SIGNATURE: [
                d for d in skips if d.matches_signature(key)
            ],
            ResolutionSource.DEFINE_BY_NAME: [d for d in defines if d.matches_name(key)],
            ResolutionSource.DEFINE_BY_SIGNATURE: [
                d for d in defines if d.matches_signature(key)
            ],
        }

        # An ambiguous level is an error even when a higher level wins
        for matches in levels.values():
            if len(matches) > 1:
                raise ConflictingOverrideError(key.name, matches)

        return levels

    def resolve(self, key: Key) -> EffectiveBehavior:
        """
        Resolve the behavior of one key.

        Raises:
            ConflictingOverrideError: If two directives match at the same level
            UnmappedTypeError: If nothing provides types for the key
        """
        levels = self._matching(key)
        for matches in levels.values():
            for directive in matches:
                if directive not in self._used:
                    self._used.append(directive)

        for source, matches in levels.items():
            if not matches:
                continue
            directive = matches[0]
            if isinstance(directive, SkipDirective):
                logger.debug("Skipping key '%s' (%s)", key.name, directive)
                return Skip(source=source, directive=directive)
            logger.debug("Custom types for key '%s' (%s)", key.name, directive)
            return Generate(
                arg_type=directive.arg_type,
                ret_type=directive.ret_type,
                source=source,
                directive=directive,
            )

        value_set = self.registry.for_key(key)
        if value_set is not None:
            return Generate(
                arg_type=value_set.type_name,
                ret_type=value_set.type_name,
                source=ResolutionSource.VALUE_SET,
                value_set=value_set,
            )

        accessor_type = self.mapper.map_type_code(key.type_code)
        if accessor_type is None:
            raise UnmappedTypeError(key.name, key.type_code)

        return Generate(
            arg_type=accessor_type.arg_type,
            ret_type=accessor_type.ret_type,
            source=ResolutionSource.TYPE_TABLE,
        )

    def resolve_all(self, definition: SchemaDefinition) -> Dict[str, EffectiveBehavior]:
        """Resolve every key of a definition, keyed by name in document order."""
        behaviors = {key.name: self.resolve(key) for key in definition.keys}

        for directive in self.unused_directives():
            logger.warning("Directive %s matches no key in '%s'", directive, definition.schema_id)

        return behaviors

    def unused_directives(self) -> List[Directive]:
        """Directives that have not matched any resolved key."""
        return [d for d in self.directives if d not in self._used]


def resolve(
    key: Key,
    registry: ValueSetRegistry,
    directives: Iterable[Directive],
    mapper: Optional[TypeMapper] = None,
) -> EffectiveBehavior:
    """Resolve one key's behavior; see OverrideResolver.resolve."""
    return OverrideResolver(directives, registry, mapper).resolve(key)
