"""
Enum and flag value-set registry.

Turns the enum, flags and choices declarations referenced by a schema into
normalized value sets: a generated type name plus an ordered list of
(nick, identifier, value) entries.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from ..logging_config import get_logger
from .errors import DuplicateTypeNameError, DuplicateVariantError, FlagOverflowError
from .naming import NameSanitizer, NamingCase, create_python_sanitizer
from .schema import Key, SchemaDocument, ValueSetDeclaration, ValueSetKind

logger = get_logger(__name__)

# Flags are stored in an unsigned 32-bit integer by the settings store
DEFAULT_FLAG_WIDTH = 32


@dataclass(frozen=True)
class ValueSetEntry:
    """One nick of a value set and its generated identifier and value."""

    nick: str
    identifier: str
    value: int


@dataclass(frozen=True)
class ValueSet:
    """A generated enum or flags type."""

    set_id: str
    kind: ValueSetKind
    type_name: str
    entries: Tuple[ValueSetEntry, ...]

    @property
    def nicks(self) -> List[str]:
        return [entry.nick for entry in self.entries]

    def get_entry(self, nick: str) -> Optional[ValueSetEntry]:
        """Get entry by nick."""
        for entry in self.entries:
            if entry.nick == nick:
                return entry
        return None


@dataclass(frozen=True)
class EnumSet(ValueSet):
    """Enumeration: entries carry ordinals from zero in document order."""


@dataclass(frozen=True)
class FlagSet(ValueSet):
    """Flags: entries carry single bits from bit 0 in document order."""

    width: int = DEFAULT_FLAG_WIDTH

    @property
    def all_bits(self) -> int:
        mask = 0
        for entry in self.entries:
            mask |= entry.value
        return mask


class ValueSetRegistry:
    """Value sets of one compilation, in order of first reference."""

    def __init__(self):
        self._sets: Dict[str, ValueSet] = {}
        self._type_names: Dict[str, str] = {}

    def add(self, value_set: ValueSet) -> None:
        """
        Register a value set.

        Raises:
            DuplicateTypeNameError: If another set has the same type name
        """
        other = self._type_names.get(value_set.type_name)
        if other is not None and other != value_set.set_id:
            raise DuplicateTypeNameError(value_set.type_name, other, value_set.set_id)

        self._sets[value_set.set_id] = value_set
        self._type_names[value_set.type_name] = value_set.set_id

    def get(self, set_id: str) -> Optional[ValueSet]:
        return self._sets.get(set_id)

    def for_key(self, key: Key) -> Optional[ValueSet]:
        """Get the value set a key refers to, if any."""
        if key.value_set is None:
            return None
        return self._sets.get(key.value_set.set_id)

    @property
    def enums(self) -> List[EnumSet]:
        return [s for s in self._sets.values() if s.kind is ValueSetKind.ENUM]

    @property
    def flags(self) -> List[FlagSet]:
        return [s for s in self._sets.values() if s.kind is ValueSetKind.FLAGS]

    def __contains__(self, set_id: str) -> bool:
        return set_id in self._sets

    def __iter__(self) -> Iterator[ValueSet]:
        return iter(self._sets.values())

    def __len__(self) -> int:
        return len(self._sets)


def build_value_set(
    declaration: ValueSetDeclaration,
    flag_width: int = DEFAULT_FLAG_WIDTH,
    sanitizer: Optional[NameSanitizer] = None,
) -> ValueSet:
    """
    Normalize one declaration into a value set.

    Enum nicks become PascalCase identifiers, flag nicks SCREAMING_SNAKE_CASE.

    Args:
        declaration: Declaration read from the schema document
        flag_width: Number of bits available to flags
        sanitizer: Name sanitizer for the target language

    Raises:
        DuplicateVariantError: If two nicks produce the same identifier
        FlagOverflowError: If a flags set has more nicks than bits
    """
    sanitizer = sanitizer or create_python_sanitizer()
    is_enum = declaration.kind is ValueSetKind.ENUM

    if not is_enum and len(declaration.nicks) > flag_width:
        raise FlagOverflowError(declaration.set_id, len(declaration.nicks), flag_width)

    # Inline sets are named after their key, root sets after the last id segment
    base_name = declaration.set_id.rsplit(".", 1)[-1]
    type_name = sanitizer.sanitize_name(base_name, NamingCase.PASCAL_CASE)

    case = NamingCase.PASCAL_CASE if is_enum else NamingCase.SCREAMING_SNAKE
    seen: Dict[str, str] = {}
    entries = []

    for index, nick in enumerate(declaration.nicks):
        identifier = sanitizer.sanitize_name(nick, case)
        if identifier in seen:
            raise DuplicateVariantError(
                declaration.set_id, identifier, seen[identifier], nick
            )
        seen[identifier] = nick
        entries.append(
            ValueSetEntry(
                nick=nick, identifier=identifier, value=index if is_enum else 1 << index
            )
        )

    if is_enum:
        return EnumSet(declaration.set_id, declaration.kind, type_name, tuple(entries))
    return FlagSet(
        declaration.set_id, declaration.kind, type_name, tuple(entries), width=flag_width
    )


def collect_value_sets(
    document: SchemaDocument,
    flag_width: int = DEFAULT_FLAG_WIDTH,
    sanitizer: Optional[NameSanitizer] = None,
) -> ValueSetRegistry:
    """
    Build the value sets referenced by the selected schema's keys.

    Args:
        document: Loaded schema document
        flag_width: Number of bits available to flags
        sanitizer: Name sanitizer for the target language

    Returns:
        Registry ordered by first reference in the schema
    """
    registry = ValueSetRegistry()

    for key in document.schema.keys:
        if key.value_set is None or key.value_set.set_id in registry:
            continue
        declaration = document.value_sets[key.value_set.set_id]
        value_set = build_value_set(declaration, flag_width, sanitizer)
        registry.add(value_set)
        logger.debug(
            "Built %s '%s' with %d values",
            value_set.kind.value,
            value_set.type_name,
            len(value_set.entries),
        )

    logger.info("Collected %d enum/flags types", len(registry))
    return registry
