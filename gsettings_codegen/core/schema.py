"""
Core schema representation for code generation.

Loads a GSettings schema document (XML) into a validated, ordered in-memory
model that the later compilation passes work with consistently.
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union
from enum import Enum

from ..logging_config import get_logger
from .errors import (
    AmbiguousSchemaError,
    DuplicateKeyError,
    NotFoundError,
    ParseError,
    SchemaNotFoundError,
)
from .variant import VariantError, is_valid_signature, parse_value

logger = get_logger(__name__)

TRUE_VALUES = {"true", "1", "yes"}


class ValueSetKind(Enum):
    """Kinds of closed value sets a key may refer to."""

    ENUM = "enum"
    FLAGS = "flags"

    @property
    def type_code(self) -> str:
        """Type code of keys holding a value of this kind."""
        return "s" if self is ValueSetKind.ENUM else "as"


@dataclass(frozen=True)
class ValueSetRef:
    """Reference from a key to a declared enum or flags set."""

    kind: ValueSetKind
    set_id: str


@dataclass(frozen=True)
class ValueSetDeclaration:
    """An enum, flags or choices declaration as written in the document."""

    set_id: str
    kind: ValueSetKind
    nicks: Tuple[str, ...]
    inline: bool = False  # Declared inside a <key> rather than at the root


@dataclass(frozen=True)
class Key:
    """A single named, typed settings entry."""

    name: str
    type_code: str
    default: str  # Serialized in the store's text format
    summary: Optional[str] = None
    description: Optional[str] = None
    read_only: bool = False
    value_set: Optional[ValueSetRef] = None

    @property
    def default_value(self) -> Any:
        """The default decoded to a Python value."""
        return parse_value(self.default, self.type_code)


@dataclass
class SchemaDefinition:
    """One <schema> element: an id and its keys in document order."""

    schema_id: str
    path: Optional[str] = None
    keys: List[Key] = field(default_factory=list)

    def add_key(self, key: Key) -> None:
        """Add a key, rejecting duplicate names."""
        if self.get_key(key.name) is not None:
            raise DuplicateKeyError(self.schema_id, key.name)
        self.keys.append(key)

    def get_key(self, name: str) -> Optional[Key]:
        """Get key by name."""
        for key in self.keys:
            if key.name == name:
                return key
        return None


@dataclass
class SchemaDocument:
    """All definitions and value sets read from one schema file."""

    path: Path
    definitions: List[SchemaDefinition] = field(default_factory=list)
    value_sets: Dict[str, ValueSetDeclaration] = field(default_factory=dict)
    selected_id: Optional[str] = None
    id_pinned: bool = False

    @property
    def schema_ids(self) -> List[str]:
        return [definition.schema_id for definition in self.definitions]

    @property
    def schema(self) -> SchemaDefinition:
        """The definition selected when the document was loaded."""
        return self.resolve(self.selected_id)

    def get_definition(self, schema_id: str) -> Optional[SchemaDefinition]:
        """Get definition by schema id."""
        for definition in self.definitions:
            if definition.schema_id == schema_id:
                return definition
        return None

    def resolve(self, schema_id: Optional[str] = None) -> SchemaDefinition:
        """
        Pick the definition to generate bindings for.

        Args:
            schema_id: Pinned schema id, or None to use the only definition

        Raises:
            SchemaNotFoundError: If the pinned id is not defined
            AmbiguousSchemaError: If no id is pinned and several are defined
        """
        if schema_id is not None:
            definition = self.get_definition(schema_id)
            if definition is None:
                raise SchemaNotFoundError(schema_id, self.schema_ids)
            return definition

        if len(self.definitions) > 1:
            raise AmbiguousSchemaError(self.schema_ids)
        return self.definitions[0]


def load_schema(
    path: Union[str, Path], schema_id: Optional[str] = None
) -> SchemaDocument:
    """
    Load and validate a schema document.

    Args:
        path: Path to the XML schema file
        schema_id: Schema id to select; may be omitted when the document
            defines exactly one schema

    Returns:
        SchemaDocument with the selected definition resolved

    Raises:
        NotFoundError: If the file does not exist
        ParseError: If the document is malformed
        SchemaNotFoundError: If ``schema_id`` is not defined
        AmbiguousSchemaError: If ``schema_id`` is omitted and several schemas exist
        DuplicateKeyError: If a schema defines a key twice
    """
    path = Path(path)
    logger.debug("Loading schema document: %s", path)

    if not path.is_file():
        if path.exists():
            raise ParseError("Not a regular file", path)
        raise NotFoundError(path)

    try:
        root = ET.parse(path).getroot()
    except ET.ParseError as e:
        raise ParseError(f"Malformed XML: {e}", path) from e
    except OSError as e:
        raise ParseError(f"Cannot read schema file: {e}", path) from e

    document = parse_schema_document(root, path)
    selected = document.resolve(schema_id)
    document.selected_id = selected.schema_id
    document.id_pinned = schema_id is not None

    logger.info(
        "Loaded schema '%s' (%d keys) from %s",
        selected.schema_id,
        len(selected.keys),
        path,
    )
    return document


def parse_schema_document(root: ET.Element, path: Path) -> SchemaDocument:
    """Convert a parsed <schemalist> element into a SchemaDocument."""
    if root.tag != "schemalist":
        raise ParseError(f"Root element must be <schemalist>, got <{root.tag}>", path)

    document = SchemaDocument(path=path)

    # Root-level declarations may appear after the schemas referring to them
    for element in root:
        if element.tag in ("enum", "flags"):
            _register_value_set(document, _parse_value_set(element, path), path)

    for element in root:
        if element.tag == "schema":
            definition = _parse_definition(element, path, document)
            if document.get_definition(definition.schema_id) is not None:
                raise ParseError(
                    f"Schema '{definition.schema_id}' is defined twice", path
                )
            document.definitions.append(definition)
        elif element.tag not in ("enum", "flags"):
            logger.debug("Ignoring <%s> element in %s", element.tag, path)

    if not document.definitions:
        raise ParseError("Document defines no <schema> element", path)

    return document


def _register_value_set(
    document: SchemaDocument, declaration: ValueSetDeclaration, path: Path
) -> None:
    if declaration.set_id in document.value_sets:
        raise ParseError(f"Value set '{declaration.set_id}' is declared twice", path)
    document.value_sets[declaration.set_id] = declaration


def _parse_value_set(
    element: ET.Element,
    path: Path,
    default_id: Optional[str] = None,
    key_name: Optional[str] = None,
) -> ValueSetDeclaration:
    """Parse an <enum> or <flags> element listing <value nick=...> children."""
    set_id = element.get("id") or default_id
    if not set_id:
        raise ParseError(f"<{element.tag}> requires an id attribute", path, key_name)

    nicks = []
    for value in element.findall("value"):
        nick = value.get("nick")
        if not nick:
            raise ParseError(f"<value> in '{set_id}' requires a nick", path, key_name)
        nicks.append(nick)

    if not nicks:
        raise ParseError(f"'{set_id}' declares no values", path, key_name)

    return ValueSetDeclaration(
        set_id=set_id,
        kind=ValueSetKind(element.tag),
        nicks=tuple(nicks),
        inline=key_name is not None,
    )


def _parse_definition(
    element: ET.Element, path: Path, document: SchemaDocument
) -> SchemaDefinition:
    schema_id = element.get("id")
    if not schema_id:
        raise ParseError("<schema> requires an id attribute", path)

    definition = SchemaDefinition(schema_id=schema_id, path=element.get("path"))

    for child in element:
        if child.tag != "key":
            logger.debug("Ignoring <%s> in schema '%s'", child.tag, schema_id)
            continue
        # Checked before parsing so inline value sets aren't registered twice
        name = child.get("name")
        if name and definition.get_key(name) is not None:
            raise DuplicateKeyError(schema_id, name)
        definition.add_key(_parse_key(child, path, schema_id, document))

    return definition


def _parse_key(
    element: ET.Element, path: Path, schema_id: str, document: SchemaDocument
) -> Key:
    name = element.get("name")
    if not name:
        raise ParseError(f"<key> in schema '{schema_id}' requires a name", path)

    type_code = element.get("type")
    enum_id = element.get("enum")
    flags_id = element.get("flags")

    if len([attr for attr in (type_code, enum_id, flags_id) if attr]) != 1:
        raise ParseError(
            "exactly one of the type, enum or flags attributes is required",
            path,
            name,
        )

    value_set = None
    if enum_id or flags_id:
        kind = ValueSetKind.ENUM if enum_id else ValueSetKind.FLAGS
        set_id = enum_id or flags_id
        declaration = document.value_sets.get(set_id)
        if declaration is None or declaration.kind != kind:
            raise ParseError(f"references undeclared {kind.value} '{set_id}'", path, name)
        type_code = kind.type_code
        value_set = ValueSetRef(kind, set_id)
    elif not is_valid_signature(type_code):
        raise ParseError(f"invalid type code '{type_code}'", path, name)

    inline_set = _parse_inline_value_set(element, path, schema_id, name, type_code)
    if inline_set is not None:
        if value_set is not None:
            raise ParseError("declares both a value set reference and an inline one", path, name)
        _register_value_set(document, inline_set, path)
        value_set = ValueSetRef(inline_set.kind, inline_set.set_id)

    default = _parse_default(element, path, name, type_code)
    if value_set is not None:
        _check_default_nicks(document.value_sets[value_set.set_id], default, path, name)

    key = Key(
        name=name,
        type_code=type_code,
        default=default,
        summary=_collapse_text(element.findtext("summary")),
        description=_collapse_text(element.findtext("description")),
        read_only=element.get("readonly", "false").strip().lower() in TRUE_VALUES,
        value_set=value_set,
    )
    logger.debug("Parsed key '%s' of type '%s'", name, type_code)
    return key


def _parse_inline_value_set(
    element: ET.Element, path: Path, schema_id: str, key_name: str, type_code: str
) -> Optional[ValueSetDeclaration]:
    """Parse <choices>, <enum> or <flags> children of a <key>."""
    children = [child for child in element if child.tag in ("choices", "enum", "flags")]
    if not children:
        return None
    if len(children) > 1:
        raise ParseError("declares more than one inline value set", path, key_name)

    child = children[0]
    default_id = f"{schema_id}.{key_name}"

    if child.tag == "choices":
        if type_code != "s":
            # Only plain string keys turn their choices into an enumeration
            logger.debug(
                "Ignoring <choices> on key '%s' of type '%s'", key_name, type_code
            )
            return None
        nicks = []
        for choice in child.findall("choice"):
            value = choice.get("value")
            if not value:
                raise ParseError("<choice> requires a value attribute", path, key_name)
            nicks.append(value)
        if not nicks:
            raise ParseError("<choices> lists no <choice>", path, key_name)
        return ValueSetDeclaration(default_id, ValueSetKind.ENUM, tuple(nicks), inline=True)

    kind = ValueSetKind(child.tag)
    if type_code != kind.type_code:
        raise ParseError(
            f"inline <{child.tag}> requires type '{kind.type_code}', got '{type_code}'",
            path,
            key_name,
        )
    return _parse_value_set(child, path, default_id=default_id, key_name=key_name)


def _parse_default(element: ET.Element, path: Path, key_name: str, type_code: str) -> str:
    text = element.findtext("default")
    if text is None or not text.strip():
        raise ParseError("missing <default>", path, key_name)

    default = text.strip()
    try:
        parse_value(default, type_code)
    except VariantError as e:
        raise ParseError(f"invalid default {default!r}: {e}", path, key_name) from e
    return default


def _check_default_nicks(
    declaration: ValueSetDeclaration, default: str, path: Path, key_name: str
) -> None:
    decoded = parse_value(default, declaration.kind.type_code)
    nicks = [decoded] if declaration.kind is ValueSetKind.ENUM else decoded
    for nick in nicks:
        if nick not in declaration.nicks:
            raise ParseError(
                f"default nick '{nick}' is not declared in '{declaration.set_id}'",
                path,
                key_name,
            )


def _collapse_text(text: Optional[str]) -> Optional[str]:
    """Collapse runs of whitespace; empty text becomes None."""
    if text is None:
        return None
    collapsed = " ".join(text.split())
    return collapsed or None
