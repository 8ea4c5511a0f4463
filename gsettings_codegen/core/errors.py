"""
Compile-time error taxonomy.

Every failure of the schema-to-binding compiler is raised as a subclass of
BindingError before any code is rendered. Each error keeps the offending key,
type code or directive as attributes so callers can report it without
re-reading the schema.
"""

from typing import Optional, Sequence


class BindingError(Exception):
    """Base exception for schema compilation errors."""

    pass


class NotFoundError(BindingError):
    """Raised when the schema file does not exist."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"Schema file not found: {path}")


class ParseError(BindingError):
    """Raised when the schema document is malformed."""

    def __init__(self, message: str, path=None, key_name: Optional[str] = None):
        self.path = path
        self.key_name = key_name
        location = f"{path}: " if path else ""
        if key_name:
            location += f"key '{key_name}': "
        super().__init__(f"{location}{message}")


class SchemaNotFoundError(BindingError):
    """Raised when a pinned schema id is not defined in the document."""

    def __init__(self, schema_id: str, available: Sequence[str]):
        self.schema_id = schema_id
        self.available = list(available)
        super().__init__(
            f"Schema '{schema_id}' not found. "
            f"Available: {', '.join(self.available) or 'none'}"
        )


class AmbiguousSchemaError(BindingError):
    """Raised when no schema id is given and the document defines several."""

    def __init__(self, available: Sequence[str]):
        self.available = list(available)
        super().__init__(
            "Schema id is required when the document defines more than one "
            f"schema: {', '.join(self.available)}"
        )


class DuplicateKeyError(BindingError):
    """Raised when a schema defines the same key (or accessor name) twice."""

    def __init__(self, schema_id: str, key_name: str, other_name: Optional[str] = None):
        self.schema_id = schema_id
        self.key_name = key_name
        self.other_name = other_name
        if other_name and other_name != key_name:
            message = (
                f"Keys '{other_name}' and '{key_name}' in schema '{schema_id}' "
                "produce the same accessor names"
            )
        else:
            message = f"Key '{key_name}' is defined twice in schema '{schema_id}'"
        super().__init__(message)


class UnmappedTypeError(BindingError):
    """Raised when a key's type code has no table entry and no override."""

    def __init__(self, key_name: str, type_code: str):
        self.key_name = key_name
        self.type_code = type_code
        super().__init__(
            f"Unsupported type code '{type_code}' for key '{key_name}'. "
            f"Skip the key or define custom types for signature '{type_code}'"
        )


class ConflictingOverrideError(BindingError):
    """Raised when two directives apply to one key at the same precedence."""

    def __init__(self, key_name: str, directives: Sequence[object]):
        self.key_name = key_name
        self.directives = list(directives)
        listed = ", ".join(str(d) for d in self.directives)
        super().__init__(f"Conflicting directives for key '{key_name}': {listed}")


class InvalidDirectiveError(BindingError):
    """Raised when a directive is malformed."""

    def __init__(self, directive: object, reason: str):
        self.directive = directive
        super().__init__(f"Invalid directive {directive}: {reason}")


class DuplicateVariantError(BindingError):
    """Raised when two nicks of one value set collapse to the same identifier."""

    def __init__(self, set_id: str, identifier: str, first_nick: str, second_nick: str):
        self.set_id = set_id
        self.identifier = identifier
        self.first_nick = first_nick
        self.second_nick = second_nick
        super().__init__(
            f"Nicks '{first_nick}' and '{second_nick}' in '{set_id}' both "
            f"produce the identifier '{identifier}'"
        )


class DuplicateTypeNameError(BindingError):
    """Raised when two value sets would generate the same type name."""

    def __init__(self, type_name: str, first_set: str, second_set: str):
        self.type_name = type_name
        self.first_set = first_set
        self.second_set = second_set
        super().__init__(
            f"Value sets '{first_set}' and '{second_set}' both produce "
            f"the type name '{type_name}'"
        )


class FlagOverflowError(BindingError):
    """Raised when a flags declaration has more nicks than available bits."""

    def __init__(self, set_id: str, count: int, width: int):
        self.set_id = set_id
        self.count = count
        self.width = width
        super().__init__(
            f"Flags '{set_id}' declare {count} nicks but only {width} bits are available"
        )
