"""
Naming utilities for safe code generation.

Handles case conversions between schema names (kebab-case keys, free-form
nicks, dotted ids) and target language identifiers, plus keyword conflicts.
"""

import re
from typing import Set
from enum import Enum


class NamingCase(Enum):
    """Different naming case styles."""

    SNAKE_CASE = "snake"  # window_width
    PASCAL_CASE = "pascal"  # WindowWidth
    SCREAMING_SNAKE = "screaming_snake"  # WINDOW_WIDTH


class NameSanitizer:
    """Handles name sanitization and case conversion."""

    def __init__(self, reserved_words: Set[str] = None, builtin_types: Set[str] = None):
        """
        Initialize name sanitizer.

        Args:
            reserved_words: Set of language reserved words
            builtin_types: Set of names that would shadow generated members
        """
        self.reserved_words = reserved_words or set()
        self.builtin_types = builtin_types or set()

    def sanitize_name(
        self,
        name: str,
        target_case: NamingCase = NamingCase.SNAKE_CASE,
        suffix_on_conflict: str = "_",
    ) -> str:
        """
        Sanitize a name for safe use in target language.

        The result is a pure function of the arguments, so two different
        names mapping to the same identifier can be detected by the caller.

        Args:
            name: Original name to sanitize
            target_case: Desired case style
            suffix_on_conflict: Suffix to add for reserved word conflicts

        Returns:
            Sanitized name safe for use
        """
        cleaned = self._clean_basic(name)
        converted = self.convert_case(cleaned, target_case)

        # Identifiers can't start with a digit
        if converted and converted[0].isdigit():
            converted = f"_{converted}"
        if not converted:
            converted = "_"

        return self._resolve_conflicts(converted, suffix_on_conflict)

    def _clean_basic(self, name: str) -> str:
        """Basic name cleanup - remove invalid characters."""
        # Dots separate words too (schema ids, nicks like "v1.2")
        cleaned = re.sub(r"[^a-zA-Z0-9_-]", "_", name)
        return cleaned.strip("_-")

    def convert_case(self, name: str, target_case: NamingCase) -> str:
        """Convert name to target case style."""
        if target_case == NamingCase.SNAKE_CASE:
            return self._to_snake_case(name)
        elif target_case == NamingCase.PASCAL_CASE:
            return self._to_pascal_case(name)
        elif target_case == NamingCase.SCREAMING_SNAKE:
            return self._to_snake_case(name).upper()
        else:
            return name

    def _to_snake_case(self, name: str) -> str:
        """Convert to snake_case."""
        name = name.replace("-", "_")

        # Split acronym runs and lower-to-upper boundaries: HTTPProxy -> HTTP_Proxy
        name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
        name = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name)

        name = name.lower()
        name = re.sub(r"_+", "_", name)

        return name.strip("_")

    def _to_pascal_case(self, name: str) -> str:
        """Convert to PascalCase."""
        parts = self._to_snake_case(name).split("_")
        return "".join(part.capitalize() for part in parts if part)

    def _resolve_conflicts(self, name: str, suffix: str) -> str:
        """Resolve naming conflicts with reserved words and builtin names."""
        if name in self.reserved_words or name in self.builtin_types:
            return f"{name}{suffix}"
        return name


# Python keywords, case-sensitive
PYTHON_RESERVED_WORDS = {
    "False",
    "None",
    "True",
    "and",
    "as",
    "assert",
    "async",
    "await",
    "break",
    "class",
    "continue",
    "def",
    "del",
    "elif",
    "else",
    "except",
    "finally",
    "for",
    "from",
    "global",
    "if",
    "import",
    "in",
    "is",
    "lambda",
    "nonlocal",
    "not",
    "or",
    "pass",
    "raise",
    "return",
    "try",
    "while",
    "with",
    "yield",
}


def create_python_sanitizer(shadowed_names: Set[str] = None) -> NameSanitizer:
    """
    Create a name sanitizer configured for Python.

    Args:
        shadowed_names: Extra names that generated identifiers must not take,
            such as members of a generated class's base class
    """
    return NameSanitizer(PYTHON_RESERVED_WORDS, shadowed_names)


def to_snake_case(name: str) -> str:
    """Convert a name to snake_case without any keyword handling."""
    return NameSanitizer().convert_case(name, NamingCase.SNAKE_CASE)


def to_pascal_case(name: str) -> str:
    """Convert a name to PascalCase without any keyword handling."""
    return NameSanitizer().convert_case(name, NamingCase.PASCAL_CASE)
