"""
GVariant text format codec.

The settings store serializes every value in the GVariant text format
(``true``, ``600``, ``'bark'``, ``(1, 2)``, ``['a', 'b']``). This module
parses that format into plain Python values, checks them against a type
code, and renders Python values back in canonical form.

Decoded shapes:
    b -> bool, y/n/q/i/u/x/t/h -> int, d -> float, s/o/g -> str,
    tuples -> tuple, arrays -> list, dictionaries -> dict, maybe -> value or None,
    bytestrings (b'abc') -> list of byte values ending in 0
"""

import math
import re
from typing import Any, Dict, List, Optional


class VariantError(Exception):
    """Exception raised for malformed variant text, signatures or values."""

    pass


BASIC_TYPE_CODES = "bynqiuxtdsogh"

INTEGER_RANGES = {
    "y": (0, 2**8 - 1),
    "n": (-(2**15), 2**15 - 1),
    "q": (0, 2**16 - 1),
    "i": (-(2**31), 2**31 - 1),
    "u": (0, 2**32 - 1),
    "x": (-(2**63), 2**63 - 1),
    "t": (0, 2**64 - 1),
    "h": (-(2**31), 2**31 - 1),
}

STRING_TYPE_CODES = "sog"

# Type keywords allowed in front of a value, e.g. "uint32 5"
TYPE_KEYWORDS = {
    "boolean": "b",
    "byte": "y",
    "int16": "n",
    "uint16": "q",
    "int32": "i",
    "uint32": "u",
    "int64": "x",
    "uint64": "t",
    "handle": "h",
    "double": "d",
    "string": "s",
    "objectpath": "o",
    "signature": "g",
}

_ESCAPES_IN = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
}

_ESCAPES_OUT = {value: f"\\{key}" for key, value in _ESCAPES_IN.items()}

_NUMBER_PATTERN = re.compile(
    r"[+-]?(?:inf|nan|0[xX][0-9a-fA-F]+|(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?)"
)
_WORD_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_OCTAL_PATTERN = re.compile(r"[0-7]{1,3}")


# Signatures


def _complete_type_end(signature: str, start: int) -> int:
    """Return the index just past the complete type starting at ``start``."""
    if start >= len(signature):
        raise VariantError(f"Incomplete type signature: {signature!r}")

    char = signature[start]
    if char in BASIC_TYPE_CODES or char == "v":
        return start + 1
    if char in "am":
        return _complete_type_end(signature, start + 1)
    if char == "(":
        index = start + 1
        while index < len(signature) and signature[index] != ")":
            index = _complete_type_end(signature, index)
        if index >= len(signature):
            raise VariantError(f"Unterminated tuple in signature: {signature!r}")
        return index + 1
    if char == "{":
        if start + 1 >= len(signature) or signature[start + 1] not in BASIC_TYPE_CODES:
            raise VariantError(
                f"Dictionary entry key must be a basic type: {signature!r}"
            )
        value_end = _complete_type_end(signature, start + 2)
        if value_end >= len(signature) or signature[value_end] != "}":
            raise VariantError(f"Unterminated dictionary entry: {signature!r}")
        return value_end + 1

    raise VariantError(f"Invalid character {char!r} in signature {signature!r}")


def split_signature(signature: str) -> List[str]:
    """Split a sequence of complete types, e.g. ``"sai"`` -> ``["s", "ai"]``."""
    types = []
    index = 0
    while index < len(signature):
        end = _complete_type_end(signature, index)
        types.append(signature[index:end])
        index = end
    return types


def is_valid_signature(signature: str) -> bool:
    """Check that a string is exactly one complete type."""
    try:
        return len(split_signature(signature)) == 1
    except VariantError:
        return False


def _tuple_members(type_code: str) -> List[str]:
    return split_signature(type_code[1:-1])


def _dict_members(type_code: str) -> List[str]:
    # "a{sv}" -> ["s", "v"]
    return split_signature(type_code[2:-1])


# Parsing


class _VariantParser:
    """Recursive descent parser for one GVariant text value."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def parse(self) -> Any:
        value = self._parse_value()
        self._skip_space()
        if self.pos != len(self.text):
            raise self._error("Unexpected trailing text")
        return value

    def _error(self, message: str) -> VariantError:
        return VariantError(f"{message} at position {self.pos} in {self.text!r}")

    def _skip_space(self):
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def _peek(self) -> str:
        self._skip_space()
        if self.pos >= len(self.text):
            raise self._error("Unexpected end of input")
        return self.text[self.pos]

    def _expect(self, char: str):
        if self._peek() != char:
            raise self._error(f"Expected {char!r}")
        self.pos += 1

    def _parse_value(self) -> Any:
        char = self._peek()

        if char == "(":
            return self._parse_tuple()
        if char == "[":
            return self._parse_array()
        if char == "{":
            return self._parse_dict()
        if char == "<":
            self.pos += 1
            value = self._parse_value()
            self._expect(">")
            return value
        if char in "'\"":
            return self._parse_string()
        if char == "b" and self.text[self.pos + 1 : self.pos + 2] in ("'", '"'):
            self.pos += 1
            return self._parse_bytestring()
        if char == "@":
            # Type annotations only matter for empty containers
            self.pos = _complete_type_end(self.text, self.pos + 1)
            return self._parse_value()
        if char in "+-." or char.isdigit():
            return self._parse_number()
        if char.isalpha():
            return self._parse_word()

        raise self._error(f"Unexpected character {char!r}")

    def _parse_sequence(self, closing: str) -> List[Any]:
        items = []
        self.pos += 1
        if self._peek() == closing:
            self.pos += 1
            return items

        while True:
            items.append(self._parse_value())
            char = self._peek()
            if char == ",":
                self.pos += 1
                if self._peek() == closing:
                    self.pos += 1
                    return items
            elif char == closing:
                self.pos += 1
                return items
            else:
                raise self._error(f"Expected ',' or {closing!r}")

    def _parse_tuple(self) -> tuple:
        return tuple(self._parse_sequence(")"))

    def _parse_array(self) -> list:
        return self._parse_sequence("]")

    def _parse_dict(self) -> Dict[Any, Any]:
        result = {}
        self.pos += 1
        if self._peek() == "}":
            self.pos += 1
            return result

        while True:
            key = self._parse_value()
            self._expect(":")
            try:
                result[key] = self._parse_value()
            except TypeError as e:
                raise self._error(f"Unhashable dictionary key {key!r}") from e
            char = self._peek()
            self.pos += 1
            if char == "}":
                return result
            if char != ",":
                self.pos -= 1
                raise self._error("Expected ',' or '}'")

    def _parse_string(self) -> str:
        quote = self.text[self.pos]
        self.pos += 1
        chars = []

        while self.pos < len(self.text):
            char = self.text[self.pos]
            if char == quote:
                self.pos += 1
                return "".join(chars)
            if char == "\\":
                chars.append(self._parse_escape())
                continue
            chars.append(char)
            self.pos += 1

        raise self._error("Unterminated string")

    def _parse_bytestring(self) -> List[int]:
        quote = self.text[self.pos]
        self.pos += 1
        data = bytearray()

        while self.pos < len(self.text):
            char = self.text[self.pos]
            if char == quote:
                self.pos += 1
                # Bytestrings carry their nul terminator
                data.append(0)
                return list(data)
            if char == "\\":
                data.extend(self._parse_byte_escape())
                continue
            data.extend(char.encode("utf-8"))
            self.pos += 1

        raise self._error("Unterminated bytestring")

    def _parse_byte_escape(self) -> bytes:
        self.pos += 1
        if self.pos >= len(self.text):
            raise self._error("Unterminated escape sequence")

        octal = _OCTAL_PATTERN.match(self.text, self.pos)
        if octal:
            self.pos = octal.end()
            value = int(octal.group(0), 8)
            if value > 0xFF:
                raise self._error("Octal escape out of byte range")
            return bytes([value])

        char = self.text[self.pos]
        self.pos += 1
        return _ESCAPES_IN.get(char, char).encode("utf-8")

    def _parse_escape(self) -> str:
        self.pos += 1
        if self.pos >= len(self.text):
            raise self._error("Unterminated escape sequence")

        char = self.text[self.pos]
        self.pos += 1
        if char in _ESCAPES_IN:
            return _ESCAPES_IN[char]
        if char in "uU":
            width = 4 if char == "u" else 8
            digits = self.text[self.pos : self.pos + width]
            if len(digits) != width or not re.fullmatch(r"[0-9a-fA-F]+", digits):
                raise self._error("Invalid unicode escape")
            self.pos += width
            return chr(int(digits, 16))
        return char

    def _parse_number(self):
        match = _NUMBER_PATTERN.match(self.text, self.pos)
        if not match:
            raise self._error("Invalid number")

        token = match.group(0)
        self.pos = match.end()
        lowered = token.lower()

        if "0x" in lowered:
            return int(token, 16)
        if any(marker in lowered for marker in (".", "e", "inf", "nan")):
            return float(token)
        return int(token)

    def _parse_word(self):
        match = _WORD_PATTERN.match(self.text, self.pos)
        if match is None:
            raise self._error(f"Unexpected character {self.text[self.pos]!r}")
        word = match.group(0)
        self.pos = match.end()

        if word == "true":
            return True
        if word == "false":
            return False
        if word == "nothing":
            return None
        if word == "inf":
            return math.inf
        if word == "nan":
            return math.nan
        if word == "just" or word in TYPE_KEYWORDS:
            return self._parse_value()

        self.pos = match.start()
        raise self._error(f"Unknown keyword {word!r}")


def parse_value(text: str, type_code: Optional[str] = None) -> Any:
    """
    Parse GVariant text into a Python value.

    Args:
        text: Serialized value
        type_code: Optional type code the value must match

    Returns:
        Decoded value, coerced to the type code shape when given

    Raises:
        VariantError: If the text is malformed or does not match the type code
    """
    if text is None:
        raise VariantError("Cannot parse a missing value")

    value = _VariantParser(text).parse()
    if type_code is not None:
        value = coerce_value(value, type_code)
    return value


# Shape checking


def coerce_value(value: Any, type_code: str) -> Any:
    """Check a Python value against a type code and normalize its shape."""
    if not is_valid_signature(type_code):
        raise VariantError(f"Invalid type code: {type_code!r}")
    return _coerce(value, type_code)


def _coerce(value: Any, code: str) -> Any:
    if code == "b":
        if not isinstance(value, bool):
            raise VariantError(f"Expected a boolean, got {value!r}")
        return value

    if code in INTEGER_RANGES:
        if isinstance(value, bool) or not isinstance(value, int):
            raise VariantError(f"Expected an integer for '{code}', got {value!r}")
        low, high = INTEGER_RANGES[code]
        if not low <= value <= high:
            raise VariantError(f"Integer {value} out of range for '{code}'")
        return value

    if code == "d":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise VariantError(f"Expected a number, got {value!r}")
        return float(value)

    if code in STRING_TYPE_CODES:
        if not isinstance(value, str):
            raise VariantError(f"Expected a string for '{code}', got {value!r}")
        return value

    if code == "v":
        return value

    if code.startswith("m"):
        return None if value is None else _coerce(value, code[1:])

    if code.startswith("a{"):
        if not isinstance(value, dict):
            raise VariantError(f"Expected a dictionary for '{code}', got {value!r}")
        key_code, value_code = _dict_members(code)
        return {
            _coerce(key, key_code): _coerce(item, value_code)
            for key, item in value.items()
        }

    if code.startswith("a"):
        if isinstance(value, (str, bytes, dict)) or not hasattr(value, "__iter__"):
            raise VariantError(f"Expected an array for '{code}', got {value!r}")
        return [_coerce(item, code[1:]) for item in value]

    if code.startswith("("):
        members = _tuple_members(code)
        if not isinstance(value, (tuple, list)) or len(value) != len(members):
            raise VariantError(
                f"Expected a tuple of {len(members)} items for '{code}', got {value!r}"
            )
        return tuple(_coerce(item, member) for item, member in zip(value, members))

    raise VariantError(f"Unsupported type code: {code!r}")


# Formatting


def format_value(value: Any, type_code: str) -> str:
    """
    Render a Python value as canonical GVariant text.

    Args:
        value: Value to serialize
        type_code: Type code describing the value

    Returns:
        Serialized text

    Raises:
        VariantError: If the value does not match the type code
    """
    return _format(coerce_value(value, type_code), type_code)


def _format(value: Any, code: str) -> str:
    if code == "b":
        return "true" if value else "false"
    if code in INTEGER_RANGES:
        return str(value)
    if code == "d":
        return _format_double(value)
    if code in STRING_TYPE_CODES:
        return _quote(value)
    if code == "v":
        inner = infer_signature(value)
        return f"<{_format(_coerce(value, inner), inner)}>"

    if code.startswith("m"):
        if value is None:
            return f"@{code} nothing"
        return f"just {_format(value, code[1:])}"

    if code == "ay" and _is_bytestring(value):
        return _quote_bytes(value)

    if code.startswith("a{"):
        if not value:
            return f"@{code} {{}}"
        key_code, value_code = _dict_members(code)
        entries = ", ".join(
            f"{_format(key, key_code)}: {_format(item, value_code)}"
            for key, item in value.items()
        )
        return "{" + entries + "}"

    if code.startswith("a"):
        if not value:
            return f"@{code} []"
        return "[" + ", ".join(_format(item, code[1:]) for item in value) + "]"

    if code.startswith("("):
        items = [
            _format(item, member) for item, member in zip(value, _tuple_members(code))
        ]
        if len(items) == 1:
            return f"({items[0]},)"
        return "(" + ", ".join(items) + ")"

    raise VariantError(f"Unsupported type code: {code!r}")


def _format_double(value: float) -> str:
    if math.isnan(value):
        return "nan"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    return repr(float(value))


def _quote(text: str) -> str:
    # GLib prefers single quotes unless the text itself contains one
    quote = '"' if "'" in text and '"' not in text else "'"
    escaped = []
    for char in text:
        if char == "\\" or char == quote:
            escaped.append("\\" + char)
        elif char in _ESCAPES_OUT:
            escaped.append(_ESCAPES_OUT[char])
        elif ord(char) < 0x20:
            escaped.append(f"\\u{ord(char):04x}")
        else:
            escaped.append(char)
    return quote + "".join(escaped) + quote


def _is_bytestring(value: List[int]) -> bool:
    return bool(value) and value[-1] == 0 and 0 not in value[:-1]


def _quote_bytes(value: List[int]) -> str:
    escaped = []
    for byte in value[:-1]:
        char = chr(byte)
        if char in ("\\", "'"):
            escaped.append("\\" + char)
        elif char in _ESCAPES_OUT:
            escaped.append(_ESCAPES_OUT[char])
        elif 0x20 <= byte < 0x7F:
            escaped.append(char)
        else:
            escaped.append(f"\\{byte:03o}")
    return "b'" + "".join(escaped) + "'"


def infer_signature(value: Any) -> str:
    """Guess the type code of a decoded value held inside a variant."""
    if isinstance(value, bool):
        return "b"
    if isinstance(value, int):
        low, high = INTEGER_RANGES["i"]
        return "i" if low <= value <= high else "x"
    if isinstance(value, float):
        return "d"
    if isinstance(value, str):
        return "s"
    if isinstance(value, tuple):
        return "(" + "".join(infer_signature(item) for item in value) + ")"
    if isinstance(value, list):
        return "a" + (infer_signature(value[0]) if value else "v")
    if isinstance(value, dict):
        if not value:
            return "a{sv}"
        key, item = next(iter(value.items()))
        return "a{" + infer_signature(key) + infer_signature(item) + "}"
    raise VariantError(f"Cannot infer a type for {value!r}")
