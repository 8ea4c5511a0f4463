"""
Runtime support for generated settings bindings.

Generated modules import their base classes from here: ``SettingsBinding``
for the settings class, ``VariantEnum`` and ``VariantFlags`` for enum and
flags types, and ``KeyCodec`` to convert between Python values and the
store's text serialization.

``MemoryBackend`` is an in-process implementation of the backend protocol.
It keeps values for the lifetime of the object only and is meant for tests
and for running generated code without a real settings store.
"""

import enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Protocol, Tuple

from .core.variant import VariantError, format_value, parse_value
from .logging_config import get_logger

logger = get_logger(__name__)

ChangeCallback = Callable[[str], None]


class ReadOnlyKeyError(Exception):
    """Raised when setting a key the backend refuses to write."""

    def __init__(self, schema_id: str, key_name: str):
        self.schema_id = schema_id
        self.key_name = key_name
        super().__init__(f"Key '{key_name}' of schema '{schema_id}' is not writable")


class VariantEnum(enum.Enum):
    """
    Base class of generated enums.

    Subclasses list their nicks in ``__nicks__``; member values are the
    ordinal of the nick in that tuple.
    """

    @property
    def nick(self) -> str:
        return type(self).__nicks__[self.value]

    @classmethod
    def from_nick(cls, nick: str) -> "VariantEnum":
        try:
            return cls(cls.__nicks__.index(nick))
        except ValueError:
            raise ValueError(f"'{nick}' is not a valid {cls.__name__} nick") from None

    def to_variant(self) -> str:
        return format_value(self.nick, "s")

    @classmethod
    def from_variant(cls, text: str) -> "VariantEnum":
        return cls.from_nick(parse_value(text, "s"))

    def __lt__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.value < other.value

    def __le__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.value <= other.value

    def __gt__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.value > other.value

    def __ge__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.value >= other.value


class VariantFlags(enum.Flag):
    """
    Base class of generated flags.

    Subclasses list their nicks in ``__nicks__``; the nick at index ``i``
    is the member with value ``1 << i``. Stored as an array of nicks.
    """

    @property
    def nicks(self) -> List[str]:
        return [
            nick
            for index, nick in enumerate(type(self).__nicks__)
            if self.value & (1 << index)
        ]

    @classmethod
    def from_nicks(cls, nicks: Iterable[str]) -> "VariantFlags":
        value = cls(0)
        for nick in nicks:
            try:
                index = cls.__nicks__.index(nick)
            except ValueError:
                raise ValueError(f"'{nick}' is not a valid {cls.__name__} nick") from None
            value |= cls(1 << index)
        return value

    def to_variant(self) -> str:
        return format_value(self.nicks, "as")

    @classmethod
    def from_variant(cls, text: str) -> "VariantFlags":
        return cls.from_nicks(parse_value(text, "as"))


class KeyCodec:
    """Converts one key's values to and from their serialized text."""

    def __init__(self, type_code: str, value_type: Optional[type] = None):
        """
        Args:
            type_code: Type code of the key
            value_type: Generated enum or flags type, if the key has one
        """
        self.type_code = type_code
        self.value_type = value_type

    def encode(self, value: Any) -> str:
        if self.value_type is not None:
            if not isinstance(value, self.value_type):
                raise VariantError(
                    f"Expected {self.value_type.__name__} for '{self.type_code}', got {value!r}"
                )
            return value.to_variant()
        # User types providing the hook serialize themselves
        if hasattr(value, "to_variant"):
            return value.to_variant()
        return format_value(value, self.type_code)

    def decode(self, text: str) -> Any:
        if self.value_type is not None:
            return self.value_type.from_variant(text)
        return parse_value(text, self.type_code)

    def __repr__(self) -> str:
        if self.value_type is None:
            return f"KeyCodec({self.type_code!r})"
        return f"KeyCodec({self.type_code!r}, {self.value_type.__name__})"


class PropertyBinding:
    """
    Keeps an attribute of an object in sync with a key.

    Key changes are copied to the attribute through a watch on the backend.
    Plain attributes have no change signal, so writes to the attribute are
    sent back to the key by ``push()``.
    """

    def __init__(self, backend: "SettingsBackend", key: str, obj: Any, prop: str,
                 codec: KeyCodec):
        self.key = key
        self.obj = obj
        self.prop = prop
        self._backend = backend
        self._codec = codec
        self._handler_id: Optional[int] = backend.watch(key, self._on_changed)
        self._on_changed(key)

    @property
    def active(self) -> bool:
        return self._handler_id is not None

    def _on_changed(self, key: str):
        setattr(self.obj, self.prop, self._codec.decode(self._backend.read(key)))

    def push(self) -> bool:
        """Write the attribute's current value back to the key."""
        return self._backend.write(self.key, self._codec.encode(getattr(self.obj, self.prop)))

    def unbind(self):
        if self._handler_id is not None:
            self._backend.unwatch(self._handler_id)
            self._handler_id = None


class SettingsAction:
    """
    A stateful action named after a key.

    Boolean keys toggle when activated without a parameter; other keys take
    the new value as parameter.
    """

    def __init__(self, backend: "SettingsBackend", key: str, codec: KeyCodec,
                 enabled: bool = True):
        self.name = key
        self.enabled = enabled
        self._backend = backend
        self._codec = codec

    @property
    def state(self) -> Any:
        return self._codec.decode(self._backend.read(self.name))

    def change_state(self, value: Any) -> bool:
        if not self.enabled:
            return False
        return self._backend.write(self.name, self._codec.encode(value))

    def activate(self, parameter: Any = None) -> bool:
        if parameter is None:
            if self._codec.type_code != "b":
                raise ValueError(f"Action '{self.name}' requires a parameter")
            parameter = not self.state
        return self.change_state(parameter)


class SettingsBackend(Protocol):
    """Capabilities generated bindings need from a settings store."""

    def read(self, key: str) -> str: ...

    def write(self, key: str, text: str) -> bool: ...

    def watch(self, key: str, callback: ChangeCallback) -> int: ...

    def unwatch(self, handler_id: int) -> None: ...

    def bind(self, key: str, obj: Any, prop: str, codec: KeyCodec) -> PropertyBinding: ...

    def create_action(self, key: str, codec: KeyCodec) -> SettingsAction: ...


class MemoryBackend:
    """In-memory settings store holding serialized values."""

    def __init__(self, schema_id: str, defaults: Mapping[str, str],
                 read_only: Iterable[str] = ()):
        """
        Args:
            schema_id: Schema the values belong to
            defaults: Default text per key name
            read_only: Keys whose writes are refused
        """
        self.schema_id = schema_id
        self._defaults = dict(defaults)
        self._values: Dict[str, str] = dict(defaults)
        self._read_only = frozenset(read_only)
        self._watchers: Dict[int, Tuple[str, ChangeCallback]] = {}
        self._next_handler_id = 1

    def _check_key(self, key: str):
        if key not in self._values:
            raise KeyError(f"Schema '{self.schema_id}' has no key '{key}'")

    def read(self, key: str) -> str:
        self._check_key(key)
        return self._values[key]

    def is_writable(self, key: str) -> bool:
        self._check_key(key)
        return key not in self._read_only

    def write(self, key: str, text: str) -> bool:
        """Store a value; returns False when the key is read-only."""
        if not self.is_writable(key):
            logger.debug("Refusing write to read-only key '%s'", key)
            return False

        if self._values[key] != text:
            self._values[key] = text
            self._notify(key)
        return True

    def reset(self, key: str) -> bool:
        self._check_key(key)
        return self.write(key, self._defaults[key])

    def watch(self, key: str, callback: ChangeCallback) -> int:
        self._check_key(key)
        handler_id = self._next_handler_id
        self._next_handler_id += 1
        self._watchers[handler_id] = (key, callback)
        return handler_id

    def unwatch(self, handler_id: int) -> None:
        if self._watchers.pop(handler_id, None) is None:
            raise KeyError(f"No handler with id {handler_id}")

    def _notify(self, key: str):
        for watched_key, callback in list(self._watchers.values()):
            if watched_key == key:
                callback(key)

    def bind(self, key: str, obj: Any, prop: str, codec: KeyCodec) -> PropertyBinding:
        self._check_key(key)
        return PropertyBinding(self, key, obj, prop, codec)

    def create_action(self, key: str, codec: KeyCodec) -> SettingsAction:
        return SettingsAction(self, key, codec, enabled=self.is_writable(key))


class SettingsBinding:
    """
    Base class of generated settings classes.

    Subclasses provide ``_DEFAULTS``, ``_READ_ONLY`` and ``_CODECS`` and
    call the protected helpers from their per-key methods.
    """

    SCHEMA_ID: Optional[str] = None
    _DEFAULTS: Mapping[str, str] = {}
    _READ_ONLY: frozenset = frozenset()
    _CODECS: Mapping[str, KeyCodec] = {}

    def __init__(self, schema_id: str, backend: Optional[SettingsBackend] = None):
        if backend is None:
            backend = MemoryBackend(schema_id, self._DEFAULTS, self._READ_ONLY)
        self._schema_id = schema_id
        self._backend = backend

    @property
    def schema_id(self) -> str:
        return self._schema_id

    @property
    def backend(self) -> SettingsBackend:
        return self._backend

    def disconnect(self, handler_id: int) -> None:
        """Remove a handler returned by a ``connect_*_changed`` method."""
        self._backend.unwatch(handler_id)

    def reset(self, key: str) -> bool:
        """Write a key's schema default back."""
        return self._backend.write(key, self._DEFAULTS[key])

    def _read(self, key: str) -> Any:
        return self._CODECS[key].decode(self._backend.read(key))

    def _write(self, key: str, value: Any) -> bool:
        return self._backend.write(key, self._CODECS[key].encode(value))

    def _set(self, key: str, value: Any) -> None:
        if not self._write(key, value):
            raise ReadOnlyKeyError(self._schema_id, key)

    def _connect_changed(self, key: str, callback: Callable[["SettingsBinding", str], None]) -> int:
        return self._backend.watch(key, lambda changed: callback(self, changed))

    def _bind(self, key: str, obj: Any, prop: str) -> PropertyBinding:
        return self._backend.bind(key, obj, prop, self._CODECS[key])

    def _create_action(self, key: str) -> SettingsAction:
        return self._backend.create_action(key, self._CODECS[key])

    def __repr__(self) -> str:
        return f"{type(self).__name__}(schema_id={self._schema_id!r})"
