"""Class decorator that packs annotated fields into a compact byte array."""

from __future__ import annotations

from typing import Any

from metakit.specifiers import Specifier

_RESERVED = frozenset({"_data", "_size", "_fields"})


class BitfieldError(Exception):
    """Raised when a class cannot be turned into a bitfield."""


class _Field:
    """Descriptor reading and writing one field of a bitfield."""

    def __init__(self, name: str, spec: Specifier, offset: int, shift: int) -> None:
        self.name = name
        self.spec = spec
        self.offset = offset
        self.shift = shift

    def __get__(self, obj: Any, owner: type | None = None) -> Any:
        if obj is None:
            return self
        word = int.from_bytes(obj._data, "big")
        return (word >> self.shift) & self.spec.max_value

    def __set__(self, obj: Any, value: int) -> None:
        if isinstance(value, bool):
            value = int(value)
        if not isinstance(value, int):
            raise TypeError(f"field {self.name!r} takes an int, got {value!r}")
        if not 0 <= value <= self.spec.max_value:
            raise ValueError(
                f"The provided value {value} does not fit inside a {self.spec.bits} bit field!"
            )
        mask = self.spec.max_value << self.shift
        word = int.from_bytes(obj._data, "big")
        word = (word & ~mask) | (value << self.shift)
        obj._data[:] = word.to_bytes(len(obj._data), "big")


class Bitfield:
    """Base of every class produced by :func:`bitfield`."""

    _size: int = 0
    _fields: tuple[str, ...] = ()

    def __init__(self, data: bytes | bytearray | None = None) -> None:
        if data is None:
            self._data = bytearray(self._size)
            return
        raw = bytearray(data)
        if len(raw) != self._size:
            raise ValueError(
                f"{type(self).__name__} takes {self._size} bytes, got {len(raw)}"
            )
        self._data = raw

    def __bytes__(self) -> bytes:
        return bytes(self._data)

    def __len__(self) -> int:
        return self._size

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._data == other._data

    def __hash__(self) -> int:
        return hash((type(self), bytes(self._data)))

    def __repr__(self) -> str:
        values = ", ".join(f"{name}={getattr(self, name)}" for name in self._fields)
        return f"{type(self).__name__}({values})"


def bitfield(cls: type) -> type:
    """Turn a class whose annotations are specifiers into a packed bitfield.

    Fields are laid out in declaration order, most significant bit first.
    The total width must be a whole number of bytes.
    """
    if not isinstance(cls, type):
        raise BitfieldError("bitfield can only be applied to classes")

    annotations = cls.__dict__.get("__annotations__", {})
    specs: list[tuple[str, Specifier]] = []
    for name, spec in annotations.items():
        if name in _RESERVED:
            raise BitfieldError(f"field name {name!r} is reserved")
        if not isinstance(spec, Specifier):
            raise BitfieldError(
                f"field {name!r} must be annotated with a bit specifier, got {spec!r}"
            )
        specs.append((name, spec))

    total = sum(spec.bits for _, spec in specs)
    if total % 8:
        raise BitfieldError(
            f"bitfield {cls.__name__} is {total} bits wide, which is not a multiple of 8"
        )

    namespace = {
        key: value
        for key, value in cls.__dict__.items()
        if key not in ("__dict__", "__weakref__")
    }
    offset = 0
    for name, spec in specs:
        namespace[name] = _Field(name, spec, offset, total - offset - spec.bits)
        offset += spec.bits
    namespace["_size"] = total // 8
    namespace["_fields"] = tuple(name for name, _ in specs)

    if issubclass(cls, Bitfield):
        bases = cls.__bases__
    else:
        bases = tuple(base for base in cls.__bases__ if base is not object) + (Bitfield,)
    return type(cls.__name__, bases, namespace)