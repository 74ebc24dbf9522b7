"""Class decorator giving classes a struct-style debug representation.

``repr`` of a decorated class reads ``Name { field: value, ... }``. Each field
is rendered through a format pattern, ``"{:?}"`` by default, where ``{:?}``
stands for :func:`debug_repr`, ``{}`` for the plain text form and any other
``{:spec}`` for :func:`format` with that spec.
"""

from __future__ import annotations

import dataclasses
import enum
import math
import re
import reprlib
import typing
from dataclasses import dataclass
from typing import Annotated, Any, Callable, Iterable, Iterator, TypeVar


class DebugError(Exception):
    """Raised for invalid format patterns or classes that cannot be decorated."""


_PIECE = re.compile(r"\{\{|\}\}|\{([^{}]*)\}|[{}]")

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\0": "\\0",
}

_CYCLE = {
    list: "[...]",
    tuple: "(...)",
    set: "{...}",
    frozenset: "{...}",
    dict: "{...}",
}


@dataclass(frozen=True)
class _Placeholder:
    spec: str


@dataclass(frozen=True)
class _Pattern:
    text: str
    pieces: tuple[str | _Placeholder, ...]

    @classmethod
    def parse(cls, text: Any) -> _Pattern:
        if not isinstance(text, str):
            raise DebugError(f"Expected a format string, got {text!r}")
        pieces: list[str | _Placeholder] = []
        literal: list[str] = []
        pos = 0
        for match in _PIECE.finditer(text):
            literal.append(text[pos : match.start()])
            pos = match.end()
            token = match.group()
            if token == "{{":
                literal.append("{")
            elif token == "}}":
                literal.append("}")
            elif match.group(1) is None:
                raise DebugError(f"unmatched {token!r} in format string {text!r}")
            else:
                arg, _, spec = match.group(1).partition(":")
                if arg.strip() not in ("", "0"):
                    raise DebugError(
                        f"format string {text!r} refers to argument {arg!r}; "
                        "only the field value is available"
                    )
                if "?" in spec and spec not in ("?", "#?"):
                    raise DebugError(f"unsupported debug spec {spec!r} in {text!r}")
                pieces.append("".join(literal))
                literal = []
                pieces.append(_Placeholder(spec))
        literal.append(text[pos:])
        pieces.append("".join(literal))
        if not any(isinstance(piece, _Placeholder) for piece in pieces):
            raise DebugError(f"format string {text!r} never uses the field value")
        return cls(text, tuple(piece for piece in pieces if piece != ""))

    def render(self, value: Any) -> str:
        return "".join(
            piece if isinstance(piece, str) else _format_value(value, piece.spec)
            for piece in self.pieces
        )


def _display(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _format_value(value: Any, spec: str) -> str:
    if spec in ("?", "#?"):
        return debug_repr(value)
    if spec == "":
        return _display(value)
    return format(value, spec)


_DEFAULT = _Pattern.parse("{:?}")


@dataclass(frozen=True)
class _DebugField:
    pattern: _Pattern


def debug_field(fmt: str) -> Any:
    """Give one field its own format pattern.

    Use as the field's default (``bitmask: int = debug_field("0b{:08b}")``)
    or inside ``Annotated[int, debug_field(...)]``.
    """
    return _DebugField(_Pattern.parse(fmt))


def _quote(text: str) -> str:
    out = []
    for char in text:
        if char in _ESCAPES:
            out.append(_ESCAPES[char])
        elif not char.isprintable():
            out.append(f"\\u{{{ord(char):x}}}")
        else:
            out.append(char)
    return '"' + "".join(out) + '"'


def _debug(value: Any, active: set[int]) -> str:
    if isinstance(value, str):
        return _quote(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "None"
    if isinstance(value, float):
        return "NaN" if math.isnan(value) else repr(value)
    if isinstance(value, (bytes, bytearray)):
        return "[" + ", ".join(str(byte) for byte in value) + "]"
    kind = type(value)
    if kind in _CYCLE:
        key = id(value)
        if key in active:
            return _CYCLE[kind]
        active.add(key)
        try:
            if kind is dict:
                body = ", ".join(
                    f"{_debug(k, active)}: {_debug(v, active)}" for k, v in value.items()
                )
                return "{" + body + "}"
            items = [_debug(item, active) for item in value]
            if kind is list:
                return "[" + ", ".join(items) + "]"
            if kind is tuple:
                return "(" + ", ".join(items) + ("," if len(items) == 1 else "") + ")"
            return "{" + ", ".join(items) + "}"
        finally:
            active.discard(key)
    return repr(value)


def debug_repr(value: Any) -> str:
    """Render ``value`` in debug form: quoted strings, ``true``/``false``, nested containers."""
    return _debug(value, set())


def _split_top(text: str, separator: str) -> list[str]:
    parts: list[str] = []
    current: list[str] = []
    depth = 0
    for char in text:
        if char in "[(":
            depth += 1
        elif char in "])":
            depth -= 1
        if char == separator and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    parts.append("".join(current).strip())
    return parts


def _split_head(text: str) -> tuple[str, list[str]]:
    start = text.find("[")
    if start == -1 or not text.endswith("]"):
        return text, []
    return text[:start].strip(), _split_top(text[start + 1 : -1], ",")


def _text_generic_about(text: str, name: str) -> str | None:
    if text == name:
        return text
    parts = _split_top(text, "|")
    if len(parts) > 1:
        args = parts
    else:
        head, args = _split_head(text)
        segments = head.split(".")
        if len(segments) > 1 and segments[0].strip() == name:
            return text
    for arg in args:
        if not arg:
            continue
        found = _text_generic_about(arg, name)
        if found is not None:
            return text if found == name else found
    return None


def _flatten(args: Iterable[Any]) -> Iterator[Any]:
    for arg in args:
        if isinstance(arg, (list, tuple)):
            yield from _flatten(arg)
        else:
            yield arg


def _is_param(found: Any, name: str) -> bool:
    if isinstance(found, TypeVar):
        return found.__name__ == name
    return isinstance(found, str) and found == name


def _generic_about(annotation: Any, name: str) -> Any:
    if isinstance(annotation, typing.ForwardRef):
        annotation = annotation.__forward_arg__
    if isinstance(annotation, str):
        return _text_generic_about(annotation.strip(), name)
    if isinstance(annotation, TypeVar):
        return annotation if annotation.__name__ == name else None
    for arg in _flatten(typing.get_args(annotation)):
        found = _generic_about(arg, name)
        if found is not None:
            return annotation if _is_param(found, name) else found
    return None


def _param_name(param: Any) -> str:
    if isinstance(param, TypeVar):
        return param.__name__
    if isinstance(param, str) and param.isidentifier():
        return param
    raise DebugError(f"expected a type parameter, got {param!r}")


def type_is_generic_about(annotation: Any, param: Any) -> Any:
    """Return the part of ``annotation`` that depends on the type parameter ``param``.

    ``T`` gives ``T``, ``list[T]`` gives ``list[T]``, a path such as ``"T.Value"``
    gives itself, and a deeper dependency such as ``Optional[Two[T]]`` gives the
    innermost type wrapping the parameter (``Two[T]``). Returns None when the
    annotation does not mention the parameter.
    """
    return _generic_about(annotation, _param_name(param))


def _own_annotations(klass: type) -> dict[str, Any]:
    annotations = klass.__dict__.get("__annotations__")
    if annotations is None:
        try:
            annotations = klass.__annotations__
        except AttributeError:
            return {}
    return dict(annotations) if isinstance(annotations, dict) else {}


def _annotations(cls: type) -> dict[str, Any]:
    hints: dict[str, Any] = {}
    for klass in reversed(cls.__mro__):
        hints.update(_own_annotations(klass))
    return hints


def _is_excluded(annotation: Any) -> bool:
    if isinstance(annotation, str):
        return re.match(r"^(?:typing\.)?ClassVar\b|^(?:dataclasses\.)?InitVar\b", annotation.strip()) is not None
    if annotation is typing.ClassVar or typing.get_origin(annotation) is typing.ClassVar:
        return True
    return annotation is dataclasses.InitVar or isinstance(annotation, dataclasses.InitVar)


def _unwrap(annotation: Any) -> tuple[Any, list[_Pattern]]:
    if typing.get_origin(annotation) is Annotated:
        inner, *metadata = typing.get_args(annotation)
        return inner, [item.pattern for item in metadata if isinstance(item, _DebugField)]
    return annotation, []


def _bounds(cls: type, annotations: Iterable[Any]) -> dict[str, Any]:
    params = [p for p in getattr(cls, "__parameters__", ()) if isinstance(p, TypeVar)]
    bounds: dict[str, Any] = {}
    for annotation in annotations:
        for param in params:
            if param.__name__ in bounds:
                continue
            found = type_is_generic_about(annotation, param)
            if found is not None:
                bounds[param.__name__] = found
    return bounds


def _derive_tuple(cls: type) -> type:
    title = cls.__name__
    hints = _annotations(cls)
    cls.__debug_bounds__ = _bounds(  # type: ignore[attr-defined]
        cls, (_unwrap(hints[name])[0] for name in cls._fields if name in hints)  # type: ignore[attr-defined]
    )

    @reprlib.recursive_repr()
    def __repr__(self: Any) -> str:
        if len(self) == 0:
            return title
        return f"{title}({', '.join(debug_repr(item) for item in self)})"

    __repr__.__qualname__ = f"{cls.__qualname__}.__repr__"
    cls.__repr__ = __repr__  # type: ignore[method-assign]
    return cls


def _derive_struct(cls: type, default: _Pattern) -> type:
    hints = _annotations(cls)
    inherited: dict[str, _Pattern] = {}
    for base in reversed(cls.__mro__[1:]):
        inherited.update(base.__dict__.get("_debug_patterns", {}))
    dataclass_fields = (
        {field.name for field in dataclasses.fields(cls)} if dataclasses.is_dataclass(cls) else set()
    )

    names: list[str] = []
    explicit: dict[str, _Pattern] = {}
    types: list[Any] = []
    for name, annotation in hints.items():
        if _is_excluded(annotation):
            continue
        annotation, found = _unwrap(annotation)
        marker = cls.__dict__.get(name)
        if isinstance(marker, _DebugField):
            if name in dataclass_fields:
                raise DebugError(
                    f"field {name!r} uses debug_field() as a dataclass default; "
                    "apply custom_debug below dataclass or use Annotated"
                )
            found.append(marker.pattern)
            delattr(cls, name)
        names.append(name)
        types.append(annotation)
        if found:
            explicit[name] = found[-1]
        elif name in inherited:
            explicit[name] = inherited[name]

    title = cls.__name__
    fields = tuple((name, explicit.get(name, default)) for name in names)

    @reprlib.recursive_repr()
    def __repr__(self: Any) -> str:
        if not fields:
            return title
        body = ", ".join(
            f"{name}: {pattern.render(getattr(self, name))}" for name, pattern in fields
        )
        return f"{title} {{ {body} }}"

    __repr__.__qualname__ = f"{cls.__qualname__}.__repr__"
    cls.__repr__ = __repr__  # type: ignore[method-assign]
    cls._debug_patterns = explicit  # type: ignore[attr-defined]
    cls.__debug_bounds__ = _bounds(cls, types)  # type: ignore[attr-defined]
    return cls


def custom_debug(cls: type | None = None, *, fmt: str | None = None) -> Any:
    """Give ``cls`` a ``Name { field: value }`` representation.

    ``fmt`` replaces the default ``"{:?}"`` pattern for every field without
    its own :func:`debug_field`. Named tuples render as ``Name(a, b)``.
    The inferred type-parameter dependencies are stored in ``__debug_bounds__``.
    """
    if cls is None:
        def decorate(target: type) -> type:
            return custom_debug(target, fmt=fmt)

        return decorate
    default = _DEFAULT if fmt is None else _Pattern.parse(fmt)
    if not isinstance(cls, type) or issubclass(cls, enum.Enum):
        raise DebugError("Currently you can just derive CustomDebug on classes with fields")
    if issubclass(cls, tuple) and hasattr(cls, "_fields"):
        return _derive_tuple(cls)
    return _derive_struct(cls, default)


_Decorator = Callable[[type], type]