"""Class decorator that generates a fluent builder for annotated classes."""

from __future__ import annotations

import copy
import enum
import keyword
import re
import types
import typing
from dataclasses import dataclass
from typing import Any, Callable


class BuilderError(Exception):
    """Raised when a builder cannot be generated or a build is incomplete."""


class _Missing:
    def __repr__(self) -> str:
        return "<unset>"


_MISSING: Any = _Missing()

_RESERVED = frozenset({"build", "_values", "_target", "_specs"})

_OPTIONAL_TEXT = re.compile(r"^(?:typing\.)?Optional\[(.*)\]$", re.S)
_UNION_TEXT = re.compile(r"^(?:typing\.)?Union\[(.*)\]$", re.S)
_LIST_TEXT = re.compile(r"^(?:typing\.)?(?:list|List)(?:\[(.*)\])?$", re.S)
_CLASSVAR_TEXT = re.compile(r"^(?:typing\.)?ClassVar\b")


@dataclass(frozen=True)
class _Each:
    name: str


def each(name: str) -> Any:
    """Mark a list field so the builder gains a method adding one item at a time.

    Use as the field's default: ``args: list[str] = each("arg")``.
    """
    if not isinstance(name, str):
        raise BuilderError(
            f"Expected string, got {name!r}\nhelp: Consider each(\"...\")"
        )
    if not name.isidentifier() or keyword.iskeyword(name):
        raise BuilderError(f"{name!r} is not a valid method name")
    return _Each(name)


class _Kind(enum.Enum):
    REQUIRED = "required"
    OPTIONAL = "optional"
    LIST = "list"


@dataclass(frozen=True)
class _FieldSpec:
    name: str
    kind: _Kind
    each: str | None = None

    def initial(self) -> Any:
        if self.kind is _Kind.OPTIONAL:
            return None
        if self.kind is _Kind.LIST:
            return []
        return _MISSING


def _split_top(text: str, separator: str) -> list[str]:
    """Split ``text`` on ``separator`` where it is not nested in brackets."""
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


def _looks_like_list(annotation: Any) -> bool:
    if isinstance(annotation, typing.ForwardRef):
        annotation = annotation.__forward_arg__
    if isinstance(annotation, str):
        return _LIST_TEXT.match(annotation.strip()) is not None
    return annotation is list or typing.get_origin(annotation) is list


def _classify_text(text: str) -> tuple[_Kind, bool]:
    text = text.strip()
    optional = _OPTIONAL_TEXT.match(text)
    union = _UNION_TEXT.match(text)
    if optional:
        members = [optional.group(1).strip(), "None"]
    elif union:
        members = _split_top(union.group(1), ",")
    else:
        members = _split_top(text, "|")
    if len(members) > 1 and "None" in members:
        rest = [member for member in members if member != "None"]
        return _Kind.OPTIONAL, any(_looks_like_list(member) for member in rest)
    if _looks_like_list(text):
        return _Kind.LIST, False
    return _Kind.REQUIRED, False


def _classify(annotation: Any) -> tuple[_Kind, bool]:
    """Return the field kind and whether an optional wraps a list."""
    if isinstance(annotation, typing.ForwardRef):
        annotation = annotation.__forward_arg__
    if isinstance(annotation, str):
        return _classify_text(annotation)
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        members = typing.get_args(annotation)
        if type(None) in members:
            rest = [member for member in members if member is not type(None)]
            return _Kind.OPTIONAL, any(_looks_like_list(member) for member in rest)
    if _looks_like_list(annotation):
        return _Kind.LIST, False
    return _Kind.REQUIRED, False


def _is_classvar(annotation: Any) -> bool:
    if isinstance(annotation, typing.ForwardRef):
        annotation = annotation.__forward_arg__
    if isinstance(annotation, str):
        return _CLASSVAR_TEXT.match(annotation.strip()) is not None
    return annotation is typing.ClassVar or typing.get_origin(annotation) is typing.ClassVar


class Builder:
    """Base of every builder produced by :func:`builder`."""

    _target: type = object
    _specs: tuple[_FieldSpec, ...] = ()

    def __init__(self) -> None:
        self._values: dict[str, Any] = {spec.name: spec.initial() for spec in self._specs}

    def build(self) -> Any:
        """Create the target object; raise BuilderError if a required field is unset."""
        values = {}
        for spec in self._specs:
            value = self._values[spec.name]
            if value is _MISSING:
                raise BuilderError(f"{spec.name} is not set")
            values[spec.name] = copy.copy(value)
        instance = self._target.__new__(self._target)
        for name, value in values.items():
            object.__setattr__(instance, name, value)
        return instance

    def __repr__(self) -> str:
        values = ", ".join(f"{name}={value!r}" for name, value in self._values.items())
        return f"{type(self).__name__}({values})"


def _setter(name: str) -> Callable[[Builder, Any], Builder]:
    def set_value(self: Builder, value: Any) -> Builder:
        self._values[name] = value
        return self

    set_value.__name__ = name
    set_value.__doc__ = f"Set ``{name}``."
    return set_value


def _list_setter(name: str) -> Callable[[Builder, Any], Builder]:
    def set_items(self: Builder, items: Any) -> Builder:
        self._values[name] = list(items)
        return self

    set_items.__name__ = name
    set_items.__doc__ = f"Replace all items of ``{name}``."
    return set_items


def _adder(field: str, method: str) -> Callable[[Builder, Any], Builder]:
    def add_item(self: Builder, item: Any) -> Builder:
        self._values[field].append(item)
        return self

    add_item.__name__ = method
    add_item.__doc__ = f"Append one item to ``{field}``."
    return add_item


def builder(cls: type) -> type:
    """Give ``cls`` a ``builder()`` static method returning a fluent builder.

    Fields annotated as optional default to None, list fields default to an
    empty list, and every other field must be set before ``build()``.
    """
    if not isinstance(cls, type):
        raise BuilderError("A Builder can just be applied to classes with named fields")

    raw = dict(cls.__dict__.get("__annotations__", {}))
    specs: list[_FieldSpec] = []
    methods: dict[str, Callable[..., Any]] = {}
    markers: list[str] = []

    def add_method(method: str, function: Callable[..., Any]) -> None:
        if method in _RESERVED or method in methods:
            raise BuilderError(f"builder method {method!r} conflicts with another name")
        methods[method] = function

    for name, annotation in raw.items():
        if _is_classvar(annotation):
            continue
        default = cls.__dict__.get(name, _MISSING)
        each_name: str | None = None
        if isinstance(default, _Each):
            each_name = default.name
            markers.append(name)
        elif default is not _MISSING:
            raise BuilderError(
                f"Unknown attribute on field {name!r}: {default!r}\navailable: [ each(...) ]"
            )

        kind, wraps_list = _classify(annotation)
        if each_name is not None and kind is not _Kind.LIST:
            raise BuilderError(f"The each attribute is just for lists (field {name!r})")
        if kind is _Kind.OPTIONAL and wraps_list:
            raise BuilderError(
                f"The field {name} contains an optional list\n"
                "Please use an empty list as None instead"
            )

        specs.append(_FieldSpec(name, kind, each_name))
        if kind is _Kind.LIST:
            if each_name is not None:
                add_method(each_name, _adder(name, each_name))
            if each_name != name:
                add_method(name, _list_setter(name))
        else:
            add_method(name, _setter(name))

    builder_cls = type(
        f"{cls.__name__}Builder",
        (Builder,),
        {
            "__module__": cls.__module__,
            "__doc__": f"Builder for :class:`{cls.__name__}`.",
            "_target": cls,
            "_specs": tuple(specs),
            **methods,
        },
    )

    for name in markers:
        delattr(cls, name)

    def make_builder() -> Builder:
        return builder_cls()

    make_builder.__name__ = "builder"
    make_builder.__doc__ = f"Return an empty {builder_cls.__name__}."
    cls.builder = staticmethod(make_builder)  # type: ignore[attr-defined]
    return cls