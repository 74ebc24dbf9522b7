"""Checks that enum members and match arms are written in alphabetical order.

Enums are checked with the :func:`sorted_enum` class decorator. A ``match``
statement is checked when the line directly above it (or one of the comment
lines directly above it) is the comment ``# sorted`` and the function holding
it carries the :func:`check` decorator, or when its source is handed to
:func:`check_source`.
"""

from __future__ import annotations

import ast
import enum
import inspect
import re
import textwrap
from typing import Any, Callable, Iterable, TypeVar

_F = TypeVar("_F", bound=Callable[..., Any])

_MARKER = re.compile(r"^#\s*sorted\s*$")

_NOT_ENUM = (
    "sorted is for enums only"
    "\nhelp: you applied sorted_enum here"
    "\nhelp: consider removing sorted_enum or refactoring into a plain class"
    "\nhelp: check can be applied to functions to allow '# sorted' on match statements"
)

_NOT_FUNCTION = (
    "check is for functions only"
    "\nhelp: you applied check here"
    "\nhelp: consider removing check or refactoring into a function"
    "\nhelp: sorted_enum can be applied to enums"
    "\nhelp: '# sorted' can be placed above match statements inside functions with check"
)

_UNSUPPORTED = (
    "unsupported match arm pattern"
    "\nhelp: '# sorted' can just be applied to match statements that match enum variants"
)


class SortedError(Exception):
    """Raised when names are out of order or cannot be checked."""

    def __init__(
        self, message: str, lineno: int | None = None, col_offset: int | None = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.lineno = lineno
        self.col_offset = col_offset


def _position(node: ast.AST | None) -> tuple[int | None, int | None]:
    if node is None:
        return None, None
    return getattr(node, "lineno", None), getattr(node, "col_offset", None)


def _check_order(items: Iterable[tuple[str, ast.AST | None]]) -> None:
    iterator = iter(items)
    first = next(iterator, None)
    if first is None:
        return
    previous = first[0]
    for name, node in iterator:
        if name < previous:
            raise SortedError(f"{name} should sort before {previous}", *_position(node))
        previous = name


def idents_in_order(names: Iterable[str]) -> None:
    """Raise SortedError if a name sorts before the one written just before it."""
    _check_order((name, None) for name in names)


def sorted_enum(cls: type) -> type:
    """Require the members of an enum to be declared in alphabetical order."""
    if not isinstance(cls, type) or not issubclass(cls, enum.Enum):
        raise SortedError(_NOT_ENUM)
    idents_in_order(cls.__members__)
    return cls


def _path_tail(node: ast.expr) -> str | None:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    return None


def _pattern_name(pattern: ast.pattern) -> str | None:
    if isinstance(pattern, ast.MatchClass):
        return _path_tail(pattern.cls)
    if isinstance(pattern, ast.MatchValue):
        return _path_tail(pattern.value)
    if isinstance(pattern, ast.MatchAs) and pattern.name is not None:
        return pattern.name
    return None


def _is_wildcard(pattern: ast.pattern) -> bool:
    return isinstance(pattern, ast.MatchAs) and pattern.pattern is None and pattern.name is None


def _arm_names(node: ast.Match) -> list[tuple[str, ast.AST]]:
    names: list[tuple[str, ast.AST]] = []
    last = len(node.cases) - 1
    for index, case in enumerate(node.cases):
        pattern = case.pattern
        if _is_wildcard(pattern):
            if index < last:
                raise SortedError("_ should be at last position", *_position(pattern))
            continue
        name = _pattern_name(pattern)
        if name is None:
            raise SortedError(_UNSUPPORTED, *_position(pattern))
        names.append((name, pattern))
    return names


def _is_marked(lines: list[str], lineno: int) -> bool:
    index = lineno - 2
    while index >= 0:
        text = lines[index].strip()
        if not text.startswith("#"):
            return False
        if _MARKER.match(text):
            return True
        index -= 1
    return False


class _MatchChecker(ast.NodeVisitor):
    def __init__(self, lines: list[str]) -> None:
        self.lines = lines
        self.error: SortedError | None = None
        self.checked = 0

    def visit_Match(self, node: ast.Match) -> None:
        if _is_marked(self.lines, node.lineno):
            self.checked += 1
            try:
                _check_order(_arm_names(node))
            except SortedError as error:
                self.error = error
        self.generic_visit(node)


def check_source(source: str) -> int:
    """Check every ``# sorted`` match statement in ``source``.

    Returns how many marked match statements were checked. If several are
    wrong, the error of the last one visited is raised.
    """
    tree = ast.parse(source)
    checker = _MatchChecker(source.splitlines())
    checker.visit(tree)
    if checker.error is not None:
        raise checker.error
    return checker.checked


def check(func: _F) -> _F:
    """Check the ``# sorted`` match statements of ``func`` and return it unchanged."""
    if not inspect.isfunction(func):
        raise SortedError(_NOT_FUNCTION)
    try:
        lines, start = inspect.getsourcelines(func)
    except (OSError, TypeError) as error:
        raise SortedError(f"source of {func.__qualname__} is not available") from error
    source = textwrap.dedent("".join(lines))
    try:
        check_source(source)
    except SortedError as error:
        if error.lineno is not None:
            error.lineno += start - 1
        raise
    except SyntaxError as error:
        raise SortedError(f"source of {func.__qualname__} cannot be parsed") from error
    return func