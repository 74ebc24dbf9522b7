"""Repeat a token template over an integer range, pasting the counter in."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Iterable


class SeqError(Exception):
    """Raised for malformed input to :func:`seq`."""


_CLOSERS = {"(": ")", "[": "]", "{": "}"}

_PUNCTS = sorted(
    [
        "<<=", ">>=", "...", "..=", "::", "->", "=>", "==", "!=", "<=", ">=",
        "&&", "||", "+=", "-=", "*=", "/=", "%=", "^=", "&=", "|=", "<<", ">>",
        "..",
    ],
    key=len,
    reverse=True,
)

_LEXEMES = (
    (None, re.compile(r"\s+|//[^\n]*")),
    ("literal", re.compile(r'b?r(#*)".*?"\1', re.S)),
    ("literal", re.compile(r'b?"(?:\\.|[^"\\])*"', re.S)),
    ("literal", re.compile(r"b?'(?:\\(?:x[0-9A-Fa-f]{2}|u\{[0-9A-Fa-f]+\}|.)|[^'\\])'")),
    ("lifetime", re.compile(r"'[A-Za-z_][A-Za-z0-9_]*")),
    ("ident", re.compile(r"[A-Za-z_][A-Za-z0-9_]*")),
    ("literal", re.compile(r"[0-9][0-9A-Za-z_]*(?:\.[0-9][0-9A-Za-z_]*)?")),
)

_INT = re.compile(
    r"^(?:(0x[0-9a-fA-F_]+|0o[0-7_]+|0b[01_]+)|([0-9][0-9_]*))"
    r"(?:[iu](?:8|16|32|64|128|size))?$"
)


@dataclass(frozen=True)
class Token:
    """A token: ``kind`` is ident, literal, lifetime, punct or group.

    For a group ``text`` holds the opening delimiter and ``children`` its tokens.
    """

    kind: str
    text: str
    children: tuple[Token, ...] = ()

    def is_punct(self, text: str) -> bool:
        return self.kind == "punct" and self.text == text

    def is_group(self, opener: str) -> bool:
        return self.kind == "group" and self.text == opener

    def __str__(self) -> str:
        if self.kind != "group":
            return self.text
        inner = _render(self.children)
        if self.text == "{":
            return f"{{ {inner} }}" if inner else "{}"
        return f"{self.text}{inner}{_CLOSERS[self.text]}"


def _render(tokens: Iterable[Token]) -> str:
    return " ".join(str(token) for token in tokens)


def _skip_block_comment(text: str, pos: int) -> int:
    depth = 0
    while pos < len(text):
        if text.startswith("/*", pos):
            depth += 1
            pos += 2
        elif text.startswith("*/", pos):
            depth -= 1
            pos += 2
            if depth == 0:
                return pos
        else:
            pos += 1
    raise SeqError("unterminated block comment")


def tokenize(text: str) -> list[Token]:
    """Split source text into tokens, nesting bracketed groups."""
    stack: list[tuple[str, list[Token]]] = [("", [])]
    pos = 0
    while pos < len(text):
        if text.startswith("/*", pos):
            pos = _skip_block_comment(text, pos)
            continue
        for kind, pattern in _LEXEMES:
            match = pattern.match(text, pos)
            if match:
                if kind is not None:
                    stack[-1][1].append(Token(kind, match.group()))
                pos = match.end()
                break
        else:
            char = text[pos]
            if char in _CLOSERS:
                stack.append((char, []))
                pos += 1
            elif char in _CLOSERS.values():
                opener, children = stack.pop()
                if not opener:
                    raise SeqError(f"unexpected closing delimiter {char!r}")
                if _CLOSERS[opener] != char:
                    raise SeqError(f"mismatched closing delimiter {char!r} for {opener!r}")
                stack[-1][1].append(Token("group", opener, tuple(children)))
                pos += 1
            else:
                punct = next((p for p in _PUNCTS if text.startswith(p, pos)), char)
                stack[-1][1].append(Token("punct", punct))
                pos += len(punct)
    if len(stack) > 1:
        raise SeqError(f"unclosed delimiter {stack[-1][0]!r}")
    return stack[0][1]


def contains_loop(tokens: Iterable[Token]) -> bool:
    """Tell whether a ``#(...)*`` section appears anywhere in ``tokens``."""
    tokens = list(tokens)
    for index, token in enumerate(tokens):
        if token.is_punct("#"):
            window = tokens[index + 1 : index + 3]
            if len(window) == 2 and window[0].is_group("(") and window[1].is_punct("*"):
                return True
        elif token.kind == "group" and contains_loop(token.children):
            return True
    return False


def _literal(value: int) -> Token:
    return Token("literal", str(value))


def expand(
    tokens: Iterable[Token], ident: str, start: int, stop: int, counter: int | None = None
) -> list[Token]:
    """Substitute ``counter`` for ``ident`` and repeat ``#(...)*`` sections.

    Each ``#(...)*`` section is repeated for every value of ``range(start, stop)``.
    ``prefix#ident`` becomes a single identifier with the counter appended.
    """
    tokens = list(tokens)
    output: list[Token] = []
    skip = 0
    for index, token in enumerate(tokens):
        if skip:
            skip -= 1
            continue
        following = tokens[index + 1] if index + 1 < len(tokens) else None
        if token.is_punct("#"):
            if following is not None and following.kind == "group":
                if following.text == "(":
                    for value in range(start, stop):
                        output.extend(expand(following.children, ident, start, stop, value))
                    skip = 2
                    continue
                if following.text == "{":
                    raise SeqError("#{...} blocks are not supported")
                output.append(token)
            elif (
                following is not None
                and following.kind == "ident"
                and following.text == ident
                and counter is not None
            ):
                previous = tokens[index - 1] if index > 0 else None
                if previous is not None and previous.kind == "ident":
                    output.pop()
                    output.append(Token("ident", f"{previous.text}{counter}"))
                else:
                    output.append(_literal(counter))
                skip = 1
            else:
                output.append(token)
        elif token.kind == "ident" and token.text == ident:
            if counter is None:
                raise SeqError(f"{ident} is used outside of a #(...)* section")
            output.append(_literal(counter))
        elif token.kind == "group":
            children = expand(token.children, ident, start, stop, counter)
            output.append(replace(token, children=tuple(children)))
        else:
            output.append(token)
    return output


def _parse_int(token: Token | None) -> int:
    if token is None or token.kind != "literal":
        raise SeqError(f"expected an integer literal, got {token}")
    match = _INT.match(token.text)
    if not match:
        raise SeqError(f"expected an integer literal, got {token}")
    prefixed, decimal = match.groups()
    if prefixed is not None:
        return int(prefixed.replace("_", ""), 0)
    return int(decimal.replace("_", ""), 10)


@dataclass(frozen=True)
class _Header:
    ident: str
    start: int
    stop: int
    body: tuple[Token, ...]


def _parse_header(tokens: list[Token]) -> _Header:
    if len(tokens) < 4:
        raise SeqError("expected `IDENT in START..END { ... }`")
    variable, word, low, dots, *rest = tokens
    if variable.kind != "ident":
        raise SeqError(f"expected an identifier, got {variable}")
    if word.kind != "ident" or word.text != "in":
        raise SeqError(f"expected `in`, got {word}")
    start = _parse_int(low)
    inclusive = dots.is_punct("..=")
    if dots.is_punct(".."):
        if rest and rest[0].is_punct("="):
            inclusive = True
            rest = rest[1:]
    elif not inclusive:
        raise SeqError(f"expected `..`, got {dots}")
    if len(rest) < 2:
        raise SeqError("expected an upper bound followed by a braced body")
    high, body, *trailing = rest
    stop = _parse_int(high) + (1 if inclusive else 0)
    if not body.is_group("{"):
        raise SeqError(f"expected a braced body, got {body}")
    if trailing:
        raise SeqError(f"unexpected tokens after the body: {_render(trailing)}")
    return _Header(variable.text, start, stop, body.children)


def seq(text: str) -> str:
    """Expand ``IDENT in START..END { body }`` and return the resulting tokens as text."""
    header = _parse_header(tokenize(text))
    if contains_loop(header.body):
        result = expand(header.body, header.ident, header.start, header.stop, None)
    else:
        result = [
            token
            for counter in range(header.start, header.stop)
            for token in expand(header.body, header.ident, header.start, header.stop, counter)
        ]
    return _render(result)


def eseq(text: str) -> str:
    """Expression-position form of :func:`seq`; expands identically."""
    return seq(text)