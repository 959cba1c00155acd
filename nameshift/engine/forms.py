"""Form model, reader and printer for s-expression source units."""
from __future__ import annotations

from typing import Any


class Symbol(str):
    """An identifier atom.

    Subclassing :class:`str` keeps symbols hashable and comparable with their
    names while still letting the rewriter tell them apart from string
    literals.
    """

    __slots__ = ()

    def __repr__(self) -> str:  # pragma: no cover - representation helper
        return f"Symbol({str.__repr__(self)})"

    @property
    def is_keyword(self) -> bool:
        return self.startswith(":")


class Pair:
    """A dotted pair ``(head . tail)``; mutable so it can be rewritten in place."""

    __slots__ = ("head", "tail")

    def __init__(self, head: Any, tail: Any):
        self.head = head
        self.tail = tail

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Pair):
            return NotImplemented
        return self.head == other.head and self.tail == other.tail

    def __repr__(self) -> str:  # pragma: no cover - representation helper
        return f"Pair({self.head!r}, {self.tail!r})"


QUOTE = Symbol("quote")
FUNCTION = Symbol("function")


def is_symbol(value: Any) -> bool:
    return isinstance(value, Symbol)


def quoted_symbol(form: Any) -> Symbol | None:
    """Return ``x`` when *form* is ``(quote x)`` or ``(function x)``."""

    if (
        isinstance(form, list)
        and len(form) == 2
        and form[0] in (QUOTE, FUNCTION)
        and is_symbol(form[0])
        and is_symbol(form[1])
    ):
        return form[1]
    return None


class ReaderError(ValueError):
    """Raised for malformed source text."""


_DELIMITERS = "()'\";"


def _tokenize(text: str):
    idx = 0
    line = 1
    length = len(text)
    while idx < length:
        ch = text[idx]
        if ch == "\n":
            line += 1
            idx += 1
        elif ch.isspace():
            idx += 1
        elif ch == ";":
            while idx < length and text[idx] != "\n":
                idx += 1
        elif ch in "()'":
            yield ch, ch, line
            idx += 1
        elif ch == "#" and text.startswith("#'", idx):
            yield "#'", "#'", line
            idx += 2
        elif ch == '"':
            idx += 1
            chunks = []
            while True:
                if idx >= length:
                    raise ReaderError(f"Unterminated string on line {line}")
                c = text[idx]
                if c == "\\" and idx + 1 < length:
                    chunks.append(text[idx + 1])
                    idx += 2
                    continue
                if c == '"':
                    idx += 1
                    break
                if c == "\n":
                    line += 1
                chunks.append(c)
                idx += 1
            yield "string", "".join(chunks), line
        else:
            start = idx
            while (
                idx < length
                and not text[idx].isspace()
                and text[idx] not in _DELIMITERS
            ):
                idx += 1
            yield "atom", text[start:idx], line


def _atom(token: str) -> Any:
    # float() also accepts "nan" and "inf", which are ordinary identifiers here.
    if any(ch.isdigit() for ch in token):
        for convert in (int, float):
            try:
                return convert(token)
            except ValueError:
                pass
    return Symbol(token)


def read_forms(text: str) -> list[Any]:
    """Parse *text* into a list of top-level forms."""

    stack: list[list[Any]] = [[]]
    openers: list[int] = []
    # Pending quote markers, one list per nesting level.
    pending: list[list[Symbol]] = [[]]

    def push(value):
        while pending[-1]:
            value = [pending[-1].pop(), value]
        stack[-1].append(value)

    for kind, value, line in _tokenize(text):
        if kind == "(":
            stack.append([])
            pending.append([])
            openers.append(line)
        elif kind == ")":
            if len(stack) == 1:
                raise ReaderError(f"Unmatched ')' on line {line}")
            if pending[-1]:
                raise ReaderError(f"Quote without a form on line {line}")
            items = stack.pop()
            pending.pop()
            openers.pop()
            push(_close_list(items, line))
        elif kind == "'":
            pending[-1].append(QUOTE)
        elif kind == "#'":
            pending[-1].append(FUNCTION)
        elif kind == "string":
            push(value)
        else:
            push(_atom(value))

    if len(stack) != 1:
        raise ReaderError(f"Unclosed '(' opened on line {openers[-1]}")
    if pending[0]:
        raise ReaderError("Quote without a form at end of input")
    return stack[0]


def _close_list(items: list[Any], line: int) -> Any:
    dots = [i for i, item in enumerate(items) if is_symbol(item) and item == "."]
    if not dots:
        return items
    if len(dots) != 1 or dots[0] != 1 or len(items) != 3:
        raise ReaderError(f"Malformed dotted pair on line {line}")
    return Pair(items[0], items[2])


def read_form(text: str) -> Any:
    forms = read_forms(text)
    if len(forms) != 1:
        raise ReaderError(f"Expected exactly one form, found {len(forms)}")
    return forms[0]


def format_form(form: Any) -> str:
    """Render *form* back into source text."""

    if isinstance(form, list):
        if len(form) == 2 and is_symbol(form[0]) and form[0] in (QUOTE, FUNCTION):
            marker = "'" if form[0] == QUOTE else "#'"
            return marker + format_form(form[1])
        return "(" + " ".join(format_form(item) for item in form) + ")"
    if isinstance(form, Pair):
        return f"({format_form(form.head)} . {format_form(form.tail)})"
    if is_symbol(form):
        return str(form)
    if isinstance(form, str):
        escaped = form.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    if form is None:
        return "nil"
    if form is True:
        return "t"
    return repr(form)


__all__ = [
    "FUNCTION",
    "Pair",
    "QUOTE",
    "ReaderError",
    "Symbol",
    "format_form",
    "is_symbol",
    "quoted_symbol",
    "read_form",
    "read_forms",
]
