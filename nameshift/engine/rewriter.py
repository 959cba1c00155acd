"""In-place identifier substitution over nested forms."""
from __future__ import annotations

from typing import Any

from .errors import AmbiguousReferenceError
from .forms import Pair, is_symbol
from .symbols import Status, SymbolTable


def _substitute(table: SymbolTable, atom: Any) -> Any:
    if not is_symbol(atom):
        return atom
    entry = table.get(atom)
    if entry is None:
        return atom
    if entry.status is Status.AMBIGUOUS:
        raise AmbiguousReferenceError(str(atom), entry.candidates)
    table.mark_used(atom)
    return type(atom)(entry.full_name)


def rewrite(form: Any, table: SymbolTable) -> Any:
    """Replace every mapped identifier in *form* with its full name.

    Lists and dotted pairs are modified in place, depth first and left to
    right. The (possibly new) form is returned so that a bare identifier at
    top level is also rewritten; callers must use the return value.
    Identifiers without an entry are left exactly as they were.
    """

    if isinstance(form, list):
        for idx, item in enumerate(form):
            if isinstance(item, (list, Pair)):
                rewrite(item, table)
            else:
                form[idx] = _substitute(table, item)
        return form
    if isinstance(form, Pair):
        form.head = rewrite(form.head, table)
        form.tail = rewrite(form.tail, table)
        return form
    return _substitute(table, form)


def references(form: Any) -> list[str]:
    """Collect identifier atoms of *form* in traversal order."""

    found: list[str] = []
    stack = [form]
    while stack:
        item = stack.pop()
        if isinstance(item, list):
            stack.extend(reversed(item))
        elif isinstance(item, Pair):
            stack.extend((item.tail, item.head))
        elif is_symbol(item):
            found.append(str(item))
    return found


__all__ = ["references", "rewrite"]
