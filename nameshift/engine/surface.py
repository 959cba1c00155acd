"""Recognizing directive and definition forms."""
from __future__ import annotations

from typing import Any

from ..constants import (
    ALIAS_DEFINITIONS,
    DIRECTIVES,
    EXPORT_KEYWORD,
    PREFIX_KEYWORD,
    SYMBOLS_KEYWORD,
    VARIABLE_DEFINITIONS,
)
from .errors import DirectiveSyntaxError
from .forms import is_symbol, quoted_symbol
from .resolver import ImportSpec, normalize_import_specs

_DIRECTIVE_KINDS = {head: kind for kind, head in DIRECTIVES.items()}


def form_head(form: Any) -> str | None:
    if isinstance(form, list) and form and is_symbol(form[0]):
        return str(form[0])
    return None


def directive_kind(form: Any) -> str | None:
    """Return ``open``/``import``/``declare``/``close`` for directive forms."""

    return _DIRECTIVE_KINDS.get(form_head(form))


def _identifier(value: Any, directive: str, what: str) -> str:
    if not is_symbol(value) or value.is_keyword:
        raise DirectiveSyntaxError(directive, f"{what} must be an identifier, got {value!r}")
    return str(value)


def _keyword_options(args: list[Any], directive: str, allowed: set[str]) -> dict[str, Any]:
    if len(args) % 2:
        raise DirectiveSyntaxError(directive, "keyword options must come in pairs")
    options: dict[str, Any] = {}
    for key, value in zip(args[::2], args[1::2]):
        if not is_symbol(key) or key not in allowed:
            raise DirectiveSyntaxError(directive, f"unknown option {key!r}")
        if key in options:
            raise DirectiveSyntaxError(directive, f"duplicate option {key}")
        options[str(key)] = value
    return options


def parse_define_module(form: list[Any]) -> tuple[str, list[str]]:
    directive = DIRECTIVES["open"]
    if len(form) < 2:
        raise DirectiveSyntaxError(directive, "missing module name")
    name = _identifier(form[1], directive, "module name")
    options = _keyword_options(form[2:], directive, {EXPORT_KEYWORD})
    spec = options.get(EXPORT_KEYWORD, [])
    if is_symbol(spec) and spec == "nil":
        spec = []
    if isinstance(spec, list):
        exports = [_identifier(item, directive, "export") for item in spec]
    else:
        exports = [_identifier(spec, directive, "export")]
    return name, exports


def parse_import_module(form: list[Any]) -> tuple[str, list[ImportSpec] | None, str | None]:
    directive = DIRECTIVES["import"]
    if len(form) < 2:
        raise DirectiveSyntaxError(directive, "missing source name")
    source = _identifier(form[1], directive, "source")
    options = _keyword_options(form[2:], directive, {SYMBOLS_KEYWORD, PREFIX_KEYWORD})
    symbols = None
    if SYMBOLS_KEYWORD in options:
        try:
            symbols = normalize_import_specs(options[SYMBOLS_KEYWORD])
        except TypeError as exc:
            raise DirectiveSyntaxError(directive, str(exc)) from exc
    prefix = None
    if PREFIX_KEYWORD in options:
        prefix = _identifier(options[PREFIX_KEYWORD], directive, "prefix")
    return source, symbols, prefix


def parse_declare_private(form: list[Any]) -> list[str]:
    directive = DIRECTIVES["declare"]
    if len(form) < 2:
        raise DirectiveSyntaxError(directive, "expected at least one name")
    return [_identifier(item, directive, "name") for item in form[1:]]


def parse_provide(form: list[Any]) -> str:
    directive = DIRECTIVES["close"]
    target = quoted_symbol(form[1]) if len(form) == 2 else None
    if target is None:
        raise DirectiveSyntaxError(directive, "expected a quoted feature name")
    return str(target)


def defined_name(form: Any) -> str | None:
    """Name introduced by an expanded definition form, if any.

    Variable definitions name their target directly; alias definitions only
    count when the target is a literal quoted identifier.
    """

    head = form_head(form)
    if head is None or len(form) < 2:
        return None
    if head in VARIABLE_DEFINITIONS and is_symbol(form[1]):
        return str(form[1])
    if head in ALIAS_DEFINITIONS:
        target = quoted_symbol(form[1])
        if target is not None:
            return str(target)
    return None


__all__ = [
    "defined_name",
    "directive_kind",
    "form_head",
    "parse_declare_private",
    "parse_define_module",
    "parse_import_module",
    "parse_provide",
]
