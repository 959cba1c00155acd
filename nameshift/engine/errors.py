"""Exceptions raised by the namespacing engine."""
from __future__ import annotations


class NamespaceError(RuntimeError):
    """Base class for every failure surfaced while building a namespace."""


class EmptyExportError(NamespaceError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Namespace {name} must export at least one symbol")


class RedefinitionConflictError(NamespaceError):
    def __init__(self, short: str, old: str, new: str):
        self.short = short
        self.old = old
        self.new = new
        super().__init__(
            f"Cannot redefine {short}: already bound to {old}, refusing {new}"
        )


class NoActiveNamespaceError(NamespaceError):
    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"{operation} requires an open namespace")


class UnknownSourceError(NamespaceError):
    def __init__(self, source: str):
        self.source = source
        super().__init__(f"Cannot import {source}: no such module or unit")


class UnexportedSymbolError(NamespaceError):
    def __init__(self, source: str, short: str):
        self.source = source
        self.short = short
        super().__init__(f"{source} does not export {short}")


class IllegalPrefixOverrideError(NamespaceError):
    def __init__(self, source: str, prefix: str):
        self.source = source
        self.prefix = prefix
        super().__init__(
            f"Cannot override prefix of module {source} with {prefix}; "
            "only implicit modules accept :prefix"
        )


class AmbiguousReferenceError(NamespaceError):
    def __init__(self, short: str, candidates=()):
        self.short = short
        self.candidates = list(candidates)
        detail = f" (candidates: {', '.join(self.candidates)})" if self.candidates else ""
        super().__init__(f"Reference to {short} is ambiguous{detail}")


class DirectiveSyntaxError(NamespaceError):
    def __init__(self, directive: str, reason: str):
        self.directive = directive
        self.reason = reason
        super().__init__(f"Malformed {directive}: {reason}")


__all__ = [
    "AmbiguousReferenceError",
    "DirectiveSyntaxError",
    "EmptyExportError",
    "IllegalPrefixOverrideError",
    "NamespaceError",
    "NoActiveNamespaceError",
    "RedefinitionConflictError",
    "UnexportedSymbolError",
    "UnknownSourceError",
]
