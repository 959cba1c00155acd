"""Modules, namespace contexts and the context stack."""
from __future__ import annotations

from typing import Any, Iterable

from ..constants import PRIVATE_SEPARATOR, SEPARATOR
from .symbols import SymbolTable


class Module:
    """A finished (or filling) namespace: a prefix plus exported short names."""

    def __init__(self, prefix: str, exports: Iterable[str] = ()):
        self.prefix = str(prefix)
        self._exports: set[str] = {str(name) for name in exports}
        self._sealed = False

    @property
    def exports(self) -> frozenset[str]:
        return frozenset(self._exports)

    @property
    def sealed(self) -> bool:
        return self._sealed

    def add_export(self, short: str) -> None:
        if self._sealed:
            raise RuntimeError(f"Module {self.prefix} is sealed")
        self._exports.add(str(short))

    def seal(self) -> "Module":
        self._sealed = True
        return self

    def exports_name(self, short: str) -> bool:
        return str(short) in self._exports

    def full_name(self, short: str) -> str:
        return f"{self.prefix}{SEPARATOR}{short}"

    def to_dict(self) -> dict[str, Any]:
        return {"prefix": self.prefix, "exports": sorted(self._exports)}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Module):
            return NotImplemented
        return self.prefix == other.prefix and self._exports == other._exports

    def __hash__(self) -> int:
        return hash(self.prefix)

    def __repr__(self) -> str:  # pragma: no cover - representation helper
        return f"<Module {self.prefix} exports={sorted(self._exports)}>"


class Context:
    """State for one namespace while its unit is loading."""

    def __init__(self, name: str, source_unit_id: Any = None):
        self.name = str(name)
        self.source_unit_id = source_unit_id
        self.module = Module(self.name)
        self.symbol_table = SymbolTable()
        self.public_prefix = f"{self.name}{SEPARATOR}"
        self.private_prefix = f"{self.name}{PRIVATE_SEPARATOR}"

    def belongs_to(self, unit_id: Any) -> bool:
        return unit_id is None or self.source_unit_id == unit_id

    def summary(self) -> dict[str, Any]:
        table = self.symbol_table
        return {
            "name": self.name,
            "unit": self.source_unit_id,
            "exports": sorted(self.module.exports),
            "symbols": table.snapshot(),
            "unused_wildcards": table.unused_wildcards(),
            "ambiguous": table.ambiguous(),
        }

    def __repr__(self) -> str:  # pragma: no cover - representation helper
        return f"Context({self.name}@{self.source_unit_id})"


class ContextStack:
    """Stack of open namespaces; the top is the active one."""

    def __init__(self):
        self._contexts: list[Context] = []

    @property
    def active(self) -> Context | None:
        return self._contexts[-1] if self._contexts else None

    @property
    def depth(self) -> int:
        return len(self._contexts)

    def push(self, context: Context) -> Context:
        self._contexts.append(context)
        return context

    def pop(self) -> Context:
        if not self._contexts:
            raise RuntimeError("Context stack is empty")
        return self._contexts.pop()

    def unwind(self, depth: int) -> list[Context]:
        """Discard contexts above *depth*, innermost first."""

        dropped = []
        while len(self._contexts) > depth:
            dropped.append(self._contexts.pop())
        return dropped

    def names(self) -> list[str]:
        return [ctx.name for ctx in self._contexts]

    def __len__(self) -> int:
        return len(self._contexts)

    def __iter__(self):
        return iter(self._contexts)


__all__ = ["Context", "ContextStack", "Module"]
