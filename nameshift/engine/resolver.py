"""Import resolution for explicit and implicit modules."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Union

from ..constants import SEPARATOR
from .context import Module
from .errors import (
    IllegalPrefixOverrideError,
    UnexportedSymbolError,
    UnknownSourceError,
)
from .forms import Pair, is_symbol
from .protocols import IdentifierRegistry, UnitLoader
from .symbols import Status


@dataclass(frozen=True)
class Bare:
    """Import ``name`` under its own short name."""

    name: str

    @property
    def source_name(self) -> str:
        return self.name

    @property
    def local_name(self) -> str:
        return self.name


@dataclass(frozen=True)
class Aliased:
    """Import ``source_name`` under the local short name ``local_name``."""

    source_name: str
    local_name: str


ImportSpec = Union[Bare, Aliased]


def normalize_import_specs(symbols: Any) -> list[ImportSpec]:
    """Turn the accepted ``:symbols`` shapes into :class:`Bare`/:class:`Aliased`.

    Accepted items are short names, ``(short . alias)`` pairs, two-element
    tuples and already-built specs; a single item may be given without a list.
    """

    if symbols is None:
        return []
    if isinstance(symbols, (Bare, Aliased)):
        return [symbols]
    if isinstance(symbols, Pair):
        return [_aliased(symbols.head, symbols.tail)]
    if isinstance(symbols, str):
        return [Bare(str(symbols))]
    if isinstance(symbols, tuple) and len(symbols) == 2 and all(
        isinstance(part, str) for part in symbols
    ):
        return [_aliased(*symbols)]
    if isinstance(symbols, (list, tuple)):
        specs: list[ImportSpec] = []
        for item in symbols:
            if isinstance(item, (list, tuple)) and not isinstance(item, str):
                if len(item) != 2:
                    raise TypeError(f"Alias entry must have two names: {item!r}")
                specs.append(_aliased(*item))
            else:
                specs.extend(normalize_import_specs(item))
        return specs
    raise TypeError(f"Unsupported import symbol spec: {symbols!r}")


def _aliased(source_name: Any, local_name: Any) -> Aliased:
    for part in (source_name, local_name):
        if not isinstance(part, str) or is_symbol(part) and part.is_keyword:
            raise TypeError(f"Alias entries must be identifiers: {part!r}")
    return Aliased(str(source_name), str(local_name))


@dataclass
class ImportPlan:
    """Everything an import will install, computed before anything changes."""

    source: str
    prefix: str
    kind: str  # "explicit" or "implicit"
    mode: str = "wildcard"
    entries: list[tuple[str, str, Status]] = field(default_factory=list)

    def locals(self) -> list[str]:
        return [local for local, _, _ in self.entries]


class ImportResolver:
    """Works out which full names an import maps to."""

    def __init__(self, registry: IdentifierRegistry, loader: UnitLoader | None = None):
        self.registry = registry
        self.loader = loader

    def find_module(self, name: str) -> Module | None:
        if not self.registry.is_bound(name):
            return None
        value = self.registry.lookup(name)
        return value if isinstance(value, Module) else None

    def ensure_loaded(self, source: str) -> Module | None:
        """Load *source* and return its Module, or ``None`` for implicit units."""

        loaded = False
        if self.loader is not None:
            loaded = self.loader.is_provided(source) or self.loader.require(source)
        module = self.find_module(source)
        if module is None and not loaded:
            raise UnknownSourceError(source)
        return module

    def resolve(
        self,
        source: str,
        symbols: Iterable[ImportSpec] | None = None,
        prefix: str | None = None,
    ) -> ImportPlan:
        source = str(source)
        module = self.ensure_loaded(source)

        if module is not None:
            if prefix is not None:
                raise IllegalPrefixOverrideError(source, str(prefix))
            plan = ImportPlan(source, module.prefix, "explicit")
            available = module.exports
            contains = module.exports_name
        else:
            plan = ImportPlan(source, str(prefix) if prefix is not None else source, "implicit")
            available = None
            contains = lambda short: self.registry.is_bound(  # noqa: E731
                f"{plan.prefix}{SEPARATOR}{short}"
            )

        if symbols is None:
            if available is None:
                available = self.registry.members_with_prefix(plan.prefix)
            for short in sorted(available):
                plan.entries.append(
                    (short, f"{plan.prefix}{SEPARATOR}{short}", Status.WILDCARD)
                )
            return plan

        plan.mode = "symbols"
        for spec in symbols:
            if not contains(spec.source_name):
                raise UnexportedSymbolError(source, spec.source_name)
            plan.entries.append(
                (
                    spec.local_name,
                    f"{plan.prefix}{SEPARATOR}{spec.source_name}",
                    Status.IMPORTED,
                )
            )
        return plan


__all__ = [
    "Aliased",
    "Bare",
    "ImportPlan",
    "ImportResolver",
    "ImportSpec",
    "normalize_import_specs",
]
