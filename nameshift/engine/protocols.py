"""Boundaries the engine expects its host to provide."""
from __future__ import annotations

from typing import Any, Iterable, Protocol


class IdentifierRegistry(Protocol):
    """The host's global identifier space."""

    def bind(self, name: str, value: Any) -> None: ...

    def is_bound(self, name: str) -> bool: ...

    def lookup(self, name: str) -> Any: ...

    def members_with_prefix(self, prefix: str) -> Iterable[str]:
        """Short suffixes of registered ``prefix-*`` names without a further separator."""
        ...


class UnitLoader(Protocol):
    """Loads compilation units by name."""

    def require(self, name: str) -> bool:
        """Load *name* once; return ``False`` when no such unit exists."""
        ...

    def is_provided(self, name: str) -> bool: ...


__all__ = ["IdentifierRegistry", "UnitLoader"]
