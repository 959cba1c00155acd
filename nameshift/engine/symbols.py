"""Per-namespace symbol tables and the provenance status lattice."""
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator

from .errors import RedefinitionConflictError


class Status(Enum):
    """Where a short name's mapping came from."""

    DEFINED = "defined"
    IMPORTED = "imported"
    WILDCARD = "wildcard"
    WILDCARD_USED = "wildcard-used"
    AMBIGUOUS = "ambiguous"


@dataclass
class Entry:
    full_name: str
    status: Status
    # Every full name seen for an ambiguous short name, in import order.
    candidates: list[str] = field(default_factory=list)

    def to_dict(self):
        data = {"full_name": self.full_name, "status": self.status.value}
        if self.candidates:
            data["candidates"] = list(self.candidates)
        return data


class SymbolTable:
    """Mapping of short name to :class:`Entry`.

    All insertions go through :meth:`define_full`, which decides whether a new
    mapping may replace an old one:

    * a missing entry is always inserted;
    * a wildcard arriving on an ambiguous entry changes nothing;
    * two different wildcards for one name make it ambiguous;
    * re-declaring a defined (or otherwise settled) entry must keep its full
      name;
    * wildcard and ambiguous entries yield to any explicit definition or
      import;
    * anything else is a :class:`RedefinitionConflictError`.
    """

    def __init__(self):
        self._entries: dict[str, Entry] = {}

    def __contains__(self, short: str) -> bool:
        return short in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def get(self, short: str) -> Entry | None:
        return self._entries.get(short)

    def items(self):
        return self._entries.items()

    def define_full(self, short: str, full_name: str, status: Status) -> Entry:
        short = str(short)
        full_name = str(full_name)
        old = self._entries.get(short)

        if old is None:
            entry = Entry(full_name, status)
            self._entries[short] = entry
            return entry

        if status is Status.WILDCARD:
            if old.status is Status.AMBIGUOUS:
                if full_name not in old.candidates:
                    old.candidates.append(full_name)
                return old
            if (
                old.status in (Status.WILDCARD, Status.WILDCARD_USED)
                and old.full_name == full_name
            ):
                return old
            if old.status is Status.WILDCARD:
                old.candidates = [old.full_name, full_name]
                old.status = Status.AMBIGUOUS
                return old

        if old.status is status and status not in (Status.WILDCARD, Status.IMPORTED):
            if old.full_name != full_name:
                raise RedefinitionConflictError(short, old.full_name, full_name)
            return old

        if old.status in (Status.WILDCARD, Status.AMBIGUOUS):
            entry = Entry(full_name, status)
            self._entries[short] = entry
            return entry

        raise RedefinitionConflictError(short, old.full_name, full_name)

    def mark_used(self, short: str) -> None:
        entry = self._entries[short]
        if entry.status is Status.WILDCARD:
            entry.status = Status.WILDCARD_USED

    def with_status(self, *statuses: Status) -> dict[str, Entry]:
        return {
            short: entry
            for short, entry in self._entries.items()
            if entry.status in statuses
        }

    def unused_wildcards(self) -> list[str]:
        """Short names imported by wildcard and never referenced."""

        return sorted(self.with_status(Status.WILDCARD))

    def ambiguous(self) -> dict[str, list[str]]:
        return {
            short: list(entry.candidates)
            for short, entry in self.with_status(Status.AMBIGUOUS).items()
        }

    def snapshot(self) -> dict[str, dict]:
        return {short: entry.to_dict() for short, entry in sorted(self._entries.items())}

    @contextmanager
    def transaction(self):
        """Restore the table to its previous state if the block raises."""

        saved = {
            short: Entry(entry.full_name, entry.status, list(entry.candidates))
            for short, entry in self._entries.items()
        }
        try:
            yield self
        except BaseException:
            self._entries = saved
            raise

    def __repr__(self) -> str:  # pragma: no cover - representation helper
        return f"<SymbolTable {len(self._entries)} entries>"


__all__ = ["Entry", "Status", "SymbolTable"]
