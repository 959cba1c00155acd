"""Global identifier registry used by the reference host."""

import re

from .constants import SEPARATOR


class GlobalRegistry:
    """Two-cell identifier registry: variable values and function definitions.

    A name counts as registered when either cell is bound, which is what
    implicit-module discovery scans.
    """

    def __init__(self):
        self.values = {}
        self.functions = {}

    def bind(self, name, value):
        self.values[str(name)] = value

    def bind_function(self, name, value):
        self.functions[str(name)] = value

    def unbind(self, name):
        name = str(name)
        self.values.pop(name, None)
        self.functions.pop(name, None)

    def is_bound(self, name):
        name = str(name)
        return name in self.values or name in self.functions

    def is_value_bound(self, name):
        return str(name) in self.values

    def is_function_bound(self, name):
        return str(name) in self.functions

    def lookup(self, name, default=None):
        return self.values.get(str(name), default)

    def lookup_function(self, name, default=None):
        return self.functions.get(str(name), default)

    def names(self):
        """Return every registered name, sorted."""

        return sorted(set(self.values) | set(self.functions))

    def members_with_prefix(self, prefix):
        """Return the short names registered as ``prefix-<short>``.

        ``<short>`` must not contain the separator, so private
        (``prefix--x``) and nested (``prefix-x-y``) names are skipped.
        """

        pattern = re.compile(
            rf"^{re.escape(str(prefix))}{re.escape(SEPARATOR)}"
            rf"(?P<short>[^{re.escape(SEPARATOR)}]+)$"
        )
        found = []
        for name in self.names():
            match = pattern.match(name)
            if match:
                found.append(match.group("short"))
        return found

    def snapshot(self):
        """Return shallow copies of both cells."""

        return {"values": dict(self.values), "functions": dict(self.functions)}

    def __contains__(self, name):
        return self.is_bound(name)

    def __repr__(self):  # pragma: no cover - representation helper
        return f"<GlobalRegistry {len(self.values)} values, {len(self.functions)} functions>"


__all__ = ["GlobalRegistry"]
