"""The namespacing engine: context stack, imports and load-pipeline hooks."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from .context import Context, ContextStack, Module
from .errors import EmptyExportError, NoActiveNamespaceError
from .protocols import IdentifierRegistry, UnitLoader
from .resolver import ImportResolver, ImportSpec, normalize_import_specs
from .rewriter import rewrite
from .surface import (
    defined_name,
    directive_kind,
    parse_declare_private,
    parse_define_module,
    parse_import_module,
)
from .symbols import Entry, Status


@dataclass
class ImportRecord:
    """One resolved import, kept for the import graph and manifests."""

    importer: str
    source: str
    prefix: str
    kind: str
    mode: str
    symbols: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "importer": self.importer,
            "source": self.source,
            "prefix": self.prefix,
            "kind": self.kind,
            "mode": self.mode,
            "symbols": list(self.symbols),
        }


def _export_names(export_spec: Any) -> list[str]:
    if export_spec is None:
        return []
    if isinstance(export_spec, str):
        return [str(export_spec)]
    return [str(name) for name in export_spec]


class Engine:
    """Builds namespaces for units as the host loads them.

    The engine owns the :class:`ContextStack`; the host supplies the global
    identifier registry and, for imports, a unit loader. ``log`` collects one
    line per namespace event.
    """

    def __init__(self, registry: IdentifierRegistry, loader: UnitLoader | None = None):
        self.registry = registry
        self.stack = ContextStack()
        self.resolver = ImportResolver(registry, loader)
        self.modules: dict[str, Module] = {}
        self.closed: dict[str, dict[str, Any]] = {}
        self.imports: list[ImportRecord] = []
        self.log: list[str] = []

    @property
    def loader(self) -> UnitLoader | None:
        return self.resolver.loader

    @loader.setter
    def loader(self, loader: UnitLoader | None) -> None:
        self.resolver.loader = loader

    @property
    def active(self) -> Context | None:
        return self.stack.active

    def _require_active(self, operation: str, unit_id: Any = None) -> Context:
        ctx = self.stack.active
        if ctx is None or not ctx.belongs_to(unit_id):
            raise NoActiveNamespaceError(operation)
        return ctx

    # -- namespace lifecycle -------------------------------------------------

    def open_namespace(self, name: str, export_spec: Any, *, source_unit_id: Any = None) -> Context:
        """Push a context for *name* with its exported short names."""

        exports = _export_names(export_spec)
        if not exports:
            raise EmptyExportError(str(name))

        ctx = Context(name, source_unit_id)
        for short in exports:
            ctx.module.add_export(short)
            ctx.symbol_table.define_full(short, ctx.public_prefix + short, Status.DEFINED)
        self.stack.push(ctx)
        self.registry.bind(ctx.name, ctx.module)
        self.log.append(f"OPEN:{ctx.name} exports={sorted(ctx.module.exports)}")
        return ctx

    def closing(self, name: str, unit_id: Any = None) -> Module | None:
        """Pop the active context when it is the namespace being closed."""

        ctx = self.stack.active
        if ctx is None or ctx.module.prefix != str(name) or not ctx.belongs_to(unit_id):
            return None
        self.stack.pop()
        module = ctx.module.seal()
        self.modules[module.prefix] = module
        self.closed[module.prefix] = ctx.summary()
        self.log.append(f"CLOSE:{module.prefix}")
        for short in ctx.symbol_table.unused_wildcards():
            self.log.append(f"UNUSED:{module.prefix} {short}")
        return module

    def unwind(self, depth: int, reason: str = "aborted") -> list[Context]:
        """Drop contexts above *depth* without finalizing their modules."""

        dropped = self.stack.unwind(depth)
        for ctx in dropped:
            self.log.append(f"UNWIND:{ctx.name} ({reason})")
        return dropped

    # -- symbol registration -------------------------------------------------

    def define_full(self, short: str, full_name: str, status: Status) -> Entry:
        ctx = self._require_active("define")
        return ctx.symbol_table.define_full(short, full_name, status)

    def register_private_if_absent(self, short: str, unit_id: Any = None) -> Entry:
        ctx = self._require_active("private registration", unit_id)
        short = str(short)
        entry = ctx.symbol_table.get(short)
        if entry is not None and entry.status is Status.DEFINED:
            return entry
        entry = ctx.symbol_table.define_full(short, ctx.private_prefix + short, Status.DEFINED)
        self.log.append(f"PRIVATE:{entry.full_name}")
        return entry

    def declare_forward_private(self, *names: str, unit_id: Any = None) -> list[Entry]:
        return [self.register_private_if_absent(name, unit_id) for name in names]

    # -- imports ---------------------------------------------------------------

    def import_from(
        self,
        source: str,
        symbols: Iterable[ImportSpec] | Any = None,
        prefix: str | None = None,
        *,
        unit_id: Any = None,
    ) -> list[Entry]:
        """Install entries for *source* into the active symbol table."""

        ctx = self._require_active("import", unit_id)
        specs = None if symbols is None else normalize_import_specs(symbols)
        plan = self.resolver.resolve(source, specs, prefix)

        # Loading the source may have opened and closed other namespaces; the
        # importer must still be on top.
        if self.stack.active is not ctx:
            raise NoActiveNamespaceError("import")

        installed = []
        with ctx.symbol_table.transaction() as table:
            for local, full_name, status in plan.entries:
                installed.append(table.define_full(local, full_name, status))

        self.imports.append(
            ImportRecord(
                importer=ctx.name,
                source=plan.source,
                prefix=plan.prefix,
                kind=plan.kind,
                mode=plan.mode,
                symbols=plan.locals(),
            )
        )
        self.log.append(
            f"IMPORT:{ctx.name} <- {plan.source} [{plan.kind}/{plan.mode}] "
            f"{', '.join(plan.locals()) or '(nothing)'}"
        )
        return installed

    # -- rewriting and hooks -----------------------------------------------------

    def rewrite(self, form: Any) -> Any:
        ctx = self.stack.active
        if ctx is None:
            return form
        return rewrite(form, ctx.symbol_table)

    def handle_directive(self, form: list[Any], unit_id: Any = None) -> Any:
        kind = directive_kind(form)
        if kind == "open":
            name, exports = parse_define_module(form)
            return self.open_namespace(name, exports, source_unit_id=unit_id)
        if kind == "import":
            source, specs, prefix = parse_import_module(form)
            return self.import_from(source, specs, prefix, unit_id=unit_id)
        if kind == "declare":
            return self.declare_forward_private(*parse_declare_private(form), unit_id=unit_id)
        raise ValueError(f"Not an engine directive: {form!r}")

    def post_expansion(self, form: Any, unit_id: Any = None) -> Any:
        """Process one expanded top-level form from *unit_id*.

        Directives are consumed and ``None`` is returned; closing declarations
        are returned untouched. Forms belonging to
        the active namespace are rewritten (after registering any private
        definition they introduce); everything else passes through.
        """

        kind = directive_kind(form)
        if kind in ("open", "import", "declare"):
            self.handle_directive(form, unit_id)
            return None
        if kind == "close":
            # The closing hook must see the namespace name as written.
            return form

        ctx = self.stack.active
        if ctx is None or not ctx.belongs_to(unit_id):
            return form

        name = defined_name(form)
        if name is not None:
            self.register_private_if_absent(name, unit_id)
        return rewrite(form, ctx.symbol_table)

    # -- introspection -----------------------------------------------------------

    def module(self, name: str) -> Module | None:
        module = self.modules.get(str(name))
        if module is None:
            module = self.resolver.find_module(str(name))
        return module

    def reflect(self, name: str) -> dict[str, Any]:
        """Describe a finished namespace."""

        name = str(name)
        module = self.modules.get(name)
        if module is None:
            raise KeyError(f"Unknown namespace {name}")
        info = dict(self.closed.get(name, {}))
        info["prefix"] = module.prefix
        info["exports"] = {short: module.full_name(short) for short in sorted(module.exports)}
        info["imports"] = [rec.to_dict() for rec in self.imports if rec.importer == name]
        return info

    def __repr__(self) -> str:  # pragma: no cover - representation helper
        return f"<Engine open={self.stack.names()} closed={sorted(self.modules)}>"


__all__ = ["Engine", "ImportRecord"]
