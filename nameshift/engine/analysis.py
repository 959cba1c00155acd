"""Import-graph analysis and visualization for namespaced units."""
from __future__ import annotations

from typing import Iterable

try:
    import networkx as nx
except ModuleNotFoundError:  # pragma: no cover
    nx = None

try:
    import matplotlib.pyplot as plt
except ModuleNotFoundError:  # pragma: no cover
    plt = None

try:
    import pydot
except ModuleNotFoundError:  # pragma: no cover
    pydot = None

from ..constants import GRAPH_COLORS
from .core import Engine, ImportRecord


def _require_networkx():
    if nx is None:
        raise RuntimeError("Import graphs require networkx to be installed")


def build_import_graph(source: Engine | Iterable[ImportRecord]):
    """Return a ``networkx.DiGraph`` with an edge importer → source per import.

    Nodes carry ``kind`` (``explicit`` for namespaces built by the engine,
    ``implicit`` for plain units) and, for finished namespaces, their sorted
    ``exports``. Repeated imports between the same pair merge their symbols.
    """

    _require_networkx()
    if isinstance(source, Engine):
        records = list(source.imports)
        modules = source.modules
    else:
        records = list(source)
        modules = {}

    graph = nx.DiGraph()
    for prefix, module in modules.items():
        graph.add_node(prefix, kind="explicit", exports=sorted(module.exports))
    for rec in records:
        if rec.importer not in graph:
            graph.add_node(rec.importer, kind="explicit", exports=[])
        if rec.source not in graph:
            graph.add_node(rec.source, kind=rec.kind, exports=[])
        elif rec.kind == "implicit":
            graph.nodes[rec.source]["kind"] = "implicit"
        if graph.has_edge(rec.importer, rec.source):
            data = graph.edges[rec.importer, rec.source]
            data["symbols"] = sorted(set(data["symbols"]) | set(rec.symbols))
            if rec.mode == "wildcard":
                data["mode"] = "wildcard"
        else:
            graph.add_edge(
                rec.importer,
                rec.source,
                kind=rec.kind,
                mode=rec.mode,
                prefix=rec.prefix,
                symbols=sorted(rec.symbols),
            )
    return graph


def import_order(graph) -> list[str]:
    """Dependency-first order: every source precedes the units importing it."""

    _require_networkx()
    try:
        return list(reversed(list(nx.topological_sort(graph))))
    except nx.NetworkXUnfeasible as exc:
        cycle = nx.find_cycle(graph)
        path = " -> ".join(edge[0] for edge in cycle) + f" -> {cycle[0][0]}"
        raise ValueError(f"Import cycle: {path}") from exc


def dependents(graph, name: str) -> list[str]:
    """Namespaces that import *name*, directly or transitively."""

    _require_networkx()
    if name not in graph:
        return []
    return sorted(nx.ancestors(graph, name))


def print_imports(graph) -> None:
    """Print every namespace with what it imports."""

    for node in sorted(graph.nodes):
        data = graph.nodes[node]
        exports = ", ".join(data.get("exports") or []) or "-"
        print(f"{node} [{data.get('kind', 'explicit')}] exports: {exports}")
        for _, target, edge in sorted(graph.out_edges(node, data=True)):
            if edge["mode"] == "wildcard":
                what = "*"
            else:
                what = ", ".join(edge["symbols"])
            print(f"  ← {target} ({edge['kind']}): {what}")


def visualize_imports(graph, output_path=None):  # pragma: no cover
    """Draw the import graph with matplotlib, coloring nodes by kind."""

    if nx is None or plt is None:
        raise RuntimeError("Visualization requires networkx and matplotlib to be installed")

    colors = [
        GRAPH_COLORS.get(graph.nodes[node].get("kind"), GRAPH_COLORS["root"])
        for node in graph.nodes
    ]
    pos = nx.spring_layout(graph, seed=7)
    fig, ax = plt.subplots(figsize=(8, 6))
    nx.draw_networkx(
        graph,
        pos,
        ax=ax,
        node_color=colors,
        node_size=1600,
        font_size=9,
        arrows=True,
        edge_color="#7f8c8d",
    )
    edge_labels = {
        (u, v): "*" if data["mode"] == "wildcard" else ",".join(data["symbols"])
        for u, v, data in graph.edges(data=True)
    }
    nx.draw_networkx_edge_labels(graph, pos, edge_labels=edge_labels, ax=ax, font_size=8)
    ax.set_title("Namespace imports")
    ax.axis("off")
    if output_path:
        fig.savefig(output_path)
        print(f"  ✓ Import graph drawn → {output_path}")
    else:
        plt.show()
    plt.close(fig)


def graph_to_dot(graph):
    """Build a ``pydot.Dot`` for the import graph."""

    if pydot is None:
        raise RuntimeError("Graphviz export requires the optional pydot dependency")

    dot = pydot.Dot(
        "nameshift_imports",
        graph_type="digraph",
        rankdir="LR",
        fontname="Helvetica",
    )
    for node in sorted(graph.nodes):
        data = graph.nodes[node]
        kind = data.get("kind", "explicit")
        exports = data.get("exports") or []
        label = node if not exports else f"{node}\\n({', '.join(exports)})"
        dot.add_node(
            pydot.Node(
                f'"{node}"',
                label=f'"{label}"',
                shape="box" if kind == "explicit" else "ellipse",
                style="filled",
                fillcolor=GRAPH_COLORS.get(kind, GRAPH_COLORS["root"]),
                fontname="Helvetica",
            )
        )
    for src, dst, data in sorted(graph.edges(data=True)):
        label = "*" if data["mode"] == "wildcard" else ", ".join(data["symbols"])
        dot.add_edge(
            pydot.Edge(
                f'"{src}"',
                f'"{dst}"',
                label=f'"{label}"',
                style="dashed" if data["kind"] == "implicit" else "solid",
                color="#34495e",
                fontname="Helvetica",
                fontsize="9",
            )
        )
    return dot


def export_graphviz(graph, output_path):  # pragma: no cover
    """Write the import graph as SVG (or raw DOT for a ``.dot`` path)."""

    dot = graph_to_dot(graph)
    if str(output_path).endswith(".dot"):
        dot.write_raw(str(output_path))
    else:
        dot.write_svg(str(output_path))
    print(f"  ✓ Graphviz import graph exported → {output_path}")
    return output_path


__all__ = [
    "build_import_graph",
    "dependents",
    "export_graphviz",
    "graph_to_dot",
    "import_order",
    "print_imports",
    "visualize_imports",
]
