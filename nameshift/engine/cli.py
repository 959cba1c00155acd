"""Command-line interface for the nameshift engine."""
from __future__ import annotations

import argparse
import json
import sys

from ..constants import MANIFEST_FILE
from .analysis import build_import_graph, export_graphviz, print_imports, visualize_imports
from .crypto import verify_signature
from .errors import NamespaceError
from .forms import ReaderError, format_form
from .host import EvaluationError, load_program
from .manifest import (
    build_manifest,
    diff_manifests,
    hash_manifest,
    sign_manifest,
    write_manifest,
)


def parse_args(args):
    argp = argparse.ArgumentParser(description="Compile-time namespacing for s-expression units")

    argp.add_argument("unit", nargs="?", help="Unit name or path to a .lisp file to load")
    argp.add_argument(
        "-p",
        "--path",
        action="append",
        dest="paths",
        default=[],
        help="Directory searched for units (repeatable; default: the unit's directory or .)",
    )
    argp.add_argument(
        "--show-symbols",
        action="store_true",
        help="Print each finished namespace's symbol table",
    )
    argp.add_argument(
        "--trace",
        action="store_true",
        help="Print every top-level form after rewriting",
    )
    argp.add_argument("--imports", action="store_true", help="Print the import graph")
    argp.add_argument(
        "--manifest",
        nargs="?",
        const=MANIFEST_FILE,
        metavar="OUTPUT",
        help=f"Write a namespace manifest (default: {MANIFEST_FILE})",
    )
    argp.add_argument("--hash", metavar="FILE", help="Compute hash of a manifest file")
    argp.add_argument(
        "--diff",
        nargs=2,
        metavar=("A", "B"),
        help="Compare two manifest files",
    )
    argp.add_argument("--sign", metavar="FILE", help="Sign a manifest file")
    argp.add_argument("--verify", metavar="HASH", help="Verify a manifest signature")
    argp.add_argument(
        "--viz",
        metavar="OUTPUT",
        help="Export the import graph with Graphviz (.svg or .dot)",
    )
    argp.add_argument(
        "--visualize",
        nargs="?",
        const="",
        metavar="OUTPUT",
        help="Draw the import graph with matplotlib (optionally to an image file)",
    )

    return argp.parse_args(args)


def _trace_hook(form, unit_id):
    if form is not None:
        print(f"  [{unit_id}] {format_form(form)}")
    return form


def load(params):
    """Load the requested unit and return the host that ran it."""

    hooks = [_trace_hook] if params.trace else []
    return load_program(params.unit, params.paths, hooks)


def report(host, params):
    engine = host.engine
    print("Namespace log:")
    for line in engine.log:
        print("   ", line)

    if not engine.modules:
        print("\n  (no namespaces were defined)")
    for prefix in sorted(engine.modules):
        info = engine.reflect(prefix)
        print(f"\n✓ {prefix}")
        for short, full in info["exports"].items():
            print(f"    export {short} → {full}")
        if params.show_symbols:
            for short, entry in info.get("symbols", {}).items():
                print(f"    {short:<20} {entry['full_name']} [{entry['status']}]")
        for short in info.get("unused_wildcards", []):
            print(f"    (unused wildcard {short})")


def main(args=None):
    params = parse_args(args)

    if params.diff:
        diff_manifests(params.diff[0], params.diff[1])
        return 0
    if params.hash:
        hash_manifest(params.hash)
        return 0
    if params.sign:
        print(json.dumps(sign_manifest(params.sign), indent=2))
        return 0
    if params.verify:
        ok = verify_signature(params.verify, input("Signature hex: ").strip())
        print("✓ Signature valid" if ok else "✗ Invalid signature")
        return 0 if ok else 1
    if not params.unit:
        print("✗ No unit given (see --help)")
        return 2

    try:
        host = load(params)
    except (NamespaceError, EvaluationError, ReaderError, FileNotFoundError) as exc:
        print(f"✗ {exc}")
        return 1

    report(host, params)

    if params.imports or params.viz or params.visualize is not None:
        graph = build_import_graph(host.engine)
        if params.imports:
            print("\nImports:")
            print_imports(graph)
        if params.viz:
            export_graphviz(graph, params.viz)
        if params.visualize is not None:
            visualize_imports(graph, params.visualize or None)
    if params.manifest:
        write_manifest(build_manifest(host.engine), params.manifest)
    return 0


__all__ = [
    "load",
    "main",
    "parse_args",
    "report",
]


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main(sys.argv[1:]))
