"""Shared constant values for the nameshift engine."""

SEPARATOR = "-"
PRIVATE_SEPARATOR = SEPARATOR * 2

DIRECTIVES = {
    "open": "define-module",
    "import": "import-module",
    "declare": "declare-private",
    "close": "provide",
}

EXPORT_KEYWORD = ":export"
SYMBOLS_KEYWORD = ":symbols"
PREFIX_KEYWORD = ":prefix"

# Heads of expanded definition forms, keyed by what their target looks like.
VARIABLE_DEFINITIONS = frozenset({"defvar", "defconst", "defcustom"})
ALIAS_DEFINITIONS = frozenset({"defalias", "fset"})

UNIT_SUFFIX = ".lisp"

MANIFEST_VERSION = "1.0"
MANIFEST_FILE = "namespaces.manifest.json"
KEY_FILE = "nameshift_private_key.pem"
PUB_FILE = "nameshift_public_key.pem"

GRAPH_COLORS = {
    "explicit": "#8BC34A",
    "implicit": "#FFEB3B",
    "root": "#B0BEC5",
}

__all__ = [
    "SEPARATOR",
    "PRIVATE_SEPARATOR",
    "DIRECTIVES",
    "EXPORT_KEYWORD",
    "SYMBOLS_KEYWORD",
    "PREFIX_KEYWORD",
    "VARIABLE_DEFINITIONS",
    "ALIAS_DEFINITIONS",
    "UNIT_SUFFIX",
    "MANIFEST_VERSION",
    "MANIFEST_FILE",
    "KEY_FILE",
    "PUB_FILE",
    "GRAPH_COLORS",
]
