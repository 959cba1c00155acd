"""
nameshift engine: short names in source, long prefixed names at run time.

  define-module   → open a namespace and declare its exports
  import-module   → map names from another module (explicit or implicit)
  declare-private → register a private name before it is defined
  provide         → close the namespace

| Layer                         | Purpose                                    |
<------------------------------ + ------------------------------------------>
| **Symbol tables**             | Provenance lattice for every short name    |
| **Context stack**             | Re-entrant namespace construction          |
| **Import resolver**           | Explicit, implicit, aliased and wildcard   |
| **Rewriter**                  | In-place identifier substitution           |
| **Reference host**            | Reader, evaluator, pipeline, unit loader   |
| **Import graph**              | NetworkX graph, Graphviz and matplotlib    |
| **Manifests**                 | JSON export, hashing, diffing, signatures  |
"""

from . import errors as _errors
from . import forms as _forms
from . import symbols as _symbols
from . import context as _context
from . import resolver as _resolver
from . import rewriter as _rewriter
from . import surface as _surface
from . import core as _core
from . import host as _host
from . import analysis as _analysis
from . import crypto as _crypto
from . import manifest as _manifest
from .cli import main, parse_args
from ..constants import KEY_FILE, MANIFEST_FILE, PUB_FILE
from ..registry import GlobalRegistry

from .errors import *
from .forms import *
from .symbols import *
from .context import *
from .resolver import *
from .rewriter import *
from .surface import *
from .core import *
from .host import *
from .analysis import *
from .crypto import *
from .manifest import *

__all__ = []
for module in (
    _errors,
    _forms,
    _symbols,
    _context,
    _resolver,
    _rewriter,
    _surface,
    _core,
    _host,
    _analysis,
    _crypto,
    _manifest,
):
    __all__.extend(getattr(module, '__all__', []))
__all__ += ['main', 'parse_args', 'GlobalRegistry', 'KEY_FILE', 'MANIFEST_FILE', 'PUB_FILE']
__all__ = list(dict.fromkeys(__all__))
