"""Public API of :mod:`nameshift`."""

from . import constants as _constants
from . import registry as _registry
from . import engine as _engine
from .constants import *  # noqa: F401,F403
from .registry import *  # noqa: F401,F403
from .engine import *  # noqa: F401,F403

__all__ = []
__all__ += getattr(_constants, "__all__", [])
__all__ += getattr(_registry, "__all__", [])
__all__ += getattr(_engine, "__all__", [])
__all__ = list(dict.fromkeys(__all__))
