"""Reference host: a small s-expression evaluator, load pipeline and unit loader.

The engine only needs the collaborator protocols; this host implements them
so that namespaced units can actually be loaded and run.
"""
from __future__ import annotations

import itertools
import math
from pathlib import Path
from typing import Any, Callable, Iterable

from ..constants import UNIT_SUFFIX
from ..registry import GlobalRegistry
from .core import Engine
from .forms import FUNCTION, QUOTE, Symbol, format_form, is_symbol, read_forms
from .surface import form_head, parse_provide


class EvaluationError(RuntimeError):
    """Raised when a form cannot be evaluated."""


class RecursiveLoadError(EvaluationError):
    def __init__(self, chain: list[str]):
        self.chain = list(chain)
        super().__init__(f"Recursive load: {' -> '.join(self.chain)}")


NIL = Symbol("nil")
T = Symbol("t")


class Lambda:
    """A closure created by ``(function (lambda ARGS . BODY))``."""

    def __init__(self, params: list[Any], body: list[Any], env: "Env | None"):
        self.params = [str(p) for p in params]
        self.body = body
        self.env = env

    def __repr__(self) -> str:  # pragma: no cover - representation helper
        return f"<lambda ({' '.join(self.params)})>"


class Env:
    """Lexical bindings, chained to the enclosing scope."""

    __slots__ = ("vars", "parent")

    def __init__(self, bindings: dict[str, Any] | None = None, parent: "Env | None" = None):
        self.vars = dict(bindings or {})
        self.parent = parent

    def find(self, name: str) -> "Env | None":
        env = self
        while env is not None:
            if name in env.vars:
                return env
            env = env.parent
        return None


def _minus(*args):
    if not args:
        return 0
    if len(args) == 1:
        return -args[0]
    return args[0] - sum(args[1:])


BUILTINS: dict[str, Callable[..., Any]] = {
    "+": lambda *args: sum(args),
    "-": _minus,
    "*": lambda *args: math.prod(args),
    "=": lambda *args: all(a == b for a, b in zip(args, args[1:])),
    "list": lambda *args: list(args),
    "concat": lambda *args: "".join(str(a) for a in args),
}


class Interpreter:
    """Evaluates expanded forms against a :class:`GlobalRegistry`."""

    def __init__(self, registry: GlobalRegistry | None = None):
        self.registry = registry if registry is not None else GlobalRegistry()
        self.features: set[str] = set()
        self.on_provide: Callable[[str], None] | None = None

    # -- functions -------------------------------------------------------------

    def function_value(self, designator: Any) -> Any:
        seen = set()
        fn = designator
        while is_symbol(fn):
            name = str(fn)
            if name in seen:
                raise EvaluationError(f"Cyclic function alias {name}")
            seen.add(name)
            if self.registry.is_function_bound(name):
                fn = self.registry.lookup_function(name)
            elif name == "funcall":
                return self.funcall
            elif name in BUILTINS:
                return BUILTINS[name]
            else:
                raise EvaluationError(f"Void function: {name}")
        return fn

    def funcall(self, fn: Any, *args: Any) -> Any:
        fn = self.function_value(fn)
        if isinstance(fn, Lambda):
            return self._apply_lambda(fn, list(args))
        if callable(fn):
            return fn(*args)
        raise EvaluationError(f"Invalid function: {fn!r}")

    def _apply_lambda(self, fn: Lambda, args: list[Any]) -> Any:
        bindings: dict[str, Any] = {}
        mode = "required"
        remaining = list(args)
        for param in fn.params:
            if param == "&optional":
                mode = "optional"
                continue
            if param == "&rest":
                mode = "rest"
                continue
            if mode == "rest":
                bindings[param] = remaining
                remaining = []
            elif remaining:
                bindings[param] = remaining.pop(0)
            elif mode == "optional":
                bindings[param] = None
            else:
                raise EvaluationError(f"Wrong number of arguments: {fn!r}, {len(args)}")
        if remaining:
            raise EvaluationError(f"Wrong number of arguments: {fn!r}, {len(args)}")
        return self._progn(fn.body, Env(bindings, fn.env))

    # -- evaluation ------------------------------------------------------------

    def evaluate(self, form: Any, env: Env | None = None) -> Any:
        if is_symbol(form):
            return self._variable(form, env)
        if not isinstance(form, list):
            return form
        if not form:
            return None
        head = form_head(form)
        special = self._SPECIAL_FORMS.get(head) if head is not None else None
        if special is not None:
            try:
                return special(self, form, env)
            except IndexError as exc:
                raise EvaluationError(f"Malformed {head} form: {format_form(form)}") from exc
        fn = form[0]
        if isinstance(fn, list) and form_head(fn) == "lambda":
            fn = self.evaluate(fn, env)
        args = [self.evaluate(arg, env) for arg in form[1:]]
        return self.funcall(fn, *args)

    def _variable(self, sym: Symbol, env: Env | None) -> Any:
        name = str(sym)
        if sym == NIL:
            return None
        if sym == T:
            return True
        if sym.is_keyword:
            return sym
        if env is not None:
            scope = env.find(name)
            if scope is not None:
                return scope.vars[name]
        if self.registry.is_value_bound(name):
            return self.registry.lookup(name)
        raise EvaluationError(f"Void variable: {name}")

    def _progn(self, body: Iterable[Any], env: Env | None) -> Any:
        result = None
        for form in body:
            result = self.evaluate(form, env)
        return result

    def _quote(self, form, env):
        return form[1]

    def _function(self, form, env):
        target = form[1]
        if isinstance(target, list) and form_head(target) == "lambda":
            return self._lambda(target, env)
        return target

    def _lambda(self, form, env):
        if len(form) < 2 or not isinstance(form[1], list):
            raise EvaluationError("lambda requires an argument list")
        return Lambda(form[1], form[2:], env)

    def _defvar(self, form, env):
        name = str(form[1])
        if not self.registry.is_value_bound(name) and len(form) > 2:
            self.registry.bind(name, self.evaluate(form[2], env))
        return form[1]

    def _defconst(self, form, env):
        name = str(form[1])
        self.registry.bind(name, self.evaluate(form[2], env) if len(form) > 2 else None)
        return form[1]

    def _defalias(self, form, env):
        name = self.evaluate(form[1], env)
        if not is_symbol(name):
            raise EvaluationError(f"{form[0]} target must be a symbol, got {name!r}")
        self.registry.bind_function(str(name), self.evaluate(form[2], env))
        return name

    def _setq(self, form, env):
        if len(form) % 2 == 0:
            raise EvaluationError("setq requires name/value pairs")
        value = None
        for sym, expr in zip(form[1::2], form[2::2]):
            value = self.evaluate(expr, env)
            name = str(sym)
            scope = env.find(name) if env is not None else None
            if scope is not None:
                scope.vars[name] = value
            else:
                self.registry.bind(name, value)
        return value

    def _if(self, form, env):
        if self.evaluate(form[1], env) not in (None, False):
            return self.evaluate(form[2], env) if len(form) > 2 else None
        return self._progn(form[3:], env)

    def _let(self, form, env):
        bindings = {}
        for spec in form[1]:
            if isinstance(spec, list):
                bindings[str(spec[0])] = self.evaluate(spec[1], env) if len(spec) > 1 else None
            else:
                bindings[str(spec)] = None
        return self._progn(form[2:], Env(bindings, env))

    def _progn_form(self, form, env):
        return self._progn(form[1:], env)

    def _provide(self, form, env):
        name = parse_provide(form)
        self.features.add(name)
        if self.on_provide is not None:
            self.on_provide(name)
        return Symbol(name)

    _SPECIAL_FORMS = {
        "quote": _quote,
        "function": _function,
        "lambda": _lambda,
        "defvar": _defvar,
        "defcustom": _defvar,
        "defconst": _defconst,
        "defalias": _defalias,
        "fset": _defalias,
        "setq": _setq,
        "if": _if,
        "let": _let,
        "progn": _progn_form,
        "provide": _provide,
    }


def expand(form: Any) -> Any:
    """Expand host macros: ``(defun NAME ARGS . BODY)`` becomes a ``defalias``."""

    if not isinstance(form, list) or not form:
        return form
    head = form_head(form)
    if head == "quote":
        return form
    if head == "defun":
        if len(form) < 3 or not is_symbol(form[1]) or not isinstance(form[2], list):
            raise EvaluationError("defun requires a name and an argument list")
        body = [expand(item) for item in form[3:]]
        return [
            Symbol("defalias"),
            [QUOTE, form[1]],
            [FUNCTION, [Symbol("lambda"), form[2], *body]],
        ]
    return [expand(item) for item in form]


class LoadPipeline:
    """Delivers expanded forms to interceptors, then to the evaluator."""

    def __init__(self, interpreter: Interpreter):
        self.interpreter = interpreter
        self.form_hooks: list[Callable[[Any, Any], Any]] = []
        self.closing_hooks: list[Callable[[str, Any], Any]] = []

    def add_form_hook(self, hook: Callable[[Any, Any], Any]) -> None:
        self.form_hooks.append(hook)

    def add_closing_hook(self, hook: Callable[[str, Any], Any]) -> None:
        self.closing_hooks.append(hook)

    def process(self, form: Any, unit_id: Any = None) -> Any:
        form = expand(form)
        for hook in self.form_hooks:
            form = hook(form, unit_id)
            if form is None:
                return None
        return self.interpreter.evaluate(form)

    def close(self, name: str, unit_id: Any = None) -> None:
        for hook in self.closing_hooks:
            hook(name, unit_id)


class UnitLoader:
    """Finds and loads units from in-memory sources or ``*.lisp`` files."""

    def __init__(
        self,
        pipeline: LoadPipeline,
        search_path: Iterable[str | Path] = (),
        sources: dict[str, str] | None = None,
        engine: Engine | None = None,
    ):
        self.pipeline = pipeline
        self.search_path = [Path(p) for p in search_path]
        self.sources = dict(sources or {})
        self.engine = engine
        self.loading: list[tuple[str, str]] = []
        self._ids = itertools.count(1)
        pipeline.interpreter.on_provide = self._provided

    @property
    def interpreter(self) -> Interpreter:
        return self.pipeline.interpreter

    def _provided(self, name: str) -> None:
        unit_id = self.loading[-1][1] if self.loading else None
        self.pipeline.close(name, unit_id)

    def locate(self, name: str) -> str | None:
        """Return the source text of unit *name*, or ``None``."""

        if name in self.sources:
            return self.sources[name]
        for directory in self.search_path:
            candidate = directory / f"{name}{UNIT_SUFFIX}"
            if candidate.is_file():
                return candidate.read_text(encoding="utf-8")
        return None

    def is_provided(self, name: str) -> bool:
        return str(name) in self.interpreter.features

    def require(self, name: str) -> bool:
        name = str(name)
        if self.is_provided(name):
            return True
        if any(unit == name for unit, _ in self.loading):
            chain = [unit for unit, _ in self.loading] + [name]
            raise RecursiveLoadError(chain)
        text = self.locate(name)
        if text is None:
            return False
        self.load_text(name, text)
        if not self.is_provided(name):
            raise EvaluationError(f"Loading {name} did not provide {name}")
        return True

    def load(self, name: str) -> Any:
        text = self.locate(str(name))
        if text is None:
            raise FileNotFoundError(f"Cannot find unit {name}")
        return self.load_text(str(name), text)

    def load_text(self, name: str, text: str) -> Any:
        """Read and process every form of *text* as unit *name*."""

        unit_id = f"{name}#{next(self._ids)}"
        depth = self.engine.stack.depth if self.engine is not None else 0
        self.loading.append((name, unit_id))
        result = None
        try:
            for form in read_forms(text):
                result = self.pipeline.process(form, unit_id)
        except BaseException:
            if self.engine is not None:
                self.engine.unwind(depth, f"load of {name} failed")
            raise
        finally:
            self.loading.pop()
        if self.engine is not None:
            self.engine.unwind(depth, f"{name} finished without closing")
        return result


class Host:
    """Wires a registry, interpreter, pipeline, loader and engine together."""

    def __init__(
        self,
        search_path: Iterable[str | Path] = (),
        sources: dict[str, str] | None = None,
    ):
        self.registry = GlobalRegistry()
        self.interpreter = Interpreter(self.registry)
        self.pipeline = LoadPipeline(self.interpreter)
        self.engine = Engine(self.registry)
        self.loader = UnitLoader(self.pipeline, search_path, sources, self.engine)
        self.engine.loader = self.loader
        self.pipeline.add_form_hook(self.engine.post_expansion)
        self.pipeline.add_closing_hook(self.engine.closing)

    def add_source(self, name: str, text: str) -> None:
        self.loader.sources[name] = text

    def require(self, name: str) -> bool:
        return self.loader.require(name)

    def load(self, name: str) -> Any:
        return self.loader.load(name)

    def eval_text(self, text: str, name: str = "toplevel") -> Any:
        return self.loader.load_text(name, text)

    def value(self, name: str) -> Any:
        if not self.registry.is_value_bound(name):
            raise EvaluationError(f"Void variable: {name}")
        return self.registry.lookup(name)

    def call(self, name: str, *args: Any) -> Any:
        return self.interpreter.funcall(Symbol(name), *args)


def load_program(
    entry: str,
    search_path: Iterable[str | Path] = (),
    form_hooks: Iterable[Callable[[Any, Any], Any]] = (),
) -> Host:
    """Create a :class:`Host` and load *entry* (a unit name or a file path).

    *form_hooks* run after the engine on every processed form.
    """

    path = Path(entry)
    paths = list(search_path)
    if path.suffix == UNIT_SUFFIX:
        paths.insert(0, path.parent)
        entry = path.stem
    host = Host(paths or ["."])
    for hook in form_hooks:
        host.pipeline.add_form_hook(hook)
    if not host.require(entry):
        raise FileNotFoundError(f"Cannot find unit {entry}")
    return host


__all__ = [
    "BUILTINS",
    "Env",
    "EvaluationError",
    "Host",
    "Interpreter",
    "Lambda",
    "LoadPipeline",
    "RecursiveLoadError",
    "UnitLoader",
    "expand",
    "load_program",
]
