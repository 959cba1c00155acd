"""Loading real units through the reference host."""

from __future__ import annotations

from pathlib import Path

import pytest

from nameshift.engine.errors import (
    NoActiveNamespaceError,
    UnexportedSymbolError,
    UnknownSourceError,
)
from nameshift.engine.forms import format_form, read_form
from nameshift.engine.host import (
    EvaluationError,
    Host,
    Interpreter,
    RecursiveLoadError,
    expand,
    load_program,
)

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def host():
    return Host([FIXTURES])


# -- interpreter ---------------------------------------------------------------


def test_interpreter_evaluates_core_forms():
    host = Host()

    assert host.eval_text("(+ 1 2 3)") == 6
    assert host.eval_text("(- 10 1 2)") == 7
    assert host.eval_text("(- 4)") == -4
    assert host.eval_text("(let ((x 2) y) (setq y 5) (* x y))") == 10
    assert host.eval_text("(if nil 1 2 3)") == 3
    assert host.eval_text("(if t 'yes)") == "yes"
    assert host.eval_text("(funcall #'+ 1 2)") == 3
    assert host.eval_text("((lambda (a &optional b &rest c) (list a b c)) 1)") == [1, None, []]
    assert host.eval_text("(concat \"a\" 1)") == "a1"


def test_interpreter_keeps_values_and_functions_apart():
    host = Host()
    host.eval_text("(defvar f 1) (defun f (x) (+ x f))")

    assert host.value("f") == 1
    assert host.call("f", 2) == 3
    host.eval_text("(defvar f 99) (defconst g 5)")
    assert host.value("f") == 1
    assert host.value("g") == 5


def test_interpreter_reports_unbound_names():
    interp = Interpreter()

    with pytest.raises(EvaluationError, match="Void variable"):
        interp.evaluate(read_form("missing"))
    with pytest.raises(EvaluationError, match="Void function"):
        interp.evaluate(read_form("(missing 1)"))
    with pytest.raises(EvaluationError, match="Wrong number"):
        interp.evaluate(read_form("((lambda (a) a))"))
    with pytest.raises(EvaluationError, match="Malformed defvar"):
        interp.evaluate(read_form("(defvar)"))


def test_expand_turns_defun_into_defalias():
    form = expand(read_form("(progn (defun f (x) (defun g () x)) '(defun h ()))"))

    assert format_form(form) == (
        "(progn (defalias 'f #'(lambda (x) (defalias 'g #'(lambda () x)))) "
        "'(defun h ()))"
    )
    with pytest.raises(EvaluationError):
        expand(read_form("(defun f)"))


# -- units -----------------------------------------------------------------------


def test_scenario_basic_module(host):
    assert host.require("testmodule")

    assert host.value("testmodule-somevariable") == 23
    assert host.call("testmodule-somefunction") == 10
    assert host.value("testmodule--private") == 22
    assert host.call("testmodule--private-function", 4) == 4
    assert host.call("testm2-zzzq") == 7
    for bare in ("private", "private-function", "somevariable", "somefunction"):
        assert not host.registry.is_bound(bare)
    assert host.engine.active is None


def test_scenario_alias_with_prefix_override(host):
    host.require("testalias")

    assert host.call("testalias-somefunction") == 15
    info = host.engine.reflect("testalias")
    assert info["symbols"]["i2"] == {"full_name": "ti2-implicit2", "status": "imported"}
    assert info["symbols"]["implicit"]["status"] == "wildcard-used"


def test_implicit_discovery_skips_private_and_nested_names(host):
    host.require("testmodule")

    symbols = host.engine.reflect("testmodule")["symbols"]
    assert "hidden" not in symbols
    assert "nested-name" not in symbols
    assert symbols["implicit"]["full_name"] == "testimplicit-implicit"


def test_prefix_override_requires_matching_members(host):
    host.add_source(
        "bad",
        "(define-module bad :export (f))"
        "(import-module testimplicit2 :prefix nope :symbols (implicit2))"
        "(provide 'bad)",
    )

    with pytest.raises(UnexportedSymbolError):
        host.require("bad")
    assert host.engine.active is None


def test_unknown_source(host):
    host.add_source("bad", "(define-module bad :export (f)) (import-module nowhere)")

    with pytest.raises(UnknownSourceError):
        host.require("bad")


def test_units_loaded_once(host):
    host.require("testmodule")
    host.require("testalias")

    imports = [line for line in host.engine.log if line.startswith("OPEN:testm2")]
    assert imports == ["OPEN:testm2 exports=['zzzq']"]
    assert host.call("testalias-somefunction") == 15


def test_forward_private_declarations(host):
    host.require("mutual")

    assert host.call("mutual-parity", 4) == "even"
    assert host.call("mutual-parity", 7) == "odd"
    assert host.registry.is_function_bound("mutual--is-even")
    assert not host.registry.is_bound("is-odd")


def test_recursive_load_is_detected_and_unwound():
    host = Host(
        sources={
            "a": "(define-module a :export (x)) (import-module b) (provide 'a)",
            "b": "(define-module b :export (y)) (import-module a) (provide 'b)",
        }
    )

    with pytest.raises(RecursiveLoadError) as excinfo:
        host.require("a")

    assert excinfo.value.chain == ["a", "b", "a"]
    assert host.engine.active is None
    assert "UNWIND:b (load of b failed)" in host.engine.log
    assert "UNWIND:a (load of a failed)" in host.engine.log
    assert not host.loader.loading


def test_namespace_exporting_its_own_name_still_closes():
    host = Host(
        sources={
            "greet": (
                "(define-module greet :export (greet))"
                "(defun greet () 1)"
                "(provide 'greet)"
            )
        }
    )

    assert host.require("greet")

    assert host.call("greet-greet") == 1
    assert "CLOSE:greet" in host.engine.log
    assert host.engine.module("greet").sealed
    assert host.engine.active is None


def test_unit_that_never_closes_is_unwound():
    host = Host(sources={"open": "(define-module open :export (x)) (defvar x 1)"})

    host.load("open")

    assert host.engine.active is None
    assert host.value("open-x") == 1
    assert "UNWIND:open (open finished without closing)" in host.engine.log
    with pytest.raises(KeyError):
        host.engine.reflect("open")


def test_require_reports_missing_and_unprovided_units():
    host = Host(sources={"quiet": "(defvar quiet-x 1)"})

    assert host.require("absent") is False
    with pytest.raises(EvaluationError, match="did not provide"):
        host.require("quiet")
    with pytest.raises(FileNotFoundError):
        host.load("absent")


def test_plain_unit_cannot_use_directives_of_an_enclosing_namespace():
    host = Host(
        sources={
            "outer": "(define-module outer :export (x)) (import-module plain) (provide 'outer)",
            "plain": "(declare-private y) (provide 'plain)",
        }
    )

    with pytest.raises(NoActiveNamespaceError):
        host.require("outer")


def test_load_program_accepts_paths_and_extra_hooks():
    seen = []

    def hook(form, unit_id):
        seen.append(unit_id.split("#")[0])
        return form

    host = load_program(str(FIXTURES / "testmodule.lisp"), form_hooks=[hook])

    assert host.call("testmodule-somefunction") == 10
    assert {"testmodule", "testm2", "testimplicit"} <= set(seen)
    with pytest.raises(FileNotFoundError):
        load_program("absent", search_path=[FIXTURES])
