from __future__ import annotations

import json
import runpy
import sys
from pathlib import Path

import pytest

from nameshift.constants import MANIFEST_FILE
from nameshift.engine import cli

FIXTURES = Path(__file__).parent / "fixtures"


def test_parse_args_defaults_and_flags():
    params = cli.parse_args(["testmodule", "-p", "a", "--path", "b", "--trace", "--visualize"])

    assert params.unit == "testmodule"
    assert params.paths == ["a", "b"]
    assert params.trace
    assert params.visualize == ""
    assert params.manifest is None
    assert cli.parse_args([]).visualize is None
    assert cli.parse_args(["u", "--manifest"]).manifest == MANIFEST_FILE


def test_main_reports_namespaces(capsys):
    code = cli.main([str(FIXTURES / "testmodule.lisp"), "--show-symbols", "--imports"])

    out = capsys.readouterr().out
    assert code == 0
    assert "OPEN:testmodule exports=['somefunction', 'somevariable']" in out
    assert "✓ testmodule" in out
    assert "export somevariable → testmodule-somevariable" in out
    assert "testmodule--private [defined]" in out
    assert "← testm2 (explicit): zzzq" in out


def test_main_traces_rewritten_forms(capsys):
    cli.main(["testalias", "-p", str(FIXTURES), "--trace"])

    out = capsys.readouterr().out
    assert "(defalias 'testalias--private-function #'(lambda (arg) arg))" in out
    assert "(ti2-implicit2)" in out
    assert "import-module" not in out


def test_main_writes_manifest(tmp_path, capsys):
    output = tmp_path / "manifest.json"

    assert cli.main(["mutual", "-p", str(FIXTURES), "--manifest", str(output)]) == 0

    doc = json.loads(output.read_text())
    assert doc["namespaces"]["mutual"]["exports"] == {"parity": "mutual-parity"}
    assert "Namespace manifest exported" in capsys.readouterr().out


def test_main_reports_failures(tmp_path, capsys):
    (tmp_path / "broken.lisp").write_text(
        "(define-module broken)\n(provide 'broken)\n", encoding="utf-8"
    )

    assert cli.main([str(tmp_path / "broken.lisp")]) == 1
    assert "must export at least one symbol" in capsys.readouterr().out
    assert cli.main(["absent", "-p", str(tmp_path)]) == 1
    assert "Cannot find unit absent" in capsys.readouterr().out


def test_main_without_unit(capsys):
    assert cli.main([]) == 2
    assert "No unit given" in capsys.readouterr().out


def test_main_hash_and_diff(tmp_path, capsys):
    output = tmp_path / "m.json"
    cli.main(["testmodule", "-p", str(FIXTURES), "--manifest", str(output)])
    capsys.readouterr()

    assert cli.main(["--hash", str(output)]) == 0
    assert f"SHA256({output})" in capsys.readouterr().out
    assert cli.main(["--diff", str(output), str(output)]) == 0
    assert "Manifests are identical" in capsys.readouterr().out


def test_main_verify_reads_signature(monkeypatch, capsys):
    monkeypatch.setattr(cli, "verify_signature", lambda sha, sig: sig == "good")
    monkeypatch.setattr("builtins.input", lambda prompt: "good\n")

    assert cli.main(["--verify", "abc"]) == 0
    assert "Signature valid" in capsys.readouterr().out

    monkeypatch.setattr("builtins.input", lambda prompt: "bad")
    assert cli.main(["--verify", "abc"]) == 1
    assert "Invalid signature" in capsys.readouterr().out


def test_module_entrypoint(monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["nameshift", "testm2", "-p", str(FIXTURES)])

    with pytest.raises(SystemExit) as excinfo:
        runpy.run_module("nameshift", run_name="__main__")

    assert excinfo.value.code == 0
    assert "CLOSE:testm2" in capsys.readouterr().out
