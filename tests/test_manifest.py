from __future__ import annotations

import copy
import json
from pathlib import Path

import pytest

from nameshift.engine import crypto, manifest
from nameshift.engine.host import Host

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def doc():
    host = Host([FIXTURES])
    host.require("testmodule")
    return manifest.build_manifest(host.engine)


def test_build_manifest_lists_finished_namespaces(doc):
    assert set(doc["namespaces"]) == {"testm2", "testmodule"}
    ns = doc["namespaces"]["testmodule"]
    assert ns["exports"] == {
        "somefunction": "testmodule-somefunction",
        "somevariable": "testmodule-somevariable",
    }
    assert ns["symbols"]["private"] == {"full_name": "testmodule--private", "status": "defined"}
    assert [rec["source"] for rec in ns["imports"]] == ["testm2", "testimplicit"]
    assert "CLOSE:testmodule" in doc["log"]
    assert manifest.verify_manifest_document(doc)


def test_write_and_load_round_trip(doc, tmp_path, capsys):
    path = tmp_path / "ns.json"

    manifest.write_manifest(doc, str(path))

    assert "Namespace manifest exported" in capsys.readouterr().out
    assert manifest.load_manifest(str(path)) == json.loads(json.dumps(doc))


def test_verify_rejects_inconsistent_exports(doc):
    broken = copy.deepcopy(doc)
    broken["namespaces"]["testm2"]["exports"]["zzzq"] = "other-zzzq"

    with pytest.raises(ValueError, match="maps export zzzq"):
        manifest.verify_manifest_document(broken)

    broken["namespaces"]["testm2"]["exports"] = {}
    with pytest.raises(ValueError, match="no exports"):
        manifest.verify_manifest_document(broken)
    with pytest.raises(ValueError):
        manifest.verify_manifest_document({"log": []})


def test_hash_ignores_timestamps_and_key_order(doc):
    other = copy.deepcopy(doc)
    other["timestamp"] = "1970-01-01T00:00:00Z"
    other["namespaces"] = dict(reversed(list(other["namespaces"].items())))

    assert manifest.hash_manifest_document(doc) == manifest.hash_manifest_document(other)

    other["namespaces"]["testm2"]["unused_wildcards"] = ["x"]
    assert manifest.hash_manifest_document(doc) != manifest.hash_manifest_document(other)


def test_hash_covers_nested_timestamp_names(doc):
    other = copy.deepcopy(doc)
    other["namespaces"]["testm2"]["exports"]["timestamp"] = "testm2-timestamp"

    assert manifest.hash_manifest_document(doc) != manifest.hash_manifest_document(other)
    assert manifest.manifest_differences(doc, other) == ["  testm2: + export timestamp"]
    assert "timestamp" not in manifest.canonicalize_manifest(doc)


def test_manifest_differences_describe_symbol_changes(doc):
    other = copy.deepcopy(doc)
    ns = other["namespaces"]["testmodule"]
    ns["symbols"]["implicit"]["status"] = "wildcard"
    del ns["symbols"]["zzzq"]
    ns["exports"]["extra"] = "testmodule-extra"
    del other["namespaces"]["testm2"]

    lines = manifest.manifest_differences(doc, other)

    assert "- namespace testm2" in lines
    assert "  testmodule: + export extra" in lines
    assert "  testmodule: - zzzq → testm2-zzzq [imported]" in lines
    assert (
        "  testmodule: implicit testimplicit-implicit [wildcard-used]"
        " → testimplicit-implicit [wildcard]"
    ) in lines


def test_hash_and_diff_files(doc, tmp_path, capsys):
    a, b = tmp_path / "a.json", tmp_path / "b.json"
    manifest.write_manifest(doc, str(a))
    manifest.write_manifest(doc, str(b))
    capsys.readouterr()

    digest = manifest.hash_manifest(str(a))
    assert digest == manifest.hash_manifest_document(doc)
    assert manifest.diff_manifests(str(a), str(b)) == []
    assert "Manifests are identical" in capsys.readouterr().out

    changed = copy.deepcopy(doc)
    changed["namespaces"]["testm2"]["exports"]["more"] = "testm2-more"
    manifest.write_manifest(changed, str(b))
    lines = manifest.diff_manifests(str(a), str(b))
    assert lines == ["  testm2: + export more"]
    assert "Manifests differ" in capsys.readouterr().out


def test_sign_manifest_uses_the_signing_helper(doc, tmp_path, monkeypatch):
    path = tmp_path / "ns.json"
    manifest.write_manifest(doc, str(path))
    monkeypatch.setattr(crypto, "sign_hash", lambda sha: f"sig:{sha}")

    result = manifest.sign_manifest(str(path))

    assert result == {"hash": manifest.hash_manifest_document(doc), "signature": f"sig:{result['hash']}"}


def test_sign_and_verify_hash(tmp_path):
    pytest.importorskip("cryptography")
    key, pub = tmp_path / "key.pem", tmp_path / "pub.pem"

    signature = crypto.sign_hash("ab" * 32, key_file=key, pub_file=pub)

    assert key.exists() and pub.exists()
    assert crypto.verify_signature("ab" * 32, signature, pub_file=pub)
    assert not crypto.verify_signature("cd" * 32, signature, pub_file=pub)
    assert not crypto.verify_signature("ab" * 32, "zz", pub_file=pub)
    # The stored key is reused rather than regenerated.
    again = crypto.sign_hash("ab" * 32, key_file=key, pub_file=pub)
    assert crypto.verify_signature("ab" * 32, again, pub_file=pub)
