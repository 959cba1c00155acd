"""Namespace manifests: serialization, hashing, diffing and signing."""

from __future__ import annotations

from datetime import datetime, timezone
import hashlib
import json

from ..constants import MANIFEST_VERSION, SEPARATOR
from . import crypto as _crypto
from .core import Engine


def build_manifest(engine: Engine):
    """Create an in-memory manifest of every namespace the engine finished."""

    namespaces = {}
    for prefix in sorted(engine.modules):
        info = engine.reflect(prefix)
        namespaces[prefix] = {
            "exports": info["exports"],
            "symbols": info.get("symbols", {}),
            "unused_wildcards": info.get("unused_wildcards", []),
            "imports": info["imports"],
        }

    return {
        "nameshift_version": MANIFEST_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "namespaces": namespaces,
        "log": list(engine.log),
    }


def write_manifest(doc, filename):
    """Persist a manifest document to disk."""

    with open(filename, "w", encoding="utf-8") as f:
        json.dump(doc, f, indent=2)
    print(f"  ✓ Namespace manifest exported → {filename}")
    return doc


def load_manifest(filename):
    """Load a manifest and check that it has the expected shape."""

    with open(filename, "r", encoding="utf-8") as f:
        doc = json.load(f)
    verify_manifest_document(doc)
    return doc


def verify_manifest_document(doc):
    """Ensure every recorded export really maps to ``prefix-short``."""

    if not isinstance(doc, dict) or "namespaces" not in doc:
        raise ValueError("Manifest is missing its namespaces")
    for prefix, info in doc["namespaces"].items():
        exports = info.get("exports")
        if not exports:
            raise ValueError(f"Namespace {prefix} has no exports")
        for short, full in exports.items():
            if full != f"{prefix}{SEPARATOR}{short}":
                raise ValueError(
                    f"Namespace {prefix} maps export {short} to {full}"
                )
    return True


def canonicalize_manifest(doc):
    """
    Normalize a manifest so semantically identical namespace sets produce
    identical JSON, whatever the timestamp or key order.
    """

    def sort_dict(d):
        if isinstance(d, dict):
            return {k: sort_dict(v) for k, v in sorted(d.items())}
        elif isinstance(d, list):
            return [sort_dict(x) for x in d]
        else:
            return d

    return sort_dict({k: v for k, v in doc.items() if k != "timestamp"})


def hash_manifest_document(doc):
    """Compute SHA-256 hash of an in-memory manifest."""
    canon = canonicalize_manifest(doc)
    data = json.dumps(canon, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def hash_manifest(filename):
    """Compute SHA-256 hash of a manifest file."""
    doc = load_manifest(filename)
    h = hash_manifest_document(doc)
    print(f"SHA256({filename}) = {h}")
    return h


def manifest_differences(a, b):
    """List human-readable differences between two manifest documents."""

    a = canonicalize_manifest(a)
    b = canonicalize_manifest(b)
    lines = []
    na, nb = a.get("namespaces", {}), b.get("namespaces", {})
    for prefix in sorted(set(na) - set(nb)):
        lines.append(f"- namespace {prefix}")
    for prefix in sorted(set(nb) - set(na)):
        lines.append(f"+ namespace {prefix}")
    for prefix in sorted(set(na) & set(nb)):
        ea, eb = na[prefix]["exports"], nb[prefix]["exports"]
        for short in sorted(set(ea) - set(eb)):
            lines.append(f"  {prefix}: - export {short}")
        for short in sorted(set(eb) - set(ea)):
            lines.append(f"  {prefix}: + export {short}")
        sa, sb = na[prefix].get("symbols", {}), nb[prefix].get("symbols", {})
        for short in sorted(set(sa) | set(sb)):
            old, new = sa.get(short), sb.get(short)
            if old == new:
                continue
            if old is None:
                lines.append(f"  {prefix}: + {short} → {new['full_name']} [{new['status']}]")
            elif new is None:
                lines.append(f"  {prefix}: - {short} → {old['full_name']} [{old['status']}]")
            else:
                lines.append(
                    f"  {prefix}: {short} {old['full_name']} [{old['status']}]"
                    f" → {new['full_name']} [{new['status']}]"
                )
    return lines


def diff_manifests(file_a, file_b):
    """Compare two manifest files and print their differences."""
    a = load_manifest(file_a)
    b = load_manifest(file_b)

    ha = hash_manifest_document(a)
    hb = hash_manifest_document(b)
    if ha == hb:
        print(f"✓ Manifests are identical ({ha})")
        return []

    print(f"✗ Manifests differ\n  {file_a[:30]}…: {ha}\n  {file_b[:30]}…: {hb}")
    lines = manifest_differences(a, b)
    for line in lines:
        print(f"  • {line}")
    return lines


def sign_manifest(filename):
    """Hash a manifest file and sign the digest."""
    sha = hash_manifest(filename)
    sig = _crypto.sign_hash(sha)
    print(f"  ✓ Signed {filename}")
    return {"hash": sha, "signature": sig}


__all__ = [
    "build_manifest",
    "canonicalize_manifest",
    "diff_manifests",
    "hash_manifest",
    "hash_manifest_document",
    "load_manifest",
    "manifest_differences",
    "sign_manifest",
    "verify_manifest_document",
    "write_manifest",
]
