"""Canonical hashing helpers for up-to-date checks.

Task inputs and outputs are reduced to canonical JSON and hashed, so the
same properties and the same file contents always give the same digest.
"""

from __future__ import annotations

import hashlib
import json
import os
from pathlib import Path
from typing import Any

_CHUNK_SIZE = 1 << 16

MISSING = "missing"


def canonical_json_bytes(obj: Any) -> bytes:
    """Produce canonical JSON bytes: deterministic, sorted, compact."""
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True, default=str
    ).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def file_sha256(path: Path) -> str:
    """Stream a file through SHA-256."""
    digest = hashlib.sha256()
    with open(path, "rb") as handle:
        for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def fingerprint_path(path: Path) -> Any:
    """Fingerprint a file or directory tree by content and executable bit.

    Files map to their digest, directories to a sorted mapping of relative
    paths to digests, and absent paths to ``"missing"``.
    """
    path = Path(path)
    if path.is_file():
        return {"file": file_sha256(path), "exec": os.access(path, os.X_OK)}
    if path.is_dir():
        entries: dict[str, Any] = {}
        for child in sorted(path.rglob("*")):
            if child.is_file():
                rel = child.relative_to(path).as_posix()
                entries[rel] = {
                    "file": file_sha256(child),
                    "exec": os.access(child, os.X_OK),
                }
        return {"dir": entries}
    return MISSING


def fingerprint_paths(paths: list[Path]) -> dict[str, Any]:
    """Fingerprint several paths, keyed by their string form."""
    return {str(p): fingerprint_path(p) for p in paths}


def compute_input_hash(
    task_id: str, properties: dict[str, Any], files: list[Path]
) -> str:
    """SHA-256 of canonical(task_id + properties + input fingerprints)."""
    payload = {
        "task_id": task_id,
        "properties": properties,
        "files": fingerprint_paths(files),
    }
    return sha256_hex(canonical_json_bytes(payload))


def compute_output_hash(task_id: str, outputs: list[Path]) -> str:
    """SHA-256 of canonical(task_id + output fingerprints)."""
    payload = {"task_id": task_id, "outputs": fingerprint_paths(outputs)}
    return sha256_hex(canonical_json_bytes(payload))
