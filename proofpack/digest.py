"""
digest.py

Responsibility: Discover evidence files and compute their SHA-256 digests.

Rules:
- Only regular files directly under the evidence directory are considered
  (no recursion; subdirectories are ignored).
- Files are returned in sorted name order so downstream output is stable.
- A digest is a pure function of the file bytes (lowercase hex).
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1 << 16


class EvidenceError(RuntimeError):
    pass


@dataclass(frozen=True)
class EvidenceFile:
    name: str
    path: Path
    sha256: str


def sha256_file(path: str | Path) -> str:
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()


def list_evidence_paths(evidence_dir: str | Path) -> list[Path]:
    """
    Return the files directly under evidence_dir, sorted by name.

    Raises EvidenceError if the directory is missing or holds no files.
    """
    root = Path(evidence_dir)
    if not root.exists() or not root.is_dir():
        raise EvidenceError(f"Evidence directory not found: {root}")

    paths = sorted((p for p in root.iterdir() if p.is_file()), key=lambda p: p.name)
    if not paths:
        raise EvidenceError(f"Evidence directory is empty: {root}")
    return paths


def collect_evidence(evidence_dir: str | Path) -> list[EvidenceFile]:
    """
    Scan evidence_dir and compute one digest per file.

    Read errors (permissions, vanished files) propagate unchanged.
    """
    files: list[EvidenceFile] = []
    for path in list_evidence_paths(evidence_dir):
        digest = sha256_file(path)
        logger.debug("sha256 %s %s", digest, path.name)
        files.append(EvidenceFile(name=path.name, path=path, sha256=digest))
    return files
