from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture()
def evidence_dir(tmp_path: Path) -> Path:
    d = tmp_path / "evidence"
    d.mkdir()
    (d / "a.png").write_bytes(b"hello")
    return d


@pytest.fixture()
def screenshots_dir(tmp_path: Path) -> Path:
    d = tmp_path / "screens"
    d.mkdir()
    for i in range(1, 4):
        (d / f"screenshot-00{i}.png").write_bytes(b"\x89PNG\r\n\x1a\n" + bytes([i]) * 32)
    return d
