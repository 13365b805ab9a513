from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A small project: a/x.ts (50 bytes), a/y.png (ignored), b/readme (10 bytes)."""
    root = tmp_path / "proj"
    (root / "a").mkdir(parents=True)
    (root / "b").mkdir()
    (root / "a" / "x.ts").write_text("export const x = 1;\n" + "/" * 29 + "\n", encoding="utf-8")
    (root / "a" / "y.png").write_bytes(b"\x89PNG\r\n\x1a\n\x00\x00")
    (root / "b" / "readme").write_text("read me!!\n", encoding="utf-8")
    return root
