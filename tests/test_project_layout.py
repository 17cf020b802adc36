from __future__ import annotations

from pathlib import Path


def test_required_package_paths_exist() -> None:
    root = Path(__file__).resolve().parents[1]
    required = [
        "src/rg_engine/engine.py",
        "src/rg_engine/cli.py",
        "src/rg_engine/parsing/__init__.py",
        "src/rg_engine/render/__init__.py",
        "src/rg_engine/session/__init__.py",
        "src/rg_engine/filetypes/__init__.py",
        "src/rg_engine/edit/__init__.py",
        "src/rg_engine/logging/__init__.py",
    ]
    for rel in required:
        assert (root / rel).exists(), rel
