import os
from pathlib import Path
from typing import Dict, Union

import pytest


def write_tree(root: Path, files: Dict[str, Union[str, bytes]]) -> Path:
    """Create files under root from a {relative_path: content} mapping."""
    root.mkdir(parents=True, exist_ok=True)
    for relative_path, content in files.items():
        target = root / relative_path
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            target.write_bytes(content)
        else:
            target.write_text(content, encoding="utf-8", newline="")
    return root


@pytest.fixture
def make_tree(tmp_path):
    def _make(name: str, files: Dict[str, Union[str, bytes]]) -> str:
        return str(write_tree(tmp_path / name, files))
    return _make


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    # Keep ConfigManager from picking up a developer's .env or WP_MCP_* settings
    for key in list(os.environ):
        if key.startswith("WP_MCP_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
