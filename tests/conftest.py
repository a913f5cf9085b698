from __future__ import annotations

from pathlib import Path

import pytest

from devdocs.config import settings


@pytest.fixture()
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the settings singleton at a throwaway workspace."""
    ws = tmp_path / "workspace"
    monkeypatch.setattr(settings, "workspace_dir", ws)
    return ws
