"""Shared pytest fixtures for tabsplit tests."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from tabsplit.runtime import ProjectPaths, get_paths, reset_paths
from tabsplit.runtime.settings import load_settings


@pytest.fixture
def tabsplit_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[ProjectPaths]:
    """Point TABSPLIT_HOME at a temp dir and return the fresh ProjectPaths."""
    monkeypatch.setenv("TABSPLIT_HOME", str(tmp_path / "home"))
    monkeypatch.delenv("OCR_SERVICE_URL", raising=False)
    monkeypatch.delenv("MODEL_SERVICE_URL", raising=False)
    reset_paths()
    load_settings.cache_clear()
    yield get_paths()
    reset_paths()
    load_settings.cache_clear()


@pytest.fixture
def receipt_jpeg() -> bytes:
    """A small white JPEG standing in for a receipt photo."""
    import io

    from PIL import Image

    buffer = io.BytesIO()
    Image.new("RGB", (120, 200), "white").save(buffer, format="JPEG")
    return buffer.getvalue()
