"""Centralized path management for tabsplit.

This module provides a single source of truth for all on-disk locations,
so the CLI, the upload server and the storage layer agree on where things live.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


def _get_project_root() -> Path:
    """Determine the data root directory (TABSPLIT_HOME or ~/.tabsplit)."""
    env_home = os.environ.get("TABSPLIT_HOME")
    if env_home:
        return Path(env_home).expanduser()
    return Path("~/.tabsplit").expanduser()


@dataclass
class ProjectPaths:
    """Container for all tabsplit paths.

    All paths are computed relative to the data root, ensuring consistency
    across modules regardless of the current working directory.
    """

    root: Path = field(default_factory=_get_project_root)

    def __post_init__(self) -> None:
        self.root = self.root.resolve()

    # --- Configuration paths ---
    @property
    def config(self) -> Path:
        """Configuration directory (config/)."""
        return self.root / "config"

    @property
    def settings_file(self) -> Path:
        """Service URLs, timeouts and classifier overrides (TOML)."""
        return self.config / "settings.toml"

    # --- Receipt paths ---
    @property
    def receipts(self) -> Path:
        """Root receipts directory."""
        return self.root / "receipts"

    @property
    def receipts_scanned(self) -> Path:
        """Assembled receipts, one JSON file per scan."""
        return self.receipts / "scanned"

    @property
    def receipts_images(self) -> Path:
        """Receipt photos, keyed by receipt id."""
        return self.receipts / "images"

    def ensure_receipt_directories(self) -> None:
        """Create all receipt-related directories if they don't exist."""
        self.receipts_scanned.mkdir(parents=True, exist_ok=True)
        self.receipts_images.mkdir(parents=True, exist_ok=True)


_paths: ProjectPaths | None = None


def get_paths() -> ProjectPaths:
    """Get the singleton ProjectPaths instance.

    Returns:
        The global ProjectPaths instance.
    """
    global _paths
    if _paths is None:
        _paths = ProjectPaths()
    return _paths


def reset_paths() -> None:
    """Drop the cached instance so the next get_paths() re-reads TABSPLIT_HOME."""
    global _paths
    _paths = None
