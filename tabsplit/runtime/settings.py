"""Runtime loader for tabsplit settings.toml."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any

from tabsplit.runtime.paths import get_paths

DEFAULT_OCR_URL = "http://localhost:8001"
DEFAULT_MODEL_URL = "http://localhost:8080"


@dataclass(frozen=True)
class OCRSettings:
    url: str = DEFAULT_OCR_URL
    timeout: float = 60.0


@dataclass(frozen=True)
class ModelSettings:
    url: str = DEFAULT_MODEL_URL
    timeout: float = 120.0
    n_predict: int = 1024
    temperature: float = 0.0


@dataclass(frozen=True)
class ClassifierSettings:
    extra_keywords: tuple[str, ...] = ()


@dataclass(frozen=True)
class StorageSettings:
    jpeg_quality: int = 70


@dataclass(frozen=True)
class Settings:
    ocr: OCRSettings = field(default_factory=OCRSettings)
    model: ModelSettings = field(default_factory=ModelSettings)
    classifier: ClassifierSettings = field(default_factory=ClassifierSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)


def _load_toml(path: Path) -> dict[str, Any]:
    """Load TOML file and return parsed dict; missing files map to empty dict."""
    try:
        import tomllib
    except ImportError:
        import tomli as tomllib  # type: ignore[no-redef]

    if not path.exists():
        return {}

    with open(path, "rb") as f:
        data = tomllib.load(f)
    return data if isinstance(data, dict) else {}


@lru_cache(maxsize=4)
def load_settings(config_path: str | None = None) -> Settings:
    """
    Load settings from settings.toml.

    Service URLs can be overridden with the OCR_SERVICE_URL and
    MODEL_SERVICE_URL environment variables.

    Args:
        config_path: Optional TOML path override. If None, uses default project path.

    Returns:
        Settings with defaults filled in for anything the file leaves out.
    """
    path = Path(config_path) if config_path is not None else get_paths().settings_file
    raw = _load_toml(path)

    ocr = raw.get("ocr", {})
    model = raw.get("model", {})
    classifier = raw.get("classifier", {})
    storage = raw.get("storage", {})

    return Settings(
        ocr=OCRSettings(
            url=os.environ.get("OCR_SERVICE_URL") or ocr.get("url", DEFAULT_OCR_URL),
            timeout=float(ocr.get("timeout", 60.0)),
        ),
        model=ModelSettings(
            url=os.environ.get("MODEL_SERVICE_URL") or model.get("url", DEFAULT_MODEL_URL),
            timeout=float(model.get("timeout", 120.0)),
            n_predict=int(model.get("n_predict", 1024)),
            temperature=float(model.get("temperature", 0.0)),
        ),
        classifier=ClassifierSettings(
            extra_keywords=tuple(str(k).upper() for k in classifier.get("extra_keywords", [])),
        ),
        storage=StorageSettings(
            jpeg_quality=int(storage.get("jpeg_quality", 70)),
        ),
    )
