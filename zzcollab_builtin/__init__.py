"""Reference data bundled with zzcollab: bundle catalog and Dockerfile templates."""

from __future__ import annotations

from pathlib import Path

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
BUNDLES_FILENAME = "bundles.yaml"
BASE_TEMPLATE_FILENAME = "Dockerfile.base.template"


def default_bundles_path() -> Path:
    return TEMPLATES_DIR / BUNDLES_FILENAME


def default_template_path() -> Path:
    return TEMPLATES_DIR / BASE_TEMPLATE_FILENAME


__all__ = [
    "TEMPLATES_DIR",
    "BUNDLES_FILENAME",
    "BASE_TEMPLATE_FILENAME",
    "default_bundles_path",
    "default_template_path",
]
