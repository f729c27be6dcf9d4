from __future__ import annotations

import re
from pathlib import Path

PROJECT_DIRS: tuple[str, ...] = ("models", "config", "logs", "src", "custom")
ENV_FILE_NAME = ".env"
PROFILE_FILE_NAME = "device_profile.json"
COMPOSE_FILE_NAME = "docker-compose.yml"
DEFAULT_EXPORT_NAME = "client_distribution"
SAMPLE_CONFIG_FILES: tuple[str, ...] = ("config.yaml", "roi_config.json")


def samples_dir() -> Path:
    """Sample configuration files shipped with the package."""
    return Path(__file__).resolve().parent / "samples"


def find_project_root(start: Path) -> Path:
    """Return the directory holding the project `.env`.

    `start` itself wins; its parent is accepted so the CLI also works from a
    `scripts/` sub-directory.
    """
    start = start.resolve()
    for candidate in (start, start.parent):
        if (candidate / ENV_FILE_NAME).is_file():
            return candidate
    raise FileNotFoundError(f"Environment file ({ENV_FILE_NAME}) not found in {start}. Please run setup first.")


def sanitize_bundle_name(name: str) -> str:
    """Make an export bundle name filesystem-safe and non-empty."""
    s = name.strip()
    if not s:
        raise ValueError("bundle name must be non-empty")
    s = re.sub(r"[^A-Za-z0-9_.-]+", "-", s)
    s = s.strip("-.")
    if not s:
        raise ValueError("bundle name must contain at least one alphanumeric character after sanitization")
    return s


def export_dir(*, project_root: Path, name: str) -> Path:
    return (project_root / sanitize_bundle_name(name)).resolve()
