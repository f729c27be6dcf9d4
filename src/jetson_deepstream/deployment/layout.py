from __future__ import annotations

import logging
import shutil
from pathlib import Path

from .paths import PROJECT_DIRS, SAMPLE_CONFIG_FILES

logger = logging.getLogger(__name__)

CUSTOM_INIT_SH = """\
#!/bin/bash
# Custom initialization script
# This runs during container startup

echo "Custom initialization starting..."

# Add your custom initialization steps here
# For example:
# - Download models
# - Set up additional environment variables
# - Configure system parameters

echo "Custom initialization completed."
"""

CUSTOM_REQUIREMENTS_TXT = """\
# Add your custom Python dependencies here
# Example:
# streamlit>=1.22.0
# fastapi>=0.95.1
# uvicorn>=0.22.0
"""


def create_project_dirs(root: Path) -> list[Path]:
    """Create the directories mounted into the container.

    Each gets a `.gitkeep` so the volume source exists even when empty.
    """
    created: list[Path] = []
    for name in PROJECT_DIRS:
        d = root / name
        d.mkdir(parents=True, exist_ok=True)
        if name != "src":
            (d / ".gitkeep").touch()
        created.append(d)
    return created


def copy_sample_configs(source_dir: Path, root: Path) -> dict[str, str]:
    """Copy sample config files into `root/config`; return {file: "copied"|"kept"|"missing"}."""
    config_dir = root / "config"
    config_dir.mkdir(parents=True, exist_ok=True)
    result: dict[str, str] = {}
    for name in SAMPLE_CONFIG_FILES:
        dst = config_dir / name
        src = source_dir / name
        if dst.exists():
            logger.info("%s already exists, keeping it.", name)
            result[name] = "kept"
        elif not src.is_file():
            logger.warning("Could not copy sample %s (not found in %s).", name, source_dir)
            result[name] = "missing"
        else:
            shutil.copy2(src, dst)
            result[name] = "copied"
    return result


def write_sample_custom_extension(root: Path) -> list[Path]:
    """Write `custom/init.sh` and `custom/requirements.txt` unless they already exist."""
    custom = root / "custom"
    custom.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []

    init_sh = custom / "init.sh"
    if not init_sh.exists():
        init_sh.write_text(CUSTOM_INIT_SH)
        init_sh.chmod(0o755)
        written.append(init_sh)

    requirements = custom / "requirements.txt"
    if not requirements.exists():
        requirements.write_text(CUSTOM_REQUIREMENTS_TXT)
        written.append(requirements)
    return written
