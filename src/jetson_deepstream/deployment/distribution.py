"""Client distribution bundle export.

Layout of `<project_root>/<name>/`:

- `.env`: client-editable compose settings (image reference from the project `.env`)
- `docker-compose.yml`: copied from the project when present
- `config/`, `custom/`: copied from the project
- `models/`, `logs/`: empty mount points
- `README.md`: client instructions
- `manifest.json`: sha256 per file

plus an optional `<name>.zip` next to the directory.
"""

from __future__ import annotations

import hashlib
import json
import logging
import shutil
from datetime import datetime
from pathlib import Path

import attrs
from mdutils.mdutils import MdUtils  # type: ignore[import-untyped]

from . import envfile, paths

logger = logging.getLogger(__name__)

SUPPORTED_DEVICES: tuple[str, ...] = (
    "Jetson Orin series (Orin, Orin NX, Orin Nano, Orin Super)",
    "Jetson Xavier series (AGX Xavier, Xavier NX)",
    "Jetson Nano",
    "Jetson TX2",
)


@attrs.define(frozen=True, slots=True)
class DistributionBundle:
    export_dir: Path
    archive_path: Path | None
    files: dict[str, str]


def ensure_new_dir(path: Path) -> None:
    """Raise FileExistsError if path already exists (prevents overwrites)."""
    if path.exists():
        raise FileExistsError(f"Refusing to overwrite existing export: {path}")


def archive_path_for(export_dir: Path) -> Path:
    return export_dir.parent / f"{export_dir.name}.zip"


def sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(1 << 20), b""):
            h.update(chunk)
    return h.hexdigest()


def file_manifest(root: Path) -> dict[str, str]:
    return {p.relative_to(root).as_posix(): sha256_file(p) for p in sorted(root.rglob("*")) if p.is_file()}


def write_client_readme(export_dir: Path) -> Path:
    md = MdUtils(file_name=str(export_dir / "README"), title="NVIDIA Jetson DeepStream Application")
    md.new_paragraph(
        "This package contains a pre-configured Docker environment for running DeepStream applications "
        "on NVIDIA Jetson devices."
    )
    md.new_header(level=1, title="Prerequisites")
    md.new_list(
        [
            "NVIDIA Jetson device (Orin, Xavier, Nano, or TX2 series) with JetPack 5.1.1 or later",
            "DeepStream SDK 6.2 or later installed on the host",
            "Docker and Docker Compose",
        ]
    )
    md.new_header(level=1, title="Quick Start")
    md.new_list(
        [
            "Edit `.env` to set your DeepStream path and other configuration options.",
            "Start the container: `docker compose --env-file .env up -d`",
            "View logs: `docker compose --env-file .env logs -f`",
            "Stop the container: `docker compose --env-file .env down`",
        ],
        marked_with="1",
    )
    md.new_header(level=1, title="Device Compatibility")
    md.new_paragraph("The container detects the Jetson device at start-up and configures itself for:")
    md.new_list(list(SUPPORTED_DEVICES))
    md.new_header(level=1, title="Configuration")
    md.new_list(
        [
            "`config/config.yaml`: main application configuration",
            "`config/roi_config.json`: region of interest configuration",
            "`custom/`: custom extensions and initialization",
        ]
    )
    md.new_header(level=1, title="Customization")
    md.new_list(
        [
            "Modify the configuration files in `config/`.",
            "Add custom initialization steps to `custom/init.sh`.",
            "Add custom Python dependencies to `custom/requirements.txt`.",
            "Mount additional volumes in `docker-compose.yml`.",
        ],
        marked_with="1",
    )
    md.new_header(level=1, title="Troubleshooting")
    md.new_list(
        [
            "Check container status: `docker compose --env-file .env ps`",
            "View container logs: `docker compose --env-file .env logs`",
            "Open a shell: `docker exec -it <CONTAINER_NAME> bash`",
            "Verify file integrity against `manifest.json`.",
        ]
    )
    md.create_md_file()
    return export_dir / "README.md"


def _copy_tree(src: Path, dst: Path) -> None:
    if src.is_dir():
        shutil.copytree(src, dst, dirs_exist_ok=True)
    else:
        dst.mkdir(parents=True, exist_ok=True)


def _write_bundle(dest: Path, *, project_root: Path, generated_at: datetime | None) -> dict[str, str]:
    env_path = project_root / paths.ENV_FILE_NAME
    values = envfile.read_env_file(env_path) if env_path.is_file() else {}
    envfile.write_env_file(dest / paths.ENV_FILE_NAME, envfile.render_client_env_file(values, generated_at=generated_at))

    compose = project_root / paths.COMPOSE_FILE_NAME
    if compose.is_file():
        shutil.copy2(compose, dest / paths.COMPOSE_FILE_NAME)
    else:
        logger.warning("%s not found in %s; the bundle will not include it.", paths.COMPOSE_FILE_NAME, project_root)

    _copy_tree(project_root / "config", dest / "config")
    _copy_tree(project_root / "custom", dest / "custom")
    (dest / "models").mkdir(exist_ok=True)
    (dest / "logs").mkdir(exist_ok=True)

    write_client_readme(dest)

    files = file_manifest(dest)
    (dest / "manifest.json").write_text(json.dumps(files, indent=2, sort_keys=True) + "\n")
    return files


def export_distribution(
    *,
    project_root: Path,
    name: str = paths.DEFAULT_EXPORT_NAME,
    make_zip: bool = True,
    generated_at: datetime | None = None,
) -> DistributionBundle:
    """Write the client bundle; a failed export leaves neither the directory nor the zip behind."""
    dest = paths.export_dir(project_root=project_root, name=name)
    ensure_new_dir(dest)
    archive: Path | None = archive_path_for(dest) if make_zip else None
    if archive is not None:
        ensure_new_dir(archive)

    dest.mkdir(parents=True)
    try:
        files = _write_bundle(dest, project_root=project_root, generated_at=generated_at)
        if archive is not None:
            shutil.make_archive(str(dest), "zip", root_dir=dest)
            logger.info("Zip archive created: %s", archive)
    except Exception:
        shutil.rmtree(dest, ignore_errors=True)
        if archive is not None:
            archive.unlink(missing_ok=True)
        raise

    logger.info("Distribution exported to %s/", dest)
    return DistributionBundle(export_dir=dest, archive_path=archive, files=files)
