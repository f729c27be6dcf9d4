from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

from ..checks import PrerequisiteCheck
from ..sysinfo import GPU_LOAD_NODE


def check_docker_available() -> PrerequisiteCheck:
    if shutil.which("docker") is not None:
        return PrerequisiteCheck(check_name="docker_available", status="pass")
    return PrerequisiteCheck(
        check_name="docker_available",
        status="fail",
        details="Docker is not installed. Please install Docker first.",
    )


def _compose_plugin_works() -> bool:
    try:
        subprocess.check_output(["docker", "compose", "version"], stderr=subprocess.DEVNULL)
    except (OSError, subprocess.CalledProcessError):
        return False
    return True


def check_compose_available() -> PrerequisiteCheck:
    """Accept either the `docker compose` plugin or the standalone `docker-compose`."""
    if shutil.which("docker-compose") is not None:
        return PrerequisiteCheck(check_name="compose_available", status="pass", details="docker-compose")
    if shutil.which("docker") is not None and _compose_plugin_works():
        return PrerequisiteCheck(check_name="compose_available", status="pass", details="docker compose")
    return PrerequisiteCheck(
        check_name="compose_available",
        status="fail",
        details="Docker Compose is not installed. Please install Docker Compose first.",
    )


def check_gpu_present(sysroot: Path = Path("/")) -> PrerequisiteCheck:
    if (sysroot / GPU_LOAD_NODE).exists():
        return PrerequisiteCheck(check_name="gpu_present", status="pass", details="Jetson GPU detected.")
    if shutil.which("nvidia-smi") is not None:
        return PrerequisiteCheck(check_name="gpu_present", status="pass", details="NVIDIA GPU detected via nvidia-smi.")
    return PrerequisiteCheck(
        check_name="gpu_present",
        status="fail",
        details="NVIDIA GPU not detected. Please check your device.",
    )


def check_deepstream_path(deepstream_path: Path) -> PrerequisiteCheck:
    if deepstream_path.is_dir():
        return PrerequisiteCheck(check_name="deepstream_path", status="pass")
    return PrerequisiteCheck(
        check_name="deepstream_path",
        status="fail",
        details=f"DeepStream not found at {deepstream_path}. Install DeepStream or pass --deepstream-path.",
    )


def check_all(*, deepstream_path: Path, sysroot: Path = Path("/")) -> list[PrerequisiteCheck]:
    return [
        check_docker_available(),
        check_compose_available(),
        check_gpu_present(sysroot),
        check_deepstream_path(deepstream_path),
    ]
