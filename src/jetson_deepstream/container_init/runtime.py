from __future__ import annotations

import logging
import subprocess
import sys
import time
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from ..device_profile.model import HardwareProfile
from ..device_profile.serialize import profile_env

logger = logging.getLogger(__name__)

DEFAULT_DEEPSTREAM_DIR = Path("/opt/nvidia/deepstream/deepstream-6.2")
DEFAULT_CUDA_HOME = Path("/usr/local/cuda")
DEFAULT_WORKSPACE = Path("/workspace")
TEGRA_LIB_DIR = Path("usr") / "lib" / "aarch64-linux-gnu" / "tegra"
GSTREAMER_LIB_DIR = Path("/usr/lib/aarch64-linux-gnu/gstreamer-1.0")

Runner = Callable[[list[str]], Any]


def deepstream_dir_from_env(environ: Mapping[str, str]) -> Path:
    value = environ.get("DEEPSTREAM_PATH")
    return Path(value) if value else DEFAULT_DEEPSTREAM_DIR


def runtime_environment(
    profile: HardwareProfile,
    *,
    deepstream_dir: Path,
    base_env: Mapping[str, str],
    cuda_home: Path = DEFAULT_CUDA_HOME,
) -> dict[str, str]:
    """Return the container environment for `profile`; `base_env` is not modified."""
    env = dict(base_env)

    def prepend(key: str, *parts: str) -> None:
        current = env.get(key)
        env[key] = ":".join([*parts, current] if current else parts)

    tegra = str(Path("/") / TEGRA_LIB_DIR)
    env["DEEPSTREAM_DIR"] = str(deepstream_dir)
    prepend("LD_LIBRARY_PATH", str(deepstream_dir / "lib"), tegra)
    prepend("PATH", str(deepstream_dir / "bin"))
    prepend("GST_PLUGIN_PATH", str(deepstream_dir / "lib" / "gst-plugins"), str(GSTREAMER_LIB_DIR))
    env["GST_PLUGIN_SYSTEM_PATH"] = env["GST_PLUGIN_PATH"]
    prepend("PYTHONPATH", str(deepstream_dir / "lib"))

    env["CUDA_HOME"] = str(cuda_home)
    prepend("PATH", str(cuda_home / "bin"))
    prepend("LD_LIBRARY_PATH", str(cuda_home / "lib64"))

    env.update(profile_env(profile))
    return env


def _find_library(sysroot: Path, name: str) -> Path | None:
    expected = sysroot / TEGRA_LIB_DIR / name
    if expected.exists():
        return expected
    search_root = sysroot / "usr" / "lib"
    if not search_root.is_dir():
        return None
    return next(iter(sorted(search_root.rglob(name))), None)


def _symlink_into(src: Path, lib_dir: Path) -> Path | None:
    dst = lib_dir / src.name
    try:
        if dst.is_symlink() or dst.exists():
            dst.unlink()
        dst.symlink_to(src)
    except OSError as e:
        logger.warning("Could not link %s into %s: %s", src, lib_dir, e)
        return None
    return dst


def link_nvbufsurface(*, profile: HardwareProfile, deepstream_dir: Path, sysroot: Path = Path("/")) -> list[Path]:
    """Link the tegra buffer-surface libraries into DeepStream's lib/ directory."""
    names = ["libnvbufsurface.so"]
    if profile.family.startswith("Orin"):
        names.append("libnvbufsurftransform.so")

    lib_dir = deepstream_dir / "lib"
    linked: list[Path] = []
    for name in names:
        src = _find_library(sysroot, name)
        if src is None:
            level = logging.ERROR if profile.family.startswith("Orin") else logging.WARNING
            logger.log(level, "Could not find %s library.", name)
            continue
        if src.parent != sysroot / TEGRA_LIB_DIR:
            logger.info("Found %s at %s. Creating symbolic link.", name, src)
        dst = _symlink_into(src, lib_dir)
        if dst is not None:
            linked.append(dst)
    return linked


def write_heartbeat(workspace: Path, *, now: float | None = None) -> Path:
    (workspace / "models").mkdir(parents=True, exist_ok=True)
    heartbeat_dir = workspace / "logs" / "heartbeat"
    heartbeat_dir.mkdir(parents=True, exist_ok=True)
    stamp = int(time.time() if now is None else now)
    marker = heartbeat_dir / f"container_started_{stamp}"
    marker.touch()
    return marker


def process_custom_extensions(workspace: Path, *, runner: Runner = subprocess.check_call) -> list[str]:
    """Run `custom/init.sh` and install `custom/requirements.txt` when present.

    Returns the names of the steps that ran. Failures propagate.
    """
    custom = workspace / "custom"
    if not custom.is_dir():
        return []

    ran: list[str] = []
    init_sh = custom / "init.sh"
    if init_sh.is_file():
        logger.info("Running custom initialization script...")
        init_sh.chmod(init_sh.stat().st_mode | 0o111)
        runner([str(init_sh)])
        ran.append("init.sh")

    requirements = custom / "requirements.txt"
    if requirements.is_file():
        logger.info("Installing custom Python requirements...")
        runner([sys.executable, "-m", "pip", "install", "-r", str(requirements)])
        ran.append("requirements.txt")
    return ran
