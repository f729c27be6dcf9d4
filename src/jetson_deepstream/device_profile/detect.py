from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from pathlib import Path

from .model import HardwareProfile, ResolverSettings
from .resolver import apply_cuda_arch_override, family_label, resolve

logger = logging.getLogger(__name__)

MODEL_NODE = Path("proc") / "device-tree" / "model"
COMPATIBLE_NODE = Path("proc") / "device-tree" / "compatible"
TEGRA_RELEASE_FILE = Path("etc") / "nv_tegra_release"

_TEGRA_RELEASE_RE = re.compile(r"#\s*R(\d+)\s*\(release\),\s*REVISION:\s*([0-9.]+)")


def _read_bytes(path: Path) -> bytes | None:
    try:
        return path.read_bytes()
    except OSError:
        return None


def read_model_string(sysroot: Path = Path("/")) -> str | None:
    """Return the device-tree model string, or None on hosts without one."""
    raw = _read_bytes(sysroot / MODEL_NODE)
    if raw is None:
        return None
    return raw.decode(errors="replace").replace("\0", " ").strip()


def read_soc_family(sysroot: Path = Path("/")) -> str:
    """Return the first `nvidia,` entry of the device-tree compatible list."""
    raw = _read_bytes(sysroot / COMPATIBLE_NODE)
    if raw is None:
        return "Unknown"
    for entry in raw.decode(errors="replace").split("\0"):
        if entry.startswith("nvidia,"):
            return entry
    return "Unknown"


def read_l4t_release(sysroot: Path = Path("/")) -> str | None:
    """Parse `/etc/nv_tegra_release` into e.g. "R35.4.1"."""
    raw = _read_bytes(sysroot / TEGRA_RELEASE_FILE)
    if raw is None:
        return None
    m = _TEGRA_RELEASE_RE.search(raw.decode(errors="replace"))
    if m is None:
        return None
    return f"R{m.group(1)}.{m.group(2)}"


def detect_profile(
    *,
    sysroot: Path = Path("/"),
    settings: ResolverSettings | None = None,
    cuda_arch_override: str | None = None,
    model: str | None = None,
) -> HardwareProfile:
    """Read the model string (unless given), resolve it and apply the operator override."""
    if model is None:
        model = read_model_string(sysroot)
        if model is None:
            logger.warning("Not running on a Jetson device or unable to detect model.")
        else:
            logger.info("Detected Jetson device: %s", model)

    profile = apply_cuda_arch_override(resolve(model, settings), cuda_arch_override)

    if profile.cuda_arch_source == "override":
        logger.info("Using operator-supplied CUDA_ARCH_BIN=%s", profile.cuda_compute_capability)
    elif profile.family == "Unknown":
        logger.warning(
            "Could not determine specific Jetson model, using default CUDA_ARCH_BIN=%s", profile.cuda_compute_capability
        )
    else:
        logger.info(
            "Detected %s device, setting CUDA_ARCH_BIN to %s",
            family_label(profile.family),
            profile.cuda_compute_capability,
        )
    return profile


UNKNOWN_CUDA_ARCH_ENV = "JETSON_DS_UNKNOWN_CUDA_ARCH"
CUDA_ARCH_OVERRIDE_ENV = "CUDA_ARCH_BIN"


def settings_from_env(environ: Mapping[str, str]) -> ResolverSettings:
    value = environ.get(UNKNOWN_CUDA_ARCH_ENV)
    if not value:
        return ResolverSettings()
    return ResolverSettings(unknown_cuda_arch=value.strip())


def cuda_arch_override_from(cli_value: str | None, environ: Mapping[str, str]) -> str | None:
    """The CLI value wins; otherwise CUDA_ARCH_BIN from the environment, if set."""
    if cli_value:
        return cli_value
    return environ.get(CUDA_ARCH_OVERRIDE_ENV) or None
