"""Compose `.env` files: rendering for setup and for client bundles, and parsing."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from ..device_profile.model import HardwareProfile
from .model import DEFAULT_CONTAINER_NAME, DEFAULT_DEEPSTREAM_PATH, DEFAULT_NAMESPACE, DEFAULT_REGISTRY, DEFAULT_TAG, SetupOptions


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _timestamp(generated_at: datetime | None) -> str:
    return (generated_at or datetime.now()).strftime("%a %b %d %H:%M:%S %Y")


def render_env_file(options: SetupOptions, profile: HardwareProfile, *, generated_at: datetime | None = None) -> str:
    lines = [
        f"# Generated by setup on {_timestamp(generated_at)}",
        "# Docker configuration",
        "",
        "# Registry and image settings",
        f"REGISTRY={options.registry}",
        f"NAMESPACE={options.namespace}",
        f"TAG={options.tag}",
        f"CONTAINER_NAME={options.container_name}",
        "",
        "# Base image settings",
        f"JETPACK_BASE={options.jetpack_base}",
        f"CUDA_ARCH_BIN={profile.cuda_compute_capability}",
        "",
        "# Runtime settings",
        f"DEEPSTREAM_PATH={options.deepstream_path}",
        f"DISPLAY={options.display}",
        "CUDA_VISIBLE_DEVICES=0",
        "NVIDIA_VISIBLE_DEVICES=all",
        "NVIDIA_DRIVER_CAPABILITIES=compute,utility,graphics,video",
        "",
        "# Directory mappings",
        "SRC_DIR=./src",
        "MODELS_DIR=./models",
        "CONFIG_DIR=./config",
        "LOGS_DIR=./logs",
        "CUSTOM_DIR=./custom",
        "VIDEO_DEVICE=/dev/video0",
        "",
        "# Jetson device info",
        f"JETSON_MODEL={_quote(profile.model or 'Unknown')}",
    ]
    return "\n".join(lines) + "\n"


def render_client_env_file(values: dict[str, str], *, generated_at: datetime | None = None) -> str:
    """Minimal `.env` for client bundles; image settings come from the project `.env`."""
    lines = [
        "# NVIDIA Jetson DeepStream Docker configuration",
        f"# Generated on {_timestamp(generated_at)}",
        "",
        "# DeepStream path on your system (change this to match your installation)",
        f"DEEPSTREAM_PATH={DEFAULT_DEEPSTREAM_PATH}",
        "",
        "# Container name",
        f"CONTAINER_NAME={values.get('CONTAINER_NAME') or DEFAULT_CONTAINER_NAME}",
        "",
        "# Docker image reference",
        f"REGISTRY={values.get('REGISTRY') or DEFAULT_REGISTRY}",
        f"NAMESPACE={values.get('NAMESPACE') or DEFAULT_NAMESPACE}",
        f"TAG={values.get('TAG') or DEFAULT_TAG}",
        "",
        "# Device mappings",
        "VIDEO_DEVICE=/dev/video0",
        "",
        "# Directory mappings (relative paths, customize as needed)",
        "CONFIG_DIR=./config",
        "MODELS_DIR=./models",
        "LOGS_DIR=./logs",
        "CUSTOM_DIR=./custom",
        "",
        "# The container detects the Jetson device at start-up",
        "# and configures the matching hardware settings.",
    ]
    return "\n".join(lines) + "\n"


def write_env_file(path: Path, content: str) -> None:
    path.write_text(content)


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        inner = value[1:-1]
        if value[0] == '"':
            inner = inner.replace('\\"', '"').replace("\\\\", "\\")
        return inner
    return value


def parse_env_text(text: str) -> dict[str, str]:
    """Parse `KEY=VALUE` lines; blank lines and `#` comments are skipped."""
    out: dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export ") :].lstrip()
        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not key:
            continue
        out[key] = _unquote(value.strip())
    return out


def read_env_file(path: Path) -> dict[str, str]:
    return parse_env_text(path.read_text())
