from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator

from .model import DEVICE_FAMILIES, HardwareProfile
from .resolver import FAMILY_TUNING, family_label

SCHEMA_VERSION = "0.1.0"


def _flag(value: bool) -> str:
    return "1" if value else "0"


def profile_env(profile: HardwareProfile) -> dict[str, str]:
    """Environment variables consumed by the container runtime for this profile."""
    env = {
        "JETSON_MODEL": profile.model or "Unknown",
        "CUDA_ARCH_BIN": profile.cuda_compute_capability,
        "CUDA_UNIFIED_MEMORY": "1",
        "JETSON_CLOCKS": _flag(profile.max_performance_mode),
        "MAXN_MODE": _flag(profile.max_performance_mode),
        "MALLOC_ARENA_MAX": str(profile.malloc_arena_max),
        "TRT_PRECISION_MODE": profile.trt_precision_mode,
    }
    if profile.tensor_cores_enabled:
        env["CUDA_TENSOR_CORES"] = "1"
    return env


def render_env_lines(env: dict[str, str]) -> str:
    return "".join(f"{k}={v}\n" for k, v in env.items())


def default_schema_path() -> Path:
    return Path(__file__).resolve().parent / "hardware_profile.schema.json"


def validate_profile_document(doc: dict[str, Any], *, schema_path: Path | None = None) -> None:
    schema_path = default_schema_path() if schema_path is None else schema_path
    schema = json.loads(schema_path.read_text())
    Draft202012Validator(schema).validate(doc)


def profile_document(profile: HardwareProfile, *, generated_at: str | None = None) -> dict[str, Any]:
    generated_at = generated_at or datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")
    doc = {
        "schema_version": SCHEMA_VERSION,
        "generated_at": generated_at,
        "profile": profile.to_dict(),
        "env": profile_env(profile),
    }
    validate_profile_document(doc)
    return doc


def write_profile_document(path: Path, doc: dict[str, Any]) -> None:
    path.write_text(json.dumps(doc, indent=2, sort_keys=True) + "\n")


def format_profile_text(profile: HardwareProfile) -> str:
    rows = [
        ("Device Model", profile.model or "Unknown"),
        ("Device Family", f"{profile.family} ({family_label(profile.family)})"),
        ("CUDA Architecture", f"{profile.cuda_compute_capability} ({profile.cuda_arch_source})"),
        ("Max Performance Mode", "yes" if profile.max_performance_mode else "no"),
        ("Tensor Cores", "enabled" if profile.tensor_cores_enabled else "disabled"),
        ("MALLOC_ARENA_MAX", str(profile.malloc_arena_max)),
        ("TensorRT Precision", profile.trt_precision_mode),
    ]
    width = max(len(k) for k, _ in rows)
    return "\n".join(f"{k.ljust(width)} : {v}" for k, v in rows)


def format_family_table() -> str:
    lines = [
        "| family | label | cuda_arch | max_perf | tensor_cores | malloc_arena_max | trt_precision |",
        "|---|---|---|---|---|---|---|",
    ]
    for family in DEVICE_FAMILIES:
        t = FAMILY_TUNING[family]
        arch = f"{t.cuda_arch} (default)" if family == "Unknown" else t.cuda_arch
        lines.append(
            f"| {family} | {family_label(family)} | {arch} | {_flag(t.max_performance_mode)} | "
            f"{_flag(t.tensor_cores_enabled)} | {t.malloc_arena_max} | {t.trt_precision_mode} |"
        )
    return "\n".join(lines)
