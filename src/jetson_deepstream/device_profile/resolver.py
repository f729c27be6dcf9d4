"""Device model string -> hardware profile mapping.

`resolve` is the single place the device table lives. It never raises and does
no I/O: reading the model string is the caller's job (see `detect.py`).
"""

from __future__ import annotations

import re

import attrs

from .model import CudaArchSource, DeviceFamily, FamilyTuning, HardwareProfile, ResolverSettings

_ORIN = FamilyTuning(
    cuda_arch="8.7", max_performance_mode=True, tensor_cores_enabled=True, malloc_arena_max=4, trt_precision_mode="FP16"
)
_XAVIER = FamilyTuning(
    cuda_arch="7.2", max_performance_mode=True, tensor_cores_enabled=False, malloc_arena_max=2, trt_precision_mode="FP16"
)

FAMILY_TUNING: dict[str, FamilyTuning] = {
    "Orin": _ORIN,
    "OrinNX": _ORIN,
    "OrinSuper": _ORIN,
    # Orin Nano keeps conservative clocks and a smaller malloc arena.
    "OrinNano": FamilyTuning(
        cuda_arch="8.7", max_performance_mode=False, tensor_cores_enabled=False, malloc_arena_max=2, trt_precision_mode="FP16"
    ),
    "AGXXavier": _XAVIER,
    "XavierNX": _XAVIER,
    "Nano": FamilyTuning(
        cuda_arch="5.3", max_performance_mode=False, tensor_cores_enabled=False, malloc_arena_max=1, trt_precision_mode="FP32"
    ),
    "TX2": FamilyTuning(
        cuda_arch="6.2", max_performance_mode=False, tensor_cores_enabled=False, malloc_arena_max=1, trt_precision_mode="FP32"
    ),
    # cuda_arch is replaced by ResolverSettings.unknown_cuda_arch.
    "Unknown": FamilyTuning(
        cuda_arch="7.2", max_performance_mode=False, tensor_cores_enabled=False, malloc_arena_max=1, trt_precision_mode="FP32"
    ),
}

FAMILY_LABELS: dict[str, str] = {
    "Orin": "Jetson Orin",
    "OrinNX": "Jetson Orin NX",
    "OrinNano": "Jetson Orin Nano",
    "OrinSuper": "Jetson Orin Super",
    "AGXXavier": "Jetson AGX Xavier",
    "XavierNX": "Jetson Xavier",
    "Nano": "Jetson Nano",
    "TX2": "Jetson TX2",
    "Unknown": "Unknown device",
}

_CUDA_ARCH_RE = re.compile(r"^\d+\.\d+$")


def resolve_family(model: str) -> DeviceFamily:
    """Classify a raw model string. Order matters: "Orin Nano" contains "Nano"."""
    if "Orin" in model:
        if "NX" in model:
            return "OrinNX"
        if "Nano" in model:
            return "OrinNano"
        if "Super" in model:
            return "OrinSuper"
        return "Orin"
    if "AGX Xavier" in model:
        return "AGXXavier"
    if "Xavier" in model:
        return "XavierNX"
    if "Nano" in model:
        return "Nano"
    if "TX" in model:
        return "TX2"
    return "Unknown"


def resolve(model: str | None, settings: ResolverSettings | None = None) -> HardwareProfile:
    """Return the hardware profile for a raw model string.

    Empty, missing or unrecognized input yields the `Unknown` family with
    conservative defaults; this function does not raise.
    """
    settings = ResolverSettings() if settings is None else settings
    model = model or ""
    family = resolve_family(model)
    tuning = FAMILY_TUNING[family]

    cuda_arch = tuning.cuda_arch
    source: CudaArchSource = "detected"
    if family == "Unknown":
        cuda_arch = settings.unknown_cuda_arch
        source = "fallback"

    return HardwareProfile(
        family=family,
        model=model,
        cuda_compute_capability=cuda_arch,
        max_performance_mode=tuning.max_performance_mode,
        tensor_cores_enabled=tuning.tensor_cores_enabled,
        malloc_arena_max=tuning.malloc_arena_max,
        trt_precision_mode=tuning.trt_precision_mode,
        cuda_arch_source=source,
    )


def normalize_cuda_arch(value: str) -> str:
    """Validate an operator-supplied compute capability such as "8.7"."""
    s = value.strip()
    if not _CUDA_ARCH_RE.fullmatch(s):
        raise ValueError(f"Invalid CUDA compute capability {value!r}. Expected <major>.<minor>, e.g. 8.7")
    return s


def apply_cuda_arch_override(profile: HardwareProfile, cuda_arch: str | None) -> HardwareProfile:
    """Return a copy of `profile` with the operator's compute capability, if one was given."""
    if not cuda_arch:
        return profile
    return attrs.evolve(profile, cuda_compute_capability=normalize_cuda_arch(cuda_arch), cuda_arch_source="override")


def family_label(family: str) -> str:
    return FAMILY_LABELS.get(family, family)
