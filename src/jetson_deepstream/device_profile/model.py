from __future__ import annotations

from typing import Any, Literal

import attrs

DeviceFamily = Literal[
    "Orin",
    "OrinNX",
    "OrinNano",
    "OrinSuper",
    "AGXXavier",
    "XavierNX",
    "Nano",
    "TX2",
    "Unknown",
]
PrecisionMode = Literal["FP16", "FP32"]
CudaArchSource = Literal["detected", "override", "fallback"]

DEVICE_FAMILIES: tuple[str, ...] = (
    "Orin",
    "OrinNX",
    "OrinNano",
    "OrinSuper",
    "AGXXavier",
    "XavierNX",
    "Nano",
    "TX2",
    "Unknown",
)
KNOWN_CUDA_ARCHS: tuple[str, ...] = ("5.3", "6.2", "7.2", "8.7")
DEFAULT_UNKNOWN_CUDA_ARCH = "7.2"


def _check_known_arch(instance: Any, attribute: attrs.Attribute, value: str) -> None:
    if value not in KNOWN_CUDA_ARCHS:
        raise ValueError(f"{attribute.name} must be one of {list(KNOWN_CUDA_ARCHS)}, got {value!r}")


@attrs.define(frozen=True, slots=True)
class FamilyTuning:
    """Fixed per-family settings; one row of the device table."""

    cuda_arch: str
    max_performance_mode: bool
    tensor_cores_enabled: bool
    malloc_arena_max: int
    trt_precision_mode: PrecisionMode


@attrs.define(frozen=True, slots=True)
class ResolverSettings:
    unknown_cuda_arch: str = attrs.field(default=DEFAULT_UNKNOWN_CUDA_ARCH, validator=_check_known_arch)


@attrs.define(frozen=True, slots=True)
class HardwareProfile:
    family: DeviceFamily
    model: str
    cuda_compute_capability: str
    max_performance_mode: bool
    tensor_cores_enabled: bool
    malloc_arena_max: int
    trt_precision_mode: PrecisionMode
    cuda_arch_source: CudaArchSource = "detected"

    @property
    def is_jetson(self) -> bool:
        return self.family != "Unknown"

    def to_dict(self) -> dict[str, Any]:
        return {
            "family": self.family,
            "model": self.model,
            "cuda_compute_capability": self.cuda_compute_capability,
            "max_performance_mode": self.max_performance_mode,
            "tensor_cores_enabled": self.tensor_cores_enabled,
            "malloc_arena_max": self.malloc_arena_max,
            "trt_precision_mode": self.trt_precision_mode,
            "cuda_arch_source": self.cuda_arch_source,
        }
