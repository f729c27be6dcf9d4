from __future__ import annotations

import pytest

from jetson_deepstream.device_profile import apply_cuda_arch_override, resolve, resolve_family
from jetson_deepstream.device_profile.model import DEVICE_FAMILIES, ResolverSettings
from jetson_deepstream.device_profile.resolver import FAMILY_TUNING, normalize_cuda_arch


@pytest.mark.parametrize(
    "model",
    [
        "NVIDIA Jetson Orin NX Engineering Reference Developer Kit",
        "NVIDIA Orin NX 16GB",
        "Jetson Orin NX Nano Super",
        "NXOrin",
    ],
)
def test_orin_and_nx_always_resolves_orin_nx(model: str) -> None:
    p = resolve(model)
    assert p.family == "OrinNX"
    assert p.cuda_compute_capability == "8.7"


def test_agx_xavier() -> None:
    p = resolve("NVIDIA Jetson AGX Xavier")
    assert p.family == "AGXXavier"
    assert p.cuda_compute_capability == "7.2"
    assert p.trt_precision_mode == "FP16"
    assert p.max_performance_mode is True
    assert p.malloc_arena_max == 2


def test_xavier_nx() -> None:
    p = resolve("NVIDIA Jetson Xavier NX Developer Kit")
    assert p.family == "XavierNX"
    assert p.cuda_compute_capability == "7.2"
    assert p.trt_precision_mode == "FP16"


def test_nano() -> None:
    p = resolve("NVIDIA Jetson Nano")
    assert p.family == "Nano"
    assert p.cuda_compute_capability == "5.3"
    assert p.trt_precision_mode == "FP32"
    assert p.malloc_arena_max == 1
    assert p.max_performance_mode is False


def test_orin_nano_is_not_orin_or_nano() -> None:
    p = resolve("NVIDIA Jetson Orin Nano Developer Kit")
    assert p.family == "OrinNano"
    assert p.cuda_compute_capability == "8.7"
    assert p.max_performance_mode is False
    assert p.tensor_cores_enabled is False
    assert p.malloc_arena_max == 2
    assert p.trt_precision_mode == "FP16"


def test_plain_orin_and_super() -> None:
    agx = resolve("Jetson AGX Orin")
    assert agx.family == "Orin"
    assert (agx.max_performance_mode, agx.tensor_cores_enabled, agx.malloc_arena_max) == (True, True, 4)
    assert resolve("Jetson Orin Super").family == "OrinSuper"


def test_tx2() -> None:
    p = resolve("NVIDIA Jetson TX2")
    assert p.family == "TX2"
    assert p.cuda_compute_capability == "6.2"
    assert p.trt_precision_mode == "FP32"


@pytest.mark.parametrize("model", ["", None, "some unrelated board", "nvidia jetson orin"])
def test_unknown_falls_back_without_raising(model: str | None) -> None:
    p = resolve(model)
    assert p.family == "Unknown"
    assert p.cuda_compute_capability == "7.2"
    assert p.trt_precision_mode == "FP32"
    assert p.malloc_arena_max == 1
    assert p.cuda_arch_source == "fallback"
    assert not p.is_jetson


def test_unknown_fallback_is_configurable() -> None:
    p = resolve("x86 workstation", ResolverSettings(unknown_cuda_arch="5.3"))
    assert p.cuda_compute_capability == "5.3"
    # Recognized devices ignore the fallback.
    assert resolve("Jetson TX2", ResolverSettings(unknown_cuda_arch="5.3")).cuda_compute_capability == "6.2"


def test_resolver_settings_rejects_unknown_arch() -> None:
    with pytest.raises(ValueError):
        ResolverSettings(unknown_cuda_arch="9.9")


def test_resolve_is_idempotent() -> None:
    a = resolve("NVIDIA Jetson Xavier NX")
    b = resolve("NVIDIA Jetson Xavier NX")
    assert a == b
    assert a.to_dict() == b.to_dict()


def test_every_family_has_tuning() -> None:
    assert set(FAMILY_TUNING) == set(DEVICE_FAMILIES)
    for family, t in FAMILY_TUNING.items():
        assert 1 <= t.malloc_arena_max <= 4
        assert t.trt_precision_mode == ("FP16" if family.startswith(("Orin", "AGX", "Xavier")) else "FP32")


def test_resolve_family_matches_resolve() -> None:
    assert resolve_family("Jetson Orin Nano") == resolve("Jetson Orin Nano").family


def test_override_takes_precedence() -> None:
    p = apply_cuda_arch_override(resolve("NVIDIA Jetson Nano"), "8.7")
    assert p.family == "Nano"
    assert p.cuda_compute_capability == "8.7"
    assert p.cuda_arch_source == "override"


def test_override_none_keeps_profile() -> None:
    p = resolve("NVIDIA Jetson Nano")
    assert apply_cuda_arch_override(p, None) is p
    assert apply_cuda_arch_override(p, "") is p


def test_normalize_cuda_arch() -> None:
    assert normalize_cuda_arch(" 7.2 ") == "7.2"
    with pytest.raises(ValueError):
        normalize_cuda_arch("sm_87")
    with pytest.raises(ValueError):
        apply_cuda_arch_override(resolve(""), "87")
