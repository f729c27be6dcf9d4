from __future__ import annotations

import os
from pathlib import Path

import pytest

from jetson_deepstream import sysinfo


def test_memory_kib(tmp_path: Path) -> None:
    assert sysinfo.memory_kib(tmp_path) is None
    meminfo = tmp_path / "proc" / "meminfo"
    meminfo.parent.mkdir(parents=True)
    meminfo.write_text("MemTotal:        7999000 kB\nMemFree:          100000 kB\nMemAvailable:    4000000 kB\n")
    assert sysinfo.memory_kib(tmp_path) == (7999000, 4000000)


@pytest.mark.parametrize(("kib", "text"), [(16000000, "15.3Gi"), (1048576, "1.0Gi"), (512000, "500Mi")])
def test_format_kib(kib: int, text: str) -> None:
    assert sysinfo.format_kib(kib) == text


def test_tensorrt_version_from_symlink(tmp_path: Path) -> None:
    lib_dir = tmp_path / "usr" / "lib" / "aarch64-linux-gnu"
    lib_dir.mkdir(parents=True)
    assert sysinfo.tensorrt_version(tmp_path) is None
    (lib_dir / "libnvinfer.so.8.5.2").write_text("stub")
    os.symlink("libnvinfer.so.8.5.2", lib_dir / "libnvinfer.so")
    assert sysinfo.tensorrt_version(tmp_path) == "8.5.2"


def test_readers_on_empty_sysroot(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PATH", os.fspath(tmp_path))
    assert sysinfo.gpu_load(tmp_path) is None
    assert sysinfo.power_governor(tmp_path) is None
    assert sysinfo.deepstream_version(tmp_path) is None
    assert sysinfo.cuda_version() is None
    assert sysinfo.jetpack_version() is None


def test_cuda_version_parses_nvcc(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    nvcc = tmp_path / "nvcc"
    nvcc.write_text("#!/bin/sh\necho 'Cuda compilation tools, release 11.4, V11.4.315'\n")
    nvcc.chmod(0o755)
    monkeypatch.setenv("PATH", os.fspath(tmp_path))
    assert sysinfo.cuda_version() == "11.4"


def test_package_version() -> None:
    assert sysinfo.package_version("pytest") is not None
    assert sysinfo.package_version("no-such-distribution-xyz") is None


def test_collect_and_format_system_info(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PATH", os.fspath(tmp_path / "empty"))
    load = tmp_path / "sys" / "devices" / "gpu.0" / "load"
    load.parent.mkdir(parents=True)
    load.write_text("37\n")

    info = sysinfo.collect_system_info(
        device_model="NVIDIA Jetson Nano",
        cuda_arch="5.3",
        deepstream_dir=tmp_path / "ds",
        opencv_cuda="Enabled",
        sysroot=tmp_path,
    )
    assert info.gpu_load == "37"
    assert info.to_dict()["cuda_arch"] == "5.3"

    text = sysinfo.format_system_info(info)
    lines = text.splitlines()
    assert lines[0] == "======= NVIDIA Jetson DeepStream Container ======="
    assert "CUDA Architecture: 5.3" in lines
    assert "DeepStream Version: Unknown" in lines
    assert "GPU Load: 37" in lines
    assert not any(line.startswith("Power Mode:") for line in lines)
