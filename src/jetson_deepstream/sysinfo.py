"""Best-effort readers for Jetson host/container facts.

Every reader takes a `sysroot` so tests can point it at a fake tree, and returns
None (or "Unknown") instead of raising when the fact is not available.
"""

from __future__ import annotations

import importlib.metadata
import os
import platform
import re
import socket
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Any

import attrs

GPU_LOAD_NODE = Path("sys") / "devices" / "gpu.0" / "load"
MEMINFO = Path("proc") / "meminfo"
CPU_GOVERNOR = Path("sys") / "devices" / "system" / "cpu" / "cpu0" / "cpufreq" / "scaling_governor"
LIBNVINFER = Path("usr") / "lib" / "aarch64-linux-gnu" / "libnvinfer.so"

_VERSION_RE = re.compile(r"\d+\.\d+\.\d+")


def _read_text(path: Path) -> str | None:
    try:
        return path.read_text(errors="replace").strip()
    except OSError:
        return None


def _run_capture(cmd: list[str]) -> str | None:
    try:
        out = subprocess.check_output(cmd, stderr=subprocess.STDOUT)
    except (OSError, subprocess.CalledProcessError):
        return None
    return out.decode(errors="replace").strip()


def gpu_load(sysroot: Path = Path("/")) -> str | None:
    return _read_text(sysroot / GPU_LOAD_NODE)


def power_governor(sysroot: Path = Path("/")) -> str | None:
    return _read_text(sysroot / CPU_GOVERNOR)


def memory_kib(sysroot: Path = Path("/")) -> tuple[int, int] | None:
    """Return (total, available) in KiB from /proc/meminfo."""
    text = _read_text(sysroot / MEMINFO)
    if text is None:
        return None
    fields: dict[str, int] = {}
    for line in text.splitlines():
        key, _, rest = line.partition(":")
        parts = rest.split()
        if parts and parts[0].isdigit():
            fields[key.strip()] = int(parts[0])
    if "MemTotal" not in fields:
        return None
    return fields["MemTotal"], fields.get("MemAvailable", fields.get("MemFree", 0))


def format_kib(kib: int) -> str:
    gib = kib / (1024 * 1024)
    if gib >= 1:
        return f"{gib:.1f}Gi"
    return f"{kib / 1024:.0f}Mi"


def tensorrt_version(sysroot: Path = Path("/")) -> str | None:
    """TensorRT version from the target of the libnvinfer.so symlink."""
    lib = sysroot / LIBNVINFER
    if not lib.exists():
        return None
    m = _VERSION_RE.search(lib.resolve().name)
    return m.group(0) if m else None


def deepstream_version(deepstream_dir: Path) -> str | None:
    return _read_text(deepstream_dir / "version")


def cuda_version() -> str | None:
    out = _run_capture(["nvcc", "--version"])
    if not out:
        return None
    m = re.search(r"release\s+(\d+\.\d+)", out)
    return m.group(1) if m else None


def jetpack_version() -> str | None:
    out = _run_capture(["dpkg-query", "-W", "-f=${Version}", "nvidia-jetpack"])
    return out or None


def package_version(dist: str) -> str | None:
    try:
        return importlib.metadata.version(dist)
    except importlib.metadata.PackageNotFoundError:
        return None


@attrs.define(frozen=True, slots=True)
class SystemInfo:
    device_model: str
    jetpack_version: str | None
    cuda_version: str | None
    cuda_arch: str
    python_version: str
    deepstream_version: str | None
    tensorrt_version: str | None
    opencv_cuda: str
    pytorch_version: str | None
    tensorflow_version: str | None
    memory_total: str | None
    cpu_count: int
    power_mode: str | None
    gpu_load: str | None
    hostname: str
    collected_at: str

    def to_dict(self) -> dict[str, Any]:
        return attrs.asdict(self)


def collect_system_info(
    *,
    device_model: str,
    cuda_arch: str,
    deepstream_dir: Path,
    opencv_cuda: str,
    sysroot: Path = Path("/"),
) -> SystemInfo:
    mem = memory_kib(sysroot)
    return SystemInfo(
        device_model=device_model,
        jetpack_version=jetpack_version(),
        cuda_version=cuda_version(),
        cuda_arch=cuda_arch,
        python_version=platform.python_version(),
        deepstream_version=deepstream_version(deepstream_dir),
        tensorrt_version=tensorrt_version(sysroot),
        opencv_cuda=opencv_cuda,
        pytorch_version=package_version("torch"),
        tensorflow_version=package_version("tensorflow"),
        memory_total=format_kib(mem[0]) if mem else None,
        cpu_count=os.cpu_count() or 1,
        power_mode=power_governor(sysroot),
        gpu_load=gpu_load(sysroot),
        hostname=socket.gethostname(),
        collected_at=datetime.now().isoformat(timespec="seconds"),
    )


def format_system_info(info: SystemInfo) -> str:
    def show(v: str | None, missing: str = "Unknown") -> str:
        return v if v else missing

    rows = [
        ("Device Model", info.device_model),
        ("JetPack Version", show(info.jetpack_version)),
        ("CUDA Version", show(info.cuda_version)),
        ("CUDA Architecture", info.cuda_arch),
        ("Python Version", info.python_version),
        ("DeepStream Version", show(info.deepstream_version)),
        ("TensorRT Version", show(info.tensorrt_version)),
        ("OpenCV CUDA", info.opencv_cuda),
        ("PyTorch Version", show(info.pytorch_version, "Not installed")),
        ("TensorFlow Version", show(info.tensorflow_version, "Not installed")),
        ("Memory", show(info.memory_total)),
        ("CPUs", str(info.cpu_count)),
    ]
    if info.power_mode is not None:
        rows.append(("Power Mode", info.power_mode))
    if info.gpu_load is not None:
        rows.append(("GPU Load", info.gpu_load))
    rows += [("Container ID", info.hostname), ("Started at", info.collected_at)]

    lines = [
        "======= NVIDIA Jetson DeepStream Container =======",
        "=============== System Information ===============",
    ]
    lines += [f"{k}: {v}" for k, v in rows]
    lines.append("=" * 50)
    return "\n".join(lines)
