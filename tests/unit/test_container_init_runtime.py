from __future__ import annotations

import subprocess
import sys
from pathlib import Path

import pytest

from jetson_deepstream.container_init import runtime
from jetson_deepstream.device_profile import resolve

DS = Path("/opt/nvidia/deepstream/deepstream-6.2")


def test_runtime_environment_prepends_and_keeps_base() -> None:
    base = {"PATH": "/usr/bin", "HOME": "/root"}
    env = runtime.runtime_environment(resolve("NVIDIA Jetson AGX Orin"), deepstream_dir=DS, base_env=base)

    assert base == {"PATH": "/usr/bin", "HOME": "/root"}
    assert env["HOME"] == "/root"
    assert env["PATH"] == f"/usr/local/cuda/bin:{DS}/bin:/usr/bin"
    assert env["LD_LIBRARY_PATH"] == f"/usr/local/cuda/lib64:{DS}/lib:/usr/lib/aarch64-linux-gnu/tegra"
    assert env["GST_PLUGIN_PATH"].startswith(f"{DS}/lib/gst-plugins:")
    assert env["GST_PLUGIN_SYSTEM_PATH"] == env["GST_PLUGIN_PATH"]
    assert env["PYTHONPATH"] == f"{DS}/lib"
    assert env["DEEPSTREAM_DIR"] == str(DS)
    assert env["CUDA_ARCH_BIN"] == "8.7"
    assert env["CUDA_TENSOR_CORES"] == "1"


def test_runtime_environment_existing_pythonpath() -> None:
    env = runtime.runtime_environment(resolve("NVIDIA Jetson Nano"), deepstream_dir=DS, base_env={"PYTHONPATH": "/app"})
    assert env["PYTHONPATH"] == f"{DS}/lib:/app"
    assert "CUDA_TENSOR_CORES" not in env


def test_deepstream_dir_from_env() -> None:
    assert runtime.deepstream_dir_from_env({}) == runtime.DEFAULT_DEEPSTREAM_DIR
    assert runtime.deepstream_dir_from_env({"DEEPSTREAM_PATH": "/ds"}) == Path("/ds")


def _lib(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("stub")
    return path


def test_link_nvbufsurface_orin(tmp_path: Path) -> None:
    sysroot = tmp_path / "root"
    src = _lib(sysroot / runtime.TEGRA_LIB_DIR / "libnvbufsurface.so")
    transform = _lib(sysroot / "usr" / "lib" / "nvidia" / "libnvbufsurftransform.so")
    ds = tmp_path / "ds"
    (ds / "lib").mkdir(parents=True)

    linked = runtime.link_nvbufsurface(profile=resolve("NVIDIA Jetson Orin NX"), deepstream_dir=ds, sysroot=sysroot)
    assert [p.name for p in linked] == ["libnvbufsurface.so", "libnvbufsurftransform.so"]
    assert (ds / "lib" / "libnvbufsurface.so").resolve() == src.resolve()
    assert (ds / "lib" / "libnvbufsurftransform.so").resolve() == transform.resolve()

    assert len(runtime.link_nvbufsurface(profile=resolve("NVIDIA Jetson Orin NX"), deepstream_dir=ds, sysroot=sysroot)) == 2


def test_link_nvbufsurface_non_orin_links_one(tmp_path: Path) -> None:
    sysroot = tmp_path / "root"
    _lib(sysroot / runtime.TEGRA_LIB_DIR / "libnvbufsurface.so")
    _lib(sysroot / runtime.TEGRA_LIB_DIR / "libnvbufsurftransform.so")
    ds = tmp_path / "ds"
    (ds / "lib").mkdir(parents=True)
    linked = runtime.link_nvbufsurface(profile=resolve("NVIDIA Jetson Xavier NX"), deepstream_dir=ds, sysroot=sysroot)
    assert [p.name for p in linked] == ["libnvbufsurface.so"]


def test_link_nvbufsurface_missing_is_not_fatal(tmp_path: Path) -> None:
    ds = tmp_path / "ds"
    assert runtime.link_nvbufsurface(profile=resolve("NVIDIA Jetson Nano"), deepstream_dir=ds, sysroot=tmp_path) == []

    _lib(tmp_path / runtime.TEGRA_LIB_DIR / "libnvbufsurface.so")
    assert runtime.link_nvbufsurface(profile=resolve("NVIDIA Jetson Nano"), deepstream_dir=ds, sysroot=tmp_path) == []


def test_write_heartbeat(tmp_path: Path) -> None:
    marker = runtime.write_heartbeat(tmp_path, now=1700000000.5)
    assert marker == tmp_path / "logs" / "heartbeat" / "container_started_1700000000"
    assert marker.is_file()
    assert (tmp_path / "models").is_dir()


def test_process_custom_extensions(tmp_path: Path) -> None:
    calls: list[list[str]] = []
    assert runtime.process_custom_extensions(tmp_path, runner=calls.append) == []

    custom = tmp_path / "custom"
    custom.mkdir()
    (custom / "init.sh").write_text("#!/bin/bash\n")
    (custom / "requirements.txt").write_text("numpy\n")

    assert runtime.process_custom_extensions(tmp_path, runner=calls.append) == ["init.sh", "requirements.txt"]
    assert calls == [
        [str(custom / "init.sh")],
        [sys.executable, "-m", "pip", "install", "-r", str(custom / "requirements.txt")],
    ]


def test_process_custom_extensions_failure_propagates(tmp_path: Path) -> None:
    custom = tmp_path / "custom"
    custom.mkdir()
    (custom / "init.sh").write_text("#!/bin/bash\nexit 3\n")

    def runner(argv: list[str]) -> None:
        raise subprocess.CalledProcessError(3, argv)

    with pytest.raises(subprocess.CalledProcessError):
        runtime.process_custom_extensions(tmp_path, runner=runner)
