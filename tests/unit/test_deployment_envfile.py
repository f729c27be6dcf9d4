from __future__ import annotations

from datetime import datetime
from pathlib import Path

from jetson_deepstream.deployment import envfile
from jetson_deepstream.deployment.model import SetupOptions
from jetson_deepstream.device_profile import apply_cuda_arch_override, resolve

_NOW = datetime(2026, 3, 1, 12, 0, 0)


def test_render_env_file_carries_profile_and_options() -> None:
    options = SetupOptions(tag="v1.2", namespace="acme")
    text = envfile.render_env_file(options, resolve("NVIDIA Jetson Orin NX"), generated_at=_NOW)
    values = envfile.parse_env_text(text)
    assert values["CUDA_ARCH_BIN"] == "8.7"
    assert values["JETSON_MODEL"] == "NVIDIA Jetson Orin NX"
    assert values["TAG"] == "v1.2"
    assert values["NAMESPACE"] == "acme"
    assert values["JETPACK_BASE"] == "nvcr.io/nvidia/l4t-jetpack:r35.4.1"
    assert values["DEEPSTREAM_PATH"] == "/opt/nvidia/deepstream/deepstream-6.2"
    assert text.startswith("# Generated by setup on Sun Mar 01 12:00:00 2026\n")


def test_render_env_file_uses_override() -> None:
    profile = apply_cuda_arch_override(resolve("NVIDIA Jetson Nano"), "7.2")
    values = envfile.parse_env_text(envfile.render_env_file(SetupOptions(), profile, generated_at=_NOW))
    assert values["CUDA_ARCH_BIN"] == "7.2"


def test_render_env_file_unknown_model() -> None:
    values = envfile.parse_env_text(envfile.render_env_file(SetupOptions(), resolve(None), generated_at=_NOW))
    assert values["JETSON_MODEL"] == "Unknown"
    assert values["CUDA_ARCH_BIN"] == "7.2"


def test_render_client_env_file_keeps_image_reference() -> None:
    text = envfile.render_client_env_file({"REGISTRY": "registry.local", "TAG": "v3"}, generated_at=_NOW)
    values = envfile.parse_env_text(text)
    assert values["REGISTRY"] == "registry.local"
    assert values["NAMESPACE"] == "facadedevil"
    assert values["TAG"] == "v3"
    assert "CUDA_ARCH_BIN" not in values


def test_parse_env_text() -> None:
    text = '# comment\n\nexport A=1\nB="two words"\nC=\'x\'\nnot a pair\nD="say \\"hi\\""\n'
    assert envfile.parse_env_text(text) == {"A": "1", "B": "two words", "C": "x", "D": 'say "hi"'}


def test_write_and_read_env_file(tmp_path: Path) -> None:
    p = tmp_path / ".env"
    envfile.write_env_file(p, "TAG=latest\n")
    assert envfile.read_env_file(p) == {"TAG": "latest"}
