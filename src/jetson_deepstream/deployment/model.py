from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Literal

import attrs

SetupMode = Literal["production", "development", "debug"]

DEFAULT_DEEPSTREAM_PATH = Path("/opt/nvidia/deepstream/deepstream-6.2")
DEFAULT_MODE: SetupMode = "production"
DEFAULT_REGISTRY = "ghcr.io"
DEFAULT_NAMESPACE = "facadedevil"
DEFAULT_JETPACK = "r35.4.1"
DEFAULT_TAG = "latest"
DEFAULT_CONTAINER_NAME = "nvidia-jetson-app"
IMAGE_NAME = "nvidia-jetson"
SETUP_MODES: tuple[str, ...] = ("production", "development", "debug")


@attrs.define(frozen=True, slots=True)
class SetupOptions:
    deepstream_path: Path = DEFAULT_DEEPSTREAM_PATH
    jetpack: str = DEFAULT_JETPACK
    mode: SetupMode = DEFAULT_MODE
    registry: str = DEFAULT_REGISTRY
    namespace: str = DEFAULT_NAMESPACE
    tag: str = DEFAULT_TAG
    cuda_arch: str | None = None
    container_name: str = DEFAULT_CONTAINER_NAME
    display: str = ":0"

    @property
    def image_ref(self) -> str:
        return f"{self.registry}/{self.namespace}/{IMAGE_NAME}:{self.tag}"

    @property
    def jetpack_base(self) -> str:
        return f"nvcr.io/nvidia/l4t-jetpack:{self.jetpack}"


def display_from_env(environ: Mapping[str, str] | None = None) -> str:
    environ = os.environ if environ is None else environ
    return environ.get("DISPLAY") or ":0"
