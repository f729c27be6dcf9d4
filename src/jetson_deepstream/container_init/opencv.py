"""On-device OpenCV rebuild with CUDA support.

The rebuild is optional and only offered interactively. The decision goes
through an injected `confirm(prompt, timeout) -> answer | None` callable; the
build itself is a fixed list of argv steps so it can be inspected before it runs.
Marker files under `/opt` record the state across container restarts.
"""

from __future__ import annotations

import logging
import os
import select
import shlex
import shutil
import subprocess
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any, Literal

import attrs

logger = logging.getLogger(__name__)

OpenCVState = Literal["enabled", "built", "building", "skipped", "absent"]
BuildDecision = Literal["build", "skip", "continue"]
ConfirmFn = Callable[[str, float], str | None]

DEFAULT_OPENCV_VERSION = "4.8.0"
PROMPT_TIMEOUT_S = 30.0
OPENCV_REPO = "https://github.com/opencv/opencv.git"
OPENCV_CONTRIB_REPO = "https://github.com/opencv/opencv_contrib.git"

_STATE_DESCRIPTIONS: dict[str, str] = {
    "enabled": "Enabled",
    "built": "Built on this device",
    "building": "Currently building",
    "skipped": "Not enabled (using system version)",
    "absent": "Not enabled (using system version)",
}


@attrs.define(frozen=True, slots=True)
class OpenCVMarkers:
    root: Path

    @property
    def cuda_enabled(self) -> Path:
        return self.root / ".opencv_cuda_enabled"

    @property
    def built(self) -> Path:
        return self.root / ".opencv_built"

    @property
    def building(self) -> Path:
        return self.root / ".opencv_building"

    @property
    def skip_build(self) -> Path:
        return self.root / ".opencv_skip_build"

    def state(self) -> OpenCVState:
        if self.cuda_enabled.exists():
            return "enabled"
        if self.built.exists():
            return "built"
        if self.building.exists():
            return "building"
        if self.skip_build.exists():
            return "skipped"
        return "absent"


def describe_state(state: OpenCVState) -> str:
    return _STATE_DESCRIPTIONS[state]


def opencv_has_cuda() -> bool:
    """True when the importable cv2 reports at least one CUDA device."""
    try:
        import cv2  # type: ignore[import-not-found]

        return cv2.cuda.getCudaEnabledDeviceCount() > 0
    except Exception:
        return False


def check_opencv_cuda(markers: OpenCVMarkers, *, probe: Callable[[], bool] = opencv_has_cuda) -> bool:
    logger.info("Checking if OpenCV has CUDA support...")
    if probe():
        logger.info("OpenCV CUDA support verified.")
        markers.cuda_enabled.touch()
        return True
    logger.warning("OpenCV does not have CUDA support enabled.")
    return False


def build_prompt(model: str) -> str:
    return "\n".join(
        [
            "OpenCV without CUDA support detected.",
            f"This container is running on Jetson hardware ({model}),",
            "but OpenCV is not built with CUDA support, which will limit performance.",
            "",
            "Build OpenCV with CUDA support now? (30-60 minutes, only needed once)",
            "  [y] Yes - build now",
            "  [n] No - continue without CUDA-accelerated OpenCV",
            "  [s] Skip - don't ask again on this device",
            "",
            "Your choice [y/n/s]: ",
        ]
    )


def tty_confirm(prompt: str, timeout: float) -> str | None:
    """Read one answer line from stdin, or None after `timeout` seconds."""
    sys.stdout.write(prompt)
    sys.stdout.flush()
    ready, _, _ = select.select([sys.stdin], [], [], timeout)
    if not ready:
        sys.stdout.write("\n")
        return None
    return sys.stdin.readline().strip()


def decide_build(confirm: ConfirmFn, *, model: str, timeout: float = PROMPT_TIMEOUT_S) -> BuildDecision:
    answer = (confirm(build_prompt(model), timeout) or "").strip().lower()
    if answer == "y":
        return "build"
    if answer == "s":
        return "skip"
    return "continue"


def build_jobs(cpu_count: int | None = None) -> int:
    """Half the CPUs, clamped to [1, 4]."""
    cpus = cpu_count if cpu_count is not None else (os.cpu_count() or 1)
    return max(1, min(4, cpus // 2))


def _build_cmake_argv(*, cuda_arch: str, contrib_modules: Path, python_exe: str) -> list[str]:
    return [
        "cmake",
        "-D", "CMAKE_BUILD_TYPE=RELEASE",
        "-D", "CMAKE_INSTALL_PREFIX=/usr/local",
        "-D", f"OPENCV_EXTRA_MODULES_PATH={contrib_modules}",
        "-D", f"PYTHON3_EXECUTABLE={python_exe}",
        "-D", "WITH_CUDA=ON",
        "-D", "WITH_CUDNN=ON",
        "-D", "OPENCV_DNN_CUDA=ON",
        "-D", "WITH_NVCUVID=ON",
        "-D", "WITH_NVENC=ON",
        "-D", f"CUDA_ARCH_BIN={cuda_arch}",
        "-D", "ENABLE_FAST_MATH=1",
        "-D", "CUDA_FAST_MATH=1",
        "-D", "WITH_CUBLAS=1",
        "-D", "WITH_TBB=ON",
        "-D", "WITH_GSTREAMER=ON",
        "-D", "WITH_LIBV4L=ON",
        "-D", "BUILD_opencv_python3=ON",
        "-D", "BUILD_opencv_python2=OFF",
        "-D", "BUILD_TESTS=OFF",
        "-D", "BUILD_PERF_TESTS=OFF",
        "-D", "BUILD_EXAMPLES=OFF",
        "-D", "OPENCV_ENABLE_NONFREE=ON",
        "-D", "BUILD_opencv_world=OFF",
        "-D", "BUILD_opencv_objdetect=OFF",
        "..",
    ]  # fmt: skip


@attrs.define(frozen=True, slots=True)
class BuildStep:
    name: str
    argv: list[str]
    cwd: Path

    def render(self) -> str:
        return f"(cd {shlex.quote(str(self.cwd))} && {shlex.join(self.argv)})"


@attrs.define(frozen=True, slots=True)
class OpenCVBuildPlan:
    version: str
    cuda_arch: str
    build_root: Path
    jobs: int
    steps: list[BuildStep]

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "cuda_arch": self.cuda_arch,
            "build_root": str(self.build_root),
            "jobs": self.jobs,
            "steps": {s.name: s.render() for s in self.steps},
        }


def plan_opencv_build(
    *,
    cuda_arch: str,
    build_root: Path = Path("/tmp/opencv_build"),
    version: str = DEFAULT_OPENCV_VERSION,
    jobs: int | None = None,
    python_exe: str = "/usr/bin/python3",
) -> OpenCVBuildPlan:
    jobs = build_jobs() if jobs is None else jobs
    build_dir = build_root / "opencv" / "build"
    clone = ["git", "clone", "--depth", "1", "--branch", version]
    steps = [
        BuildStep("clone_opencv", [*clone, OPENCV_REPO], build_root),
        BuildStep("clone_opencv_contrib", [*clone, OPENCV_CONTRIB_REPO], build_root),
        BuildStep(
            "configure",
            _build_cmake_argv(
                cuda_arch=cuda_arch, contrib_modules=build_root / "opencv_contrib" / "modules", python_exe=python_exe
            ),
            build_dir,
        ),
        BuildStep("compile", ["make", f"-j{jobs}"], build_dir),
        BuildStep("install", ["make", "install"], build_dir),
        BuildStep("ldconfig", ["ldconfig"], build_dir),
    ]
    return OpenCVBuildPlan(version=version, cuda_arch=cuda_arch, build_root=build_root, jobs=jobs, steps=steps)


def run_opencv_build(
    plan: OpenCVBuildPlan,
    markers: OpenCVMarkers,
    *,
    runner: Callable[..., Any] = subprocess.check_call,
) -> bool:
    """Execute `plan`. Returns False when another build already finished or is running.

    Leftovers of an earlier failed build are removed first, and the building
    marker is removed whether or not the build succeeds, so a failed build
    can be retried on the next start.
    """
    if markers.built.exists():
        logger.info("OpenCV with CUDA support already built on this device.")
        return False
    if markers.building.exists():
        logger.info("OpenCV build is already in progress in another container.")
        return False

    markers.building.touch()
    try:
        logger.info("Building OpenCV %s with CUDA_ARCH_BIN=%s (jobs=%d)...", plan.version, plan.cuda_arch, plan.jobs)
        shutil.rmtree(plan.build_root, ignore_errors=True)
        for step in plan.steps:
            logger.info("OpenCV build step: %s", step.name)
            step.cwd.mkdir(parents=True, exist_ok=True)
            runner(step.argv, cwd=step.cwd)
        shutil.rmtree(plan.build_root, ignore_errors=True)
        markers.built.touch()
    finally:
        markers.building.unlink(missing_ok=True)

    logger.info("OpenCV with CUDA support has been built and installed successfully.")
    return True
