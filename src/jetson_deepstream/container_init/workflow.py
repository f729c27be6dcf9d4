from __future__ import annotations

import logging
import os
import subprocess
import sys
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

import attrs

from ..checks import PrerequisiteCheck, format_prereq_failures
from ..device_profile import detect
from ..device_profile.model import HardwareProfile
from ..sysinfo import collect_system_info, format_system_info, tensorrt_version
from . import opencv, prereqs, runtime

logger = logging.getLogger(__name__)

ExecFn = Callable[[str, list[str], dict[str, str]], Any]


@attrs.define(frozen=True, slots=True)
class InitSettings:
    deepstream_dir: Path = runtime.DEFAULT_DEEPSTREAM_DIR
    workspace: Path = runtime.DEFAULT_WORKSPACE
    sysroot: Path = Path("/")
    markers_dir: Path = Path("/opt")
    interactive: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str], **overrides: Any) -> "InitSettings":
        base = cls(
            deepstream_dir=runtime.deepstream_dir_from_env(environ),
            workspace=Path(environ.get("WORKSPACE_DIR") or runtime.DEFAULT_WORKSPACE),
        )
        return attrs.evolve(base, **overrides)


def _fail_fast(check: PrerequisiteCheck) -> bool:
    if check.status != "fail":
        return False
    logger.error(check.details or check.check_name)
    print(format_prereq_failures([check]), file=sys.stderr)
    return True


def _maybe_rebuild_opencv(
    profile: HardwareProfile,
    settings: InitSettings,
    *,
    confirm: opencv.ConfirmFn,
    probe: Callable[[], bool],
    runner: Callable[..., Any],
) -> None:
    if not settings.interactive:
        logger.info("Running in non-interactive mode, skipping OpenCV CUDA check.")
        return

    markers = opencv.OpenCVMarkers(settings.markers_dir)
    if markers.state() != "absent":
        return
    if opencv.check_opencv_cuda(markers, probe=probe):
        return

    decision = opencv.decide_build(confirm, model=profile.model or "Unknown")
    if decision == "skip":
        logger.info("Skipping OpenCV build and won't ask again.")
        markers.skip_build.touch()
    elif decision == "continue":
        logger.info("Continuing without CUDA-accelerated OpenCV.")
    else:
        plan = opencv.plan_opencv_build(cuda_arch=profile.cuda_compute_capability)
        try:
            opencv.run_opencv_build(plan, markers, runner=runner)
        except (OSError, subprocess.CalledProcessError) as e:
            logger.error("OpenCV build failed: %s", e)


def run_init(
    command: list[str],
    *,
    settings: InitSettings,
    environ: Mapping[str, str] | None = None,
    confirm: opencv.ConfirmFn = opencv.tty_confirm,
    opencv_probe: Callable[[], bool] = opencv.opencv_has_cuda,
    runner: Callable[..., Any] = subprocess.check_call,
    exec_fn: ExecFn = os.execvpe,
) -> int:
    """Initialize the container, then replace this process with `command`.

    GPU and DeepStream problems stop start-up (exit 1); library links and the
    OpenCV rebuild only log. Returns 0 without exec'ing when `command` is empty.
    """
    environ = dict(os.environ if environ is None else environ)
    logger.info("Starting NVIDIA Jetson DeepStream container initialization...")

    if _fail_fast(prereqs.check_gpu_accessible(settings.sysroot)):
        return 1

    try:
        profile = detect.detect_profile(
            sysroot=settings.sysroot,
            settings=detect.settings_from_env(environ),
            cuda_arch_override=detect.cuda_arch_override_from(None, environ),
        )
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 2
    logger.info("Jetson Device: %s (%s)", profile.model or "Unknown", detect.read_soc_family(settings.sysroot))

    logger.info("Checking DeepStream installation at %s...", settings.deepstream_dir)
    if _fail_fast(prereqs.check_deepstream_installation(settings.deepstream_dir)):
        return 1
    version = prereqs.check_deepstream_version(settings.deepstream_dir)
    if version.status == "pass":
        logger.info("DeepStream Version: %s", version.details)
    else:
        logger.warning(version.details)

    env = runtime.runtime_environment(profile, deepstream_dir=settings.deepstream_dir, base_env=environ)
    logger.info("Environment variables set (CUDA_ARCH_BIN=%s).", env["CUDA_ARCH_BIN"])

    runtime.link_nvbufsurface(profile=profile, deepstream_dir=settings.deepstream_dir, sysroot=settings.sysroot)
    trt = tensorrt_version(settings.sysroot)
    if trt is None:
        logger.warning("Could not determine TensorRT version.")
    else:
        logger.info("TensorRT Version: %s", trt)

    try:
        runtime.write_heartbeat(settings.workspace)
    except OSError as e:
        logger.warning("Could not write heartbeat under %s: %s", settings.workspace, e)

    _maybe_rebuild_opencv(profile, settings, confirm=confirm, probe=opencv_probe, runner=runner)

    try:
        runtime.process_custom_extensions(settings.workspace, runner=runner)
    except (OSError, subprocess.CalledProcessError) as e:
        logger.error("Custom extension failed: %s", e)
        return 1

    info = collect_system_info(
        device_model=profile.model or "Unknown",
        cuda_arch=profile.cuda_compute_capability,
        deepstream_dir=settings.deepstream_dir,
        opencv_cuda=opencv.describe_state(opencv.OpenCVMarkers(settings.markers_dir).state()),
        sysroot=settings.sysroot,
    )
    print(format_system_info(info))

    logger.info("Container initialization complete. Starting application...")
    if not command:
        return 0
    exec_fn(command[0], command, env)
    return 0
