from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping
from datetime import datetime
from pathlib import Path

from ..checks import any_failed, format_prereq_failures
from ..device_profile import detect, serialize
from ..device_profile.model import HardwareProfile
from ..sysinfo import format_kib, gpu_load, memory_kib
from . import distribution, envfile, layout, paths, prereqs
from .model import SetupOptions

logger = logging.getLogger(__name__)


def _detect(options: SetupOptions, *, sysroot: Path, environ: Mapping[str, str]) -> HardwareProfile:
    return detect.detect_profile(
        sysroot=sysroot,
        settings=detect.settings_from_env(environ),
        cuda_arch_override=detect.cuda_arch_override_from(options.cuda_arch, environ),
    )


def run_setup(
    *,
    options: SetupOptions,
    project_root: Path,
    sysroot: Path = Path("/"),
    skip_checks: bool = False,
    samples_dir: Path | None = None,
    environ: Mapping[str, str] | None = None,
    now: datetime | None = None,
) -> int:
    """Prepare a project directory for `docker compose`.

    Detects the device, checks host prerequisites, then writes the mount
    directories, `.env`, sample configs, the sample custom extension and
    `device_profile.json`. Building the image is left to Compose.
    """
    environ = os.environ if environ is None else environ
    logger.info("Setting up NVIDIA Jetson DeepStream Docker Framework...")
    logger.info("Mode: %s", options.mode)
    logger.info("DeepStream Path: %s", options.deepstream_path)
    logger.info("JetPack Version: %s", options.jetpack)
    logger.info("Docker Image: %s", options.image_ref)

    try:
        profile = _detect(options, sysroot=sysroot, environ=environ)
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 2

    if not skip_checks:
        checks = prereqs.check_all(deepstream_path=options.deepstream_path, sysroot=sysroot)
        if any_failed(checks):
            print(format_prereq_failures(checks), file=sys.stderr)
            return 2
        logger.info("All dependencies are satisfied.")

    try:
        project_root.mkdir(parents=True, exist_ok=True)
        layout.create_project_dirs(project_root)
        envfile.write_env_file(
            project_root / paths.ENV_FILE_NAME,
            envfile.render_env_file(options, profile, generated_at=now),
        )
        layout.copy_sample_configs(paths.samples_dir() if samples_dir is None else samples_dir, project_root)
        layout.write_sample_custom_extension(project_root)
        doc = serialize.profile_document(profile)
        serialize.write_profile_document(project_root / paths.PROFILE_FILE_NAME, doc)
    except OSError as e:
        print(f"Setup failed: {e}", file=sys.stderr)
        return 1

    logger.info("Environment configuration written to %s", project_root / paths.ENV_FILE_NAME)
    logger.info("Setup completed successfully. Build and start the image with docker compose.")
    return 0


def device_info_lines(
    *, project_root: Path | None, sysroot: Path = Path("/"), environ: Mapping[str, str] | None = None
) -> list[str] | None:
    """Lines for the `info` command, or None when the host is not a Jetson device.

    The profile is resolved with the same settings and override `setup` uses.
    """
    environ = os.environ if environ is None else environ
    model = detect.read_model_string(sysroot)
    if model is None:
        return None

    lines = [f"Device: {model}", f"SoC: {detect.read_soc_family(sysroot)}"]
    release = detect.read_l4t_release(sysroot)
    if release is not None:
        lines.append(f"L4T Release: {release}")
    load = gpu_load(sysroot)
    if load is not None:
        lines.append(f"GPU Load: {load}")
    mem = memory_kib(sysroot)
    if mem is not None:
        total, available = mem
        lines.append(f"Memory: {format_kib(total - available)} used of {format_kib(total)} total")
    lines.append(f"CPUs: {os.cpu_count() or 1}")

    profile = detect.detect_profile(
        sysroot=sysroot,
        settings=detect.settings_from_env(environ),
        cuda_arch_override=detect.cuda_arch_override_from(None, environ),
        model=model,
    )
    lines.append(f"Profile: {profile.family} (CUDA {profile.cuda_compute_capability}, TensorRT {profile.trt_precision_mode})")

    env_path = None if project_root is None else project_root / paths.ENV_FILE_NAME
    if env_path is not None and env_path.is_file():
        values = envfile.read_env_file(env_path)
        lines.append(f"CUDA Architecture (.env): {values.get('CUDA_ARCH_BIN', 'Not specified in .env')}")
        lines.append(f"DeepStream Path: {values.get('DEEPSTREAM_PATH', 'Not specified in .env')}")
        image = f"{values.get('REGISTRY', 'ghcr.io')}/{values.get('NAMESPACE', 'facadedevil')}/nvidia-jetson:{values.get('TAG', 'latest')}"
        lines.append(f"Docker Image: {image}")
    return lines


def run_info(*, project_root: Path | None, sysroot: Path = Path("/"), environ: Mapping[str, str] | None = None) -> int:
    try:
        lines = device_info_lines(project_root=project_root, sysroot=sysroot, environ=environ)
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 2
    if lines is None:
        logger.warning("Not running on a Jetson device or unable to detect model.")
        return 1
    print("\n".join(lines))
    return 0


def run_export(*, project_root: Path, name: str, make_zip: bool) -> int:
    try:
        root = paths.find_project_root(project_root)
        bundle = distribution.export_distribution(project_root=root, name=name, make_zip=make_zip)
    except (FileNotFoundError, FileExistsError, ValueError) as e:
        print(str(e), file=sys.stderr)
        return 2
    except OSError as e:
        print(f"Export failed: {e}", file=sys.stderr)
        return 1

    print(f"Distribution exported to {bundle.export_dir}/")
    if bundle.archive_path is not None:
        print(f"Archive: {bundle.archive_path}")
    return 0
