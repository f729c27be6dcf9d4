from __future__ import annotations

from pathlib import Path

from ..checks import PrerequisiteCheck
from ..sysinfo import GPU_LOAD_NODE, deepstream_version


def check_gpu_accessible(sysroot: Path = Path("/")) -> PrerequisiteCheck:
    if (sysroot / GPU_LOAD_NODE).exists():
        return PrerequisiteCheck(check_name="gpu_accessible", status="pass")
    return PrerequisiteCheck(
        check_name="gpu_accessible",
        status="fail",
        details="Jetson GPU is not accessible. Please check your device mappings.",
    )


def check_deepstream_installation(deepstream_dir: Path) -> PrerequisiteCheck:
    if not deepstream_dir.is_dir():
        return PrerequisiteCheck(
            check_name="deepstream_installation",
            status="fail",
            details=f"DeepStream installation not found at {deepstream_dir}. Mount the DeepStream path from the host.",
        )
    missing = [d for d in ("lib", "sources") if not (deepstream_dir / d).is_dir()]
    if missing:
        return PrerequisiteCheck(
            check_name="deepstream_installation",
            status="fail",
            details=f"DeepStream installation appears incomplete. Missing: {', '.join(missing)}",
        )
    return PrerequisiteCheck(check_name="deepstream_installation", status="pass")


def check_deepstream_version(deepstream_dir: Path) -> PrerequisiteCheck:
    version = deepstream_version(deepstream_dir)
    if version:
        return PrerequisiteCheck(check_name="deepstream_version", status="pass", details=version)
    return PrerequisiteCheck(
        check_name="deepstream_version",
        status="warn",
        details="Could not determine DeepStream version.",
    )
