from __future__ import annotations

import argparse
from pathlib import Path

from ..logging_utils import configure_logging
from . import model, paths, workflow


def _abs_path(p: str) -> Path:
    return Path(p).expanduser().resolve()


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser for host setup, device info and distribution export."""
    parser = argparse.ArgumentParser(
        prog="jetson_deepstream.deployment",
        description="NVIDIA Jetson DeepStream Docker Framework: project setup and distribution.",
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default: $LOG_LEVEL or INFO).")
    parser.add_argument("--project-dir", type=_abs_path, default=Path.cwd(), help="Project directory (default: cwd).")
    parser.add_argument("--sysroot", type=_abs_path, default=Path("/"), help="Filesystem root holding /proc and /sys.")
    sub = parser.add_subparsers(dest="cmd", required=True)

    setup = sub.add_parser("setup", help="Detect the device and write .env, mount dirs and samples.")
    setup.add_argument("--deepstream-path", type=Path, default=model.DEFAULT_DEEPSTREAM_PATH)
    setup.add_argument("--jetpack", default=model.DEFAULT_JETPACK, help="JetPack version (r35.3.1, r35.4.1, ...).")
    setup.add_argument("--mode", default=model.DEFAULT_MODE, choices=list(model.SETUP_MODES))
    setup.add_argument("--registry", default=model.DEFAULT_REGISTRY)
    setup.add_argument("--namespace", default=model.DEFAULT_NAMESPACE)
    setup.add_argument("--tag", default=model.DEFAULT_TAG)
    setup.add_argument("--container-name", default=model.DEFAULT_CONTAINER_NAME)
    setup.add_argument("--cuda-arch", default=None, help="Override the detected compute capability (e.g. 8.7).")
    setup.add_argument("--skip-checks", action="store_true", help="Do not check for docker, compose, GPU and DeepStream.")

    sub.add_parser("info", help="Display information about the detected Jetson device.")

    export = sub.add_parser("export", help="Export the configuration as a client distribution bundle.")
    export.add_argument("name", nargs="?", default=paths.DEFAULT_EXPORT_NAME)
    export.add_argument("--no-zip", action="store_true", help="Do not create <name>.zip.")

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint. Returns process exit code."""
    parser = build_parser()
    ns = parser.parse_args(argv)
    configure_logging(ns.log_level)

    if ns.cmd == "setup":
        options = model.SetupOptions(
            deepstream_path=ns.deepstream_path,
            jetpack=ns.jetpack,
            mode=ns.mode,
            registry=ns.registry,
            namespace=ns.namespace,
            tag=ns.tag,
            cuda_arch=ns.cuda_arch,
            container_name=ns.container_name,
            display=model.display_from_env(),
        )
        return workflow.run_setup(options=options, project_root=ns.project_dir, sysroot=ns.sysroot, skip_checks=ns.skip_checks)
    if ns.cmd == "info":
        return workflow.run_info(project_root=ns.project_dir, sysroot=ns.sysroot)
    if ns.cmd == "export":
        return workflow.run_export(project_root=ns.project_dir, name=ns.name, make_zip=not ns.no_zip)

    raise AssertionError(f"Unhandled cmd: {ns.cmd}")


if __name__ == "__main__":
    raise SystemExit(main())
