from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from ..logging_utils import configure_logging
from . import workflow


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser for the container entrypoint."""
    parser = argparse.ArgumentParser(
        prog="jetson_deepstream.container_init",
        description="Initialize the Jetson DeepStream container, then exec COMMAND.",
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default: $LOG_LEVEL or INFO).")
    parser.add_argument("--deepstream-dir", type=Path, default=None, help="Default: $DEEPSTREAM_PATH.")
    parser.add_argument("--workspace", type=Path, default=None, help="Default: $WORKSPACE_DIR or /workspace.")
    parser.add_argument("--sysroot", type=Path, default=Path("/"))
    parser.add_argument("--markers-dir", type=Path, default=Path("/opt"), help="Where OpenCV state markers live.")
    parser.add_argument(
        "--interactive",
        default="auto",
        choices=["auto", "yes", "no"],
        help="Offer the OpenCV rebuild prompt (auto: only when stdin and stdout are terminals).",
    )
    parser.add_argument("command", nargs=argparse.REMAINDER, help="Command to exec after initialization.")
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint. Returns process exit code."""
    parser = build_parser()
    ns = parser.parse_args(argv)
    configure_logging(ns.log_level)

    if ns.interactive == "auto":
        interactive = sys.stdin.isatty() and sys.stdout.isatty()
    else:
        interactive = ns.interactive == "yes"

    overrides = {"sysroot": ns.sysroot, "markers_dir": ns.markers_dir, "interactive": interactive}
    if ns.deepstream_dir is not None:
        overrides["deepstream_dir"] = ns.deepstream_dir
    if ns.workspace is not None:
        overrides["workspace"] = ns.workspace
    settings = workflow.InitSettings.from_env(os.environ, **overrides)

    command = list(ns.command)
    if command and command[0] == "--":
        command = command[1:]
    return workflow.run_init(command, settings=settings)


if __name__ == "__main__":
    raise SystemExit(main())
