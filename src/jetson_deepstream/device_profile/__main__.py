from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path

from ..logging_utils import configure_logging
from . import detect, serialize


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser for Jetson device detection."""
    parser = argparse.ArgumentParser(
        prog="jetson_deepstream.device_profile",
        description="Detect the Jetson device and print its hardware profile.",
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default: $LOG_LEVEL or INFO).")
    sub = parser.add_subparsers(dest="cmd", required=True)

    det = sub.add_parser("detect", help="Detect the device and print the resolved profile.")
    det.add_argument("--model", default=None, help="Resolve this model string instead of reading the device tree.")
    det.add_argument("--cuda-arch", default=None, help="Override the detected compute capability (e.g. 8.7).")
    det.add_argument("--sysroot", type=Path, default=Path("/"), help="Filesystem root holding /proc and /etc.")
    det.add_argument("--format", default="text", choices=["text", "json", "env"])
    det.add_argument("--out", type=Path, default=None, help="Also write the JSON profile document here.")

    sub.add_parser("families", help="Print the device family table.")

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint. Returns process exit code."""
    parser = build_parser()
    ns = parser.parse_args(argv)
    configure_logging(ns.log_level)

    if ns.cmd == "families":
        print(serialize.format_family_table())
        return 0

    if ns.cmd == "detect":
        try:
            settings = detect.settings_from_env(os.environ)
            profile = detect.detect_profile(
                sysroot=ns.sysroot,
                settings=settings,
                cuda_arch_override=detect.cuda_arch_override_from(ns.cuda_arch, os.environ),
                model=ns.model,
            )
        except ValueError as e:
            print(str(e), file=sys.stderr)
            return 2

        doc = serialize.profile_document(profile)
        if ns.out is not None:
            serialize.write_profile_document(ns.out, doc)
        if ns.format == "json":
            print(json.dumps(doc, indent=2, sort_keys=True))
        elif ns.format == "env":
            print(serialize.render_env_lines(doc["env"]), end="")
        else:
            print(serialize.format_profile_text(profile))
        return 0

    raise AssertionError(f"Unhandled cmd: {ns.cmd}")


if __name__ == "__main__":
    raise SystemExit(main())
