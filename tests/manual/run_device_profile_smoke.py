from __future__ import annotations

import json
import subprocess
import sys
import tempfile
from pathlib import Path

from jetson_deepstream.container_init import prereqs as init_prereqs
from jetson_deepstream.device_profile import detect


def main() -> int:
    model = detect.read_model_string()
    if model is None:
        print("Skipping: not a Jetson device (no /proc/device-tree/model)")
        return 0

    print(f"Model: {model}")
    print(f"SoC: {detect.read_soc_family()}")
    print(f"L4T: {detect.read_l4t_release() or 'Unknown'}")

    with tempfile.TemporaryDirectory(prefix="jetson-profile-smoke-") as tmp:
        out = Path(tmp) / "device_profile.json"
        cmd = [sys.executable, "-m", "jetson_deepstream.device_profile", "detect", "--out", str(out)]
        rc = subprocess.call(cmd)
        if rc != 0:
            return rc
        doc = json.loads(out.read_text())
        print(json.dumps(doc["env"], indent=2, sort_keys=True))

    gpu = init_prereqs.check_gpu_accessible()
    print(f"GPU accessible: {gpu.status}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
