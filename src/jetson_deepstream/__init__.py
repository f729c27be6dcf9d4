"""Jetson DeepStream deployment toolkit.

Sub-packages:

- `device_profile`: map the Jetson device-tree model string to a hardware profile
- `deployment`: host-side project setup and client distribution export
- `container_init`: container start-up checks and runtime environment
"""

from __future__ import annotations
