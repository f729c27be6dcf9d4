"""Container start-up: checks, runtime environment and optional OpenCV rebuild."""

from __future__ import annotations
