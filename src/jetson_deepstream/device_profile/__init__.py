"""Jetson device detection and hardware profile resolution."""

from __future__ import annotations

from .model import HardwareProfile, ResolverSettings
from .resolver import apply_cuda_arch_override, resolve, resolve_family

__all__ = ["HardwareProfile", "ResolverSettings", "apply_cuda_arch_override", "resolve", "resolve_family"]
