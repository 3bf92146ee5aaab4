"""Shim sub-package: provider adapters, their OAuth lifecycle and registry."""

from wearable_shims.shims.base import ProviderShim
from wearable_shims.shims.registry import ShimRegistry, build_registry

__all__ = ["ProviderShim", "ShimRegistry", "build_registry"]
