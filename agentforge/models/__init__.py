"""Model management utilities."""

from .registry import ModelResolver, ProviderRegistry, ProviderSpec, build_default_registry

__all__ = ["ModelResolver", "ProviderRegistry", "ProviderSpec", "build_default_registry"]
