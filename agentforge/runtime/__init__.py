"""Runtime assembly."""

from .app import Application, build_application
from .model_resolver import build_model_resolver, resolve_provider_configs

__all__ = ["Application", "build_application", "build_model_resolver", "resolve_provider_configs"]
