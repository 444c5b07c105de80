"""Configuration package."""

from .settings import (
    LearningSettings,
    ObservabilitySettings,
    ReasoningSettings,
    Settings,
    StoreSettings,
    get_settings,
)

__all__ = [
    "Settings",
    "ReasoningSettings",
    "StoreSettings",
    "LearningSettings",
    "ObservabilitySettings",
    "get_settings",
]
