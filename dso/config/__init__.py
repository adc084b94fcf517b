"""Configuration module for DSO."""

from dso.config.settings import (
    DSOSettings,
    PipelineConfig,
    ProviderConfig,
    get_settings,
    reload_settings,
)

__all__ = [
    "DSOSettings",
    "PipelineConfig",
    "ProviderConfig",
    "get_settings",
    "reload_settings",
]
