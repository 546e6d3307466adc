"""Configuration package -- typed, validated settings from YAML + .env."""

from .settings import ExtractionSettings, PipelineSettings, ProviderSettings

__all__ = [
    "ExtractionSettings",
    "PipelineSettings",
    "ProviderSettings",
    "load_all_settings",
]


def load_all_settings() -> tuple[ExtractionSettings, PipelineSettings, ProviderSettings]:
    """Load and return all configuration objects.

    Returns a tuple of (ExtractionSettings, PipelineSettings, ProviderSettings),
    each populated from its own YAML file with environment variable overrides.
    """
    return ExtractionSettings(), PipelineSettings(), ProviderSettings()
