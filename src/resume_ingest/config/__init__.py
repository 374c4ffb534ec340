"""Configuration package -- typed, validated settings from YAML + .env."""

from .settings import ExtractionSettings, PipelineSettings, RecognitionSettings

__all__ = [
    "ExtractionSettings",
    "PipelineSettings",
    "RecognitionSettings",
    "load_all_settings",
]


def load_all_settings() -> tuple[ExtractionSettings, RecognitionSettings, PipelineSettings]:
    """Load and return all configuration objects.

    Returns a tuple of (ExtractionSettings, RecognitionSettings,
    PipelineSettings), each populated from its own YAML file with
    environment variable overrides.
    """
    return ExtractionSettings(), RecognitionSettings(), PipelineSettings()
