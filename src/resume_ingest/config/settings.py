"""Pydantic settings models for resume ingestion configuration.

Three settings classes load from separate YAML config files with environment
variable override support. Source priority (highest to lowest):

    1. Init keyword arguments (used by the CLI and tests)
    2. Environment variables (with prefix, e.g., RECOGNITION_LANGUAGE)
    3. .env file
    4. YAML config file (e.g., config/recognition.yaml)
    5. Default values defined here

Config paths are resolved relative to PROJECT_ROOT so the application works
regardless of the current working directory.
"""

from pathlib import Path

from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

# Resolve project root: settings.py -> config/ -> resume_ingest/ -> src/ -> repo root
PROJECT_ROOT = Path(__file__).resolve().parents[3]

_CONFIG_DIR = PROJECT_ROOT / "config"
_ENV_FILE = PROJECT_ROOT / ".env"

DEFAULT_ENGINE_ORDER = ["pymupdf", "pdfplumber", "pdfminer", "pymupdf4llm"]


class _YamlSettings(BaseSettings):
    """Shared source ordering: init > env > .env > YAML > defaults."""

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


class ExtractionSettings(_YamlSettings):
    """Digital text extraction: engine fallback order and scan thresholds.

    The two thresholds are empirically tuned on resumes and are policy,
    not physical constants.
    """

    engine_order: list[str] = list(DEFAULT_ENGINE_ORDER)

    # Scan detection
    min_chars_per_page: int = 50
    min_meaningful_ratio: float = 0.3

    # pymupdf4llm table detection strategy
    table_strategy: str = "lines_strict"

    model_config = SettingsConfigDict(
        yaml_file=str(_CONFIG_DIR / "extraction.yaml"),
        env_file=str(_ENV_FILE),
        env_prefix="EXTRACTION_",
        extra="ignore",
    )


class RecognitionSettings(_YamlSettings):
    """Optical recognition: language, rasterization scale, session reuse."""

    language: str = "eng"
    scale: float = 1.5
    fast_scale: float = 1.0
    tesseract_cmd: str = "tesseract"

    # 1 keeps the sequential baseline (one page image resident at a time)
    max_concurrent_pages: int = 1
    reuse_session: bool = True

    model_config = SettingsConfigDict(
        yaml_file=str(_CONFIG_DIR / "recognition.yaml"),
        env_file=str(_ENV_FILE),
        env_prefix="RECOGNITION_",
        extra="ignore",
    )


class PipelineSettings(_YamlSettings):
    """Pipeline operations: strategy, timeout, paths, logging."""

    strategy: str = "smart"
    timeout_seconds: float | None = None
    db_path: str = "data/resumes.db"
    log_dir: str = "logs"
    log_max_bytes: int = 10_485_760  # 10MB
    log_backup_count: int = 5
    output_dir: str = "data/transcripts"

    model_config = SettingsConfigDict(
        yaml_file=str(_CONFIG_DIR / "pipeline.yaml"),
        env_file=str(_ENV_FILE),
        env_prefix="PIPELINE_",
        extra="ignore",
    )
