"""Pydantic settings models for docbridge configuration.

Three settings classes load from separate YAML config files with environment
variable override support. Source priority (highest to lowest):

    1. Init arguments (tests, CLI overrides)
    2. Environment variables (with prefix, e.g., EXTRACTION_PDF_BACKEND)
    3. .env file (for secrets, e.g., PROVIDER_API_KEY)
    4. YAML config file (e.g., config/extraction.yaml)
    5. Default values defined here

Config paths are resolved relative to PROJECT_ROOT so the application works
regardless of the current working directory.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

# Resolve project root: settings.py -> config/ -> docbridge/ -> src/ -> repo root
PROJECT_ROOT = Path(__file__).resolve().parents[3]

_CONFIG_DIR = PROJECT_ROOT / "config"
_ENV_FILE = PROJECT_ROOT / ".env"


class _YamlBackedSettings(BaseSettings):
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


class ExtractionSettings(_YamlBackedSettings):
    """Text extraction: PDF backend choice and readability thresholds.

    The four readability thresholds are independent necessary conditions.
    Tune them one at a time; they are never combined into a single score.
    """

    pdf_backend: Literal["pymupdf", "pdfplumber"] = "pymupdf"

    # Readability classifier
    min_readable_length: int = 50
    readability_sample_size: int = 1000
    min_letter_ratio: float = 0.25
    min_space_ratio: float = 0.05
    max_replacement_ratio: float = 0.10

    # Skip-reprocessing policy (applied by the document orchestrator)
    reprocess_min_content_length: int = 100

    model_config = SettingsConfigDict(
        yaml_file=str(_CONFIG_DIR / "extraction.yaml"),
        env_prefix="EXTRACTION_",
    )


class PipelineSettings(_YamlBackedSettings):
    """Pipeline operations: paths, logging, retries."""

    db_path: str = "data/documents.db"
    storage_dir: str = "data/storage"
    log_dir: str = "logs"
    log_max_bytes: int = 10_485_760  # 10MB
    log_backup_count: int = 5
    max_retry_count: int = 3

    model_config = SettingsConfigDict(
        yaml_file=str(_CONFIG_DIR / "pipeline.yaml"),
        env_prefix="PIPELINE_",
    )


class ProviderSettings(_YamlBackedSettings):
    """Outbound LLM provider: endpoint, credentials, request template.

    Non-secret settings come from config/provider.yaml. The API key comes
    from .env or environment variables only -- it must NEVER appear in YAML
    files or in logs.
    """

    provider: str = "OpenAI"
    api_endpoint: str = "https://api.openai.com/v1/chat/completions"
    api_key: str = ""
    model: str | None = None
    request_template: dict[str, Any] | None = None
    timeout_seconds: float = 60.0
    max_retries: int = 3

    model_config = SettingsConfigDict(
        yaml_file=str(_CONFIG_DIR / "provider.yaml"),
        env_file=str(_ENV_FILE),
        env_prefix="PROVIDER_",
        extra="ignore",
    )
