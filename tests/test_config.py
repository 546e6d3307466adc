import pytest
from pydantic import ValidationError

from docbridge.config import ExtractionSettings, PipelineSettings, ProviderSettings, load_all_settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("EXTRACTION_PDF_BACKEND", "PIPELINE_DB_PATH", "PROVIDER_MODEL", "PROVIDER_API_KEY"):
        monkeypatch.delenv(name, raising=False)


def test_yaml_values_are_loaded():
    extraction, pipeline, provider = load_all_settings()
    assert extraction.pdf_backend == "pymupdf"
    assert extraction.min_letter_ratio == 0.25
    assert pipeline.max_retry_count == 3
    assert provider.model == "gpt-4o-mini"
    assert provider.request_template is None


def test_environment_overrides_yaml(monkeypatch):
    monkeypatch.setenv("EXTRACTION_PDF_BACKEND", "pdfplumber")
    monkeypatch.setenv("PIPELINE_DB_PATH", "/tmp/other.db")
    monkeypatch.setenv("PROVIDER_MODEL", "claude-test")

    assert ExtractionSettings().pdf_backend == "pdfplumber"
    assert PipelineSettings().db_path == "/tmp/other.db"
    assert ProviderSettings().model == "claude-test"


def test_init_arguments_override_environment(monkeypatch):
    monkeypatch.setenv("EXTRACTION_PDF_BACKEND", "pdfplumber")
    assert ExtractionSettings(pdf_backend="pymupdf").pdf_backend == "pymupdf"


def test_api_key_comes_from_environment(monkeypatch):
    monkeypatch.setenv("PROVIDER_API_KEY", "sk-from-env")
    assert ProviderSettings().api_key == "sk-from-env"


def test_unknown_pdf_backend_is_rejected():
    with pytest.raises(ValidationError):
        ExtractionSettings(pdf_backend="tesseract")
