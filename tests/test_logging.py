import json
import logging

import pytest

from docbridge.config.settings import PipelineSettings
from docbridge.logging import document_context, setup_logging
from docbridge.logging.setup import LOG_FILENAME


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def _settings(log_dir) -> PipelineSettings:
    return PipelineSettings.model_construct(log_dir=str(log_dir))


def _records(log_path) -> list[dict]:
    for handler in logging.getLogger().handlers:
        handler.flush()
    return [json.loads(line) for line in log_path.read_text(encoding="utf-8").splitlines()]


def test_file_handler_writes_json_lines(tmp_path, restore_root_logger):
    log_path = setup_logging(_settings(tmp_path / "logs"))

    logging.getLogger("docbridge.extractor.pipeline").info("Extracted %d chars", 42)

    assert log_path == tmp_path / "logs" / LOG_FILENAME
    record = _records(log_path)[-1]
    assert record["message"] == "Extracted 42 chars"
    assert record["level"] == "INFO"
    assert record["component"] == "docbridge.extractor.pipeline"
    assert "timestamp" in record


def test_records_carry_the_active_document_id(tmp_path, restore_root_logger):
    log_path = setup_logging(_settings(tmp_path))
    log = logging.getLogger("docbridge.db.state")

    with document_context("doc-7"):
        log.info("inside")
    log.info("outside")

    by_message = {r["message"]: r for r in _records(log_path)}
    assert by_message["inside"]["document_id"] == "doc-7"
    assert by_message["outside"]["document_id"] is None


def test_setup_is_idempotent(tmp_path, restore_root_logger):
    setup_logging(_settings(tmp_path))
    setup_logging(_settings(tmp_path))
    assert len(logging.getLogger().handlers) == 2


def test_noisy_third_party_loggers_are_quietened(tmp_path, restore_root_logger):
    setup_logging(_settings(tmp_path))
    assert logging.getLogger("pdfminer").level == logging.WARNING
