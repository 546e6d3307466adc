"""Shared fixtures: sample prose and a throwaway document store."""

import pytest

from builders import PROSE
from docbridge.config.settings import PipelineSettings
from docbridge.db import Database
from docbridge.extractor.storage import LocalBlobStore


@pytest.fixture
def prose() -> str:
    return PROSE


@pytest.fixture
def pipeline_settings(tmp_path) -> PipelineSettings:
    return PipelineSettings.model_construct(
        db_path=str(tmp_path / "data" / "documents.db"),
        storage_dir=str(tmp_path / "storage"),
        log_dir=str(tmp_path / "logs"),
    )


@pytest.fixture
def database(pipeline_settings):
    database = Database.from_settings(pipeline_settings)
    yield database
    database.dispose()


@pytest.fixture
def session(database):
    with database.session() as db_session:
        yield db_session


@pytest.fixture
def blob_store(pipeline_settings) -> LocalBlobStore:
    return LocalBlobStore(pipeline_settings.storage_dir)
