import pytest

from curator.audit import AuditLog
from curator.config import AppConfig, ConfigManager
from curator.db import Database
from curator.pipeline import PipelineEngine
from curator.reports import ReportManager
from curator.repository import ArticleRepository

from stubs import StubCollector, StubGenerator, StubOracle, StubPublisher


@pytest.fixture
def store():
    return Database(enabled=False)


@pytest.fixture
def audit(store):
    return AuditLog(store)


@pytest.fixture
def config_manager(store, audit):
    return ConfigManager(store, audit)


@pytest.fixture
def repository(store):
    return ArticleRepository(store)


@pytest.fixture
def configure(store):
    """Persist an AppConfig with the given overrides, bypassing the audit trail."""
    def _configure(**overrides):
        config = AppConfig(**overrides)
        config.validate()
        store.save("config", config.to_dict())
        return config
    return _configure


@pytest.fixture
def make_engine(repository, config_manager, audit):
    def _make(collector=None, oracle=None):
        return PipelineEngine(repository, config_manager, audit,
                              collector or StubCollector(), oracle or StubOracle())
    return _make


@pytest.fixture
def make_reports(store, repository, config_manager, audit):
    def _make(generator=None, publisher=None):
        return ReportManager(store, repository, config_manager, audit,
                             generator or StubGenerator(), publisher or StubPublisher())
    return _make


