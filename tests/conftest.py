"""Shared fixtures for outlier tests."""

import logging
import os
from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from outlier.server.config import Config
from outlier.server.rest_api import create_app


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep CONFIG_FILE and OUTLIER_* settings from leaking into tests."""
    for key in list(os.environ):
        if key == "CONFIG_FILE" or key.startswith("OUTLIER_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _restore_root_logger() -> Iterator[None]:
    """Undo handlers installed by configure_logging during a test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


@pytest.fixture
def config() -> Config:
    return Config()


@pytest.fixture
def client(config: Config) -> Iterator[TestClient]:
    with TestClient(create_app(config)) as test_client:
        yield test_client
