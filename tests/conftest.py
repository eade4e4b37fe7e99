"""Shared test fixtures for the productrules test suite.

Every test runs with PRODUCTRULES_* environment variables cleared, so a
developer's shell or .env file never changes detection or rule routing.
"""

import logging
import os

import pytest

from productrules.core.logging import bind_project_root


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch):
    for name in list(os.environ):
        if name.upper().startswith("PRODUCTRULES_"):
            monkeypatch.delenv(name, raising=False)
    yield
    bind_project_root("")


@pytest.fixture
def restore_package_logger():
    """Undo configure_structlog()'s changes to the package logger."""
    package_logger = logging.getLogger("productrules")
    saved = (list(package_logger.handlers), package_logger.level, package_logger.propagate)
    yield package_logger
    package_logger.handlers, package_logger.level, package_logger.propagate = saved
