"""Shared fixtures for the test suite."""

import pytest

from llm_doc_commenter.utils.logger_setup import LoggerManager


@pytest.fixture(autouse=True)
def reset_logging():
    """Let every test (and every CLI invocation) configure logging afresh."""
    LoggerManager.reset()
    yield
    LoggerManager.reset()
