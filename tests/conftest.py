"""Shared pytest fixtures for the spanreport test suite."""

from __future__ import annotations

import pytest

from spanreport.render import Config
from spanreport.source import SourceRegistry


@pytest.fixture
def registry():
    return SourceRegistry()


@pytest.fixture
def plain_config():
    """Default rich config; rendered lines are compared as plain text."""
    return Config()
