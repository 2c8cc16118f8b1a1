"""Fixtures shared by the configuration loader tests."""

import sys
from pathlib import Path

import pytest


@pytest.fixture
def fixtures_dir():
    """Path to test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def plain_argv(monkeypatch):
    """Keep pytest's own arguments out of the --include scan."""
    monkeypatch.setattr(sys, "argv", ["gitgate"])
