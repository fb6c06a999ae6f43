"""Unit tests configuration file."""

import os

import pytest

TESTS_DIR = os.path.dirname(os.path.realpath(__file__))


def pytest_configure(config):
    """Disable verbose output when running tests."""
    terminal = config.pluginmanager.getplugin("terminal")
    if terminal:
        terminal.TerminalReporter.showfspath = False


@pytest.fixture
def ton_schema_path():
    """Path of the sample TON message schema."""
    return os.path.join(TESTS_DIR, "ton.tlb")


@pytest.fixture
def ton_schema(ton_schema_path):
    """Text of the sample TON message schema."""
    with open(ton_schema_path, encoding="utf-8") as f:
        return f.read()
