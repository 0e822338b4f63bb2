"""Pytest configuration and shared fixtures."""

import logfire
import pytest


@pytest.fixture(scope="session", autouse=True)
def _offline_logfire() -> None:
    """Keep spans local so tests never need a Logfire token."""
    logfire.configure(send_to_logfire=False, console=False, service_name="taskpulse-tests")
