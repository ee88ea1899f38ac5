"""
Pytest plugin for hubgate testing fixtures.

To use these fixtures in your tests, add this to your conftest.py:

    pytest_plugins = ["hubgate.testing.conftest"]
"""

# Re-export all fixtures for pytest auto-discovery
from hubgate.testing.fixtures import (
    api_handler,
    api_requests,
    config_store,
    fake_clock,
    gate,
    manual_timers,
    mock_transport,
    offline_state,
    resolver,
    scripted_probe,
)

__all__ = [
    "api_handler",
    "api_requests",
    "config_store",
    "fake_clock",
    "gate",
    "manual_timers",
    "mock_transport",
    "offline_state",
    "resolver",
    "scripted_probe",
]
