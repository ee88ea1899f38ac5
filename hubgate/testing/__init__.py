"""hubgate testing utilities.

Provides fakes and fixtures for testing applications that use hubgate.
"""

from hubgate.testing.fakes import (
    FakeClock,
    ManualTimer,
    ManualTimerFactory,
    ProbeCall,
    ScriptedProbe,
    StaticConfigStore,
    create_mock_repository,
    repository_payload,
)

__all__ = [
    "FakeClock",
    "ManualTimer",
    "ManualTimerFactory",
    "ProbeCall",
    "ScriptedProbe",
    "StaticConfigStore",
    # Helper functions
    "create_mock_repository",
    "repository_payload",
]
