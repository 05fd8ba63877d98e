"""Test doubles for knit tests."""

from .fakes import (
    FakeClusterKeys,
    FakeRoute53,
    FakeSecretsManager,
    RecordingRunner,
    client_error,
)

__all__ = [
    "FakeClusterKeys",
    "FakeRoute53",
    "FakeSecretsManager",
    "RecordingRunner",
    "client_error",
]
