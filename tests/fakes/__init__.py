"""Exports for test fakes."""

from .api import FakeCall, FakeJsonApi, Hold, ok
from .sleep import ManualSleep, RecordingSleep

__all__ = [
    "FakeCall",
    "FakeJsonApi",
    "Hold",
    "ManualSleep",
    "RecordingSleep",
    "ok",
]
