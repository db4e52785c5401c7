"""Data models for the event bridge."""

from synchook.bridge.models.enums import EventType
from synchook.bridge.models.events import (
    PAYLOAD_VARIANTS,
    RAW_EVENTS,
    Event,
    EventPayload,
    RawEvent,
    Unknown,
    parse,
    parse_payload,
    to_event,
)
from synchook.bridge.models.scripts import ScriptInvocation

__all__ = [
    "PAYLOAD_VARIANTS",
    "RAW_EVENTS",
    # Events
    "Event",
    "EventPayload",
    # Enums
    "EventType",
    "RawEvent",
    # Scripts
    "ScriptInvocation",
    "Unknown",
    "parse",
    "parse_payload",
    "to_event",
]
