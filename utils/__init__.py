"""Shared utilities for the backend."""
from utils.timestamps import to_datetime, to_millis
from utils.uuids import from_bytes, is_uuid, to_bytes

__all__ = [
    "from_bytes",
    "is_uuid",
    "to_bytes",
    "to_datetime",
    "to_millis",
]
