"""Conversions between reference UUIDs as stored (16 raw bytes) and as exposed (strings)."""
import uuid
from typing import Optional, Union


def is_uuid(value: Optional[str]) -> bool:
    if not value:
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


def to_bytes(reference: Union[str, uuid.UUID]) -> bytes:
    """Raises ValueError on a malformed reference string."""
    if isinstance(reference, uuid.UUID):
        return reference.bytes
    return uuid.UUID(reference).bytes


def from_bytes(raw: Optional[bytes]) -> Optional[uuid.UUID]:
    if raw is None:
        return None
    return uuid.UUID(bytes=bytes(raw))
