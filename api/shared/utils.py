"""Common utility functions."""
import threading
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID, uuid4

_clock_lock = threading.Lock()
_last_timestamp: Optional[datetime] = None


def utc_now() -> datetime:
    """Current UTC time, strictly increasing across calls within the process.

    Row ordering relies on ``created_at`` alone, so two rows written back to
    back (or a touch right after an insert) must never share a timestamp even
    when the system clock is coarse or steps backwards.
    """
    global _last_timestamp
    with _clock_lock:
        now = datetime.now(timezone.utc)
        if _last_timestamp is not None and now <= _last_timestamp:
            now = _last_timestamp + timedelta(microseconds=1)
        _last_timestamp = now
        return now


def new_id() -> str:
    """Generate an opaque unique identifier."""
    return str(uuid4())


def is_valid_uuid(uuid_string: str) -> bool:
    """Check if string is valid UUID."""
    try:
        # only the canonical 8-4-4-4-12 form; UUID() also takes braces, urns and bare hex
        return str(UUID(uuid_string)) == uuid_string.lower()
    except (AttributeError, TypeError, ValueError):
        return False


def truncate_text(text: str, max_length: int, suffix: str = "...") -> str:
    """Truncate text to specified length."""
    if len(text) <= max_length:
        return text
    return text[: max_length - len(suffix)] + suffix
