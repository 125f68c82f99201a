"""
Helpers
"""

import uuid
from typing import Optional
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, the form stored in the database"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


def format_timestamp_with_timezone(timestamp: Optional[datetime]) -> Optional[str]:
    """Format a stored timestamp with the UTC 'Z' suffix"""
    if not timestamp:
        return None
    # stored values are naive UTC, clients need the 'Z' to parse them as UTC
    return timestamp.isoformat() + 'Z'


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))
