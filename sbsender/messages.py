"""Generate the numbered text messages pushed to the queue."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, List, Optional

TIMESTAMP_FORMAT = "%Y/%m/%d %H:%M:%S"


def format_message(prefix: str, index: int, count: int, timestamp: datetime) -> str:
    return f"{prefix} msg {index}/{count} {timestamp.strftime(TIMESTAMP_FORMAT)}"


def create_messages(
    count: int, prefix: str, clock: Optional[Callable[[], datetime]] = None
) -> List[str]:
    """Build ``count`` messages numbered from 1, stamped with the time each was made."""
    if count < 0:
        raise ValueError(f"count must be >= 0, got {count}")
    now = clock or datetime.now
    return [format_message(prefix, index, count, now()) for index in range(1, count + 1)]
