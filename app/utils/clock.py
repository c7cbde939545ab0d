# app/utils/clock.py
from datetime import datetime, timezone

def utcnow() -> datetime:
    """Naive UTC timestamp, the form every timestamp column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
