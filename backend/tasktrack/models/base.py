from datetime import datetime, timezone

from sqlalchemy import DateTime

# Column type for every timestamp: naive values, always UTC
NaiveUTC = DateTime(timezone=False)


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every datetime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
