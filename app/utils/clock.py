from datetime import datetime, timezone


def utcnow() -> datetime:
    # naive UTC, matching what the database columns store
    return datetime.now(timezone.utc).replace(tzinfo=None)
