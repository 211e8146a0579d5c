# menu_portal/utils/timeutils.py
from datetime import datetime, timezone

def utc_now() -> datetime:
    """Naive UTC timestamp (SQLite drops tzinfo, so everything is stored naive-UTC)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)

def isoformat_utc(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat(timespec="milliseconds") + "Z"
