from datetime import datetime, timezone

import pytz


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Treat naive datetimes (SQLite hands these back) as UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def local_hhmm(now: datetime, tz_name: str | None) -> str:
    """Wall-clock "HH:MM" of `now` in the given IANA zone (UTC if unknown)."""
    try:
        tz = pytz.timezone(tz_name) if tz_name else pytz.utc
    except pytz.UnknownTimeZoneError:
        tz = pytz.utc
    return ensure_utc(now).astimezone(tz).strftime("%H:%M")
