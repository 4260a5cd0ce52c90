"""
Helper utility functions
"""
from typing import Any, Optional
from datetime import date, datetime, time
import random
import string
import time as _time
import pytz

from nursery_app.config.settings import settings

LOCAL_TZ = pytz.timezone(settings.TIMEZONE)


def generate_reference(prefix: str, with_suffix: bool = True) -> str:
    """Generate a human readable reference like MED-1718000000000-K3Z9"""
    millis = int(_time.time() * 1000)
    if not with_suffix:
        return f"{prefix}-{millis}"
    random_str = "".join(random.choices(string.ascii_uppercase + string.digits, k=4))
    return f"{prefix}-{millis}-{random_str}"


def local_today() -> date:
    """Today's calendar date in the nursery's timezone"""
    return datetime.now(LOCAL_TZ).date()


def parse_date(value: Any) -> Optional[date]:
    """Parse an ISO date or datetime string into a calendar date, or None"""
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(LOCAL_TZ)
    return parsed.date()


def day_start(day: date) -> datetime:
    """Midnight of a calendar day as a naive datetime (BSON stores naive UTC)"""
    return datetime.combine(day, time.min)


def format_long_date(value: Any) -> str:
    """Format an ISO date string like '10 June 2025', falling back to the input"""
    parsed = parse_date(value) if not isinstance(value, date) else value
    if parsed is None:
        return "" if value is None else str(value)
    return parsed.strftime("%d %B %Y")


def format_timestamp(moment: Optional[datetime] = None) -> str:
    """Format a timestamp like '10 June 2025, 14:05' in local time"""
    moment = moment or datetime.utcnow()
    if moment.tzinfo is None:
        moment = pytz.utc.localize(moment)
    return moment.astimezone(LOCAL_TZ).strftime("%d %B %Y, %H:%M")


def to_iso(moment: datetime) -> str:
    """ISO-8601 string in local time, as returned in API responses"""
    if moment.tzinfo is None:
        moment = pytz.utc.localize(moment)
    return moment.astimezone(LOCAL_TZ).isoformat()
