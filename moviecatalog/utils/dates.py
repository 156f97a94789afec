from datetime import datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Tuple


def utcnow() -> datetime:
    """Naive UTC timestamp, comparable with server_default=func.now() values"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def day_bounds(moment: datetime) -> Tuple[datetime, datetime]:
    start = moment.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


def year_bounds(year: int) -> Tuple[datetime, datetime]:
    return datetime(year, 1, 1), datetime(year + 1, 1, 1)


def round_rating(value: Optional[float]) -> float:
    """Ratings are surfaced with one decimal, half-up; missing averages become 0.0"""
    if value is None:
        return 0.0
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))
