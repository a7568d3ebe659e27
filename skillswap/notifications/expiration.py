"""Notification expiry rules.

Each notification type has a base lifetime in days, scaled by a priority
multiplier (urgent notifications go stale twice as fast, low priority ones
linger 50% longer). A handful of transient types live for hours instead.
All timestamps are timezone-aware UTC.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Mapping, Optional, Union

from skillswap.data.models import NotificationPriority
from skillswap.utils.rounding import round_half_up

DEFAULT_EXPIRATION_DAYS: dict[str, int] = {
    # System
    "system": 30,
    "announcement": 14,
    "maintenance": 7,
    # User interaction
    "message": 60,
    "mention": 30,
    "comment": 30,
    "reaction": 14,
    # Trades and skills
    "trade_request": 14,
    "trade_update": 30,
    "trade_completed": 60,
    "skill_match": 7,
    # Reviews
    "new_review": 30,
    "review_reminder": 3,
    "default": 30,
}

PRIORITY_MULTIPLIERS: dict[str, float] = {
    NotificationPriority.URGENT.value: 0.5,
    NotificationPriority.HIGH.value: 0.75,
    NotificationPriority.NORMAL.value: 1.0,
    NotificationPriority.LOW.value: 1.5,
}

SHORT_TERM_EXPIRATION_HOURS: dict[str, int] = {
    "alert": 2,
    "status_update": 4,
    "reminder": 12,
    "default": 24,
}

SHORT_TERM_TYPES = frozenset({"alert", "status_update", "reminder"})

SECONDS_PER_DAY = 24 * 60 * 60

Timestamp = Union[str, datetime]


def parse_timestamp(value: Timestamp) -> datetime:
    """Parse an ISO 8601 timestamp into an aware UTC datetime.

    A trailing ``Z`` is accepted, and naive values are taken to be UTC.
    """
    if isinstance(value, datetime):
        dt = value
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_timestamp(dt: datetime) -> str:
    """ISO 8601 with millisecond precision and a ``Z`` suffix."""
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _priority_multiplier(priority: Union[str, NotificationPriority, None]) -> float:
    if isinstance(priority, NotificationPriority):
        priority = priority.value
    return PRIORITY_MULTIPLIERS.get(priority or "normal", 1.0)


def expiration_period_days(notification_type: str, priority: Optional[str] = "normal") -> float:
    """Lifetime in days after the priority multiplier."""
    base = DEFAULT_EXPIRATION_DAYS.get(notification_type, DEFAULT_EXPIRATION_DAYS["default"])
    return base * _priority_multiplier(priority)


def difference_in_days(later: datetime, earlier: datetime) -> int:
    """Whole days between two instants, rounded half up."""
    seconds = (later - earlier).total_seconds()
    return round_half_up(seconds / SECONDS_PER_DAY)


def calculate_expiration_date(
    notification_type: str, priority: Optional[str], created_at: Timestamp
) -> str:
    """Expiration instant as an ISO string.

    >>> calculate_expiration_date("skill_match", "urgent", "2025-01-01T00:00:00Z")
    '2025-01-04T12:00:00.000Z'
    """
    created = parse_timestamp(created_at)
    period = expiration_period_days(notification_type, priority)
    return format_timestamp(created + timedelta(days=period))


def should_expire(
    created_at: Timestamp,
    notification_type: str,
    priority: Optional[str] = "normal",
    now: Optional[datetime] = None,
) -> bool:
    now = now or utcnow()
    days_since = difference_in_days(now, parse_timestamp(created_at))
    return days_since >= expiration_period_days(notification_type, priority)


def days_until_expiration(
    created_at: Timestamp,
    notification_type: str,
    priority: Optional[str] = "normal",
    now: Optional[datetime] = None,
) -> int:
    """Days left before expiry, negative once expired."""
    now = now or utcnow()
    expires = parse_timestamp(created_at) + timedelta(
        days=expiration_period_days(notification_type, priority)
    )
    return difference_in_days(expires, now)


def find_expired_notifications(
    notifications: Iterable[Mapping[str, Any]], now: Optional[datetime] = None
) -> list[str]:
    """IDs of the notification rows that are past their lifetime."""
    now = now or utcnow()
    return [
        n["id"]
        for n in notifications
        if should_expire(n["created_at"], n.get("type", "default"), n.get("priority"), now=now)
    ]


def short_term_expiration_hours(notification_type: str, priority: Optional[str] = "normal") -> float:
    base = SHORT_TERM_EXPIRATION_HOURS.get(
        notification_type, SHORT_TERM_EXPIRATION_HOURS["default"]
    )
    return base * _priority_multiplier(priority)


def create_expiration_timestamp(
    notification_type: str, priority: Optional[str], created_at: Timestamp
) -> datetime:
    """When a new notification should expire.

    Transient types (alerts, status updates, reminders) are measured in hours,
    everything else in days.
    """
    created = parse_timestamp(created_at)
    if notification_type in SHORT_TERM_TYPES:
        hours = short_term_expiration_hours(notification_type, priority)
        return created + timedelta(hours=hours)
    return created + timedelta(days=expiration_period_days(notification_type, priority))
