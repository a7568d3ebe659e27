"""In-app notifications and scheduled delivery."""

from __future__ import annotations

import calendar
import logging
import uuid
from datetime import datetime, timedelta
from typing import Any, Mapping, Optional

from skillswap.data.supabase_client import (
    NOTIFICATIONS,
    SCHEDULED_NOTIFICATIONS,
    SupabaseClient,
    SupabaseError,
)
from skillswap.notifications.expiration import (
    create_expiration_timestamp,
    find_expired_notifications,
    format_timestamp,
    parse_timestamp,
    utcnow,
)

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_DELIVERED = "delivered"
STATUS_CANCELLED = "cancelled"
STATUS_FAILED = "failed"

RECURRENCE_PATTERNS = ("daily", "weekly", "monthly")


def add_months(dt: datetime, months: int) -> datetime:
    """Shift by whole months, clamping to the last day of shorter months."""
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def recurrence_dates(start: datetime, pattern: str, occurrences: int) -> list[datetime]:
    """Occurrence instants for a recurring schedule, starting at start."""
    if pattern not in RECURRENCE_PATTERNS:
        raise ValueError(f"Unknown recurrence pattern: {pattern}")

    dates = []
    for i in range(occurrences):
        if pattern == "daily":
            dates.append(start + timedelta(days=i))
        elif pattern == "weekly":
            dates.append(start + timedelta(weeks=i))
        else:
            dates.append(add_months(start, i))
    return dates


class NotificationService:
    """Creates, reads and expires notifications, and delivers scheduled ones.

    Failures from the REST client propagate as ``SupabaseError``, except in
    ``process_due`` where one bad row must not block the rest of the batch.
    """

    def __init__(self, client: SupabaseClient) -> None:
        self.client = client

    # In-app notifications

    async def send_notification(
        self,
        user_id: str,
        type: str,
        title: str,
        content: str,
        link: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
        priority: str = "normal",
        expires_at: Optional[datetime] = None,
    ) -> dict[str, Any]:
        """Create an in-app notification.

        Args:
            user_id: Recipient.
            type: Notification type, used for the default lifetime.
            title: Short title.
            content: Body text.
            link: Optional link to the relevant page.
            metadata: Extra data stored with the notification.
            priority: urgent, high, normal or low.
            expires_at: Explicit expiry. Derived from type and priority if None.

        Returns:
            The stored notification row.
        """
        now = utcnow()
        if expires_at is None:
            expires_at = create_expiration_timestamp(type, priority, now)

        rows = await self.client.insert(
            NOTIFICATIONS,
            {
                "user_id": user_id,
                "type": type,
                "title": title,
                "content": content,
                "link": link,
                "metadata": dict(metadata or {}),
                "priority": priority,
                "is_read": False,
                "created_at": format_timestamp(now),
                "expires_at": format_timestamp(expires_at),
            },
        )
        logger.info(f"Sent {type} notification to {user_id}")
        return rows[0] if rows else {}

    async def mark_as_read(self, notification_id: str) -> None:
        await self.client.update(NOTIFICATIONS, {"is_read": True}, {"id": notification_id})

    async def mark_all_as_read(self, user_id: str) -> int:
        """Mark every unread notification of a user as read. Returns how many."""
        rows = await self.client.update(
            NOTIFICATIONS, {"is_read": True}, {"user_id": user_id, "is_read": False}
        )
        return len(rows)

    async def delete_notification(self, notification_id: str) -> None:
        await self.client.delete(NOTIFICATIONS, {"id": notification_id})

    async def delete_all_notifications(self, user_id: str) -> int:
        rows = await self.client.delete(NOTIFICATIONS, {"user_id": user_id})
        return len(rows)

    async def get_notifications(
        self,
        user_id: str,
        unread_only: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """Newest notifications of a user."""
        filters: dict[str, Any] = {"user_id": user_id}
        if unread_only:
            filters["is_read"] = False
        return await self.client.select(
            NOTIFICATIONS, filters, order="created_at.desc", limit=limit, offset=offset
        )

    async def purge_expired(
        self, user_id: Optional[str] = None, now: Optional[datetime] = None
    ) -> int:
        """Delete notifications past their expiry.

        Rows with an explicit ``expires_at`` are deleted once it has passed;
        rows without one are judged by the type and priority rules.

        Returns:
            Number of notifications deleted.
        """
        now = now or utcnow()
        scope: dict[str, Any] = {"user_id": user_id} if user_id else {}

        deleted = await self.client.delete(
            NOTIFICATIONS, {**scope, "expires_at": ("lt", format_timestamp(now))}
        )
        count = len(deleted)

        undated = await self.client.select(
            NOTIFICATIONS,
            {**scope, "expires_at": None},
            columns="id,created_at,type,priority",
        )
        stale_ids = find_expired_notifications(undated, now=now)
        if stale_ids:
            removed = await self.client.delete(NOTIFICATIONS, {"id": stale_ids})
            count += len(removed)

        if count:
            logger.info(f"Purged {count} expired notifications")
        return count

    # Scheduled notifications

    async def schedule_notification(
        self,
        user_id: str,
        notification_type: str,
        title: str,
        message: str,
        scheduled_for: datetime,
        link: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """Queue a notification for later delivery. Returns its id."""
        notification_id = str(uuid.uuid4())
        await self.client.insert(
            SCHEDULED_NOTIFICATIONS,
            {
                "id": notification_id,
                "user_id": user_id,
                "notification_type": notification_type,
                "title": title,
                "message": message,
                "link": link,
                "scheduled_for": format_timestamp(parse_timestamp(scheduled_for)),
                "created_at": format_timestamp(utcnow()),
                "metadata": dict(metadata or {}),
                "status": STATUS_PENDING,
            },
        )
        logger.debug(f"Scheduled {notification_type} for {user_id} at {scheduled_for}")
        return notification_id

    async def get_scheduled_notification(self, notification_id: str) -> Optional[dict[str, Any]]:
        rows = await self.client.select(
            SCHEDULED_NOTIFICATIONS, {"id": notification_id}, limit=1
        )
        return rows[0] if rows else None

    async def cancel_scheduled(self, notification_id: str) -> bool:
        """Cancel a pending notification. False if it was not pending."""
        rows = await self.client.update(
            SCHEDULED_NOTIFICATIONS,
            {"status": STATUS_CANCELLED},
            {"id": notification_id, "status": STATUS_PENDING},
        )
        return bool(rows)

    async def reschedule(self, notification_id: str, new_time: datetime) -> bool:
        """Move a pending notification. False if it was not pending."""
        rows = await self.client.update(
            SCHEDULED_NOTIFICATIONS,
            {"scheduled_for": format_timestamp(parse_timestamp(new_time))},
            {"id": notification_id, "status": STATUS_PENDING},
        )
        return bool(rows)

    async def get_pending(self, user_id: str) -> list[dict[str, Any]]:
        return await self.client.select(
            SCHEDULED_NOTIFICATIONS,
            {"user_id": user_id, "status": STATUS_PENDING},
            order="scheduled_for.asc",
        )

    async def schedule_recurring(
        self,
        user_id: str,
        notification_type: str,
        title: str,
        message: str,
        start: datetime,
        pattern: str,
        occurrences: int,
        link: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> list[str]:
        """Schedule one notification per occurrence. Returns their ids in order."""
        ids = []
        for when in recurrence_dates(start, pattern, occurrences):
            ids.append(
                await self.schedule_notification(
                    user_id,
                    notification_type,
                    title,
                    message,
                    when,
                    link=link,
                    metadata=metadata,
                )
            )
        return ids

    async def process_due(self, now: Optional[datetime] = None, batch: int = 100) -> int:
        """Deliver pending notifications whose time has come.

        Each due row becomes an in-app notification. Delivered rows are
        marked ``delivered``; rows whose delivery fails are marked ``failed``.

        Returns:
            Number of notifications delivered.
        """
        now = now or utcnow()
        due = await self.client.select(
            SCHEDULED_NOTIFICATIONS,
            {"status": STATUS_PENDING, "scheduled_for": ("lte", format_timestamp(now))},
            order="scheduled_for.asc",
            limit=batch,
        )
        if not due:
            return 0

        delivered = 0
        for row in due:
            try:
                await self.send_notification(
                    user_id=row["user_id"],
                    type=row.get("notification_type") or "default",
                    title=row.get("title") or "",
                    content=row.get("message") or "",
                    link=row.get("link"),
                    metadata=row.get("metadata"),
                )
            except Exception as e:
                logger.error(f"Error delivering scheduled notification {row.get('id')}: {e}")
                await self._set_status(row["id"], STATUS_FAILED)
                continue
            # Each row is marked before the next one is sent
            await self._set_status(row["id"], STATUS_DELIVERED)
            delivered += 1

        if delivered:
            logger.info(f"Delivered {delivered} scheduled notifications")
        return delivered

    async def _set_status(self, notification_id: str, status: str) -> None:
        try:
            await self.client.update(
                SCHEDULED_NOTIFICATIONS, {"status": status}, {"id": notification_id}
            )
        except SupabaseError as e:
            logger.error(f"Could not mark scheduled notification {notification_id} {status}: {e}")
