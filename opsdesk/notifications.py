"""
Notification feed: newest-first log with read flags and hard dismissal.

Records carry a real creation instant; the "Just now" / "10m ago" labels
are computed when the feed is displayed.
"""
from datetime import datetime
from typing import Callable, Dict, List, Optional

from .schema import AppNotification, NotFoundError, NotificationType, make_id, utc_now


def relative_time(then: datetime, now: datetime) -> str:
    """
    Relative display label for a timestamp.

    < 1 min "Just now", < 1 h "Nm ago", < 1 day "Nh ago", < 1 week "Nd ago",
    otherwise the calendar date.
    """
    seconds = int((now - then).total_seconds())
    if seconds < 60:
        return "Just now"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes}m ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    days = hours // 24
    if days < 7:
        return f"{days}d ago"
    return then.strftime("%b %d, %Y")


class NotificationFeed:

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self.clock = clock
        self._items: List[AppNotification] = []

    def add(self, text: str, type=NotificationType.SYSTEM, created_at: Optional[datetime] = None) -> AppNotification:
        """Prepend a notification (newest first)."""
        notification = AppNotification(
            id=make_id("n"),
            text=text,
            type=NotificationType.from_str(type),
            read=False,
            created_at=created_at or self.clock(),
        )
        self._items.insert(0, notification)
        return notification

    def _get(self, notification_id: str) -> AppNotification:
        for item in self._items:
            if item.id == notification_id:
                return item
        raise NotFoundError(f"Notification {notification_id} not found")

    def mark_read(self, notification_id: str) -> AppNotification:
        item = self._get(notification_id)
        item.read = True
        return item

    def dismiss(self, notification_id: str) -> None:
        """Remove the notification entirely."""
        self._get(notification_id)
        self._items = [n for n in self._items if n.id != notification_id]

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self._items if not n.read)

    def list(self) -> List[AppNotification]:
        return list(self._items)

    def display(self, now: Optional[datetime] = None) -> List[Dict]:
        now = now or self.clock()
        rows = []
        for n in self._items:
            row = n.to_dict()
            row["timestamp"] = relative_time(n.created_at, now)
            rows.append(row)
        return rows
