"""Toast-style notifications for one app session."""

from collections import deque
from typing import Deque, List
from schemas.enums import NotificationKind
from schemas.state import Notification


class NotificationCenter:
    """Bounded queue of notifications drained by the view layer."""

    def __init__(self, max_items: int = 20):
        self._items: Deque[Notification] = deque(maxlen=max_items)

    def push(self, message: str, kind: NotificationKind = NotificationKind.INFO) -> Notification:
        notification = Notification(message=message, kind=kind)
        self._items.append(notification)
        return notification

    def success(self, message: str) -> Notification:
        return self.push(message, NotificationKind.SUCCESS)

    def info(self, message: str) -> Notification:
        return self.push(message, NotificationKind.INFO)

    def error(self, message: str) -> Notification:
        return self.push(message, NotificationKind.ERROR)

    def pending(self) -> List[Notification]:
        return list(self._items)

    def drain(self) -> List[Notification]:
        items = list(self._items)
        self._items.clear()
        return items
