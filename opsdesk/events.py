"""
In-process event bus: connects store and board actions to their listeners.

Events emitted:
  task_created, task_updated   (task=Task)
  idea_promoted                (idea=Idea, task=Task)
  notify                       (text=str, type=NotificationType)

Delivery is synchronous, in subscription order, on the caller's stack.
"""
import logging
from typing import Callable, Dict, List

from .schema import NotificationType

logger = logging.getLogger(__name__)


class EventBus:
    """Routes desk events to subscribed callbacks."""

    def __init__(self):
        self.subscribers: Dict[str, List[Callable]] = {}  # event_type -> callbacks

    def subscribe(self, event_type: str, callback: Callable) -> None:
        """Register a callback for an event type."""
        self.subscribers.setdefault(event_type, []).append(callback)

    def emit(self, event_type: str, **kwargs) -> None:
        """Emit an event to all subscribers. A failing subscriber is logged and skipped."""
        for callback in self.subscribers.get(event_type, []):
            try:
                callback(**kwargs)
            except Exception:
                logger.exception(f"Error in {event_type} callback")

    def notify(self, text: str, type: NotificationType = NotificationType.SYSTEM) -> None:
        """Shortcut for the user-facing notification event."""
        self.emit("notify", text=text, type=type)
