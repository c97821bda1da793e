"""
Task projections: filter, kanban board, table.

Each projection is recomputed from the store's current task list; none of
them keeps state of its own. The calendar lives in calendar_view.py.
"""
import dataclasses
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from .events import EventBus
from .schema import AppUser, Entity, NotificationType, RMIFocus, Status, Task
from .store import TaskStore

logger = logging.getLogger(__name__)

ALL_ENTITIES = "all"


@dataclass
class TaskFilter:
    """Focus tab (single select) plus entity switcher ("all" wildcard)."""
    focus: RMIFocus = RMIFocus.MAINTAIN
    entity_id: str = ALL_ENTITIES

    @classmethod
    def from_args(cls, focus: Optional[str] = None, entity: Optional[str] = None) -> "TaskFilter":
        return cls(
            focus=RMIFocus.from_str(focus),
            entity_id=entity or ALL_ENTITIES,
        )

    def matches(self, task: Task, store: TaskStore) -> bool:
        if task.focus != self.focus:
            return False
        if self.entity_id == ALL_ENTITIES:
            return True
        entity = store.entity_for_task(task)
        return entity is not None and entity.id == self.entity_id

    def apply(self, tasks: List[Task], store: TaskStore) -> List[Task]:
        return [t for t in tasks if self.matches(t, store)]


def kanban_board(tasks: List[Task], flt: TaskFilter, store: TaskStore) -> Dict[Status, List[Task]]:
    """Partition filtered tasks into the three status buckets (always all three)."""
    board: Dict[Status, List[Task]] = {status: [] for status in Status}
    for task in flt.apply(tasks, store):
        board[task.status].append(task)
    return board


@dataclass
class TableRow:
    task: Task
    progress: int
    entity: Optional[Entity]

    def to_dict(self) -> Dict:
        data = self.task.to_dict()
        data["progress"] = self.progress
        data["entity"] = self.entity.to_dict() if self.entity else None
        return data


def table_rows(tasks: List[Task], flt: TaskFilter, store: TaskStore) -> List[TableRow]:
    """Flat rows in store insertion order; no sort is applied."""
    return [
        TableRow(task=t, progress=t.progress, entity=store.entity_for_task(t))
        for t in flt.apply(tasks, store)
    ]


class KanbanBoard:
    """Drag-and-drop status changes on the kanban projection."""

    def __init__(self, store: TaskStore, bus: Optional[EventBus] = None):
        self.store = store
        self.bus = bus or store.bus

    def columns(self, flt: TaskFilter) -> Dict[Status, List[Task]]:
        return kanban_board(self.store.list_tasks(), flt, self.store)

    def can_drag(self, actor: Optional[AppUser]) -> bool:
        return self.store.policy.can_mutate(actor)

    def drop(self, task_id: str, target: Status, actor: Optional[AppUser] = None) -> bool:
        """
        Drop a card on a bucket.

        Same bucket: no update, no notification, returns False.
        Other bucket: one store update, one "update" notification, returns True.
        A target that is not one of the buckets raises ValueError.
        """
        self.store.policy.check(actor, "move tasks")
        bucket = Status.lookup(target)
        if bucket is None:
            raise ValueError(f"Unknown bucket: {target}")
        target = bucket
        task = self.store.get_task(task_id)
        if task.status == target:
            return False
        moved = dataclasses.replace(task, status=target)
        self.store.update_task(moved, actor=actor)
        logger.info(f"Moved task {task_id} from {task.status.value} to {target.value}")
        self.bus.notify(f'Task "{task.title}" updated to {target.value}', NotificationType.UPDATE)
        return True
