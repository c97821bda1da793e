"""
In-memory task store.

Owns the canonical task and project lists. Edits replace whole records by
id (last writer wins); sub-record helpers build a new Task and go through
update_task like any other edit.
"""
import calendar
import dataclasses
import logging
from datetime import date, timedelta
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from .access import AccessPolicy
from .events import EventBus
from .registry import Registry
from .schema import (
    AppUser, Attachment, Comment, Entity, NotFoundError, Priority, Project,
    ProjectStatus, RecurringInterval, RMIFocus, Status, SubTask, Task,
    UNASSIGNED, make_id,
)

logger = logging.getLogger(__name__)


def merge_defaults(partial: Mapping[str, Any], defaults: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Merge a partial record over its defaults.

    A default fills a key only when the key is absent from `partial` or its
    value is None. Any other supplied value wins, including "", False and [].
    Keys in `partial` that have no default are carried through unchanged.
    """
    merged = dict(defaults)
    for key, value in partial.items():
        if value is None and key in defaults:
            continue
        merged[key] = value
    return merged


def _add_months(day: date, months: int) -> date:
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last))


def parse_day(value: Any) -> Optional[date]:
    """A YYYY-MM-DD string as a date, or None when it does not parse."""
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        return None


def advance_due_date(due_date: str, interval: RecurringInterval, fallback: Optional[date] = None) -> str:
    """
    Next due date for a recurring task. Month steps clamp to month end.

    A due date that does not parse is replaced by `fallback` (today if unset).
    """
    day = parse_day(due_date) or fallback or date.today()
    if interval == RecurringInterval.DAILY:
        day += timedelta(days=1)
    elif interval == RecurringInterval.WEEKLY:
        day += timedelta(days=7)
    elif interval == RecurringInterval.MONTHLY:
        day = _add_months(day, 1)
    elif interval == RecurringInterval.QUARTERLY:
        day = _add_months(day, 3)
    return day.isoformat()


class TaskStore:
    """Canonical task and project lists for one workspace."""

    def __init__(
        self,
        registry: Registry,
        bus: Optional[EventBus] = None,
        policy: Optional[AccessPolicy] = None,
        clock: Callable[[], date] = date.today,
    ):
        self.registry = registry
        self.bus = bus or EventBus()
        self.policy = policy or registry.policy
        self.clock = clock
        self._tasks: List[Task] = []
        self._projects: List[Project] = []

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Projects
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def add_project(self, partial: Mapping[str, Any], actor: Optional[AppUser] = None) -> Project:
        """Create a project, filling absent fields with defaults."""
        self.policy.check(actor, "create projects")
        today = self.clock().isoformat()
        first_entity = self.registry.entities[0].id if self.registry.entities else ""
        data = merge_defaults(partial, {
            "id": make_id("p"),
            "entity_id": first_entity,
            "name": "New Initiative",
            "description": "",
            "status": ProjectStatus.PLANNING.value,
            "progress": 0,
            "start_date": today,
            "end_date": today,
        })
        project = Project.from_dict(data)
        self._projects.append(project)
        logger.info(f"Created project {project.id} ({project.name}) for {project.entity_id}")
        return project

    def find_project(self, project_id: str) -> Optional[Project]:
        for project in self._projects:
            if project.id == project_id:
                return project
        return None

    def get_project(self, project_id: str) -> Project:
        project = self.find_project(project_id)
        if project is None:
            raise NotFoundError(f"Project {project_id} not found")
        return project

    def list_projects(self, entity_id: Optional[str] = None) -> List[Project]:
        if entity_id is None:
            return list(self._projects)
        return [p for p in self._projects if p.entity_id == entity_id]

    def entity_for_task(self, task: Task) -> Optional[Entity]:
        """Resolve task → project → entity. None when either link is dangling."""
        project = self.find_project(task.project_id)
        if project is None:
            return None
        return self.registry.find_entity(project.entity_id)

    def _default_project_id(self) -> str:
        if self.registry.entities:
            owned = self.list_projects(self.registry.entities[0].id)
            if owned:
                return owned[0].id
        if self._projects:
            return self._projects[0].id
        return "p1"

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Tasks
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def task_defaults(self) -> Dict[str, Any]:
        return {
            "id": make_id("t"),
            "project_id": self._default_project_id(),
            "title": "New Objective",
            "description": "",
            "due_date": self.clock().isoformat(),
            "priority": Priority.MEDIUM.value,
            "status": Status.TODO.value,
            "focus": RMIFocus.MAINTAIN.value,
            "assignee": UNASSIGNED,
            "sop_id": None,
            "subtasks": [],
            "comments": [],
            "attachments": [],
            "is_recurring": False,
            "recurring_interval": RecurringInterval.NONE.value,
        }

    def create_task(self, partial: Mapping[str, Any], actor: Optional[AppUser] = None) -> Task:
        """
        Create a task from a partial record and append it.

        Absent or None fields take their defaults; nothing is rejected.
        """
        self.policy.check(actor, "create tasks")
        task = Task.from_dict(merge_defaults(partial, self.task_defaults()))
        self._tasks.append(task)
        logger.info(f"Created task {task.id}: {task.title!r} in {task.project_id}")
        self.bus.emit("task_created", task=task)
        return task

    def update_task(self, task: Task, actor: Optional[AppUser] = None) -> Task:
        """Replace the stored record with the same id. No merge, no version check."""
        self.policy.check(actor, "edit tasks")
        for index, existing in enumerate(self._tasks):
            if existing.id == task.id:
                self._tasks[index] = task
                logger.debug(f"Replaced task {task.id}")
                self.bus.emit("task_updated", task=task)
                return task
        raise NotFoundError(f"Task {task.id} not found")

    def find_task(self, task_id: str) -> Optional[Task]:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def get_task(self, task_id: str) -> Task:
        task = self.find_task(task_id)
        if task is None:
            raise NotFoundError(f"Task {task_id} not found")
        return task

    def list_tasks(self) -> List[Task]:
        """All tasks in insertion order."""
        return list(self._tasks)

    def tasks_for_project(self, project_id: str) -> List[Task]:
        return [t for t in self._tasks if t.project_id == project_id]

    # ── Sub-records ──────────────────────────────────────────

    def _replace(self, task: Task, actor: Optional[AppUser], **changes) -> Task:
        return self.update_task(dataclasses.replace(task, **changes), actor=actor)

    def add_subtask(
        self,
        task_id: str,
        partial: Optional[Mapping[str, Any]] = None,
        actor: Optional[AppUser] = None,
    ) -> SubTask:
        self.policy.check(actor, "edit subtasks")
        task = self.get_task(task_id)
        members = self.registry.team_members
        data = merge_defaults(partial or {}, {
            "id": make_id("st"),
            "title": "",
            "description": "",
            "due_date": task.due_date or self.clock().isoformat(),
            "priority": Priority.MEDIUM.value,
            "status": Status.TODO.value,
            "assignee": members[0] if members else UNASSIGNED,
        })
        subtask = SubTask.from_dict(data)
        self._replace(task, actor, subtasks=task.subtasks + [subtask])
        return subtask

    def _get_subtask(self, task: Task, subtask_id: str) -> SubTask:
        for sub in task.subtasks:
            if sub.id == subtask_id:
                return sub
        raise NotFoundError(f"Subtask {subtask_id} not found on task {task.id}")

    def update_subtask(
        self,
        task_id: str,
        subtask_id: str,
        actor: Optional[AppUser] = None,
        **fields,
    ) -> SubTask:
        self.policy.check(actor, "edit subtasks")
        task = self.get_task(task_id)
        current = self._get_subtask(task, subtask_id)
        data = current.to_dict()
        data.update({k: v for k, v in fields.items() if k != "id"})
        updated = SubTask.from_dict(data)
        self._replace(
            task, actor,
            subtasks=[updated if s.id == subtask_id else s for s in task.subtasks],
        )
        return updated

    def toggle_subtask(self, task_id: str, subtask_id: str, actor: Optional[AppUser] = None) -> SubTask:
        """Completed ↔ To Do. In Progress toggles to Completed."""
        task = self.get_task(task_id)
        current = self._get_subtask(task, subtask_id)
        next_status = Status.TODO if current.status == Status.COMPLETED else Status.COMPLETED
        return self.update_subtask(task_id, subtask_id, actor=actor, status=next_status)

    def remove_subtask(self, task_id: str, subtask_id: str, actor: Optional[AppUser] = None) -> None:
        self.policy.check(actor, "edit subtasks")
        task = self.get_task(task_id)
        self._get_subtask(task, subtask_id)
        self._replace(task, actor, subtasks=[s for s in task.subtasks if s.id != subtask_id])

    def add_comment(self, task_id: str, author: AppUser, text: str) -> Optional[Comment]:
        """Append a comment. Blank text is ignored and returns None."""
        if not (text or "").strip():
            return None
        self.policy.check(author, "comment")
        task = self.get_task(task_id)
        comment = Comment(
            id=make_id("com"),
            author_id=author.id,
            author_name=author.name,
            text=text,
        )
        self._replace(task, author, comments=task.comments + [comment])
        return comment

    def add_attachment(
        self,
        task_id: str,
        filename: str,
        size_bytes: Optional[int] = None,
        actor: Optional[AppUser] = None,
    ) -> Optional[Attachment]:
        """Record attachment metadata. A blank filename is ignored."""
        if not (filename or "").strip():
            return None
        self.policy.check(actor, "attach files")
        task = self.get_task(task_id)
        attachment = Attachment.from_filename(filename.strip(), size_bytes)
        self._replace(task, actor, attachments=task.attachments + [attachment])
        return attachment

    # ── Recurrence ───────────────────────────────────────────

    def spawn_next_occurrence(self, task_id: str, actor: Optional[AppUser] = None) -> Optional[Task]:
        """
        Create the next instance of a recurring task.

        Returns None for one-off tasks. The source task is left untouched.
        """
        task = self.get_task(task_id)
        if not task.is_recurring or task.recurring_interval == RecurringInterval.NONE:
            return None
        data = task.to_dict()
        data.pop("progress", None)
        data.update({
            "id": make_id("t"),
            "due_date": advance_due_date(task.due_date, task.recurring_interval, fallback=self.clock()),
            "status": Status.TODO.value,
            "comments": [],
            "attachments": [],
            "subtasks": [
                dict(s.to_dict(), id=make_id("st"), status=Status.TODO.value)
                for s in task.subtasks
            ],
        })
        return self.create_task(data, actor=actor)

    # ── Generated suggestions ────────────────────────────────

    def import_suggestions(
        self,
        project_id: str,
        suggestions: Iterable[Mapping[str, Any]],
        focus: RMIFocus = RMIFocus.MAINTAIN,
        actor: Optional[AppUser] = None,
    ) -> List[Task]:
        """Create one task per {title, description, priority} suggestion."""
        self.get_project(project_id)
        created = []
        for suggestion in suggestions:
            created.append(self.create_task({
                "project_id": project_id,
                "title": suggestion.get("title"),
                "description": suggestion.get("description"),
                "priority": suggestion.get("priority"),
                "focus": focus,
            }, actor=actor))
        return created
