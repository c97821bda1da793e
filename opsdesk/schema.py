"""
OpsDesk record schema.

Task workflow:
  To Do → In Progress → Completed   (any bucket can move to any other)

Every record round-trips through to_dict()/from_dict(). Enum values are the
display strings, so serialized records read the same as the UI labels.
"""
from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any
import time
import uuid


def make_id(prefix: str) -> str:
    """Generate a sortable unique id (ms-precision timestamp + random hex)."""
    ts = int(time.time() * 1000)
    return f"{prefix}-{ts}-{uuid.uuid4().hex[:6]}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_dt(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if value:
        try:
            return datetime.fromisoformat(value)
        except (TypeError, ValueError):
            pass
    return utc_now()


class _LabelEnum(Enum):
    """Enum whose values are display labels, parsed leniently."""

    @classmethod
    def default(cls):
        return next(iter(cls))

    @classmethod
    def lookup(cls, value: Any):
        """Strict parse: the member for a label or name, else None."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            wanted = value.strip().lower()
            for member in cls:
                if member.value.lower() == wanted or member.name.lower() == wanted.replace(" ", "_"):
                    return member
        return None

    @classmethod
    def from_str(cls, value: Any):
        member = cls.lookup(value)
        return cls.default() if member is None else member


class Priority(_LabelEnum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @classmethod
    def default(cls):
        return cls.MEDIUM


class Status(_LabelEnum):
    """Workflow status; also the three kanban buckets, in display order."""
    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class ProjectStatus(_LabelEnum):
    PLANNING = "Planning"
    ACTIVE = "Active"
    ON_HOLD = "On Hold"
    FINISHED = "Finished"


class RMIFocus(_LabelEnum):
    """React / Maintain / Improvise work classes. Closed set."""
    REACT = "React"          # reactive firefighting
    MAINTAIN = "Maintain"    # steady maintenance
    IMPROVISE = "Improvise"  # innovative experimentation

    @classmethod
    def default(cls):
        return cls.MAINTAIN


class RecurringInterval(_LabelEnum):
    NONE = "None"
    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"


class UserRole(_LabelEnum):
    ADMIN = "Admin"
    MEMBER = "Member"
    VIEWER = "Viewer"

    @classmethod
    def default(cls):
        return cls.MEMBER


class IdeaStatus(_LabelEnum):
    BACKLOG = "Backlog"
    VALIDATING = "Validating"
    PROMOTED = "Promoted"


class SOPStatus(_LabelEnum):
    DRAFT = "Draft"
    ACTIVE = "Active"
    REVIEW_REQUIRED = "Review Required"


class NotificationType(_LabelEnum):
    MENTION = "mention"
    UPDATE = "update"
    SYSTEM = "system"

    @classmethod
    def default(cls):
        return cls.SYSTEM


UNASSIGNED = "Unassigned"


class NotFoundError(LookupError):
    """Raised when a record lookup by id misses. No fallback record is substituted."""
    pass


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Configuration records
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@dataclass
class Entity:
    """One of the organizational units all work is scoped to."""
    id: str
    name: str
    color: str = "slate"
    icon: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "color": self.color, "icon": self.icon}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Entity":
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            color=data.get("color", "slate"),
            icon=data.get("icon", ""),
        )


@dataclass
class FocusMeta:
    """Editable display metadata for one RMI tag."""
    color: str
    icon: str
    label: str
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "color": self.color,
            "icon": self.icon,
            "label": self.label,
            "description": self.description,
        }


@dataclass
class AppUser:
    id: str
    name: str
    role: UserRole = UserRole.MEMBER

    @property
    def can_edit(self) -> bool:
        return self.role != UserRole.VIEWER

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "role": self.role.value}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Work records
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@dataclass
class Project:
    """A named initiative scoped to one entity."""
    id: str
    entity_id: str
    name: str
    description: str = ""
    status: ProjectStatus = ProjectStatus.PLANNING
    progress: int = 0              # 0-100, set by hand, not derived from tasks
    start_date: str = ""
    end_date: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "entity_id": self.entity_id,
            "name": self.name,
            "description": self.description,
            "status": self.status.value,
            "progress": self.progress,
            "start_date": self.start_date,
            "end_date": self.end_date,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        return cls(
            id=data.get("id", ""),
            entity_id=data.get("entity_id", ""),
            name=data.get("name", ""),
            description=data.get("description", ""),
            status=ProjectStatus.from_str(data.get("status")),
            progress=max(0, min(100, int(data.get("progress") or 0))),
            start_date=data.get("start_date", ""),
            end_date=data.get("end_date", ""),
        )


@dataclass
class SubTask:
    """Nested work item owned by exactly one Task."""
    id: str
    title: str = ""
    description: str = ""
    due_date: str = ""
    priority: Priority = Priority.MEDIUM
    status: Status = Status.TODO
    assignee: str = UNASSIGNED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "due_date": self.due_date,
            "priority": self.priority.value,
            "status": self.status.value,
            "assignee": self.assignee,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SubTask":
        return cls(
            id=data.get("id") or make_id("st"),
            title=data.get("title", ""),
            description=data.get("description", ""),
            due_date=data.get("due_date", ""),
            priority=Priority.from_str(data.get("priority")),
            status=Status.from_str(data.get("status")),
            assignee=data.get("assignee") or UNASSIGNED,
        )


@dataclass(frozen=True)
class Comment:
    """Append-only; never edited once created."""
    id: str
    author_id: str
    author_name: str
    text: str
    timestamp: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "author_id": self.author_id,
            "author_name": self.author_name,
            "text": self.text,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Comment":
        return cls(
            id=data.get("id") or make_id("com"),
            author_id=data.get("author_id", ""),
            author_name=data.get("author_name", ""),
            text=data.get("text", ""),
            timestamp=_parse_dt(data.get("timestamp")),
        )


def coerce_size(value: Any) -> int:
    """Byte count from an int or numeric string. Anything else is 0."""
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


def format_size(size_bytes: int) -> str:
    """Display size: KB below one megabyte, MB with one decimal above."""
    if size_bytes < 1024 * 1024:
        return f"{max(0, round(size_bytes / 1024))}KB"
    return f"{size_bytes / (1024 * 1024):.1f}MB"


@dataclass(frozen=True)
class Attachment:
    """Attachment metadata only; no file bytes are kept."""
    id: str
    name: str
    type: str = "FILE"
    size: str = "0KB"
    url: str = "#"

    @classmethod
    def from_filename(cls, name: str, size_bytes: Optional[int] = None) -> "Attachment":
        ext = name.rsplit(".", 1)[1] if "." in name else ""
        return cls(
            id=make_id("att"),
            name=name,
            type=ext.upper() or "FILE",
            size=format_size(coerce_size(size_bytes)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "type": self.type, "size": self.size, "url": self.url}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Attachment":
        return cls(
            id=data.get("id") or make_id("att"),
            name=data.get("name", ""),
            type=data.get("type", "FILE"),
            size=data.get("size", "0KB"),
            url=data.get("url", "#"),
        )


@dataclass
class Task:
    """The central work unit. Entity affiliation comes from project_id."""

    id: str
    project_id: str
    title: str
    description: str = ""
    due_date: str = ""             # YYYY-MM-DD
    priority: Priority = Priority.MEDIUM
    status: Status = Status.TODO
    focus: RMIFocus = RMIFocus.MAINTAIN
    assignee: str = UNASSIGNED     # a roster name, not an owned reference
    sop_id: Optional[str] = None

    # Owned sub-records, in insertion order
    subtasks: List[SubTask] = field(default_factory=list)
    comments: List[Comment] = field(default_factory=list)
    attachments: List[Attachment] = field(default_factory=list)

    # Recurrence
    is_recurring: bool = False
    recurring_interval: RecurringInterval = RecurringInterval.NONE

    @property
    def progress(self) -> int:
        return compute_progress(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "title": self.title,
            "description": self.description,
            "due_date": self.due_date,
            "priority": self.priority.value,
            "status": self.status.value,
            "focus": self.focus.value,
            "assignee": self.assignee,
            "sop_id": self.sop_id,
            "subtasks": [s.to_dict() for s in self.subtasks],
            "comments": [c.to_dict() for c in self.comments],
            "attachments": [a.to_dict() for a in self.attachments],
            "is_recurring": self.is_recurring,
            "recurring_interval": self.recurring_interval.value,
            "progress": self.progress,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        """Build a Task from a complete dict. Enum fields are coerced."""
        return cls(
            id=data["id"],
            project_id=data.get("project_id", ""),
            title=data.get("title", ""),
            description=data.get("description", ""),
            due_date=data.get("due_date", ""),
            priority=Priority.from_str(data.get("priority")),
            status=Status.from_str(data.get("status")),
            focus=RMIFocus.from_str(data.get("focus")),
            assignee=data.get("assignee", UNASSIGNED),
            sop_id=data.get("sop_id") or None,
            subtasks=[s if isinstance(s, SubTask) else SubTask.from_dict(s)
                      for s in data.get("subtasks") or []],
            comments=[c if isinstance(c, Comment) else Comment.from_dict(c)
                      for c in data.get("comments") or []],
            attachments=[a if isinstance(a, Attachment) else Attachment.from_dict(a)
                         for a in data.get("attachments") or []],
            is_recurring=parse_flag(data.get("is_recurring", False)),
            recurring_interval=RecurringInterval.from_str(data.get("recurring_interval")),
        )


# Progress for a task without subtasks
_STATUS_PROGRESS = {
    Status.TODO: 0,
    Status.IN_PROGRESS: 50,
    Status.COMPLETED: 100,
}


def compute_progress(task: Task) -> int:
    """
    Completion percentage of a task.

    With subtasks: round(100 * completed / total), halves rounded up.
    Without: 0 / 50 / 100 by the task's own status.
    """
    if not task.subtasks:
        return _STATUS_PROGRESS[task.status]
    completed = sum(1 for s in task.subtasks if s.status == Status.COMPLETED)
    return int(100 * completed / len(task.subtasks) + 0.5)


_TRUE_WORDS = {"true", "1", "yes", "on"}


def parse_flag(value: Any) -> bool:
    """Boolean from JSON. Strings count only when they spell a true word."""
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_WORDS
    return bool(value)


def clamp_rating(value: Any, default: int = 5) -> int:
    """Coerce an ICE rating into 1..10."""
    try:
        rating = int(value)
    except (TypeError, ValueError):
        return default
    return max(1, min(10, rating))


@dataclass
class Idea:
    """Candidate initiative ranked by ICE score."""
    id: str
    entity_id: str
    title: str
    description: str = ""
    impact: int = 5
    confidence: int = 5
    ease: int = 5
    status: IdeaStatus = IdeaStatus.BACKLOG

    @property
    def ice_score(self) -> int:
        return self.impact * self.confidence * self.ease

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "entity_id": self.entity_id,
            "title": self.title,
            "description": self.description,
            "impact": self.impact,
            "confidence": self.confidence,
            "ease": self.ease,
            "ice_score": self.ice_score,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Idea":
        # ice_score is always recomputed, so an incoming value is ignored
        return cls(
            id=data.get("id") or make_id("i"),
            entity_id=data.get("entity_id", ""),
            title=data.get("title", ""),
            description=data.get("description", ""),
            impact=clamp_rating(data.get("impact")),
            confidence=clamp_rating(data.get("confidence")),
            ease=clamp_rating(data.get("ease")),
            status=IdeaStatus.from_str(data.get("status")),
        )


@dataclass
class SOP:
    """Standard operating procedure document."""
    id: str
    entity_id: str
    title: str
    description: str = ""
    content: str = ""
    focus: RMIFocus = RMIFocus.MAINTAIN
    last_updated: str = ""
    status: SOPStatus = SOPStatus.DRAFT

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "entity_id": self.entity_id,
            "title": self.title,
            "description": self.description,
            "content": self.content,
            "focus": self.focus.value,
            "last_updated": self.last_updated,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SOP":
        return cls(
            id=data.get("id") or make_id("sop"),
            entity_id=data.get("entity_id", ""),
            title=data.get("title", ""),
            description=data.get("description", ""),
            content=data.get("content", ""),
            focus=RMIFocus.from_str(data.get("focus")),
            last_updated=data.get("last_updated", ""),
            status=SOPStatus.from_str(data.get("status")),
        )


@dataclass
class AppNotification:
    id: str
    text: str
    type: NotificationType = NotificationType.SYSTEM
    read: bool = False
    created_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "type": self.type.value,
            "read": self.read,
            "created_at": self.created_at.isoformat(),
        }
