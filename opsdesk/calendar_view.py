"""
Calendar projection: a 6-week month grid of tasks and subtasks.

Cells are keyed by zero-padded YYYY-MM-DD strings and matched against due
dates by exact string equality. Weeks start on Sunday.
"""
import calendar
from dataclasses import dataclass, field
from datetime import MAXYEAR, MINYEAR, date
from typing import Callable, List, Optional

from .schema import RMIFocus, Task

GRID_CELLS = 42

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June", "July",
    "August", "September", "October", "November", "December",
]


@dataclass
class CalendarItem:
    kind: str              # "task" | "subtask"
    id: str
    title: str
    status: str
    focus: RMIFocus
    task: Task             # owning task; what a click opens

    @property
    def open_target(self) -> Task:
        return self.task

    def to_dict(self):
        return {
            "kind": self.kind,
            "id": self.id,
            "title": self.title,
            "status": self.status,
            "focus": self.focus.value,
            "task_id": self.task.id,
        }


@dataclass
class CalendarCell:
    index: int
    day: Optional[int]     # None outside the viewed month
    items: List[CalendarItem] = field(default_factory=list)

    @property
    def in_month(self) -> bool:
        return self.day is not None

    def to_dict(self):
        return {"index": self.index, "day": self.day, "items": [i.to_dict() for i in self.items]}


def day_key(year: int, month: int, day: int) -> str:
    return f"{year:04d}-{month:02d}-{day:02d}"


def items_for_day(tasks: List[Task], key: str) -> List[CalendarItem]:
    """Tasks due on `key` first, then subtasks due on `key`."""
    items = [
        CalendarItem("task", t.id, t.title, t.status.value, t.focus, t)
        for t in tasks if t.due_date == key
    ]
    for t in tasks:
        for sub in t.subtasks:
            if sub.due_date == key:
                items.append(CalendarItem("subtask", sub.id, sub.title, sub.status.value, t.focus, t))
    return items


def month_grid(tasks: List[Task], year: int, month: int) -> List[CalendarCell]:
    """Exactly 42 cells; leading and trailing cells outside the month stay empty."""
    # calendar.monthrange weekday: Monday=0; shift so Sunday=0
    first_weekday, num_days = calendar.monthrange(year, month)
    offset = (first_weekday + 1) % 7
    cells = []
    for index in range(GRID_CELLS):
        day = index - offset + 1
        if 1 <= day <= num_days:
            cells.append(CalendarCell(index, day, items_for_day(tasks, day_key(year, month, day))))
        else:
            cells.append(CalendarCell(index, None))
    return cells


class CalendarCursor:
    """Which month the calendar is showing."""

    def __init__(self, year: Optional[int] = None, month: Optional[int] = None,
                 clock: Callable[[], date] = date.today):
        self.clock = clock
        today = clock()
        self.year = year or today.year
        self.month = month or today.month

    @property
    def title(self) -> str:
        return f"{MONTH_NAMES[self.month - 1]} {self.year}"

    def previous(self) -> "CalendarCursor":
        if self.month == 1:
            self.year, self.month = self.year - 1, 12
        else:
            self.month -= 1
        return self

    def next(self) -> "CalendarCursor":
        if self.month == 12:
            self.year, self.month = self.year + 1, 1
        else:
            self.month += 1
        return self

    def show(self, year: int, month: int) -> "CalendarCursor":
        """Jump to a month. The cursor is unchanged when the month is out of range."""
        if not 1 <= month <= 12 or not MINYEAR <= year <= MAXYEAR:
            raise ValueError(f"Invalid month: {year}-{month}")
        self.year, self.month = year, month
        return self

    def today(self) -> "CalendarCursor":
        today = self.clock()
        self.year, self.month = today.year, today.month
        return self

    def grid(self, tasks: List[Task]) -> List[CalendarCell]:
        return month_grid(tasks, self.year, self.month)
