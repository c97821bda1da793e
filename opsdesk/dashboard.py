"""
Dashboard aggregates over the current workspace state.
"""
from datetime import date
from typing import Any, Dict, List, Optional

from .ideas import IdeaBank
from .registry import Registry
from .schema import RMIFocus, Status, Task
from .store import TaskStore


def focus_mix(tasks: List[Task]) -> List[Dict[str, Any]]:
    """Count and rounded share of each RMI tag present in `tasks`."""
    counts: Dict[RMIFocus, int] = {}
    for task in tasks:
        counts[task.focus] = counts.get(task.focus, 0) + 1
    total = len(tasks) or 1
    return [
        {"focus": focus.value, "count": count, "percentage": int(100 * count / total + 0.5)}
        for focus, count in counts.items()
    ]


def overdue(tasks: List[Task], today: str) -> List[Task]:
    """Open tasks due before today, earliest first."""
    late = [t for t in tasks if t.status != Status.COMPLETED and t.due_date and t.due_date < today]
    return sorted(late, key=lambda t: t.due_date)


def due_today(tasks: List[Task], today: str) -> List[Task]:
    return [t for t in tasks if t.status != Status.COMPLETED and t.due_date == today]


def entity_stats(store: TaskStore, registry: Registry) -> List[Dict[str, Any]]:
    stats = []
    by_entity: Dict[str, List[Task]] = {}
    for task in store.list_tasks():
        entity = store.entity_for_task(task)
        if entity is not None:
            by_entity.setdefault(entity.id, []).append(task)
    for entity in registry.entities:
        owned = by_entity.get(entity.id, [])
        completed = sum(1 for t in owned if t.status == Status.COMPLETED)
        stats.append({
            "entity": entity.to_dict(),
            "tasks": len(owned),
            "completed": completed,
            "completion": int(100 * completed / len(owned) + 0.5) if owned else 0,
        })
    return stats


def summarize(store: TaskStore, ideas: IdeaBank, registry: Registry,
              today: Optional[date] = None) -> Dict[str, Any]:
    today_key = (today or store.clock()).isoformat()
    tasks = store.list_tasks()
    return {
        "focus_mix": focus_mix(tasks),
        "overdue": [t.to_dict() for t in overdue(tasks, today_key)],
        "due_today": [t.to_dict() for t in due_today(tasks, today_key)],
        "entities": entity_stats(store, registry),
        "top_ideas": [i.to_dict() for i in ideas.top(4)],
    }
