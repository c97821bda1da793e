"""
Workspace: one self-contained desk (registry, store, ideas, SOPs, feed).

Constructing a workspace from the seeds is the only "load"; there is no
save. Each test builds its own.
"""
import copy
import logging
from datetime import date, datetime
from typing import Callable, Dict, List, Optional

from . import seed
from .access import AccessPolicy
from .assistant import DeskAssistant
from .calendar_view import CalendarCursor
from .events import EventBus
from .generator import TextGenerator
from .ideas import IdeaBank
from .notifications import NotificationFeed
from .registry import Registry
from .schema import SOP, AppUser, NotFoundError, utc_now
from .sops import SOPLibrary
from .store import TaskStore
from .views import KanbanBoard

logger = logging.getLogger(__name__)

VIEWS = ("dashboard", "tasks", "ideas", "sops", "settings")


class Workspace:
    """Wires the desk's components around one event bus and one registry."""

    def __init__(
        self,
        registry: Registry,
        users: List[AppUser],
        current_user: str = "u1",
        generator: Optional[TextGenerator] = None,
        clock: Optional[Callable[[], date]] = None,
        now: Callable[[], datetime] = utc_now,
    ):
        clock = clock or date.today
        self.registry = registry
        self.policy: AccessPolicy = registry.policy
        self.bus = EventBus()
        self.users: Dict[str, AppUser] = {u.id: u for u in users}
        self.current_user = self.get_user(current_user)
        self.active_view = "dashboard"

        self.store = TaskStore(registry, bus=self.bus, policy=self.policy, clock=clock)
        self.ideas = IdeaBank(self.store, registry, bus=self.bus)
        self.sops = SOPLibrary(registry, policy=self.policy, clock=clock)
        self.feed = NotificationFeed(clock=now)
        self.board = KanbanBoard(self.store, bus=self.bus)
        self.calendar = CalendarCursor(clock=clock)
        self.assistant = DeskAssistant(generator)

        self.bus.subscribe("notify", self.feed.add)
        self.bus.subscribe("idea_promoted", self._on_idea_promoted)

    @classmethod
    def from_seed(
        cls,
        generator: Optional[TextGenerator] = None,
        clock: Optional[Callable[[], date]] = None,
        current_user: str = "u1",
        now: Callable[[], datetime] = utc_now,
    ) -> "Workspace":
        """A fresh workspace holding the static seed records."""
        registry = Registry(
            entities=copy.deepcopy(seed.ENTITIES),
            team_members=[u.name for u in seed.USERS],
            default_projects=dict(seed.DEFAULT_PROJECTS),
        )
        ws = cls(registry, copy.deepcopy(seed.USERS), current_user=current_user,
                 generator=generator, clock=clock, now=now)
        for project in seed.PROJECTS:
            ws.store.add_project(project)
        for task in seed.TASKS:
            ws.store.create_task(task)
        for idea in seed.IDEAS:
            ws.ideas.add_idea(idea)
        ws.sops.load([SOP.from_dict(s) for s in seed.SOPS])
        for text, kind, created_at in seed.notifications(now()):
            ws.feed.add(text, kind, created_at=created_at)
        logger.info(
            f"Seeded workspace: {len(ws.store.list_projects())} projects, "
            f"{len(ws.store.list_tasks())} tasks, {len(ws.ideas.list_ideas())} ideas"
        )
        return ws

    def get_user(self, user_id: str) -> AppUser:
        user = self.users.get(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    def set_view(self, view: str) -> str:
        if view not in VIEWS:
            raise ValueError(f"Unknown view {view!r}; expected one of {VIEWS}")
        self.active_view = view
        return view

    def _on_idea_promoted(self, idea, task) -> None:
        self.set_view("tasks")

    def insights(self, entity_id: str) -> str:
        """Executive summary for one entity's projects and tasks."""
        entity = self.registry.get_entity(entity_id)
        projects = self.store.list_projects(entity_id)
        project_ids = {p.id for p in projects}
        tasks = [t for t in self.store.list_tasks() if t.project_id in project_ids]
        return self.assistant.analyze(entity, projects, tasks)

    def suggest_tasks(self, project_id: str) -> List[Dict]:
        project = self.store.get_project(project_id)
        return self.assistant.suggest_tasks(project.name, project.description)
