"""
Idea bank: ICE-scored backlog and promotion of ideas to tasks.

ICE = impact × confidence × ease, each rated 1-10. The score is a property
of the idea, so it always reflects the current ratings.
"""
import dataclasses
import logging
from typing import Any, List, Mapping, Optional

from .events import EventBus
from .registry import Registry
from .schema import (
    AppUser, Idea, IdeaStatus, NotFoundError, Priority, RMIFocus, Task, make_id,
)
from .store import TaskStore, merge_defaults

logger = logging.getLogger(__name__)


class PromotionError(Exception):
    """Raised when an idea cannot be turned into a task."""
    pass


def rank(ideas: List[Idea]) -> List[Idea]:
    """
    Highest ICE score first.

    sorted() is stable, so ideas with equal scores keep their input order.
    """
    return sorted(ideas, key=lambda idea: -idea.ice_score)


class IdeaBank:
    """Owns the idea list for one workspace."""

    def __init__(self, store: TaskStore, registry: Registry, bus: Optional[EventBus] = None):
        self.store = store
        self.registry = registry
        self.bus = bus or store.bus
        self.policy = store.policy
        self._ideas: List[Idea] = []

    def add_idea(self, partial: Mapping[str, Any], actor: Optional[AppUser] = None) -> Idea:
        self.policy.check(actor, "add ideas")
        first_entity = self.registry.entities[0].id if self.registry.entities else ""
        data = merge_defaults(partial, {
            "id": make_id("i"),
            "entity_id": first_entity,
            "title": "New Concept",
            "description": "",
            "impact": 5,
            "confidence": 5,
            "ease": 5,
            "status": IdeaStatus.BACKLOG.value,
        })
        idea = Idea.from_dict(data)
        self._ideas.append(idea)
        logger.info(f"Added idea {idea.id}: {idea.title!r} (ICE {idea.ice_score})")
        return idea

    def update_idea(self, idea: Idea, actor: Optional[AppUser] = None) -> Idea:
        """Full-record replace by id."""
        self.policy.check(actor, "edit ideas")
        for index, existing in enumerate(self._ideas):
            if existing.id == idea.id:
                self._ideas[index] = idea
                return idea
        raise NotFoundError(f"Idea {idea.id} not found")

    def find_idea(self, idea_id: str) -> Optional[Idea]:
        for idea in self._ideas:
            if idea.id == idea_id:
                return idea
        return None

    def get_idea(self, idea_id: str) -> Idea:
        idea = self.find_idea(idea_id)
        if idea is None:
            raise NotFoundError(f"Idea {idea_id} not found")
        return idea

    def list_ideas(self) -> List[Idea]:
        return list(self._ideas)

    def rank(self) -> List[Idea]:
        return rank(self._ideas)

    def top(self, n: int = 4) -> List[Idea]:
        return self.rank()[:n]

    def target_project(self, entity_id: str) -> str:
        """Configured project for the entity, else its first project."""
        project_id = self.registry.default_project_for(entity_id)
        if project_id and self.store.find_project(project_id):
            return project_id
        owned = self.store.list_projects(entity_id)
        if owned:
            return owned[0].id
        raise PromotionError(f"Entity {entity_id} has no project to receive promoted ideas")

    def promote(self, idea_id: str, focus: RMIFocus, actor: Optional[AppUser] = None) -> Task:
        """
        Turn an idea into a Medium-priority task and mark it Promoted.

        An idea is promoted at most once; a second attempt raises PromotionError.
        The idea record is kept.
        """
        self.policy.check(actor, "promote ideas")
        idea = self.get_idea(idea_id)
        if idea.status == IdeaStatus.PROMOTED:
            raise PromotionError(f"Idea {idea_id} was already promoted")

        task = self.store.create_task({
            "title": idea.title,
            "description": idea.description,
            "focus": RMIFocus.from_str(focus),
            "project_id": self.target_project(idea.entity_id),
            "priority": Priority.MEDIUM,
        }, actor=actor)
        promoted = dataclasses.replace(idea, status=IdeaStatus.PROMOTED)
        self.update_idea(promoted, actor=actor)
        logger.info(f"Promoted idea {idea_id} to task {task.id}")
        self.bus.emit("idea_promoted", idea=promoted, task=task)
        return task
