"""
Configuration registry: entities, team roster and RMI focus metadata.

Owned by a Workspace and passed to the components that need it; there is
no module-level instance.
"""
import logging
from typing import Dict, List, Optional

from .access import AccessPolicy
from .schema import AppUser, Entity, FocusMeta, NotFoundError, RMIFocus

logger = logging.getLogger(__name__)


def default_focus_meta() -> Dict[RMIFocus, FocusMeta]:
    return {
        RMIFocus.REACT: FocusMeta("rose", "⚡", "Reactive", "Critical Firefighting & Patches"),
        RMIFocus.MAINTAIN: FocusMeta("indigo", "🛡️", "Maintain", "Core Scalability & Compliance"),
        RMIFocus.IMPROVISE: FocusMeta("amber", "🚀", "Improvise", "Innovative Feature Prototypes"),
    }


class Registry:
    """User-editable categorical metadata."""

    def __init__(
        self,
        entities: List[Entity],
        team_members: List[str],
        focus_meta: Optional[Dict[RMIFocus, FocusMeta]] = None,
        default_projects: Optional[Dict[str, str]] = None,
        policy: Optional[AccessPolicy] = None,
    ):
        self.entities = list(entities)
        self.team_members = list(team_members)
        self.focus_meta = self._validate_focus(focus_meta or default_focus_meta())
        # entity_id -> project_id that receives promoted ideas
        self.default_projects = dict(default_projects or {})
        self.policy = policy or AccessPolicy()

    @staticmethod
    def _validate_focus(meta: Dict[RMIFocus, FocusMeta]) -> Dict[RMIFocus, FocusMeta]:
        normalized = {RMIFocus.from_str(k): v for k, v in meta.items()}
        if set(normalized) != set(RMIFocus) or len(meta) != len(RMIFocus):
            raise ValueError(
                f"Focus metadata must hold exactly {[f.value for f in RMIFocus]}, "
                f"got {[getattr(k, 'value', k) for k in meta]}"
            )
        return normalized

    # ── Entities ─────────────────────────────────────────────

    def find_entity(self, entity_id: str) -> Optional[Entity]:
        for entity in self.entities:
            if entity.id == entity_id:
                return entity
        return None

    def get_entity(self, entity_id: str) -> Entity:
        entity = self.find_entity(entity_id)
        if entity is None:
            raise NotFoundError(f"Entity {entity_id} not found")
        return entity

    def update_entity(
        self,
        entity_id: str,
        name: Optional[str] = None,
        icon: Optional[str] = None,
        color: Optional[str] = None,
        actor: Optional[AppUser] = None,
    ) -> Entity:
        """Edit display fields in place. No uniqueness check."""
        self.policy.check(actor, "edit entities")
        entity = self.get_entity(entity_id)
        if name is not None:
            entity.name = name
        if icon is not None:
            entity.icon = icon
        if color is not None:
            entity.color = color
        return entity

    def default_project_for(self, entity_id: str) -> Optional[str]:
        return self.default_projects.get(entity_id)

    # ── Team roster ──────────────────────────────────────────

    def add_member(self, name: str, actor: Optional[AppUser] = None) -> bool:
        """Add a member by name. Returns False for blanks and duplicates."""
        self.policy.check(actor, "edit the team")
        name = (name or "").strip()
        if not name or name in self.team_members:
            return False
        self.team_members.append(name)
        return True

    def remove_member(self, name: str, actor: Optional[AppUser] = None) -> bool:
        """
        Remove a member by exact name.

        Tasks assigned to that name keep it; assignee is a plain string.
        """
        self.policy.check(actor, "edit the team")
        if name not in self.team_members:
            return False
        self.team_members = [m for m in self.team_members if m != name]
        logger.info(f"Removed team member {name!r}; existing assignments are left as-is")
        return True

    # ── RMI focus metadata ───────────────────────────────────

    def focus(self, tag) -> FocusMeta:
        return self.focus_meta[RMIFocus.from_str(tag)]

    def update_focus(
        self,
        tag,
        label: Optional[str] = None,
        description: Optional[str] = None,
        color: Optional[str] = None,
        icon: Optional[str] = None,
        actor: Optional[AppUser] = None,
    ) -> FocusMeta:
        self.policy.check(actor, "edit focus categories")
        meta = self.focus(tag)
        if label is not None:
            meta.label = label
        if description is not None:
            meta.description = description
        if color is not None:
            meta.color = color
        if icon is not None:
            meta.icon = icon
        return meta

    def to_dict(self) -> Dict:
        return {
            "entities": [e.to_dict() for e in self.entities],
            "team_members": list(self.team_members),
            "focus": {tag.value: meta.to_dict() for tag, meta in self.focus_meta.items()},
            "default_projects": dict(self.default_projects),
        }
