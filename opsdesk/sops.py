"""
SOP library: standard operating procedures per entity.

Every save stamps last_updated with today's date. Drafting new content is
delegated to the assistant; a failed draft leaves the form untouched.
"""
import dataclasses
import logging
from datetime import date
from typing import Any, Callable, List, Mapping, Optional, Tuple

from .access import AccessPolicy
from .registry import Registry
from .schema import SOP, AppUser, NotFoundError, RMIFocus, SOPStatus, make_id
from .store import merge_defaults

logger = logging.getLogger(__name__)

DRAFT_FAILED = "AI failed to generate draft."
TITLE_REQUIRED = "Enter a title first"


class SOPLibrary:

    def __init__(self, registry: Registry, policy: Optional[AccessPolicy] = None,
                 clock: Callable[[], date] = date.today):
        self.registry = registry
        self.policy = policy or registry.policy
        self.clock = clock
        self._sops: List[SOP] = []

    def add_sop(self, partial: Mapping[str, Any], actor: Optional[AppUser] = None) -> SOP:
        self.policy.check(actor, "add procedures")
        first_entity = self.registry.entities[0].id if self.registry.entities else ""
        data = merge_defaults(partial, {
            "id": make_id("sop"),
            "entity_id": first_entity,
            "title": "Standard Process",
            "description": "",
            "content": "",
            "focus": RMIFocus.MAINTAIN.value,
            "status": SOPStatus.DRAFT.value,
        })
        data["last_updated"] = self.clock().isoformat()
        sop = SOP.from_dict(data)
        self._sops.append(sop)
        logger.info(f"Added SOP {sop.id}: {sop.title!r}")
        return sop

    def update_sop(self, sop: SOP, actor: Optional[AppUser] = None) -> SOP:
        """Full-record replace by id, re-stamping last_updated."""
        self.policy.check(actor, "edit procedures")
        stamped = dataclasses.replace(sop, last_updated=self.clock().isoformat())
        for index, existing in enumerate(self._sops):
            if existing.id == sop.id:
                self._sops[index] = stamped
                return stamped
        raise NotFoundError(f"SOP {sop.id} not found")

    def load(self, sops: List[SOP]) -> None:
        """Install seed records as-is (their dates are kept)."""
        self._sops.extend(sops)

    def find_sop(self, sop_id: str) -> Optional[SOP]:
        for sop in self._sops:
            if sop.id == sop_id:
                return sop
        return None

    def get_sop(self, sop_id: str) -> SOP:
        sop = self.find_sop(sop_id)
        if sop is None:
            raise NotFoundError(f"SOP {sop_id} not found")
        return sop

    def list_sops(self, entity_id: Optional[str] = None) -> List[SOP]:
        if entity_id is None:
            return list(self._sops)
        return [s for s in self._sops if s.entity_id == entity_id]

    def generate_draft(self, title: str, description: str, assistant) -> Tuple[Optional[str], str]:
        """
        Ask the assistant for procedure content.

        Returns (content, message); content is None when nothing was generated.
        """
        if not (title or "").strip():
            return None, TITLE_REQUIRED
        draft = assistant.draft_sop(title, description or "")
        if draft is None:
            return None, DRAFT_FAILED
        return draft, "Draft generated"
