"""
Role enforcement at the store boundary.

- Admin / Member: may mutate tasks, ideas, SOPs and configuration
- Viewer: read-only; every mutation entry point rejects it

A missing actor (None) is system code (seeding, internal wiring) and is
always allowed.
"""
import logging
from typing import Optional

from .schema import AppUser, UserRole

logger = logging.getLogger(__name__)


class RoleViolation(Exception):
    """Raised when a user's role does not allow the attempted mutation."""
    pass


class AccessPolicy:
    """Checks the acting user's role before any state change."""

    def __init__(self, read_only_roles=(UserRole.VIEWER,)):
        self.read_only_roles = set(read_only_roles)

    def can_mutate(self, actor: Optional[AppUser]) -> bool:
        return actor is None or actor.role not in self.read_only_roles

    def check(self, actor: Optional[AppUser], action: str) -> None:
        """
        Raise RoleViolation if the actor may not perform `action`.
        """
        if self.can_mutate(actor):
            return
        logger.warning(f"Rejected {action} by {actor.name} ({actor.role.value})")
        raise RoleViolation(
            f"{actor.name} has the {actor.role.value} role and cannot {action}."
        )
