"""
Static seed records. Every new Workspace starts from these.
"""
from datetime import datetime, timedelta
from typing import Any, Dict, List, Tuple

from .schema import AppUser, Entity, UserRole

ENTITIES = [
    Entity(id="c1", name="Maktune Technologies", color="indigo", icon="🚀"),
    Entity(id="c2", name="DE", color="cyan", icon="🛡️"),
]

USERS = [
    AppUser(id="u1", name="Dilip Kumar", role=UserRole.ADMIN),
    AppUser(id="u2", name="Sarah Chen", role=UserRole.MEMBER),
    AppUser(id="u3", name="Mark Sloan", role=UserRole.MEMBER),
    AppUser(id="u4", name="Jordan Lee", role=UserRole.VIEWER),
]

# Which project receives ideas promoted from each entity
DEFAULT_PROJECTS = {"c1": "p1", "c2": "p2"}

SOPS: List[Dict[str, Any]] = [
    {
        "id": "sop1",
        "entity_id": "c2",
        "title": "BOM Preparation Protocol",
        "description": "Standard procedure for preparing Bill of Materials for new injection molds.",
        "content": (
            "1. List all raw plastic granules required. 2. Define hardware components "
            "(screws, bushings). 3. Calculate gross weight vs net weight for wastage. "
            "4. Sign off by Floor Manager."
        ),
        "focus": "Maintain",
        "last_updated": "2024-05-12",
        "status": "Active",
    },
    {
        "id": "sop2",
        "entity_id": "c1",
        "title": "Amazon Listing Optimization",
        "description": "Checklist for maintaining high-conversion B2C chair part listings.",
        "content": (
            "1. Check Keyword density in titles. 2. Verify A+ content rendering. "
            "3. Monitor daily buy-box percentage. 4. Respond to customer queries within 4 hours."
        ),
        "focus": "Maintain",
        "last_updated": "2024-05-14",
        "status": "Active",
    },
]

PROJECTS: List[Dict[str, Any]] = [
    {
        "id": "p1",
        "entity_id": "c1",
        "name": "Amazon B2C Scaling",
        "description": "Expanding office chair part sales from Amazon India to Global markets.",
        "status": "Active",
        "progress": 45,
        "start_date": "2024-03-01",
        "end_date": "2024-09-30",
    },
    {
        "id": "p2",
        "entity_id": "c2",
        "name": "DE Lead Generation Phase 1",
        "description": "Targeting major furniture manufacturers for bulk office chair part supply.",
        "status": "Active",
        "progress": 30,
        "start_date": "2024-04-15",
        "end_date": "2024-12-01",
    },
    {
        "id": "p3",
        "entity_id": "c1",
        "name": "3D Printed Accessory Line",
        "description": "R&D for small ergonomic add-ons using the personal 3D printer.",
        "status": "Planning",
        "progress": 15,
        "start_date": "2024-05-01",
        "end_date": "2024-08-01",
    },
]

TASKS: List[Dict[str, Any]] = [
    {
        "id": "t1",
        "project_id": "p2",
        "title": "Dispatch: 2000 Units Lumbar Support",
        "description": "Urgent dispatch for the Chennai client. Check QC before packing.",
        "due_date": "2024-05-16",
        "priority": "High",
        "status": "In Progress",
        "focus": "React",
        "assignee": "Dilip Kumar",
    },
    {
        "id": "t2",
        "project_id": "p1",
        "title": "Weekly Amazon Keyword Audit",
        "description": "Reviewing search terms for chair wheels listing to optimize ad spend.",
        "due_date": "2024-05-20",
        "priority": "Medium",
        "status": "To Do",
        "focus": "Maintain",
        "assignee": "Sarah Chen",
        "sop_id": "sop2",
        "is_recurring": True,
        "recurring_interval": "Weekly",
    },
    {
        "id": "t3",
        "project_id": "p3",
        "title": "3D Prototype: Cable Management Clip",
        "description": "Print v1 of the ergonomic desk cable clip for Maktune store.",
        "due_date": "2024-05-18",
        "priority": "Low",
        "status": "To Do",
        "focus": "Improvise",
        "assignee": "Dilip Kumar",
    },
]

IDEAS: List[Dict[str, Any]] = [
    {
        "id": "i1",
        "entity_id": "c2",
        "title": "New Mold: Ergonomic Headrest",
        "description": "Designing a universal headrest attachment for standard office chairs.",
        "impact": 9,
        "confidence": 7,
        "ease": 4,
        "status": "Validating",
    },
    {
        "id": "i2",
        "entity_id": "c1",
        "title": "Subscription Model for B2B Spares",
        "description": "Monthly supply of wheels and gas lifts to co-working spaces.",
        "impact": 7,
        "confidence": 5,
        "ease": 6,
        "status": "Backlog",
    },
]


def notifications(now: datetime) -> List[Tuple[str, str, datetime]]:
    """(text, type, created_at) for the initial feed, oldest first."""
    return [
        ('Sarah Chen completed "Isolate encoding bug"', "update", now - timedelta(hours=1)),
        ('Mark Sloan mentioned you in "Atmos Metadata Fix"', "mention", now - timedelta(minutes=10)),
    ]
