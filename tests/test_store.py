"""
Tests for the task store: defaults, replace-by-id edits, sub-records,
recurrence and role enforcement.
"""

from datetime import date

import pytest

from opsdesk.access import RoleViolation
from opsdesk.schema import (
    NotFoundError, Priority, ProjectStatus, RecurringInterval, RMIFocus,
    Status, Task, UNASSIGNED,
)
from opsdesk.store import advance_due_date, merge_defaults


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# merge_defaults
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestMergeDefaults:

    def setup_method(self):
        self.defaults = {"title": "New Objective", "is_recurring": False, "subtasks": [], "sop_id": None}

    def test_absent_key_takes_default(self):
        assert merge_defaults({}, self.defaults)["title"] == "New Objective"

    def test_none_takes_default(self):
        assert merge_defaults({"title": None}, self.defaults)["title"] == "New Objective"

    def test_falsy_values_win(self):
        merged = merge_defaults({"title": "", "is_recurring": False, "subtasks": []}, self.defaults)
        assert merged["title"] == ""
        assert merged["is_recurring"] is False
        assert merged["subtasks"] == []

    def test_explicit_value_wins(self):
        assert merge_defaults({"sop_id": "sop1"}, self.defaults)["sop_id"] == "sop1"

    def test_unknown_keys_carried_through(self):
        assert merge_defaults({"extra": 1}, self.defaults)["extra"] == 1


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Tasks
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_seeded_tasks_in_insertion_order(store):
    assert [t.id for t in store.list_tasks()] == ["t1", "t2", "t3"]


def test_create_task_fills_defaults(store):
    task = store.create_task({})
    assert task.title == "New Objective"
    assert task.due_date == "2024-05-17"
    assert task.priority == Priority.MEDIUM
    assert task.status == Status.TODO
    assert task.focus == RMIFocus.MAINTAIN
    assert task.assignee == UNASSIGNED
    assert task.project_id == "p1"
    assert task.subtasks == [] and task.comments == [] and task.attachments == []
    assert task.recurring_interval == RecurringInterval.NONE
    assert store.list_tasks()[-1] is task


def test_create_task_explicit_empty_title_is_kept(store):
    assert store.create_task({"title": ""}).title == ""


def test_create_then_read_back_matches_payload(store):
    payload = {
        "id": "t-roundtrip",
        "project_id": "p3",
        "title": "Print clip v2",
        "description": "Thicker walls",
        "due_date": "2024-06-01",
        "priority": "High",
        "status": "In Progress",
        "focus": "Improvise",
        "assignee": "Mark Sloan",
        "sop_id": "sop1",
        "subtasks": [{
            "id": "st-1",
            "title": "Slice model",
            "description": "",
            "due_date": "2024-05-30",
            "priority": "Low",
            "status": "Completed",
            "assignee": "Sarah Chen",
        }],
        "comments": [],
        "attachments": [{"id": "att-1", "name": "clip.stl", "type": "STL", "size": "12KB", "url": "#"}],
        "is_recurring": True,
        "recurring_interval": "Monthly",
    }
    store.create_task(payload)
    stored = store.get_task("t-roundtrip").to_dict()
    for key, value in payload.items():
        assert stored[key] == value, key


def test_create_task_emits_event(store):
    created = []
    store.bus.subscribe("task_created", lambda task: created.append(task.id))
    task = store.create_task({"title": "Ping"})
    assert created == [task.id]


def test_update_task_replaces_whole_record(store):
    before = store.get_task("t3")
    replacement = Task(id="t3", project_id="p3", title="Renamed")
    store.update_task(replacement)
    stored = store.get_task("t3")
    assert stored.title == "Renamed"
    assert stored.description == ""
    assert stored.assignee == UNASSIGNED
    assert before.description != ""


def test_update_unknown_task_raises(store):
    with pytest.raises(NotFoundError):
        store.update_task(Task(id="missing", project_id="p1", title="x"))


def test_lookup_miss_is_explicit(store):
    assert store.find_task("missing") is None
    with pytest.raises(NotFoundError):
        store.get_task("missing")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Projects and entities
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_add_project_defaults(store):
    project = store.add_project({"entity_id": "c2"})
    assert project.name == "New Initiative"
    assert project.status == ProjectStatus.PLANNING
    assert project.progress == 0
    assert project.start_date == project.end_date == "2024-05-17"
    assert project in store.list_projects("c2")


def test_list_projects_by_entity(store):
    assert [p.id for p in store.list_projects("c1")] == ["p1", "p3"]
    assert [p.id for p in store.list_projects("c2")] == ["p2"]


def test_entity_resolved_through_project(store):
    assert store.entity_for_task(store.get_task("t1")).id == "c2"
    assert store.entity_for_task(store.get_task("t3")).id == "c1"


def test_entity_for_dangling_project_is_none(store):
    orphan = store.create_task({"project_id": "p-gone"})
    assert store.entity_for_task(orphan) is None


def test_get_unknown_project_raises(store):
    with pytest.raises(NotFoundError):
        store.get_project("p-gone")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Sub-records
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestSubtasks:

    def test_add_subtask_defaults(self, store):
        sub = store.add_subtask("t1", {"title": "QC check"})
        assert sub.title == "QC check"
        assert sub.due_date == "2024-05-16"
        assert sub.assignee == "Dilip Kumar"
        assert sub.status == Status.TODO
        assert store.get_task("t1").subtasks == [sub]

    def test_toggle_subtask_flips_completion(self, store):
        a = store.add_subtask("t1", {"title": "a"})
        store.add_subtask("t1", {"title": "b"})
        assert store.get_task("t1").progress == 0

        assert store.toggle_subtask("t1", a.id).status == Status.COMPLETED
        assert store.get_task("t1").progress == 50

        assert store.toggle_subtask("t1", a.id).status == Status.TODO
        assert store.get_task("t1").progress == 0

    def test_update_subtask_fields(self, store):
        sub = store.add_subtask("t2", {"title": "draft"})
        updated = store.update_subtask("t2", sub.id, title="final", priority="High")
        assert updated.id == sub.id
        assert updated.title == "final"
        assert updated.priority == Priority.HIGH

    def test_remove_subtask(self, store):
        sub = store.add_subtask("t2", {"title": "x"})
        store.remove_subtask("t2", sub.id)
        assert store.get_task("t2").subtasks == []

    def test_unknown_subtask_raises(self, store):
        with pytest.raises(NotFoundError):
            store.toggle_subtask("t2", "st-missing")


def test_add_comment_records_author(store, member):
    comment = store.add_comment("t2", member, "Keywords refreshed")
    assert comment.author_id == "u2"
    assert comment.author_name == "Sarah Chen"
    assert store.get_task("t2").comments == [comment]


def test_blank_comment_is_ignored(store, member):
    assert store.add_comment("t2", member, "   ") is None
    assert store.get_task("t2").comments == []


def test_add_attachment_metadata(store):
    att = store.add_attachment("t3", "clip-v1.stl", 40960)
    assert att.type == "STL"
    assert att.size == "40KB"
    assert store.get_task("t3").attachments == [att]
    assert store.add_attachment("t3", "") is None


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Recurrence
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@pytest.mark.parametrize("due,interval,expected", [
    ("2024-05-20", RecurringInterval.DAILY, "2024-05-21"),
    ("2024-05-20", RecurringInterval.WEEKLY, "2024-05-27"),
    ("2024-01-31", RecurringInterval.MONTHLY, "2024-02-29"),
    ("2024-11-30", RecurringInterval.QUARTERLY, "2025-02-28"),
    ("2024-12-15", RecurringInterval.MONTHLY, "2025-01-15"),
])
def test_advance_due_date(due, interval, expected):
    assert advance_due_date(due, interval) == expected


def test_spawn_next_occurrence(store):
    store.add_subtask("t2", {"title": "Pull search terms", "status": "Completed"})
    nxt = store.spawn_next_occurrence("t2")

    assert nxt.id != "t2"
    assert nxt.title == "Weekly Amazon Keyword Audit"
    assert nxt.due_date == "2024-05-27"
    assert nxt.status == Status.TODO
    assert nxt.is_recurring and nxt.recurring_interval == RecurringInterval.WEEKLY
    assert [s.status for s in nxt.subtasks] == [Status.TODO]
    assert store.get_task("t2").due_date == "2024-05-20"


def test_advance_unparsable_due_date_uses_fallback():
    assert advance_due_date("2024/05/20", RecurringInterval.WEEKLY, fallback=date(2024, 5, 17)) == "2024-05-24"


def test_spawn_with_malformed_due_date_starts_from_today(store):
    task = store.create_task({"title": "Restock", "due_date": "2024/05/20",
                              "is_recurring": True, "recurring_interval": "Daily"})
    assert store.spawn_next_occurrence(task.id).due_date == "2024-05-18"


def test_spawn_for_one_off_task_returns_none(store):
    assert store.spawn_next_occurrence("t1") is None
    assert len(store.list_tasks()) == 3


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Suggestions
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_import_suggestions_creates_tasks(store):
    created = store.import_suggestions("p2", [
        {"title": "Call distributors", "description": "Top 20", "priority": "High"},
        {"title": "Draft catalogue", "description": "", "priority": "Low"},
    ], focus=RMIFocus.IMPROVISE)
    assert [t.title for t in created] == ["Call distributors", "Draft catalogue"]
    assert all(t.project_id == "p2" and t.focus == RMIFocus.IMPROVISE for t in created)
    assert created[0].priority == Priority.HIGH


def test_import_suggestions_unknown_project(store):
    with pytest.raises(NotFoundError):
        store.import_suggestions("p-gone", [{"title": "x"}])


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Roles
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestViewerIsReadOnly:

    def test_create_rejected(self, store, viewer):
        with pytest.raises(RoleViolation):
            store.create_task({"title": "x"}, actor=viewer)
        assert len(store.list_tasks()) == 3

    def test_update_rejected(self, store, viewer):
        task = store.get_task("t1")
        with pytest.raises(RoleViolation):
            store.update_task(Task(id=task.id, project_id=task.project_id, title="hijack"), actor=viewer)
        assert store.get_task("t1").title == task.title

    def test_comment_rejected(self, store, viewer):
        with pytest.raises(RoleViolation):
            store.add_comment("t1", viewer, "hello")

    def test_subtask_rejected(self, store, viewer):
        with pytest.raises(RoleViolation):
            store.add_subtask("t1", {"title": "x"}, actor=viewer)

    def test_member_allowed(self, store, member):
        assert store.create_task({"title": "ok"}, actor=member).title == "ok"

    def test_reads_allowed(self, store, viewer):
        assert len(store.list_tasks()) == 3
