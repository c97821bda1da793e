"""Tests for the calendar month grid and cursor."""

from datetime import date

import pytest

from opsdesk.calendar_view import GRID_CELLS, CalendarCursor, day_key, month_grid


@pytest.mark.parametrize("year,month", [
    (2024, 5), (2024, 2), (2023, 2), (2015, 2), (2026, 8), (2024, 12),
])
def test_grid_is_always_42_cells(year, month):
    assert len(month_grid([], year, month)) == GRID_CELLS == 42


def test_may_2024_starts_on_wednesday():
    cells = month_grid([], 2024, 5)
    assert [c.day for c in cells[:4]] == [None, None, None, 1]
    assert cells[3 + 30].day == 31
    assert all(not c.in_month for c in cells[34:])


def test_february_2015_starts_in_first_cell():
    cells = month_grid([], 2015, 2)
    assert cells[0].day == 1
    assert cells[27].day == 28
    assert cells[28].day is None


def test_task_appears_only_on_its_due_day(store):
    cells = month_grid(store.list_tasks(), 2024, 5)
    hits = [c for c in cells if any(i.id == "t3" for i in c.items)]
    assert len(hits) == 1
    assert hits[0].day == 18


def test_task_absent_from_other_months(store):
    cells = month_grid(store.list_tasks(), 2024, 6)
    assert all(c.items == [] for c in cells)


def test_subtasks_listed_after_tasks_and_open_parent(store):
    store.add_subtask("t1", {"title": "Pack crates", "due_date": "2024-05-18"})
    cell = next(c for c in month_grid(store.list_tasks(), 2024, 5) if c.day == 18)
    assert [i.kind for i in cell.items] == ["task", "subtask"]
    sub_item = cell.items[1]
    assert sub_item.title == "Pack crates"
    assert sub_item.open_target.id == "t1"
    assert sub_item.to_dict()["task_id"] == "t1"


def test_day_key_is_zero_padded():
    assert day_key(2024, 5, 7) == "2024-05-07"


class TestCalendarCursor:

    def setup_method(self):
        self.cursor = CalendarCursor(clock=lambda: date(2024, 5, 17))

    def test_starts_on_current_month(self):
        assert (self.cursor.year, self.cursor.month) == (2024, 5)
        assert self.cursor.title == "May 2024"

    def test_previous_wraps_year(self):
        self.cursor.month = 1
        self.cursor.previous()
        assert (self.cursor.year, self.cursor.month) == (2023, 12)

    def test_next_wraps_year(self):
        self.cursor.month = 12
        self.cursor.next()
        assert (self.cursor.year, self.cursor.month) == (2025, 1)

    def test_today_returns_to_clock_month(self):
        self.cursor.next().next()
        self.cursor.today()
        assert self.cursor.title == "May 2024"

    def test_show_jumps_to_month(self):
        assert self.cursor.show(2025, 2).title == "February 2025"

    @pytest.mark.parametrize("year,month", [(2024, 13), (2024, 0), (0, 5)])
    def test_show_rejects_invalid_month(self, year, month):
        with pytest.raises(ValueError):
            self.cursor.show(year, month)
        assert self.cursor.title == "May 2024"
