"""Shared fixtures: a freshly seeded workspace on a fixed clock."""

from datetime import date, datetime, timezone

import pytest

from opsdesk.generator import TextGenerator
from opsdesk.workspace import Workspace

TODAY = date(2024, 5, 17)
NOW = datetime(2024, 5, 17, 9, 0, tzinfo=timezone.utc)


class FakeGenerator(TextGenerator):
    """Returns a canned response (or raises) and records every call."""

    def __init__(self, response="", error=None):
        self.response = response
        self.error = error
        self.calls = []

    def generate(self, prompt, **options):
        self.calls.append((prompt, options))
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def generator():
    return FakeGenerator("Executive summary: keep shipping.")


@pytest.fixture
def workspace(generator):
    return Workspace.from_seed(generator=generator, clock=lambda: TODAY, now=lambda: NOW)


@pytest.fixture
def store(workspace):
    return workspace.store


@pytest.fixture
def admin(workspace):
    return workspace.get_user("u1")


@pytest.fixture
def member(workspace):
    return workspace.get_user("u2")


@pytest.fixture
def viewer(workspace):
    return workspace.get_user("u4")
