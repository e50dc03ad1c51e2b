# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false

"""
Shared test setup.

The SQLAlchemy engine is replaced with a MagicMock before anything imports
entrystack.core.database, so no test needs a live PostgreSQL.
"""
import itertools
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional
from unittest.mock import MagicMock, patch

import pytest

# ── Mock DB before import ────────────────────────────────────────────────
_mock_engine = MagicMock()
with patch("sqlalchemy.create_engine", return_value=_mock_engine):
    import entrystack.core.database  # noqa: F401

from entrystack.models.domain import (  # noqa: E402
    Event, EventSummary, Member, Org, RSVP, Sponsor, VolunteerTask,
)

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)

_ids = itertools.count(1000)


def make_member(**kw) -> Member:
    mid = kw.pop("id", next(_ids))
    defaults = dict(id=mid, full_name=f"Member {mid}", email=f"member{mid}@example.org",
                    role="volunteer", org_id=1)
    defaults.update(kw)
    return Member(**defaults)


def make_task(**kw) -> VolunteerTask:
    defaults = dict(id=next(_ids), title="Task", status="To Do", priority=None,
                    due_at=None, event_id=1, assignee_member_id=None)
    defaults.update(kw)
    if defaults.get("assignee") is not None and defaults["assignee_member_id"] is None:
        defaults["assignee_member_id"] = defaults["assignee"].id
    return VolunteerTask(**defaults)


def make_rsvps(event_id: int, confirmed: int = 0, declined: int = 0,
               pending: int = 0) -> List[RSVP]:
    rsvps = []
    for status, count in (("CONFIRMED", confirmed), ("DECLINED", declined),
                          ("PENDING", pending)):
        for _ in range(count):
            rsvps.append(RSVP(id=next(_ids), event_id=event_id,
                              member_id=next(_ids), status=status))
    return rsvps


def make_event(**kw) -> Event:
    defaults = dict(
        id=1,
        title="Spring Gala",
        starts_at=NOW + timedelta(days=30),
        ends_at=NOW + timedelta(days=30, hours=4),
        location="Town Hall",
        capacity=None,
        status="Planned",
        org_id=1,
        org=Org(id=1, name="Riverside Arts Collective", sponsors=[
            Sponsor(id=1, org_id=1, name="Acme Corp", tier="Gold", stage="Committed",
                    pledged=5000.0, received=2500.0),
        ]),
    )
    defaults.update(kw)
    return Event(**defaults)


class InMemoryEventRepository:
    """Stand-in for EventRepository backed by plain dicts."""

    def __init__(self, events: Optional[List[Event]] = None,
                 members: Optional[List[Member]] = None):
        self.events: Dict[int, Event] = {e.id: e for e in events or []}
        self.members: Dict[int, Member] = {m.id: m for m in members or []}
        self.calls: List[str] = []
        self.fail_with: Optional[Exception] = None

    def _record(self, name: str):
        self.calls.append(name)
        if self.fail_with is not None:
            raise self.fail_with

    def get_event_with_relations(self, event_id: int) -> Optional[Event]:
        self._record("get_event_with_relations")
        event = self.events.get(event_id)
        return event.model_copy(deep=True) if event else None

    def get_all_events_with_relations(self) -> List[Event]:
        self._record("get_all_events_with_relations")
        return [e.model_copy(deep=True) for e in self.events.values()]

    def get_task_with_relations(self, task_id: int) -> Optional[VolunteerTask]:
        self._record("get_task_with_relations")
        for event in self.events.values():
            for task in event.volunteer_tasks:
                if task.id == task_id:
                    found = task.model_copy(deep=True)
                    found.event = EventSummary(**event.model_dump(
                        include=set(EventSummary.model_fields)))
                    return found
        return None

    def list_incomplete_tasks_for_event(self, event_id: int) -> List[VolunteerTask]:
        self._record("list_incomplete_tasks_for_event")
        event = self.events.get(event_id)
        if event is None:
            return []
        return [t.model_copy(deep=True) for t in event.volunteer_tasks if not t.is_completed]

    def get_member(self, member_id: int) -> Optional[Member]:
        self._record("get_member")
        return self.members.get(member_id)

    def verify_connection(self):
        self._record("verify_connection")

    def dispose(self):
        pass


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock():
    return lambda: NOW
