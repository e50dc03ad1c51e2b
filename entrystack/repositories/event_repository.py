# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Data-access layer for events, volunteer tasks, RSVPs, members and sponsors.

Reads the Prisma-managed schema (quoted PascalCase tables, camelCase
columns). Read-only: every write belongs to the CRUD service.
"""
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine

from entrystack.core.logging import get_logger
from entrystack.models.domain import (
    Event, EventSummary, Member, Org, RSVP, Sponsor, VolunteerTask,
)

logger = get_logger(__name__)

EVENT_COLS = (
    'e.id, e.title, e."startsAt", e."endsAt", e.location, e.capacity, '
    'e.status, e."orgId"'
)
TASK_COLS = (
    't.id, t.title, t.status, t.priority, t."dueAt", t."eventId", '
    't."assigneeMemberId"'
)
MEMBER_COLS = 'm.id, m."fullName", m.email, m.role, m."orgId"'

# Urgent first when sorting by priority descending; unset sorts last.
PRIORITY_RANK_SQL = (
    "CASE t.priority WHEN 'Urgent' THEN 4 WHEN 'High' THEN 3 "
    "WHEN 'Medium' THEN 2 WHEN 'Low' THEN 1 ELSE 0 END"
)


def _utc(value: Optional[datetime]) -> Optional[datetime]:
    """Prisma stores timestamp(3) without zone; values are UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _amount(value) -> Optional[float]:
    return float(value) if value is not None else None


def _event_from_row(row) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "title": row["title"],
        "starts_at": _utc(row["startsAt"]),
        "ends_at": _utc(row["endsAt"]),
        "location": row["location"],
        "capacity": row["capacity"],
        "status": row["status"],
        "org_id": row["orgId"],
    }


def _member_from_row(row, prefix: str = "") -> Optional[Member]:
    if row[f"{prefix}id"] is None:
        return None
    return Member(
        id=row[f"{prefix}id"],
        full_name=row[f"{prefix}fullName"],
        email=row[f"{prefix}email"],
        role=row[f"{prefix}role"],
        org_id=row[f"{prefix}orgId"],
    )


def _task_from_row(row) -> VolunteerTask:
    return VolunteerTask(
        id=row["id"],
        title=row["title"],
        status=row["status"],
        priority=row["priority"],
        due_at=_utc(row["dueAt"]),
        event_id=row["eventId"],
        assignee_member_id=row["assigneeMemberId"],
        assignee=_member_from_row(row, "a_") if "a_id" in row else None,
    )


def _rsvp_from_row(row) -> RSVP:
    return RSVP(
        id=row["id"],
        event_id=row["eventId"],
        member_id=row["memberId"],
        status=row["status"],
        checked_in=bool(row["checkedIn"]),
        member=_member_from_row(row, "m_") if "m_id" in row else None,
    )


class EventRepository:
    def __init__(self, engine: Engine):
        self._engine = engine

    # ── Events ─────────────────────────────────────────────────────────

    def get_event_with_relations(self, event_id: int) -> Optional[Event]:
        """Event with rsvps[member], volunteer tasks[assignee] and org[sponsors]."""
        with self._engine.connect() as conn:
            row = conn.execute(
                text(f'SELECT {EVENT_COLS} FROM "Event" e WHERE e.id = :id'),
                {"id": event_id},
            ).mappings().first()
            if not row:
                return None
            event = _event_from_row(row)

            rsvp_rows = conn.execute(
                text("""
                    SELECT r.id, r."eventId", r."memberId", r.status, r."checkedIn",
                           m.id AS "m_id", m."fullName" AS "m_fullName", m.email AS "m_email",
                           m.role AS "m_role", m."orgId" AS "m_orgId"
                    FROM "RSVP" r LEFT JOIN "Member" m ON m.id = r."memberId"
                    WHERE r."eventId" = :eid ORDER BY r.id
                """),
                {"eid": event_id},
            ).mappings().all()
            event["rsvps"] = [_rsvp_from_row(r) for r in rsvp_rows]

            task_rows = conn.execute(
                text(f"""
                    SELECT {TASK_COLS},
                           a.id AS "a_id", a."fullName" AS "a_fullName", a.email AS "a_email",
                           a.role AS "a_role", a."orgId" AS "a_orgId"
                    FROM "VolunteerTask" t LEFT JOIN "Member" a ON a.id = t."assigneeMemberId"
                    WHERE t."eventId" = :eid ORDER BY t.id
                """),
                {"eid": event_id},
            ).mappings().all()
            event["volunteer_tasks"] = [_task_from_row(t) for t in task_rows]

            event["org"] = self._load_org(conn, event["org_id"])
        return Event(**event)

    def get_all_events_with_relations(self) -> List[Event]:
        """Every event with its RSVPs and tasks; members and org are not joined."""
        with self._engine.connect() as conn:
            event_rows = conn.execute(
                text(f'SELECT {EVENT_COLS} FROM "Event" e ORDER BY e.id')
            ).mappings().all()
            rsvp_rows = conn.execute(
                text('SELECT r.id, r."eventId", r."memberId", r.status, r."checkedIn" FROM "RSVP" r')
            ).mappings().all()
            task_rows = conn.execute(
                text(f'SELECT {TASK_COLS} FROM "VolunteerTask" t ORDER BY t.id')
            ).mappings().all()

        rsvps_by_event: Dict[int, List[RSVP]] = defaultdict(list)
        for r in rsvp_rows:
            rsvps_by_event[r["eventId"]].append(_rsvp_from_row(r))
        tasks_by_event: Dict[int, List[VolunteerTask]] = defaultdict(list)
        for t in task_rows:
            tasks_by_event[t["eventId"]].append(_task_from_row(t))

        return [
            Event(
                **_event_from_row(e),
                rsvps=rsvps_by_event.get(e["id"], []),
                volunteer_tasks=tasks_by_event.get(e["id"], []),
            )
            for e in event_rows
        ]

    # ── Tasks ──────────────────────────────────────────────────────────

    def get_task_with_relations(self, task_id: int) -> Optional[VolunteerTask]:
        """Task with its parent event and assignee."""
        with self._engine.connect() as conn:
            row = conn.execute(
                text(f"""
                    SELECT {TASK_COLS},
                           a.id AS "a_id", a."fullName" AS "a_fullName", a.email AS "a_email",
                           a.role AS "a_role", a."orgId" AS "a_orgId"
                    FROM "VolunteerTask" t LEFT JOIN "Member" a ON a.id = t."assigneeMemberId"
                    WHERE t.id = :id
                """),
                {"id": task_id},
            ).mappings().first()
            if not row:
                return None
            task = _task_from_row(row)
            event_row = conn.execute(
                text(f'SELECT {EVENT_COLS} FROM "Event" e WHERE e.id = :id'),
                {"id": task.event_id},
            ).mappings().first()
        if event_row:
            task.event = EventSummary(**_event_from_row(event_row))
        return task

    def list_incomplete_tasks_for_event(self, event_id: int) -> List[VolunteerTask]:
        """Non-completed tasks ordered by due date ascending, then priority descending."""
        with self._engine.connect() as conn:
            rows = conn.execute(
                text(f"""
                    SELECT {TASK_COLS},
                           a.id AS "a_id", a."fullName" AS "a_fullName", a.email AS "a_email",
                           a.role AS "a_role", a."orgId" AS "a_orgId"
                    FROM "VolunteerTask" t LEFT JOIN "Member" a ON a.id = t."assigneeMemberId"
                    WHERE t."eventId" = :eid AND t.status <> 'Completed'
                    ORDER BY t."dueAt" ASC NULLS LAST, {PRIORITY_RANK_SQL} DESC, t.id
                """),
                {"eid": event_id},
            ).mappings().all()
        return [_task_from_row(r) for r in rows]

    # ── Members ────────────────────────────────────────────────────────

    def get_member(self, member_id: int) -> Optional[Member]:
        with self._engine.connect() as conn:
            row = conn.execute(
                text(f'SELECT {MEMBER_COLS} FROM "Member" m WHERE m.id = :id'),
                {"id": member_id},
            ).mappings().first()
        return _member_from_row(row) if row else None

    # ── Ops ────────────────────────────────────────────────────────────

    def verify_connection(self):
        with self._engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def dispose(self):
        self._engine.dispose()

    # ── Private ────────────────────────────────────────────────────────

    def _load_org(self, conn, org_id: Optional[int]) -> Optional[Org]:
        if org_id is None:
            return None
        org_row = conn.execute(
            text('SELECT o.id, o.name FROM "Org" o WHERE o.id = :id'), {"id": org_id},
        ).mappings().first()
        if not org_row:
            return None
        sponsor_rows = conn.execute(
            text("""
                SELECT s.id, s."orgId", s.name, s."contactEmail", s.tier, s.stage,
                       s.pledged, s.received
                FROM "Sponsor" s WHERE s."orgId" = :oid ORDER BY s.id
            """),
            {"oid": org_id},
        ).mappings().all()
        return Org(
            id=org_row["id"],
            name=org_row["name"],
            sponsors=[
                Sponsor(
                    id=s["id"], org_id=s["orgId"], name=s["name"],
                    contact_email=s["contactEmail"], tier=s["tier"], stage=s["stage"],
                    pledged=_amount(s["pledged"]), received=_amount(s["received"]),
                )
                for s in sponsor_rows
            ],
        )
