# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Email content generation.

Resolves the records a request references, builds a template context and
renders it. Nothing is sent; delivery belongs to a future integration.

Errors: ValueError for invalid requests, KeyError for ids that do not
resolve. Both are raised before any content is rendered.
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Callable, NamedTuple, Optional

from pydantic import BaseModel

from entrystack.core.config import settings
from entrystack.core.logging import get_logger
from entrystack.metrics import EMAILS_GENERATED
from entrystack.models.domain import EmailContent, Event, Member, VolunteerTask
from entrystack.repositories.event_repository import EventRepository
from entrystack.services.email_templates import (
    EventEmailContext,
    TaskDigestContext,
    TaskDigestItem,
    TaskEmailContext,
    render_event_reminder,
    render_rsvp_confirmation,
    render_sponsor_thank_you,
    render_task_assignment,
    render_task_digest,
    render_task_reminder,
)

logger = get_logger(__name__)

PRIORITY_RANK = {"Urgent": 4, "High": 3, "Medium": 2, "Low": 1}
DEFAULT_PRIORITY = "Medium"


class EmailVariant(NamedTuple):
    """One email type: at least one of `requires` must be supplied."""
    requires: tuple[str, ...]
    missing_message: str
    composer: str


EMAIL_VARIANTS: dict[str, EmailVariant] = {
    "event_reminder": EmailVariant(
        ("event",), "Event ID required for event reminder", "_compose_event_reminder",
    ),
    "task_assignment": EmailVariant(
        ("task",), "Task ID required for task assignment", "_compose_task_assignment",
    ),
    "task_reminder": EmailVariant(
        ("task", "event"), "Task ID or Event ID required for task reminder",
        "_compose_task_reminder",
    ),
    "sponsor_thank_you": EmailVariant(
        ("event",), "Event ID required for sponsor thank you", "_compose_sponsor_thank_you",
    ),
    "rsvp_confirmation": EmailVariant(
        ("event",), "Event ID required for RSVP confirmation", "_compose_rsvp_confirmation",
    ),
}
VALID_EMAIL_TYPES = tuple(EMAIL_VARIANTS)


class ResolvedRefs(BaseModel):
    event: Optional[Event] = None
    task: Optional[VolunteerTask] = None
    member: Optional[Member] = None
    recipient_email: Optional[str] = None
    recipient_name: Optional[str] = None


# ── Task selection for the event-wide reminder ──

def rank_tasks(tasks: list[VolunteerTask]) -> list[VolunteerTask]:
    """Due date ascending (no due date last), then priority descending."""
    return sorted(
        tasks,
        key=lambda t: (
            t.due_at is None,
            t.due_at.timestamp() if t.due_at else 0.0,
            -PRIORITY_RANK.get(t.priority, 0),
            t.id,
        ),
    )


def task_urgency(task: VolunteerTask, now: datetime, window_days: int) -> str:
    if task.due_at is None:
        return "no_due_date"
    if task.due_at < now:
        return "overdue"
    remaining = task.due_at - now
    if remaining <= timedelta(days=1):
        return "due_within_day"
    if remaining <= timedelta(days=window_days):
        return "due_within_week"
    return "later"


def select_reminder_tasks(
    tasks: list[VolunteerTask],
    now: datetime,
    window_days: int,
    fallback_limit: int,
) -> tuple[list[VolunteerTask], bool]:
    """
    Tasks that are overdue, due inside the window, or have no due date.
    When none qualify, the first `fallback_limit` ranked tasks are used
    instead; the flag reports that fallback.
    """
    ranked = rank_tasks([t for t in tasks if not t.is_completed])
    selected = [
        t for t in ranked
        if task_urgency(t, now, window_days) != "later"
    ]
    if selected:
        return selected, False
    return ranked[:fallback_limit], True


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EmailService:
    """Business logic for notification email content."""

    def __init__(
        self,
        repo: EventRepository,
        clock: Callable[[], datetime] = _utcnow,
        window_days: int = settings.REMINDER_WINDOW_DAYS,
        fallback_limit: int = settings.REMINDER_FALLBACK_LIMIT,
        signature: str = settings.EMAIL_SIGNATURE,
    ) -> None:
        self._repo = repo
        self._clock = clock
        self._window_days = window_days
        self._fallback_limit = fallback_limit
        self._signature = signature

    def generate(
        self,
        email_type: str,
        event_id: Optional[int] = None,
        task_id: Optional[int] = None,
        member_id: Optional[int] = None,
        recipient_email: Optional[str] = None,
        recipient_name: Optional[str] = None,
    ) -> EmailContent:
        variant = EMAIL_VARIANTS.get(email_type)
        if variant is None:
            raise ValueError(
                f"Invalid email type. Supported types: {', '.join(VALID_EMAIL_TYPES)}"
            )
        supplied = {"event": event_id is not None, "task": task_id is not None}
        if not any(supplied[ref] for ref in variant.requires):
            raise ValueError(variant.missing_message)

        refs = self._resolve(event_id, task_id, member_id, recipient_email, recipient_name)
        now = self._clock()
        email = getattr(self, variant.composer)(refs, now)

        EMAILS_GENERATED.labels(type=email_type).inc()
        logger.info(
            "Email generated type=%s event=%s task=%s to=%s",
            email_type, event_id, task_id, email.to or "-",
        )
        return email

    # ── Resolution ──

    def _resolve(self, event_id, task_id, member_id, recipient_email,
                 recipient_name) -> ResolvedRefs:
        refs = ResolvedRefs(recipient_email=recipient_email, recipient_name=recipient_name)
        if event_id is not None:
            refs.event = self._repo.get_event_with_relations(event_id)
            if refs.event is None:
                raise KeyError("Event not found")
        if task_id is not None:
            refs.task = self._repo.get_task_with_relations(task_id)
            if refs.task is None:
                raise KeyError("Task not found")
        if member_id is not None:
            refs.member = self._repo.get_member(member_id)
            if refs.member is None:
                raise KeyError("Member not found")
        return refs

    def _recipient_name(self, refs: ResolvedRefs, default: str,
                        assignee: Optional[Member] = None) -> str:
        if refs.recipient_name:
            return refs.recipient_name
        if refs.member:
            return refs.member.full_name
        if assignee:
            return assignee.full_name
        return default

    def _recipient_email(self, refs: ResolvedRefs,
                         assignee: Optional[Member] = None) -> str:
        if refs.recipient_email:
            return refs.recipient_email
        if refs.member:
            return refs.member.email
        if assignee:
            return assignee.email
        return ""

    # ── Context builders ──

    def _event_context(self, refs: ResolvedRefs, default_name: str) -> EventEmailContext:
        event = refs.event
        org_name = event.org.name if event.org else None
        return EventEmailContext(
            recipient_name=self._recipient_name(refs, default_name),
            event_title=event.title,
            starts_at=event.starts_at,
            ends_at=event.ends_at,
            location=event.location or None,
            org_name=org_name or "our organization",
            signer=org_name or self._signature,
        )

    def _task_context(self, refs: ResolvedRefs, now: datetime) -> TaskEmailContext:
        task = refs.task
        due_at = task.due_at
        days_until_due = None
        is_overdue = False
        is_urgent = False
        if due_at is not None:
            days_until_due = math.ceil((due_at - now) / timedelta(days=1))
            is_overdue = due_at <= now
            is_urgent = due_at - now <= timedelta(days=1)
        event = task.event
        return TaskEmailContext(
            recipient_name=self._recipient_name(refs, "Volunteer", task.assignee),
            task_title=task.title,
            priority=task.priority or DEFAULT_PRIORITY,
            status=task.status,
            due_at=due_at,
            days_until_due=days_until_due,
            is_overdue=is_overdue,
            is_urgent=is_urgent,
            event_title=event.title if event else "your event",
            event_location=(event.location or None) if event else None,
            signer=self._signature,
        )

    def _digest_context(self, refs: ResolvedRefs, tasks: list[VolunteerTask],
                        is_fallback: bool, now: datetime) -> TaskDigestContext:
        urgencies = [task_urgency(t, now, self._window_days) for t in tasks]
        event = refs.event
        return TaskDigestContext(
            recipient_name=self._recipient_name(refs, "Team"),
            event_title=event.title,
            event_starts_at=event.starts_at,
            window_days=self._window_days,
            overdue_count=urgencies.count("overdue"),
            due_soon_count=urgencies.count("due_within_day") + urgencies.count("due_within_week"),
            no_due_date_count=urgencies.count("no_due_date"),
            is_fallback=is_fallback,
            items=[
                TaskDigestItem(
                    title=t.title,
                    priority=t.priority or DEFAULT_PRIORITY,
                    status=t.status,
                    due_at=t.due_at,
                    assignee_name=t.assignee.full_name if t.assignee else None,
                    urgency=urgency,
                )
                for t, urgency in zip(tasks, urgencies)
            ],
            signer=event.org.name if event.org else self._signature,
        )

    # ── Composers, one per email type ──

    def _compose_event_reminder(self, refs: ResolvedRefs, now: datetime) -> EmailContent:
        subject, body = render_event_reminder(self._event_context(refs, "Volunteer"))
        return EmailContent(subject=subject, body=body, to=self._recipient_email(refs))

    def _compose_task_assignment(self, refs: ResolvedRefs, now: datetime) -> EmailContent:
        subject, body = render_task_assignment(self._task_context(refs, now))
        return EmailContent(
            subject=subject, body=body,
            to=self._recipient_email(refs, refs.task.assignee),
        )

    def _compose_task_reminder(self, refs: ResolvedRefs, now: datetime) -> EmailContent:
        if refs.task is not None:
            subject, body = render_task_reminder(self._task_context(refs, now))
            return EmailContent(
                subject=subject, body=body,
                to=self._recipient_email(refs, refs.task.assignee),
            )

        incomplete = self._repo.list_incomplete_tasks_for_event(refs.event.id)
        tasks, is_fallback = select_reminder_tasks(
            incomplete, now, self._window_days, self._fallback_limit,
        )
        if not tasks:
            raise KeyError("No tasks found that need reminders")
        subject, body = render_task_digest(self._digest_context(refs, tasks, is_fallback, now))
        return EmailContent(subject=subject, body=body, to=self._recipient_email(refs))

    def _compose_sponsor_thank_you(self, refs: ResolvedRefs, now: datetime) -> EmailContent:
        subject, body = render_sponsor_thank_you(self._event_context(refs, "Sponsor"))
        return EmailContent(subject=subject, body=body, to=self._recipient_email(refs))

    def _compose_rsvp_confirmation(self, refs: ResolvedRefs, now: datetime) -> EmailContent:
        subject, body = render_rsvp_confirmation(self._event_context(refs, "Guest"))
        return EmailContent(subject=subject, body=body, to=self._recipient_email(refs))
