# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Email templates: pure rendering, no I/O.

Every template takes a fully resolved context (defaults already applied)
and returns (subject, body). Optional lines are passed as None and
dropped by _lines().
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

URGENCY_GLYPHS = {
    "overdue": "🔴",
    "due_within_day": "🟠",
    "due_within_week": "🟡",
    "no_due_date": "⚪",
    "later": "🟢",
}


# ── Formatting helpers ──

def format_date(value: datetime) -> str:
    return f"{value:%B} {value.day}, {value.year}"


def format_datetime(value: datetime) -> str:
    hour = value.hour % 12 or 12
    return f"{format_date(value)}, {hour}:{value:%M %p} UTC"


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count != 1 else ''}"


def _lines(*lines: Optional[str]) -> str:
    return "\n".join(line for line in lines if line is not None).strip()


# ── Contexts ──

class EventEmailContext(BaseModel):
    recipient_name: str
    event_title: str
    starts_at: datetime
    ends_at: datetime
    location: Optional[str] = None
    org_name: str
    signer: str


class TaskEmailContext(BaseModel):
    recipient_name: str
    task_title: str
    priority: str
    status: str
    due_at: Optional[datetime] = None
    days_until_due: Optional[int] = None
    is_overdue: bool = False
    is_urgent: bool = False
    event_title: str
    event_location: Optional[str] = None
    signer: str


class TaskDigestItem(BaseModel):
    title: str
    priority: str
    status: str
    due_at: Optional[datetime] = None
    assignee_name: Optional[str] = None
    urgency: str


class TaskDigestContext(BaseModel):
    recipient_name: str
    event_title: str
    event_starts_at: datetime
    window_days: int
    overdue_count: int
    due_soon_count: int
    no_due_date_count: int
    is_fallback: bool = False
    items: list[TaskDigestItem]
    signer: str


# ── Templates ──

def render_event_reminder(ctx: EventEmailContext) -> tuple[str, str]:
    subject = f"Reminder: {ctx.event_title} - {format_date(ctx.starts_at)}"
    body = _lines(
        f"Dear {ctx.recipient_name},",
        "",
        "This is a friendly reminder about the upcoming event:",
        "",
        f"Event: {ctx.event_title}",
        f"Date: {format_datetime(ctx.starts_at)} - {format_datetime(ctx.ends_at)}",
        f"Location: {ctx.location}" if ctx.location else None,
        "",
        "We're looking forward to seeing you there!",
        "",
        "Best regards,",
        ctx.signer,
    )
    return subject, body


def render_task_assignment(ctx: TaskEmailContext) -> tuple[str, str]:
    subject = f"New Task Assignment: {ctx.task_title}"
    body = _lines(
        f"Dear {ctx.recipient_name},",
        "",
        f'You have been assigned a new task for the event "{ctx.event_title}":',
        "",
        f"Task: {ctx.task_title}",
        f"Priority: {ctx.priority}",
        f"Due Date: {format_datetime(ctx.due_at)}" if ctx.due_at else None,
        f"Event Location: {ctx.event_location}" if ctx.event_location else None,
        "",
        "Please log in to your dashboard to view task details and update your progress.",
        "",
        "Thank you for your commitment!",
        "",
        "Best regards,",
        ctx.signer,
    )
    return subject, body


def render_task_reminder(ctx: TaskEmailContext) -> tuple[str, str]:
    if ctx.due_at is None:
        when = "pending"
    elif ctx.is_overdue:
        when = "is overdue"
    else:
        when = f"due in {_plural(ctx.days_until_due, 'day')}"
    subject = f'Reminder: Task "{ctx.task_title}" {when}'

    if ctx.is_urgent:
        closing = "⚠️ This task is due soon! Please prioritize completing it."
    else:
        closing = "Please ensure this task is completed on time."

    body = _lines(
        f"Dear {ctx.recipient_name},",
        "",
        "This is a reminder about your assigned task:",
        "",
        f"Task: {ctx.task_title}",
        f"Priority: {ctx.priority}",
        f"Due Date: {format_datetime(ctx.due_at)}" if ctx.due_at else "No due date set",
        f"Status: {ctx.status}",
        f"Event: {ctx.event_title}",
        "",
        closing,
        "",
        "Thank you!",
        "",
        "Best regards,",
        ctx.signer,
    )
    return subject, body


def _digest_line(item: TaskDigestItem) -> str:
    glyph = URGENCY_GLYPHS.get(item.urgency, "-")
    if item.due_at is None:
        due = "no due date"
    elif item.urgency == "overdue":
        due = f"overdue since {format_date(item.due_at)}"
    else:
        due = f"due {format_datetime(item.due_at)}"
    owner = item.assignee_name or "Unassigned"
    return f"{glyph} {item.title} [{item.priority}] - {due} - {item.status} - {owner}"


def render_task_digest(ctx: TaskDigestContext) -> tuple[str, str]:
    count = len(ctx.items)
    subject = f"Task Reminder: {_plural(count, 'task')} need attention for {ctx.event_title}"
    if ctx.is_fallback:
        intro = (
            f"No tasks are overdue or due within the next {ctx.window_days} days. "
            "Here are the upcoming incomplete tasks:"
        )
    else:
        intro = "The following tasks need attention:"

    body = _lines(
        f"Dear {ctx.recipient_name},",
        "",
        f'This is a reminder about open tasks for "{ctx.event_title}" '
        f"on {format_date(ctx.event_starts_at)}.",
        "",
        f"Overdue: {ctx.overdue_count}",
        f"Due within {ctx.window_days} days: {ctx.due_soon_count}",
        f"No due date: {ctx.no_due_date_count}",
        "",
        intro,
        "",
        *[_digest_line(item) for item in ctx.items],
        "",
        "Please review these tasks and update their status in the dashboard.",
        "",
        "Best regards,",
        ctx.signer,
    )
    return subject, body


def render_sponsor_thank_you(ctx: EventEmailContext) -> tuple[str, str]:
    subject = f"Thank You for Supporting {ctx.event_title}"
    body = _lines(
        f"Dear {ctx.recipient_name},",
        "",
        f"On behalf of {ctx.org_name}, we would like to extend our heartfelt "
        f'gratitude for your support of "{ctx.event_title}".',
        "",
        "Your sponsorship makes a significant impact on our ability to deliver "
        "this event successfully.",
        "",
        "Event Details:",
        f"- Event: {ctx.event_title}",
        f"- Date: {format_date(ctx.starts_at)}",
        "",
        "We look forward to continuing our partnership with you.",
        "",
        "With sincere appreciation,",
        ctx.signer,
    )
    return subject, body


def render_rsvp_confirmation(ctx: EventEmailContext) -> tuple[str, str]:
    subject = f"RSVP Confirmation: {ctx.event_title}"
    body = _lines(
        f"Dear {ctx.recipient_name},",
        "",
        f'Thank you for confirming your attendance at "{ctx.event_title}".',
        "",
        "Event Details:",
        f"- Event: {ctx.event_title}",
        f"- Date: {format_datetime(ctx.starts_at)} - {format_datetime(ctx.ends_at)}",
        f"- Location: {ctx.location}" if ctx.location else None,
        "",
        "We're excited to have you join us! If you have any questions, "
        "please don't hesitate to reach out.",
        "",
        "See you there!",
        "",
        "Best regards,",
        ctx.signer,
    )
    return subject, body
