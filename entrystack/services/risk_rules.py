# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Event risk rules: pure computation, no side effects.

Each rule looks at one fully loaded event and returns a single
RiskFinding or None. Rules are independent; RISK_RULES fixes the order
findings are presented in.
"""

import math
from datetime import datetime, timedelta
from typing import Callable, Optional

from entrystack.models.domain import (
    RSVP_CONFIRMED, Event, RiskFinding, VolunteerTask,
)

RSVP_HIGH_THRESHOLD = 30
RSVP_MEDIUM_THRESHOLD = 50
COMPLETION_THRESHOLD = 50
DUE_SOON_HOURS = 24
APPROACHING_DAYS = 7
APPROACHING_HIGH_DAYS = 3

RiskRule = Callable[[Event, datetime], Optional[RiskFinding]]


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count != 1 else ''}"


def _percent(rate: float) -> int:
    """Whole percent, halves rounded up."""
    return math.floor(rate + 0.5)


def _task_refs(tasks: list[VolunteerTask], *fields: str) -> list[dict]:
    refs = []
    for task in tasks:
        ref = {"id": task.id, "title": task.title}
        if "dueAt" in fields:
            ref["dueAt"] = task.due_at.isoformat() if task.due_at else None
        if "priority" in fields:
            ref["priority"] = task.priority
        refs.append(ref)
    return refs


def _confirmed_count(event: Event) -> int:
    return sum(1 for r in event.rsvps if r.status == RSVP_CONFIRMED)


def low_rsvp_rule(event: Event, now: datetime) -> Optional[RiskFinding]:
    if not event.capacity:
        return None
    confirmed = _confirmed_count(event)
    rate = confirmed / event.capacity * 100
    data = {"rsvpRate": rate, "confirmedRSVPs": confirmed, "capacity": event.capacity}

    if rate < RSVP_HIGH_THRESHOLD:
        return RiskFinding(
            type="low_rsvp",
            severity="high",
            message=f"Only {_percent(rate)}% capacity filled ({confirmed}/{event.capacity} confirmed)",
            suggestion="Send reminder emails to increase attendance",
            data=data,
        )
    if rate < RSVP_MEDIUM_THRESHOLD:
        return RiskFinding(
            type="low_rsvp",
            severity="medium",
            message=f"RSVP rate at {_percent(rate)}% ({confirmed}/{event.capacity})",
            suggestion="Consider sending follow-up emails",
            data=data,
        )
    return None


def overdue_critical_tasks(event: Event, now: datetime) -> list[VolunteerTask]:
    """Urgent/High tasks past their due date and not completed."""
    return [
        t for t in event.volunteer_tasks
        if t.due_at is not None and not t.is_completed
        and t.due_at < now and t.is_critical
    ]


def overdue_tasks_rule(event: Event, now: datetime) -> Optional[RiskFinding]:
    overdue = overdue_critical_tasks(event, now)
    if not overdue:
        return None
    return RiskFinding(
        type="overdue_tasks",
        severity="high",
        message=f"{_plural(len(overdue), 'critical task')} overdue",
        suggestion="Reassign tasks or extend deadlines immediately",
        data={"tasks": _task_refs(overdue, "dueAt")},
    )


def tasks_due_soon_rule(event: Event, now: datetime) -> Optional[RiskFinding]:
    due_soon = []
    for t in event.volunteer_tasks:
        if t.due_at is None or t.is_completed:
            continue
        hours_until_due = (t.due_at - now) / timedelta(hours=1)
        if 0 < hours_until_due <= DUE_SOON_HOURS:
            due_soon.append(t)
    if not due_soon:
        return None
    return RiskFinding(
        type="tasks_due_soon",
        severity="medium",
        message=f"{_plural(len(due_soon), 'task')} due within {DUE_SOON_HOURS} hours",
        suggestion="Send reminders to task assignees",
        data={"tasks": _task_refs(due_soon, "dueAt")},
    )


def low_completion_rule(event: Event, now: datetime) -> Optional[RiskFinding]:
    total = len(event.volunteer_tasks)
    if total == 0:
        return None
    completed = sum(1 for t in event.volunteer_tasks if t.is_completed)
    rate = completed / total * 100
    if rate >= COMPLETION_THRESHOLD:
        return None
    # Capped at medium however low the rate gets.
    return RiskFinding(
        type="low_completion",
        severity="medium",
        message=f"Only {_percent(rate)}% of tasks completed ({completed}/{total})",
        suggestion="Review task assignments and provide support",
        data={"completionRate": rate, "completedTasks": completed, "totalTasks": total},
    )


def event_approaching_rule(event: Event, now: datetime) -> Optional[RiskFinding]:
    days_until_event = (event.starts_at - now) / timedelta(days=1)
    if not 0 < days_until_event <= APPROACHING_DAYS:
        return None
    incomplete = sum(1 for t in event.volunteer_tasks if not t.is_completed)
    if incomplete == 0:
        return None
    days = math.ceil(days_until_event)
    return RiskFinding(
        type="event_approaching",
        severity="high" if days_until_event <= APPROACHING_HIGH_DAYS else "medium",
        message=f"Event in {_plural(days, 'day')} with {_plural(incomplete, 'incomplete task')}",
        suggestion="Prioritize remaining tasks and check resource availability",
        data={"daysUntilEvent": days, "incompleteTasks": incomplete},
    )


def unassigned_tasks_rule(event: Event, now: datetime) -> Optional[RiskFinding]:
    unassigned = [
        t for t in event.volunteer_tasks
        if t.assignee_member_id is None and t.is_critical
    ]
    if not unassigned:
        return None
    return RiskFinding(
        type="unassigned_tasks",
        severity="high",
        message=f"{_plural(len(unassigned), 'critical task')} not assigned",
        suggestion="Assign tasks to available volunteers immediately",
        data={"tasks": _task_refs(unassigned, "priority")},
    )


RISK_RULES: tuple[RiskRule, ...] = (
    low_rsvp_rule,
    overdue_tasks_rule,
    tasks_due_soon_rule,
    low_completion_rule,
    event_approaching_rule,
    unassigned_tasks_rule,
)


def evaluate_risks(event: Event, now: datetime) -> list[RiskFinding]:
    """Run every rule against the event with a single captured `now`."""
    findings = []
    for rule in RISK_RULES:
        finding = rule(event, now)
        if finding is not None:
            findings.append(finding)
    return findings


def confirmed_rsvp_rate(event: Event) -> float:
    """Confirmed share of capacity in percent; 0 when capacity is unset."""
    if not event.capacity:
        return 0.0
    return _confirmed_count(event) / event.capacity * 100
