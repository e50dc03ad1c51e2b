# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain models: pure data structures, NO FastAPI dependency.
Records are read-only here; the CRUD layer owns every write.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

TASK_STATUSES = ("To Do", "Work In Progress", "Under Review", "Completed")
TASK_COMPLETED = "Completed"
TASK_PRIORITIES = ("Urgent", "High", "Medium", "Low")
CRITICAL_PRIORITIES = frozenset({"Urgent", "High"})
RSVP_CONFIRMED = "CONFIRMED"

SEVERITY_LEVELS = ("low", "medium", "high")


class Member(BaseModel):
    id: int
    full_name: str
    email: str
    role: Optional[str] = None
    org_id: Optional[int] = None


class Sponsor(BaseModel):
    id: int
    org_id: int
    name: str
    contact_email: Optional[str] = None
    tier: Optional[str] = None
    stage: Optional[str] = None
    pledged: Optional[float] = None
    received: Optional[float] = None


class Org(BaseModel):
    id: int
    name: str
    sponsors: list[Sponsor] = Field(default_factory=list)


class RSVP(BaseModel):
    id: int
    event_id: int
    member_id: int
    status: str
    checked_in: bool = False
    member: Optional[Member] = None


class EventSummary(BaseModel):
    """Event fields without relations, as joined onto a task."""
    id: int
    title: str
    starts_at: datetime
    ends_at: datetime
    location: Optional[str] = None
    capacity: Optional[int] = Field(default=None, ge=0)
    status: Optional[str] = None
    org_id: Optional[int] = None


class VolunteerTask(BaseModel):
    id: int
    title: str
    status: str = "To Do"
    priority: Optional[str] = None
    due_at: Optional[datetime] = None
    event_id: int
    assignee_member_id: Optional[int] = None
    assignee: Optional[Member] = None
    event: Optional[EventSummary] = None

    @property
    def is_completed(self) -> bool:
        return self.status == TASK_COMPLETED

    @property
    def is_critical(self) -> bool:
        return self.priority in CRITICAL_PRIORITIES


class Event(EventSummary):
    """An event with its RSVPs, volunteer tasks and org eagerly loaded."""
    rsvps: list[RSVP] = Field(default_factory=list)
    volunteer_tasks: list[VolunteerTask] = Field(default_factory=list)
    org: Optional[Org] = None


# ── Derived, computed per request ──

class RiskFinding(BaseModel):
    type: str
    severity: str
    message: str
    suggestion: str
    data: Optional[dict[str, Any]] = None


class RiskSummary(BaseModel):
    total_risks: int
    high_risks: int
    medium_risks: int
    low_risks: int


class RiskAnalysisResult(BaseModel):
    event_id: int
    event_title: str
    risk_level: str
    risk_score: int
    risks: list[RiskFinding]
    summary: RiskSummary


class EventRiskOverview(BaseModel):
    event_id: int
    event_title: str
    risk_level: str
    risk_count: int


class EmailContent(BaseModel):
    subject: str
    body: str
    to: str = ""
