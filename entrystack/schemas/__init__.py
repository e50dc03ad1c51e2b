# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Request / Response schemas: API contract definitions.
Fields are snake_case in Python and camelCase on the wire.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Risk analysis ──

class RiskFindingOut(CamelModel):
    type: str
    severity: str
    message: str
    suggestion: str
    data: Optional[Dict[str, Any]] = None


class RiskSummaryOut(CamelModel):
    total_risks: int
    high_risks: int
    medium_risks: int
    low_risks: int


class RiskAnalysisOut(CamelModel):
    event_id: int
    event_title: str
    risk_level: str
    risk_score: int
    risks: List[RiskFindingOut]
    summary: RiskSummaryOut


class EventRiskOverviewOut(CamelModel):
    event_id: int
    event_title: str
    risk_level: str
    risk_count: int


# ── Email generation ──

class EmailGenerateRequest(CamelModel):
    """Type and ids stay loose here; the controller rejects bad ones with 400."""
    type: Optional[Any] = None
    event_id: Optional[Any] = None
    task_id: Optional[Any] = None
    member_id: Optional[Any] = None
    recipient_email: Optional[str] = None
    recipient_name: Optional[str] = None


class EmailContentOut(CamelModel):
    subject: str
    body: str
    to: str


class EmailGenerateResponse(CamelModel):
    success: bool = True
    email: EmailContentOut
    generated_at: str
