# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Event risk analysis.

Two policies live here on purpose:

* analyze_event runs all six rules and folds them into a weighted score.
* list_event_risks is the cheap list-view overview that only looks at the
  RSVP rate and overdue critical tasks. Its levels can disagree with the
  full analysis for the same event; do not merge the two.
"""

from datetime import datetime, timezone
from typing import Callable

from entrystack.core.logging import get_logger
from entrystack.metrics import RISK_ANALYSES, RISK_FINDINGS, RISK_OVERVIEWS
from entrystack.models.domain import (
    Event, EventRiskOverview, RiskAnalysisResult, RiskFinding, RiskSummary,
)
from entrystack.repositories.event_repository import EventRepository
from entrystack.services.risk_rules import (
    confirmed_rsvp_rate, evaluate_risks, overdue_critical_tasks,
)

logger = get_logger(__name__)

SEVERITY_WEIGHTS = {"high": 3, "medium": 2, "low": 1}
HIGH_RISK_SCORE = 6
MEDIUM_RISK_SCORE = 3

# Batch overview thresholds
OVERVIEW_HIGH_RSVP_RATE = 30
OVERVIEW_MEDIUM_RSVP_RATE = 50
OVERVIEW_MEDIUM_OVERDUE = 2


def risk_score(findings: list[RiskFinding]) -> int:
    return sum(SEVERITY_WEIGHTS.get(f.severity, 1) for f in findings)


def risk_level_for_score(score: int) -> str:
    if score >= HIGH_RISK_SCORE:
        return "high"
    if score >= MEDIUM_RISK_SCORE:
        return "medium"
    return "low"


def summarize(findings: list[RiskFinding]) -> RiskSummary:
    return RiskSummary(
        total_risks=len(findings),
        high_risks=sum(1 for f in findings if f.severity == "high"),
        medium_risks=sum(1 for f in findings if f.severity == "medium"),
        low_risks=sum(1 for f in findings if f.severity == "low"),
    )


def aggregate_findings(event: Event, findings: list[RiskFinding]) -> RiskAnalysisResult:
    """Fold findings into one result; finding order is kept as evaluated."""
    score = risk_score(findings)
    return RiskAnalysisResult(
        event_id=event.id,
        event_title=event.title,
        risk_level=risk_level_for_score(score),
        risk_score=score,
        risks=list(findings),
        summary=summarize(findings),
    )


def overview_for_event(event: Event, now: datetime) -> EventRiskOverview:
    """
    Coarse list-view level from RSVP rate and overdue critical tasks only.
    An event without capacity has a rate of 0 and therefore rates high.
    """
    rsvp_rate = confirmed_rsvp_rate(event)
    overdue = len(overdue_critical_tasks(event, now))

    if rsvp_rate < OVERVIEW_HIGH_RSVP_RATE or overdue > 0:
        level = "high"
    elif rsvp_rate < OVERVIEW_MEDIUM_RSVP_RATE or overdue > OVERVIEW_MEDIUM_OVERDUE:
        level = "medium"
    else:
        level = "low"

    return EventRiskOverview(
        event_id=event.id,
        event_title=event.title,
        risk_level=level,
        risk_count=overdue + (1 if rsvp_rate < OVERVIEW_HIGH_RSVP_RATE else 0),
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RiskService:
    """Loads events through the repository and scores them."""

    def __init__(
        self,
        repo: EventRepository,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._repo = repo
        self._clock = clock

    def analyze_event(self, event_id: int) -> RiskAnalysisResult:
        event = self._repo.get_event_with_relations(event_id)
        if event is None:
            raise KeyError("Event not found")
        return self.analyze(event)

    def analyze(self, event: Event) -> RiskAnalysisResult:
        now = self._clock()
        findings = evaluate_risks(event, now)
        result = aggregate_findings(event, findings)

        RISK_ANALYSES.labels(level=result.risk_level).inc()
        for finding in findings:
            RISK_FINDINGS.labels(type=finding.type, severity=finding.severity).inc()
        logger.info(
            "Risk analysis event=%s level=%s score=%d findings=%d",
            event.id, result.risk_level, result.risk_score, len(findings),
        )
        return result

    def list_event_risks(self) -> list[EventRiskOverview]:
        now = self._clock()
        events = self._repo.get_all_events_with_relations()
        overviews = [overview_for_event(event, now) for event in events]
        RISK_OVERVIEWS.inc()
        logger.info("Risk overview computed for %d events", len(overviews))
        return overviews
