# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Event risk analysis.
Thin HTTP layer: delegates ALL logic to RiskService.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from entrystack.controllers.params import parse_positive_id
from entrystack.core.dependencies import get_risk_service
from entrystack.schemas import EventRiskOverviewOut, RiskAnalysisOut
from entrystack.services.risk_service import RiskService

router = APIRouter(prefix="/ai", tags=["Risk Analysis"])


@router.get("/events/risks", response_model=List[EventRiskOverviewOut])
def list_event_risks(service: RiskService = Depends(get_risk_service)):
    """Coarse risk level for every event (RSVP rate and overdue tasks only)."""
    return [EventRiskOverviewOut(**o.model_dump()) for o in service.list_event_risks()]


@router.get("/events/{event_id}/risks", response_model=RiskAnalysisOut)
def analyze_event_risks(event_id: str,
                        service: RiskService = Depends(get_risk_service)):
    """Full six-rule risk analysis for one event."""
    eid = parse_positive_id(event_id, "event ID")
    try:
        result = service.analyze_event(eid)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=exc.args[0])
    return RiskAnalysisOut(**result.model_dump())
