# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
FastAPI dependency injection: wire the repository and services.
"""

from entrystack.core.database import engine
from entrystack.repositories.event_repository import EventRepository
from entrystack.services.email_service import EmailService
from entrystack.services.risk_service import RiskService

# ── Singletons, built once at process start ──
_event_repo = EventRepository(engine)
_risk_service = RiskService(_event_repo)
_email_service = EmailService(_event_repo)


# ── FastAPI dependency functions ──
def get_event_repo() -> EventRepository:
    return _event_repo


def get_risk_service() -> RiskService:
    return _risk_service


def get_email_service() -> EmailService:
    return _email_service
