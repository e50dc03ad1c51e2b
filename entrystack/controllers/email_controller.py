# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: Notification email content generation."""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from entrystack.controllers.params import parse_optional_id
from entrystack.core.dependencies import get_email_service
from entrystack.schemas import EmailContentOut, EmailGenerateRequest, EmailGenerateResponse
from entrystack.services.email_service import EmailService

router = APIRouter(prefix="/ai", tags=["Email"])


@router.post("/email/generate", response_model=EmailGenerateResponse)
def generate_email(body: EmailGenerateRequest,
                   service: EmailService = Depends(get_email_service)):
    event_id = parse_optional_id(body.event_id, "event ID")
    task_id = parse_optional_id(body.task_id, "task ID")
    member_id = parse_optional_id(body.member_id, "member ID")
    try:
        email = service.generate(
            email_type="" if body.type is None else str(body.type),
            event_id=event_id,
            task_id=task_id,
            member_id=member_id,
            recipient_email=body.recipient_email,
            recipient_name=body.recipient_name,
        )
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=exc.args[0])
    except ValidationError:
        # Stored rows that fail to map surface as a 500.
        raise
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return EmailGenerateResponse(
        email=EmailContentOut(**email.model_dump()),
        generated_at=datetime.now(timezone.utc).isoformat(),
    )
