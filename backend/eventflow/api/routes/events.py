from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from eventflow.api.deps import get_db
from eventflow.schemas.certificate import CertificateEmissionOut, CertificateReadinessOut
from eventflow.services.activities import get_event
from eventflow.services.certificates import (
    dispatch_certificate_emails,
    emit_certificates,
    is_ready_for_emission,
)

router = APIRouter()


@router.get("/events/{event_id}/certificate-readiness", response_model=CertificateReadinessOut)
def certificate_readiness(event_id: str, db: Session = Depends(get_db)) -> CertificateReadinessOut:
    event = get_event(db, event_id)
    return CertificateReadinessOut(event_id=event.id, ready=is_ready_for_emission(db, event.id))


@router.post(
    "/events/{event_id}/certificates",
    response_model=CertificateEmissionOut,
    status_code=status.HTTP_202_ACCEPTED,
)
def send_certificates(
    event_id: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
) -> CertificateEmissionOut:
    event_name, emails = emit_certificates(db, event_id)
    background_tasks.add_task(dispatch_certificate_emails, event_name, emails)
    return CertificateEmissionOut(event_id=event_id, event_name=event_name, recipients=len(emails))
