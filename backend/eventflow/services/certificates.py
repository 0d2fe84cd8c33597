from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from eventflow.core.config import get_settings
from eventflow.core.exceptions import CertificateNotReadyError
from eventflow.models.activity import Activity
from eventflow.models.registry import ActivityRegistry
from eventflow.models.user import User
from eventflow.services.activities import get_event
from eventflow.services.email import EmailDeliveryError, send_email
from eventflow.services.naming import render_event_name

logger = logging.getLogger(__name__)


@dataclass
class CertificateDispatchResult:
    sent: int = 0
    failed: list[str] = field(default_factory=list)


def is_ready_for_emission(db: Session, event_id: str) -> bool:
    """True when no activity of the event is still waiting for certificate release.

    An event without activities is ready.
    """
    pending = db.execute(
        select(Activity.id)
        .where(
            Activity.event_id == event_id,
            Activity.ready_for_certificate_emission.is_(False),
        )
        .limit(1)
    ).first()
    return pending is None


def filter_ready_for_certificate(db: Session, event_id: str) -> list[str]:
    rows = db.execute(
        select(User.email)
        .join(ActivityRegistry, ActivityRegistry.user_id == User.id)
        .join(Activity, ActivityRegistry.activity_id == Activity.id)
        .where(
            Activity.event_id == event_id,
            ActivityRegistry.ready_for_certificate.is_(True),
        )
        .distinct()
        .order_by(User.email)
    ).scalars()
    return list(rows)


def emit_certificates(db: Session, event_id: str) -> tuple[str, list[str]]:
    event = get_event(db, event_id)
    if not is_ready_for_emission(db, event.id):
        raise CertificateNotReadyError()
    return render_event_name(event), filter_ready_for_certificate(db, event.id)


def dispatch_certificate_emails(event_name: str, emails: Iterable[str]) -> CertificateDispatchResult:
    settings = get_settings()
    subject = settings.certificate_email_subject.format(event_name=event_name)
    text_content = (
        f"Your certificates for {event_name} are now available.\n"
        "Sign in to download them from your registrations page."
    )

    result = CertificateDispatchResult()
    for email in emails:
        try:
            send_email(to_email=email, subject=subject, text_content=text_content)
        except EmailDeliveryError as exc:
            logger.warning("Certificate email to %s failed: %s", email, exc)
            result.failed.append(email)
            continue
        result.sent += 1

    logger.info(
        "Certificate emails for %s: %d sent, %d failed",
        event_name,
        result.sent,
        len(result.failed),
    )
    return result
