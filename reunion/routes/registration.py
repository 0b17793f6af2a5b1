"""Registration routes: submit and read back the caller's registration."""
from fastapi import APIRouter, Depends
from sqlmodel import Session

from reunion.collaborators import Collaborators, get_collaborators
from reunion.core.config import settings
from reunion.core.database import get_session
from reunion.core.ratelimit import registration_rate_limit
from reunion.core.security import require_principal
from reunion.models import Principal, RegistrationPayload
from reunion.registration.artifacts import ArtifactGenerator
from reunion.registration.notify import NotificationDispatcher
from reunion.registration.reconcile import Reconciler
from reunion.registration.store import RegistrationStore

router = APIRouter(tags=["registration"])


def get_reconciler(
    principal: Principal = Depends(require_principal),
    session: Session = Depends(get_session),
    collaborators: Collaborators = Depends(get_collaborators),
) -> Reconciler:
    """Build a reconciler scoped to the verified caller."""
    return Reconciler(
        store=RegistrationStore(session, principal),
        artifacts=ArtifactGenerator(collaborators.storage, settings.event_code),
        notifier=NotificationDispatcher(collaborators.mail),
    )


@router.post("/register", dependencies=[Depends(registration_rate_limit)])
async def register(payload: RegistrationPayload, reconciler: Reconciler = Depends(get_reconciler)):
    """
    Create or update the caller's registration.

    A new check-in code is generated and emailed only on the first
    registration or when name, email or mobile changed. Other edits update
    the stored row and keep the existing code. Email delivery is
    best-effort: ``emailSent`` is false when no email was due or the send
    failed.
    """
    outcome = await reconciler.reconcile(payload)

    if not outcome.regenerated:
        message = "Registration updated. Your existing QR code is still valid."
    elif outcome.email_sent:
        message = "Registration Successful! Check your email for your unique QR code."
    else:
        message = "Registration Successful! We could not email your QR code; it is shown in your registration."

    return {
        "message": message,
        "emailSent": outcome.email_sent,
        "qrCodeUrl": outcome.record.qr_code_url,
    }


@router.get("/get-registration")
async def get_registration(
    principal: Principal = Depends(require_principal),
    session: Session = Depends(get_session),
):
    """
    Return the caller's own registration.

    Responds with an empty object when the caller has not registered yet.
    """
    record = RegistrationStore(session, principal).fetch()
    return record.public_dict() if record else {}
