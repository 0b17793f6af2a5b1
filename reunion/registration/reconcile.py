"""Registration reconciliation.

One submission moves through these stages:

    VERIFYING -> FETCHING_PRIOR -> REGENERATING | SKIPPING -> PERSISTING -> NOTIFYING | DONE

VERIFYING is the bearer-token dependency that runs before a ``Reconciler``
is built. Everything after it happens in ``Reconciler.reconcile``:

- the principal's current row is fetched (absence means a first
  registration),
- a new check-in code is generated only when the name, email or mobile
  changed (or no code exists yet); otherwise the stored URL is carried
  forward,
- the full field set is upserted in one statement,
- the check-in email is sent only when a new code was generated.

Resubmitting an identical payload therefore converges on the same row and
produces no further codes or emails.
"""
import logging
from dataclasses import dataclass
from enum import StrEnum

from sqlalchemy.exc import SQLAlchemyError

from reunion.core.errors import CollaboratorFailure, ReconciliationError
from reunion.models import RegistrationPayload, RegistrationRecord
from reunion.registration.artifacts import ArtifactGenerator
from reunion.registration.changes import ChangeKind, classify
from reunion.registration.notify import NotificationDispatcher
from reunion.registration.store import RegistrationStore

logger = logging.getLogger(__name__)


class Stage(StrEnum):
    VERIFYING = "verifying"
    FETCHING_PRIOR = "fetching_prior"
    REGENERATING = "regenerating"
    SKIPPING = "skipping"
    PERSISTING = "persisting"
    NOTIFYING = "notifying"
    DONE = "done"


@dataclass
class ReconcileOutcome:
    """Result of a successful reconciliation."""
    record: RegistrationRecord
    change: ChangeKind
    regenerated: bool
    email_sent: bool


class Reconciler:
    """Applies registration submissions for a single principal."""

    def __init__(
        self,
        store: RegistrationStore,
        artifacts: ArtifactGenerator,
        notifier: NotificationDispatcher,
    ):
        self.store = store
        self.artifacts = artifacts
        self.notifier = notifier

    async def reconcile(self, payload: RegistrationPayload) -> ReconcileOutcome:
        """Apply ``payload`` to the principal's registration.

        Raises ``ReconciliationError`` naming the stage that failed when the
        store or object storage fails, or when the check-in code cannot be
        rendered. Nothing is persisted if the new check-in code could not be
        stored.
        """
        principal_id = self.store.principal.id
        stage = Stage.FETCHING_PRIOR
        try:
            prior = self.store.fetch()
            change = classify(prior, payload)
            regenerate = change is ChangeKind.IDENTITY_AFFECTING or not prior.qr_code_url

            if regenerate:
                stage = Stage.REGENERATING
                qr_code_url = await self.artifacts.generate(payload.mobile)
            else:
                stage = Stage.SKIPPING
                qr_code_url = prior.qr_code_url
            logger.info(f"Registration for {principal_id}: {change} -> {stage}")

            stage = Stage.PERSISTING
            record = self.store.upsert(payload.record_values(), qr_code_url)
        except CollaboratorFailure as e:
            logger.error(f"Registration for {principal_id} failed while {stage}: {e.message}")
            raise ReconciliationError(stage, e.message) from e
        except SQLAlchemyError as e:
            logger.error(f"Registration for {principal_id} failed while {stage}: {e}")
            raise ReconciliationError(stage, f"Database error: {e}") from e
        except ValueError as e:
            # qrcode rejects seeds too long for any QR version
            logger.error(f"Registration for {principal_id} failed while {stage}: {e}")
            raise ReconciliationError(stage, f"Could not render check-in code: {e}") from e

        if not regenerate:
            logger.info(f"Registration for {principal_id}: {Stage.DONE}")
            return ReconcileOutcome(record=record, change=change, regenerated=False, email_sent=False)

        stage = Stage.NOTIFYING
        logger.info(f"Registration for {principal_id}: {stage}")
        email_sent = await self.notifier.send_checkin_code(record)
        logger.info(f"Registration for {principal_id}: {Stage.DONE} (email sent: {email_sent})")
        return ReconcileOutcome(record=record, change=change, regenerated=True, email_sent=email_sent)
