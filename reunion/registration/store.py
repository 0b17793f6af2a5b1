"""Principal-scoped access to registration rows.

``RegistrationStore`` only ever touches the row belonging to the principal
it was created for. Writes go through a single
``INSERT ... ON CONFLICT (principal_id) DO UPDATE`` statement, so two
concurrent submissions from one principal can never both insert.
"""
import logging
from datetime import UTC, datetime

from sqlalchemy.dialects import postgresql, sqlite
from sqlmodel import Session, select

from reunion.core.errors import CollaboratorFailure
from reunion.models import Principal, RegistrationRecord

logger = logging.getLogger(__name__)

_INSERT_BY_DIALECT = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}

# Columns an upsert must never overwrite on an existing row
_IMMUTABLE_COLUMNS = {"id", "principal_id", "created_at"}


class RegistrationStore:
    """Read and upsert the registration of one principal."""

    def __init__(self, session: Session, principal: Principal):
        self.session = session
        self.principal = principal

    def fetch(self) -> RegistrationRecord | None:
        statement = select(RegistrationRecord).where(
            RegistrationRecord.principal_id == self.principal.id
        )
        return self.session.exec(statement).first()

    def upsert(self, values: dict, qr_code_url: str | None) -> RegistrationRecord:
        """Insert or update the principal's row atomically and return it."""
        dialect = self.session.get_bind().dialect.name
        insert = _INSERT_BY_DIALECT.get(dialect)
        if insert is None:
            raise CollaboratorFailure("database", f"Upsert not supported for {dialect}")

        now = datetime.now(UTC)
        row = {
            **values,
            "principal_id": self.principal.id,
            "qr_code_url": qr_code_url,
            "created_at": now,
            "updated_at": now,
        }
        statement = insert(RegistrationRecord.__table__).values(**row)
        statement = statement.on_conflict_do_update(
            index_elements=[RegistrationRecord.__table__.c.principal_id],
            set_={
                column: statement.excluded[column]
                for column in row
                if column not in _IMMUTABLE_COLUMNS
            },
        )
        try:
            self.session.execute(statement)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        record = self.fetch()
        logger.debug(f"Upserted registration {record.id} for principal {self.principal.id}")
        return record
