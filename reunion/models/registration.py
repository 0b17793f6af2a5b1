"""Registration models: the inbound payload and the persisted record.

``RegistrationPayload`` is the typed body of ``POST /register``. It keeps
the loose conventions of the sign-up form (``name``/``phone`` are accepted
as aliases, head counts may arrive as blank strings) but settles them in
one place: strings are stripped, absent or blank head counts become zero,
and anything else that does not parse is rejected.

``RegistrationRecord`` is the one-per-principal row. Uniqueness on
``principal_id`` is what makes the reconciliation upsert atomic.
"""

from datetime import UTC, datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, field_validator
from pydantic import Field as PydanticField
from sqlmodel import Field, SQLModel

SESSION_FLAGS = ("thu_night", "fri_reunion", "fri_night", "sat_reunion", "sat_night")


class RegistrationPayload(BaseModel):
    """Participant details submitted by the registration form.

    Attributes:
        participant_name: Name printed on the confirmation email.
        email: Where the check-in code is sent.
        mobile: Phone number; encoded into the check-in code.
        location: Free-text home town.
        teens_adults: Number of teens and adults attending.
        kids: Number of children attending.
        thu_night, fri_reunion, fri_night, sat_reunion, sat_night:
            Attendance for each session of the event.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    participant_name: str = PydanticField(
        min_length=1,
        max_length=200,
        validation_alias=AliasChoices("participant_name", "name"),
    )
    email: EmailStr
    mobile: str = PydanticField(
        min_length=1,
        max_length=32,
        validation_alias=AliasChoices("mobile", "phone"),
    )
    location: str = PydanticField(default="", max_length=200)
    teens_adults: int = PydanticField(default=0, ge=0)
    kids: int = PydanticField(default=0, ge=0)
    thu_night: bool = False
    fri_reunion: bool = False
    fri_night: bool = False
    sat_reunion: bool = False
    sat_night: bool = False

    @field_validator("location", mode="before")
    @classmethod
    def blank_location(cls, value):
        return "" if value is None else value

    @field_validator("teens_adults", "kids", mode="before")
    @classmethod
    def blank_count_is_zero(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return 0
        return value

    @field_validator(*SESSION_FLAGS, mode="before")
    @classmethod
    def blank_flag_is_false(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return False
        return value

    def record_values(self) -> dict:
        """Column values for ``RegistrationRecord``, without keys or timestamps."""
        return self.model_dump()


class RegistrationRecord(SQLModel, table=True):
    """A participant's registration, one per principal.

    Attributes:
        id: Autoincrementing row id.
        principal_id: Identity-service user id (unique).
        participant_name, email, mobile, location: Contact details.
        teens_adults, kids: Head counts.
        thu_night, fri_reunion, fri_night, sat_reunion, sat_night:
            Session attendance flags.
        qr_code_url: Public URL of the current check-in code image. Null
            until the first reconciliation generates one; replaced whenever
            the mobile number (or name/email) changes.
        created_at: First successful registration.
        updated_at: Last successful reconciliation.
    """
    __tablename__ = "registrations"

    id: int | None = Field(default=None, primary_key=True)
    principal_id: str = Field(index=True, unique=True)
    participant_name: str
    email: str
    mobile: str
    location: str = Field(default="")
    teens_adults: int = Field(default=0)
    kids: int = Field(default=0)
    thu_night: bool = Field(default=False)
    fri_reunion: bool = Field(default=False)
    fri_night: bool = Field(default=False)
    sat_reunion: bool = Field(default=False)
    sat_night: bool = Field(default=False)
    qr_code_url: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def public_dict(self) -> dict:
        """Fields returned to the registrant by ``GET /get-registration``."""
        return self.model_dump(mode="json", exclude={"id", "principal_id"})
