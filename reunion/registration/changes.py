"""Classify how a registration submission differs from the stored record."""
from enum import StrEnum

from reunion.models import RegistrationPayload, RegistrationRecord

# Fields whose change invalidates the current check-in code. Only the
# mobile number is encoded; name and email are compared as well so a
# client holding stale details cannot keep an old code.
IDENTITY_FIELDS = ("participant_name", "email", "mobile")


class ChangeKind(StrEnum):
    NONE = "none"
    METADATA_ONLY = "metadata_only"
    IDENTITY_AFFECTING = "identity_affecting"


def classify(prior: RegistrationRecord | None, payload: RegistrationPayload) -> ChangeKind:
    """
    Compare a submission with the principal's stored record.

    A missing record counts as identity-affecting: the first registration
    always needs a check-in code.
    """
    if prior is None:
        return ChangeKind.IDENTITY_AFFECTING

    incoming = payload.record_values()
    if any(getattr(prior, field) != incoming[field] for field in IDENTITY_FIELDS):
        return ChangeKind.IDENTITY_AFFECTING
    if any(getattr(prior, field) != value for field, value in incoming.items()):
        return ChangeKind.METADATA_ONLY
    return ChangeKind.NONE


def must_regenerate(prior: RegistrationRecord | None, payload: RegistrationPayload) -> bool:
    """True when a new check-in code must be generated and sent."""
    return classify(prior, payload) is ChangeKind.IDENTITY_AFFECTING
