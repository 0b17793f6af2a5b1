"""Error taxonomy for the registration service.

Every error carries the HTTP status it maps to and a human-readable
message. ``reunion.main`` registers a single handler that renders any
``ReunionError`` as ``{"message": ...}`` JSON, so routes and services only
need to raise.
"""


class ReunionError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"message": self.message}


class Unauthorized(ReunionError):
    """Missing, malformed, rejected or expired bearer token."""

    status_code = 401


class BadRequest(ReunionError):
    """The request is missing something the route cannot do without."""

    status_code = 400


class HumanVerificationFailed(ReunionError):
    """The CAPTCHA service did not vouch for the caller."""

    status_code = 403


class ValidationFailure(ReunionError):
    """Malformed or missing request fields."""

    status_code = 422

    def __init__(self, message: str, errors: list | None = None):
        super().__init__(message)
        self.errors = errors or []

    def to_dict(self) -> dict:
        return {"message": self.message, "errors": self.errors}


class CollaboratorFailure(ReunionError):
    """An identity, storage, email or database call failed."""

    status_code = 500

    def __init__(self, service: str, message: str):
        super().__init__(message)
        self.service = service


class ReconciliationError(ReunionError):
    """A registration attempt failed at a specific stage."""

    status_code = 500

    def __init__(self, stage, message: str):
        super().__init__(message)
        self.stage = stage

    def to_dict(self) -> dict:
        return {"message": self.message, "stage": str(self.stage)}


class RateLimited(ReunionError):
    """The client exhausted its request window."""

    status_code = 429

    def __init__(self, message: str, headers: dict[str, str]):
        super().__init__(message)
        self.headers = headers
