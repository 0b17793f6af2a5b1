"""Verified caller identity.

A ``Principal`` is what the identity service hands back for a valid
bearer token. It is never persisted on its own; its ``id`` is the natural
key of a registration.
"""

from pydantic import BaseModel, ConfigDict


class Principal(BaseModel):
    """An authenticated caller.

    Attributes:
        id: Opaque user id issued by the identity service.
        email: Account email, when the identity service returns one.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    email: str | None = None
