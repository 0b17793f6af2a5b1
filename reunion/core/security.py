"""Bearer-token verification for registration routes.

``require_principal`` is a FastAPI dependency: it runs before the route
body, so no registration row is read or written for a caller the identity
service has not vouched for.
"""
import logging

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from reunion.collaborators import Collaborators, get_collaborators
from reunion.core.errors import Unauthorized
from reunion.models import Principal

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def extract_bearer_token(credentials: HTTPAuthorizationCredentials | None) -> str:
    """Return the raw token or raise ``Unauthorized``."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise Unauthorized("Missing bearer token")
    token = credentials.credentials.strip()
    if not token:
        raise Unauthorized("Missing bearer token")
    return token


async def require_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    collaborators: Collaborators = Depends(get_collaborators),
) -> Principal:
    """Verify the caller's bearer token and return who they are."""
    token = extract_bearer_token(credentials)
    principal = await collaborators.identity.verify_token(token)
    logger.debug(f"Verified principal {principal.id}")
    return principal
