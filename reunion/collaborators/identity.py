"""Identity service client (Supabase Auth REST API).

Covers the three calls the app makes: exchanging a bearer token for the
user it belongs to, creating an email/password account and logging in
with a password.
"""
import logging

import httpx

from reunion.collaborators._http import error_message
from reunion.core.errors import CollaboratorFailure, Unauthorized
from reunion.models import Principal

logger = logging.getLogger(__name__)


class IdentityClient:
    """Async client for the identity service."""

    def __init__(self, http: httpx.AsyncClient, base_url: str, api_key: str):
        self.http = http
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key

    def _headers(self, token: str | None = None) -> dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {token or self.api_key}",
        }

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            return await self.http.request(method, f"{self.base_url}/auth/v1{path}", **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Identity service call {path} failed: {e}")
            raise CollaboratorFailure("identity", f"Identity service unavailable: {e}") from e

    async def verify_token(self, token: str) -> Principal:
        """Resolve a bearer token to the user it was issued to.

        Raises ``Unauthorized`` when the service rejects the token and
        ``CollaboratorFailure`` when the service cannot be reached.
        """
        response = await self._request("GET", "/user", headers=self._headers(token))
        if response.status_code in (400, 401, 403, 404):
            raise Unauthorized("Invalid or expired token")
        if response.is_error:
            raise CollaboratorFailure("identity", error_message(response))

        data = response.json()
        if not data.get("id"):
            raise Unauthorized("Invalid or expired token")
        return Principal(id=str(data["id"]), email=data.get("email"))

    async def create_account(self, email: str, password: str) -> dict:
        """Create an email/password account.

        Returns ``{"user": ..., "session": ...}``. ``session`` is ``None``
        while the account still awaits email confirmation.
        """
        response = await self._request(
            "POST",
            "/signup",
            headers=self._headers(),
            json={"email": email, "password": password},
        )
        if response.is_error:
            raise CollaboratorFailure("identity", error_message(response))

        data = response.json()
        if "access_token" in data:
            user = data.get("user")
            session = {k: v for k, v in data.items() if k != "user"}
        else:
            user = data.get("user", data)
            session = data.get("session")
        return {"user": user, "session": session}

    async def password_login(self, email: str, password: str) -> dict:
        """Exchange email and password for a session."""
        response = await self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            headers=self._headers(),
            json={"email": email, "password": password},
        )
        if response.status_code in (400, 401, 403):
            raise Unauthorized(error_message(response))
        if response.is_error:
            raise CollaboratorFailure("identity", error_message(response))
        return response.json()
