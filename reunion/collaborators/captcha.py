"""Human-verification client (Google reCAPTCHA v3)."""
import logging

import httpx

from reunion.core.errors import CollaboratorFailure

logger = logging.getLogger(__name__)


class CaptchaClient:
    """Checks challenge tokens; passes when ``success`` and ``score >= min_score``."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        verify_url: str,
        secret_key: str,
        min_score: float = 0.5,
    ):
        self.http = http
        self.verify_url = verify_url
        self.secret_key = secret_key
        self.min_score = min_score

    async def verify(self, token: str | None) -> bool:
        if not token:
            return False
        try:
            response = await self.http.post(
                self.verify_url,
                params={"secret": self.secret_key, "response": token},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise CollaboratorFailure("captcha", f"Human verification unavailable: {e}") from e

        data = response.json()
        score = data.get("score", 0.0)
        passed = bool(data.get("success")) and score >= self.min_score
        if not passed:
            logger.info(f"CAPTCHA rejected (success={data.get('success')}, score={score})")
        return passed
