"""
Google sign-in (OpenID Connect authorization code flow).

The browser is sent to Google's consent screen with a random ``state`` value,
Google redirects back with a ``code`` which is exchanged for an access token,
and the userinfo endpoint supplies the profile used to find or create the
local account.
"""

import logging
from typing import Any, Dict
from urllib.parse import urlencode

import httpx
from fastapi import status
from pydantic import ValidationError

from livestreams.core.config import settings
from livestreams.core.exceptions import AppException, ExternalServiceException
from livestreams.schemas.users import GoogleProfile

logger = logging.getLogger(__name__)

GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
GOOGLE_SCOPES = "openid email profile"

STATE_COOKIE_NAME = "google_oauth_state"
STATE_COOKIE_MAX_AGE = 10 * 60


class GoogleOAuthClient:
    def __init__(
        self,
        client_id: str | None,
        client_secret: str | None,
        redirect_uri: str | None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri

    @property
    def enabled(self) -> bool:
        return bool(self.client_id and self.client_secret and self.redirect_uri)

    def _ensure_enabled(self) -> None:
        if not self.enabled:
            raise AppException(
                message="Google sign-in is not configured.",
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                error_code="SERVICE_UNAVAILABLE",
                log_error=False,
            )

    def authorization_url(self, state: str) -> str:
        self._ensure_enabled()
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": GOOGLE_SCOPES,
            "state": state,
            "access_type": "online",
            "prompt": "select_account",
        }
        return f"{GOOGLE_AUTHORIZE_URL}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> str:
        """Trade an authorization code for a Google access token."""
        self._ensure_enabled()
        data = {
            "code": code,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": self.redirect_uri,
            "grant_type": "authorization_code",
        }
        timeout = httpx.Timeout(10, connect=5)
        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                response = await client.post(GOOGLE_TOKEN_URL, data=data)
                response.raise_for_status()
                payload: Dict[str, Any] = response.json()
        except httpx.HTTPError as e:
            logger.warning(f"Google code exchange failed: {e}")
            raise ExternalServiceException("Google", "code exchange failed") from e

        access_token = payload.get("access_token")
        if not access_token:
            logger.warning("Google token response has no access_token")
            raise ExternalServiceException("Google", "no access token returned")
        return str(access_token)

    async def fetch_profile(self, access_token: str) -> GoogleProfile:
        timeout = httpx.Timeout(10, connect=5)
        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                response = await client.get(
                    GOOGLE_USERINFO_URL,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            logger.warning(f"Google userinfo request failed: {e}")
            raise ExternalServiceException("Google", "userinfo request failed") from e

        try:
            return GoogleProfile.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Unexpected Google userinfo payload: {e}")
            raise ExternalServiceException("Google", "invalid userinfo payload") from e


def get_google_client() -> GoogleOAuthClient:
    return GoogleOAuthClient(
        client_id=settings.GOOGLE_CLIENT_ID,
        client_secret=settings.GOOGLE_CLIENT_SECRET,
        redirect_uri=settings.GOOGLE_OAUTH_REDIRECT_URI,
    )
