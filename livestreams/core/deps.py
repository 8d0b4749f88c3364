import logging
import uuid
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer
from fastapi.security.http import HTTPAuthorizationCredentials
from sqlmodel.ext.asyncio.session import AsyncSession

from livestreams.core.config import settings
from livestreams.core.exceptions import UnauthorizedException
from livestreams.core.redis import token_in_blocklist
from livestreams.core.security import JWTHandler, TokenData
from livestreams.crud.users import UserCRUD
from livestreams.db.session import get_session
from livestreams.schemas.users import Caller

logger = logging.getLogger(__name__)

user_crud = UserCRUD()


class TokenBearer(HTTPBearer):
    """
    Reads a JWT from the ``Authorization: Bearer`` header, falling back to the
    access token cookie set at login so that server-rendered pages share the
    same identity. With ``required=False`` a missing or unusable token yields
    ``None`` instead of a 401.
    """

    def __init__(self, required: bool = True) -> None:
        super().__init__(scheme_name="Bearer", auto_error=False)
        self.required = required

    def _fail(self, message: str) -> None:
        if self.required:
            raise UnauthorizedException(message=message)

    async def __call__(self, request: Request) -> Optional[TokenData]:  # type: ignore[override]
        creds: HTTPAuthorizationCredentials | None = await super().__call__(request)
        token = (
            creds.credentials
            if creds is not None
            else request.cookies.get(settings.ACCESS_TOKEN_COOKIE_NAME)
        )

        if not token:
            self._fail("Authentication required")
            return None

        token_data = JWTHandler.decode_token(token)
        if token_data is None:
            self._fail("Token invalid or expired")
            return None

        if await token_in_blocklist(token_data["jti"]):
            self._fail("Token invalid or revoked")
            return None

        if not self.verify_token_data(token_data):
            return None
        return token_data

    def verify_token_data(self, token_data: TokenData) -> bool:
        raise NotImplementedError("Please override this method in child classes")


class AccessTokenBearer(TokenBearer):
    def verify_token_data(self, token_data: TokenData) -> bool:
        if token_data["refresh"]:
            self._fail("Please provide an access token")
            return False
        return True


class RefreshTokenBearer(TokenBearer):
    def verify_token_data(self, token_data: TokenData) -> bool:
        if not token_data["refresh"]:
            self._fail("Please provide a refresh token")
            return False
        return True


def user_id_from_token(token_data: TokenData) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(token_data["user"]["id"]))
    except (KeyError, TypeError, ValueError):
        return None


async def get_optional_caller(
    token_data: Optional[TokenData] = Depends(AccessTokenBearer(required=False)),  # noqa: B008
    session: AsyncSession = Depends(get_session),  # noqa: B008
) -> Optional[Caller]:
    """Resolve the caller identity, or ``None`` for anonymous requests."""
    if token_data is None:
        return None

    caller_id = user_id_from_token(token_data)
    if caller_id is None:
        return None

    user = await user_crud.get_user_by_id(session, caller_id)
    if user is None:
        logger.debug(f"Token refers to unknown user {caller_id}")
        return None

    return Caller.model_validate(user)


async def get_current_caller(
    caller: Optional[Caller] = Depends(get_optional_caller),  # noqa: B008
) -> Caller:
    if caller is None:
        raise UnauthorizedException(message="Authentication required")
    return caller
