import logging
from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.security import OAuth2PasswordRequestForm
from sqlmodel.ext.asyncio.session import AsyncSession

from livestreams.core.config import settings
from livestreams.core.deps import (
    AccessTokenBearer,
    RefreshTokenBearer,
    user_id_from_token,
)
from livestreams.core.exceptions import (
    ConflictException,
    UnauthorizedException,
    ValidationException,
)
from livestreams.core.redis import add_jti_to_blocklist
from livestreams.core.security import JWTHandler, TokenData, generate_token
from livestreams.crud.users import UserCRUD
from livestreams.db.session import get_session
from livestreams.models.users import User
from livestreams.schemas.users import TokenRead, UserCreate, UserRead
from livestreams.services.google_oauth import (
    STATE_COOKIE_MAX_AGE,
    STATE_COOKIE_NAME,
    GoogleOAuthClient,
    get_google_client,
)
from livestreams.utils.helper import get_client_ip

logger = logging.getLogger(__name__)

auth_crud = UserCRUD()
auth_router = APIRouter(tags=["auth"])

# Where the browser lands after a successful Google sign-in
POST_LOGIN_REDIRECT = "/dashboard"


def token_claims(user: User) -> Dict[str, Any]:
    return {"id": str(user.id), "email": user.email, "name": user.name}


def set_access_cookie(response: Response, access_token: str) -> None:
    response.set_cookie(
        key=settings.ACCESS_TOKEN_COOKIE_NAME,
        value=access_token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        samesite="lax",
        secure=settings.ENVIRONMENT == "production",
    )


def issue_tokens(user: User) -> TokenRead:
    claims = token_claims(user)
    return TokenRead(
        access_token=JWTHandler.create_access_token(user_data=claims),
        refresh_token=JWTHandler.create_access_token(user_data=claims, refresh=True),
        token_type="bearer",
    )


@auth_router.post(
    "/register", response_model=UserRead, status_code=status.HTTP_201_CREATED
)
async def register_user(
    user_create: UserCreate,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> UserRead:
    if await auth_crud.email_exists(session, str(user_create.email)):
        raise ConflictException(
            message="Email already in use.",
            details={"field": "email"},
        )

    new_user = await auth_crud.create_user(session, user_create)
    logger.info(f"User registered: {new_user.id}")
    return UserRead.model_validate(new_user)


@auth_router.post("/login", response_model=TokenRead)
async def login(
    request: Request,
    response: Response,
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> TokenRead:
    user = await auth_crud.verify_credentials(
        session, form_data.username, form_data.password
    )
    if user is None:
        logger.info(f"Failed login from {get_client_ip(request)}")
        raise UnauthorizedException(message="Invalid email or password.")

    tokens = issue_tokens(user)
    set_access_cookie(response, tokens.access_token)
    return tokens


@auth_router.post("/refresh", response_model=TokenRead)
async def refresh_access_token(
    response: Response,
    token_data: Annotated[TokenData, Depends(RefreshTokenBearer())],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> TokenRead:
    user_id = user_id_from_token(token_data)
    user = await auth_crud.get_user_by_id(session, user_id) if user_id else None
    if user is None:
        raise UnauthorizedException(message="Token invalid or expired")

    access_token = JWTHandler.create_access_token(user_data=token_claims(user))
    set_access_cookie(response, access_token)
    return TokenRead(access_token=access_token, token_type="bearer")


@auth_router.post("/logout")
async def logout(
    token_data: Annotated[TokenData, Depends(AccessTokenBearer())],
) -> JSONResponse:
    await add_jti_to_blocklist(token_data["jti"])
    response = JSONResponse(
        status_code=status.HTTP_200_OK,
        content={"message": "Successfully logged out."},
    )
    response.delete_cookie(settings.ACCESS_TOKEN_COOKIE_NAME)
    return response


@auth_router.get("/google/login")
async def google_login(
    google: Annotated[GoogleOAuthClient, Depends(get_google_client)],
) -> RedirectResponse:
    state = generate_token()
    response = RedirectResponse(
        google.authorization_url(state), status_code=status.HTTP_302_FOUND
    )
    response.set_cookie(
        key=STATE_COOKIE_NAME,
        value=state,
        max_age=STATE_COOKIE_MAX_AGE,
        httponly=True,
        samesite="lax",
        secure=settings.ENVIRONMENT == "production",
    )
    return response


@auth_router.get("/google/callback")
async def google_callback(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_session)],
    google: Annotated[GoogleOAuthClient, Depends(get_google_client)],
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
) -> RedirectResponse:
    if error:
        logger.info(f"Google sign-in declined: {error}")
        raise UnauthorizedException(message="Google sign-in was cancelled.")

    expected_state = request.cookies.get(STATE_COOKIE_NAME)
    if not state or not expected_state or state != expected_state:
        logger.warning(f"Google callback state mismatch from {get_client_ip(request)}")
        raise ValidationException(
            message="Invalid OAuth state.", details={"field": "state"}
        )
    if not code:
        raise ValidationException(
            message="Missing authorization code.", details={"field": "code"}
        )

    google_token = await google.exchange_code(code)
    profile = await google.fetch_profile(google_token)
    if not profile.email_verified:
        logger.warning(f"Google login rejected, unverified email {profile.email}")
        raise UnauthorizedException(message="Google account email is not verified.")

    user = await auth_crud.get_or_create_from_google(session, profile)
    logger.info(f"Google sign-in for user {user.id}")

    tokens = issue_tokens(user)
    response = RedirectResponse(POST_LOGIN_REDIRECT, status_code=status.HTTP_302_FOUND)
    set_access_cookie(response, tokens.access_token)
    response.delete_cookie(STATE_COOKIE_NAME)
    return response
