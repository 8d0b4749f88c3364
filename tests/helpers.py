"""Shared helpers for building authenticated requests."""

from typing import Dict

from livestreams.core.security import JWTHandler
from livestreams.models.users import User


def make_access_token(user: User, refresh: bool = False) -> str:
    return JWTHandler.create_access_token(
        user_data={"id": str(user.id), "email": user.email, "name": user.name},
        refresh=refresh,
    )


def auth_headers(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_access_token(user)}"}
