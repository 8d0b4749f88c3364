from fastapi import APIRouter

from livestreams.api.v1.https import auth, streams, users
from livestreams.core.config import settings

routes = APIRouter()

routes.include_router(auth.auth_router, prefix=f"{settings.API_V1_STR}/auth")
routes.include_router(users.users_router, prefix=f"{settings.API_V1_STR}/users")
routes.include_router(streams.stream_router, prefix=f"{settings.API_V1_STR}/streams")
