from typing import Annotated

from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from livestreams.core.deps import get_current_caller
from livestreams.core.exceptions import UnauthorizedException
from livestreams.crud.users import UserCRUD
from livestreams.db.session import get_session
from livestreams.schemas.users import Caller, UserRead

users_router = APIRouter(tags=["users"])
user_crud = UserCRUD()


@users_router.get("/me", response_model=UserRead, status_code=200)
async def read_me(
    caller: Annotated[Caller, Depends(get_current_caller)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> UserRead:
    user = await user_crud.get_user_by_id(session, caller.id)
    if user is None:
        raise UnauthorizedException(message="Authentication required")
    return UserRead.model_validate(user)
