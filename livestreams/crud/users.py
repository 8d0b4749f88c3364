import uuid
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from livestreams.core.exceptions import ConflictException
from livestreams.core.security import get_password_hash, verify_password
from livestreams.crud.base import BaseCRUD
from livestreams.models.users import User
from livestreams.schemas.users import GoogleProfile, UserCreate


class UserCRUD(BaseCRUD[User]):
    def __init__(self) -> None:
        super().__init__(User)

    async def get_user_by_id(
        self, session: AsyncSession, user_id: uuid.UUID
    ) -> Optional[User]:
        return await self.get(session, user_id, field="id")

    async def get_by_email(self, session: AsyncSession, email: str) -> Optional[User]:
        return await self.get(session, email.strip().lower(), field="email")

    async def email_exists(self, session: AsyncSession, email: str) -> bool:
        statement = select(User.id).where(User.email == email.strip().lower())
        result = await session.execute(statement)
        return result.first() is not None

    async def create_user(self, session: AsyncSession, user_in: UserCreate) -> User:
        new_user = User(
            name=user_in.name,
            email=str(user_in.email),
            password_hash=get_password_hash(user_in.password),
        )
        try:
            return await self.create(session, new_user)
        except IntegrityError as e:
            # Lost a race with a concurrent registration for the same email
            raise ConflictException(
                message="Email already in use.",
                details={"field": "email"},
            ) from e

    async def verify_credentials(
        self, session: AsyncSession, email: str, password: str
    ) -> Optional[User]:
        user = await self.get_by_email(session, email)
        if user is None or not verify_password(password, user.password_hash):
            return None
        return user

    async def get_or_create_from_google(
        self, session: AsyncSession, profile: GoogleProfile
    ) -> User:
        """Find the account for a Google identity by email, creating it on first login."""
        email = str(profile.email).lower()
        user = await self.get_by_email(session, email)
        if user is None:
            try:
                return await self.create(
                    session,
                    User(name=profile.name, email=email, image=profile.picture),
                )
            except IntegrityError:
                # A concurrent first login created the account
                user = await self.get_by_email(session, email)
                if user is None:
                    raise

        updates = {}
        if not user.name and profile.name:
            updates["name"] = profile.name
        if not user.image and profile.picture:
            updates["image"] = profile.picture
        if updates:
            user = await self.update(session, user, updates)
        return user
