import uuid
from typing import Any, List, Optional, Sequence

from sqlalchemy import ColumnElement
from sqlalchemy.orm import selectinload
from sqlmodel import desc, select
from sqlmodel.ext.asyncio.session import AsyncSession

from livestreams.crud.base import BaseCRUD
from livestreams.models.streams import Stream
from livestreams.models.users import User  # noqa: F401  (resolves Stream.user)

# Newest activity first
DEFAULT_ORDER: Sequence[Any] = (desc(Stream.updated_at),)
# Explore page: live streams before offline ones, then newest activity
LIVE_FIRST_ORDER: Sequence[Any] = (desc(Stream.is_live), desc(Stream.updated_at))


def parse_stream_id(value: str) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(value)
    except ValueError:
        return None


class StreamCrud(BaseCRUD[Stream]):

    def __init__(self) -> None:
        super().__init__(Stream)

    async def get_stream_by_id(
        self, session: AsyncSession, stream_id: uuid.UUID, with_owner: bool = False
    ) -> Optional[Stream]:
        """Get stream by ID"""
        stmt = select(Stream).where(Stream.id == stream_id)
        if with_owner:
            stmt = stmt.options(selectinload(Stream.user))
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_stream_by_slug(
        self, session: AsyncSession, slug: str, with_owner: bool = False
    ) -> Optional[Stream]:
        """Get stream by slug"""
        stmt = select(Stream).where(Stream.slug == slug)
        if with_owner:
            stmt = stmt.options(selectinload(Stream.user))
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def resolve(
        self, session: AsyncSession, id_or_slug: str, with_owner: bool = False
    ) -> Optional[Stream]:
        """Look a stream up by id first, then by slug."""
        stream_id = parse_stream_id(id_or_slug)
        if stream_id is not None:
            stream = await self.get_stream_by_id(session, stream_id, with_owner)
            if stream is not None:
                return stream
        return await self.get_stream_by_slug(session, id_or_slug, with_owner)

    @staticmethod
    async def list_streams(
        session: AsyncSession,
        predicate: ColumnElement[bool],
        order_by: Sequence[Any] = DEFAULT_ORDER,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Stream]:
        stmt = (
            select(Stream)
            .where(predicate)
            .options(selectinload(Stream.user))
            .order_by(*order_by)
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return list(result.scalars().all())
