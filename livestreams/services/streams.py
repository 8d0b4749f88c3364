import logging
import uuid
from functools import partial
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession

from livestreams.core.exceptions import ConflictException, DatabaseException
from livestreams.crud.streams import StreamCrud
from livestreams.models.streams import Stream
from livestreams.schemas.streams import StreamCreate, StreamUpdate
from livestreams.services.slugs import assign_unique_slug

logger = logging.getLogger(__name__)

# Give up after this many lost races for the same slug
SLUG_CONFLICT_RETRIES = 10

stream_crud = StreamCrud()


class StreamService:
    """
    Writes to the stream table.

    Slugs are picked with an optimistic pre-check; the unique index on
    ``streams.slug`` decides. When a concurrent writer takes the picked slug
    first, the commit fails with an IntegrityError and the slug is assigned
    again, which moves on to the next numeric suffix.
    """

    @staticmethod
    async def _slug_taken_by_other(
        session: AsyncSession, slug: str, stream_id: Optional[uuid.UUID]
    ) -> bool:
        existing = await stream_crud.get_stream_by_slug(session, slug)
        return existing is not None and existing.id != stream_id

    async def create_stream(
        self, session: AsyncSession, user_id: uuid.UUID, stream_data: StreamCreate
    ) -> Stream:
        exists_by_slug = partial(stream_crud.get_stream_by_slug, session)

        for _ in range(SLUG_CONFLICT_RETRIES):
            slug = await assign_unique_slug(stream_data.title, exists_by_slug)
            new_stream = Stream(
                user_id=user_id,
                slug=slug,
                title=stream_data.title,
                description=stream_data.description,
                visibility=stream_data.visibility,
                hls_url=stream_data.hls_url,
            )
            try:
                stream = await stream_crud.create(session, new_stream)
            except IntegrityError as e:
                if not await self._slug_taken_by_other(session, slug, None):
                    raise DatabaseException(
                        message="Could not create stream",
                        details={"reason": "integrity_error"},
                    ) from e
                logger.warning(f"Slug '{slug}' was taken concurrently, retrying")
                continue

            logger.info(f"Stream created: {stream.id} ({stream.slug}) by {user_id}")
            return stream

        raise ConflictException(
            message="Could not assign a unique slug, please retry.",
            details={"field": "slug"},
        )

    async def update_stream(
        self, session: AsyncSession, stream: Stream, stream_data: StreamUpdate
    ) -> Stream:
        updates: Dict[str, Any] = stream_data.model_dump(exclude_unset=True)
        desired_slug = updates.pop("slug", None)
        stream_id = stream.id

        if desired_slug is None:
            return await stream_crud.update(session, stream, updates)

        exists_by_slug = partial(stream_crud.get_stream_by_slug, session)
        for _ in range(SLUG_CONFLICT_RETRIES):
            slug = await assign_unique_slug(
                desired_slug, exists_by_slug, exclude_id=stream_id
            )
            try:
                return await stream_crud.update(
                    session, stream, {**updates, "slug": slug}
                )
            except IntegrityError as e:
                # rollback expired the instance and dropped the pending changes
                await session.refresh(stream)
                if not await self._slug_taken_by_other(session, slug, stream_id):
                    raise DatabaseException(
                        message="Could not update stream",
                        details={"reason": "integrity_error"},
                    ) from e
                logger.warning(f"Slug '{slug}' was taken concurrently, retrying")

        raise ConflictException(
            message="Could not assign a unique slug, please retry.",
            details={"field": "slug"},
        )

    @staticmethod
    async def delete_stream(session: AsyncSession, stream: Stream) -> None:
        stream_id = stream.id
        await stream_crud.delete(session, stream)
        logger.info(f"Stream deleted: {stream_id}")

