from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import ValidationError
from sqlmodel.ext.asyncio.session import AsyncSession

from livestreams.core.deps import get_current_caller, get_optional_caller
from livestreams.core.exceptions import (
    ForbiddenException,
    ResourceNotFoundException,
    ValidationException,
    field_errors,
)
from livestreams.core.permissions import (
    StreamFilter,
    build_stream_predicate,
    can_modify,
    can_view,
)
from livestreams.crud.streams import StreamCrud
from livestreams.db.session import get_session
from livestreams.models.streams import Stream
from livestreams.schemas.streams import (
    StreamCreate,
    StreamDeleted,
    StreamRead,
    StreamUpdate,
    StreamWithOwner,
)
from livestreams.schemas.users import Caller
from livestreams.services.streams import StreamService
from livestreams.utils.helper import (
    clamp,
    parse_bool,
    parse_int,
    parse_visibilities,
)

stream_router = APIRouter(tags=["streams"])
stream_crud = StreamCrud()
stream_service = StreamService()

DEFAULT_TAKE = 20
MAX_TAKE = 50


async def get_modifiable_stream(
    session: AsyncSession, id_or_slug: str, caller: Caller
) -> Stream:
    """
    Resolve a stream for PATCH/DELETE.

    A stream the caller cannot view answers 404 exactly like a missing one,
    so private streams are not disclosed; a visible stream owned by someone
    else answers 403.
    """
    stream = await stream_crud.resolve(session, id_or_slug)
    if stream is None or not can_view(stream, caller.id):
        raise ResourceNotFoundException(resource_type="Stream", resource_id=id_or_slug)
    if not can_modify(stream, caller.id):
        raise ForbiddenException(message="Only the owner can change this stream")
    return stream


@stream_router.post(
    "",
    response_model=StreamRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_stream(
    stream_data: StreamCreate,
    session: Annotated[AsyncSession, Depends(get_session)],
    caller: Annotated[Caller, Depends(get_current_caller)],
) -> StreamRead:
    """Create a new stream owned by the caller"""
    stream = await stream_service.create_stream(session, caller.id, stream_data)
    return StreamRead.model_validate(stream)


@stream_router.get("", response_model=List[StreamWithOwner])
async def list_streams(
    session: Annotated[AsyncSession, Depends(get_session)],
    caller: Annotated[Optional[Caller], Depends(get_optional_caller)],
    q: Optional[str] = None,
    is_live: Annotated[Optional[str], Query(alias="isLive")] = None,
    mine: Optional[str] = None,
    visibility: Annotated[Optional[List[str]], Query()] = None,
    take: Optional[str] = None,
    skip: Optional[str] = None,
) -> List[StreamWithOwner]:
    """
    List discoverable streams, newest activity first.

    Malformed query values fall back to their defaults instead of failing.
    """
    stream_filter = StreamFilter(
        search=q,
        is_live=parse_bool(is_live),
        visibilities=parse_visibilities(visibility),
        mine_only=mine == "true",
    )
    predicate = build_stream_predicate(stream_filter, caller.id if caller else None)

    streams = await stream_crud.list_streams(
        session,
        predicate,
        limit=clamp(parse_int(take, DEFAULT_TAKE), 1, MAX_TAKE),
        offset=clamp(parse_int(skip, 0), 0),
    )
    return [StreamWithOwner.model_validate(stream) for stream in streams]


@stream_router.get("/{id_or_slug}", response_model=StreamWithOwner)
async def get_stream(
    id_or_slug: str,
    session: Annotated[AsyncSession, Depends(get_session)],
    caller: Annotated[Optional[Caller], Depends(get_optional_caller)],
) -> StreamWithOwner:
    stream = await stream_crud.resolve(session, id_or_slug, with_owner=True)
    if not can_view(stream, caller.id if caller else None):
        raise ResourceNotFoundException(resource_type="Stream", resource_id=id_or_slug)
    return StreamWithOwner.model_validate(stream)


@stream_router.patch("/{id_or_slug}", response_model=StreamRead)
async def update_stream(
    request: Request,
    id_or_slug: str,
    session: Annotated[AsyncSession, Depends(get_session)],
    caller: Annotated[Caller, Depends(get_current_caller)],
) -> StreamRead:
    """
    Apply a partial update.

    The body is read inside the handler so that resolve and access checks
    answer before any payload error.
    """
    stream = await get_modifiable_stream(session, id_or_slug, caller)

    try:
        payload = await request.json()
    except ValueError as e:
        raise ValidationException(message="Request body must be valid JSON") from e
    if not isinstance(payload, dict):
        raise ValidationException(message="Request body must be a JSON object")

    try:
        stream_data = StreamUpdate.model_validate(payload)
    except ValidationError as e:
        raise ValidationException(
            message="Invalid input",
            details={"fields": field_errors(list(e.errors()))},
        ) from e

    stream = await stream_service.update_stream(session, stream, stream_data)
    return StreamRead.model_validate(stream)


@stream_router.delete("/{id_or_slug}", response_model=StreamDeleted)
async def delete_stream(
    id_or_slug: str,
    session: Annotated[AsyncSession, Depends(get_session)],
    caller: Annotated[Caller, Depends(get_current_caller)],
) -> StreamDeleted:
    stream = await get_modifiable_stream(session, id_or_slug, caller)
    await stream_service.delete_stream(session, stream)
    return StreamDeleted()
