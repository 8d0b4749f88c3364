"""
Stream access policy.

Who may see, list, change or delete a stream depends only on ownership and
the stream's visibility. The caller is passed in explicitly; ``None`` means
anonymous.
"""

import uuid
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy import ColumnElement, and_, func, or_

from livestreams.core.exceptions import UnauthorizedException
from livestreams.enums.streams import Visibility
from livestreams.models.streams import Stream


def can_view(stream: Optional[Stream], caller_id: Optional[uuid.UUID]) -> bool:
    if stream is None:
        return False
    if stream.visibility == Visibility.PRIVATE and stream.user_id != caller_id:
        return False
    return True


def can_modify(stream: Optional[Stream], caller_id: Optional[uuid.UUID]) -> bool:
    if stream is None or caller_id is None:
        return False
    return stream.user_id == caller_id


def list_visibility_scope(
    caller_id: Optional[uuid.UUID], mine_only: bool = False
) -> ColumnElement[bool]:
    """
    Base predicate for stream listings.

    Public streams are listed for everyone, unlisted ones (the caller's own
    included) only for signed-in callers. Private streams never show up in
    discovery, not even for their owner; ``mine_only`` lists all of the
    caller's streams whatever their visibility.
    """
    if mine_only:
        if caller_id is None:
            raise UnauthorizedException(message="Sign in to list your own streams")
        return Stream.user_id == caller_id

    if caller_id is None:
        return Stream.visibility == Visibility.PUBLIC

    return Stream.visibility.in_([Visibility.PUBLIC, Visibility.UNLISTED])


@dataclass
class StreamFilter:
    """Optional narrowing applied on top of the visibility scope."""

    search: Optional[str] = None
    is_live: Optional[bool] = None
    visibilities: List[Visibility] = field(default_factory=list)
    mine_only: bool = False


def search_predicate(term: str) -> ColumnElement[bool]:
    # autoescape keeps "%" and "_" in the term literal
    return or_(
        Stream.title.icontains(term, autoescape=True),
        func.coalesce(Stream.description, "").icontains(term, autoescape=True),
    )


def build_stream_predicate(
    stream_filter: StreamFilter, caller_id: Optional[uuid.UUID]
) -> ColumnElement[bool]:
    conditions: List[ColumnElement[bool]] = [
        list_visibility_scope(caller_id, stream_filter.mine_only)
    ]

    search = (stream_filter.search or "").strip()
    if search:
        conditions.append(search_predicate(search))

    if stream_filter.is_live is not None:
        conditions.append(Stream.is_live == stream_filter.is_live)

    if stream_filter.visibilities:
        conditions.append(Stream.visibility.in_(stream_filter.visibilities))

    return and_(*conditions)
