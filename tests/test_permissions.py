"""Tests for the stream access policy."""

import uuid

import pytest
from sqlalchemy.dialects import sqlite

from livestreams.core.exceptions import UnauthorizedException
from livestreams.core.permissions import (
    StreamFilter,
    build_stream_predicate,
    can_modify,
    can_view,
    list_visibility_scope,
)
from livestreams.enums.streams import Visibility
from livestreams.models.streams import Stream

OWNER_ID = uuid.uuid4()
OTHER_ID = uuid.uuid4()


def make_stream(visibility: Visibility) -> Stream:
    return Stream(
        id=uuid.uuid4(),
        user_id=OWNER_ID,
        slug="some-stream",
        title="Some stream",
        visibility=visibility,
    )


def compiled(predicate) -> str:
    return str(predicate.compile(dialect=sqlite.dialect()))


def bound_values(predicate) -> list:
    values = []
    for value in predicate.compile(dialect=sqlite.dialect()).params.values():
        values.extend(value if isinstance(value, (list, tuple)) else [value])
    return values


class TestCanView:
    @pytest.mark.parametrize(
        "visibility, caller_id, expected",
        [
            (Visibility.PUBLIC, OWNER_ID, True),
            (Visibility.PUBLIC, OTHER_ID, True),
            (Visibility.PUBLIC, None, True),
            (Visibility.UNLISTED, OWNER_ID, True),
            (Visibility.UNLISTED, OTHER_ID, True),
            (Visibility.UNLISTED, None, True),
            (Visibility.PRIVATE, OWNER_ID, True),
            (Visibility.PRIVATE, OTHER_ID, False),
            (Visibility.PRIVATE, None, False),
        ],
    )
    def test_visibility_table(self, visibility, caller_id, expected):
        assert can_view(make_stream(visibility), caller_id) is expected

    def test_missing_stream(self):
        assert can_view(None, OWNER_ID) is False


class TestCanModify:
    @pytest.mark.parametrize("visibility", list(Visibility))
    def test_only_owner(self, visibility):
        stream = make_stream(visibility)

        assert can_modify(stream, OWNER_ID) is True
        assert can_modify(stream, OTHER_ID) is False
        assert can_modify(stream, None) is False

    def test_missing_stream(self):
        assert can_modify(None, OWNER_ID) is False


class TestListVisibilityScope:
    def test_mine_requires_caller(self):
        with pytest.raises(UnauthorizedException):
            list_visibility_scope(None, mine_only=True)

    def test_mine_is_owner_only(self):
        predicate = list_visibility_scope(OWNER_ID, mine_only=True)

        assert "streams.user_id" in compiled(predicate)
        assert "visibility" not in compiled(predicate)
        assert bound_values(predicate) == [OWNER_ID]

    def test_anonymous_sees_public_only(self):
        values = bound_values(list_visibility_scope(None))

        assert values == [Visibility.PUBLIC]

    def test_signed_in_never_lists_private(self):
        values = bound_values(list_visibility_scope(OTHER_ID))

        assert set(values) == {Visibility.PUBLIC, Visibility.UNLISTED}


class TestBuildStreamPredicate:
    def test_empty_filter_is_just_the_scope(self):
        sql = compiled(build_stream_predicate(StreamFilter(), None))

        assert "lower" not in sql
        assert "is_live" not in sql

    def test_all_conditions_are_combined(self):
        stream_filter = StreamFilter(
            search="  Chess ",
            is_live=True,
            visibilities=[Visibility.UNLISTED],
        )
        predicate = build_stream_predicate(stream_filter, OWNER_ID)

        sql = compiled(predicate)
        values = bound_values(predicate)

        assert "streams.is_live" in sql
        assert " AND " in sql
        assert "LIKE" in sql.upper()
        assert "Chess" in values

    def test_blank_search_is_ignored(self):
        sql = compiled(build_stream_predicate(StreamFilter(search="   "), None))

        assert "LIKE" not in sql.upper()
