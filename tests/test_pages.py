"""Tests for the server-rendered pages."""

from fastapi import status

from helpers import auth_headers, make_access_token
from livestreams.core.config import settings
from livestreams.enums.streams import Visibility


class TestExplorePage:
    def test_sections_split_live_and_offline(self, client, created_user, stream_factory):
        stream_factory(created_user, slug="on-air", title="On Air Now", is_live=True)
        stream_factory(created_user, slug="recorded", title="Recorded Show")

        response = client.get("/streams")

        assert response.status_code == status.HTTP_200_OK
        assert "text/html" in response.headers["content-type"]
        html = response.text
        assert "Live now" in html and "All streams" in html
        assert html.index("On Air Now") < html.index("All streams") < html.index("Recorded Show")

    def test_empty_state(self, client):
        response = client.get("/streams")

        assert response.status_code == status.HTTP_200_OK
        assert "No streams found" in response.text

    def test_scope_matches_api(self, client, created_user, other_user, stream_factory):
        stream_factory(created_user, slug="open", title="Open Stream")
        stream_factory(
            created_user, slug="by-link", title="Link Only", visibility=Visibility.UNLISTED
        )
        stream_factory(
            created_user, slug="hidden", title="Hidden Stream", visibility=Visibility.PRIVATE
        )

        anonymous = client.get("/streams").text
        signed_in = client.get("/streams", headers=auth_headers(other_user)).text

        assert "Open Stream" in anonymous
        assert "Link Only" not in anonymous
        assert "Link Only" in signed_in
        assert "Hidden Stream" not in signed_in

    def test_filters(self, client, created_user, stream_factory):
        stream_factory(created_user, slug="chess", title="Chess Club", is_live=True)
        stream_factory(created_user, slug="cooking", title="Cooking Corner")

        searched = client.get("/streams", params={"q": "chess"}).text
        live_only = client.get("/streams", params={"live": "1"}).text

        assert "Chess Club" in searched and "Cooking Corner" not in searched
        assert "Chess Club" in live_only and "Cooking Corner" not in live_only

    def test_mine_is_ignored_for_anonymous(self, client, created_user, stream_factory):
        stream_factory(created_user, slug="open", title="Open Stream")

        response = client.get("/streams", params={"mine": "1"})

        assert response.status_code == status.HTTP_200_OK
        assert "Open Stream" in response.text

    def test_mine_with_cookie_identity(
        self, client, created_user, other_user, stream_factory
    ):
        stream_factory(created_user, slug="mine", title="Mine Private", visibility=Visibility.PRIVATE)
        stream_factory(other_user, slug="theirs", title="Their Stream")
        client.cookies.set(settings.ACCESS_TOKEN_COOKIE_NAME, make_access_token(created_user))

        html = client.get("/streams", params={"mine": "true"}).text

        assert "Mine Private" in html
        assert "Their Stream" not in html

    def test_titles_are_escaped(self, client, created_user, stream_factory):
        stream_factory(created_user, slug="xss", title="<script>alert(1)</script>")

        html = client.get("/streams").text

        assert "<script>alert(1)</script>" not in html
        assert "&lt;script&gt;" in html


class TestStreamPage:
    def test_view_by_slug(self, client, created_user, stream_factory):
        stream_factory(created_user, slug="concert", title="Live Concert", description="Encore")

        response = client.get("/stream/concert")

        assert response.status_code == status.HTTP_200_OK
        assert "Live Concert" in response.text
        assert "Encore" in response.text
        assert "by Alice" in response.text

    def test_private_stream_is_not_found_for_others(
        self, client, created_user, other_user, stream_factory
    ):
        stream_factory(created_user, slug="diary", title="Dear Diary", visibility=Visibility.PRIVATE)

        anonymous = client.get("/stream/diary")
        other = client.get("/stream/diary", headers=auth_headers(other_user))
        owner = client.get("/stream/diary", headers=auth_headers(created_user))

        assert anonymous.status_code == status.HTTP_404_NOT_FOUND
        assert other.status_code == status.HTTP_404_NOT_FOUND
        assert "Dear Diary" not in other.text
        assert owner.status_code == status.HTTP_200_OK
        assert "Manage in dashboard" in owner.text

    def test_unknown_stream(self, client):
        response = client.get("/stream/nothing-here")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert "Stream not found" in response.text


class TestDashboard:
    def test_anonymous_redirected_to_sign_in(self, client):
        response = client.get("/dashboard", follow_redirects=False)

        assert response.status_code == status.HTTP_302_FOUND
        assert response.headers["location"] == f"{settings.API_V1_STR}/auth/google/login"

    def test_lists_own_streams_only(self, client, created_user, other_user, stream_factory):
        stream_factory(created_user, slug="mine", title="My Private Show", visibility=Visibility.PRIVATE)
        stream_factory(other_user, slug="theirs", title="Their Show")

        response = client.get("/dashboard", headers=auth_headers(created_user))

        assert response.status_code == status.HTTP_200_OK
        assert "My Private Show" in response.text
        assert "Their Show" not in response.text
