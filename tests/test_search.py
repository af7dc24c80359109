"""Tests for catalog search and the Spotify client."""

import httpx
import pytest

from spotify_search.spotify.client import (
    AuthenticationError,
    RateLimitError,
    SpotifyAPIError,
    SpotifyClient,
)
from spotify_search.spotify.search import (
    EMPTY_TERM_MESSAGE,
    search_spotify,
    shape_search_response,
)


def mock_client(handler) -> SpotifyClient:
    transport = httpx.MockTransport(handler)
    return SpotifyClient(
        base_url="https://api.spotify.test/v1",
        client=httpx.AsyncClient(transport=transport),
    )


class TestShapeSearchResponse:
    """Tests for reshaping raw search responses."""

    def test_all_categories(self, search_response_json):
        results = shape_search_response(search_response_json)

        assert [a.name for a in results.albums] == ["Random Access Memories"]
        assert [a.name for a in results.artists] == ["Daft Punk"]
        assert [t.track_number for t in results.tracks] == [8]
        assert [p.owner for p in results.playlists] == ["Spotify"]

    def test_skips_null_items(self, search_response_json):
        """Test that null entries in a category are dropped."""
        results = shape_search_response(search_response_json)
        assert len(results.playlists) == 1

    def test_missing_categories_are_empty(self, album_json):
        results = shape_search_response({"albums": {"items": [album_json]}})

        assert len(results.albums) == 1
        assert results.artists == []
        assert results.tracks == []
        assert results.playlists == []


class TestSearchSpotify:
    """Tests for the search operation."""

    async def test_empty_term_skips_request(self, fake_spotify, logged_in_user):
        """Test that an empty search term is reported without calling Spotify."""
        outcome = await search_spotify("", logged_in_user, fake_spotify)

        assert [e.msg for e in outcome.errors] == [EMPTY_TERM_MESSAGE]
        assert outcome.search_results.search_term == ""
        assert outcome.search_results.spotify_response is None
        assert fake_spotify.calls == []

    @pytest.mark.parametrize("term", [None, "   "])
    async def test_blank_terms(self, fake_spotify, logged_in_user, term):
        outcome = await search_spotify(term, logged_in_user, fake_spotify)

        assert outcome.errors[0].msg == "Enter a search term."
        assert fake_spotify.calls == []

    async def test_success(self, fake_spotify, logged_in_user):
        outcome = await search_spotify("daft punk", logged_in_user, fake_spotify)

        assert outcome.ok
        assert outcome.errors == []
        assert outcome.search_results.search_term == "daft punk"
        assert len(outcome.search_results.spotify_response.tracks) == 1

    async def test_uses_callers_access_token(self, fake_spotify, logged_in_user):
        await search_spotify("daft punk", logged_in_user, fake_spotify)
        assert fake_spotify.calls == [("daft punk", "test-access-token")]

    async def test_provider_error(self, fake_spotify, logged_in_user):
        """Test that Spotify errors become a status and message."""
        fake_spotify.error = AuthenticationError("The access token expired", status_code=401)

        outcome = await search_spotify("daft punk", logged_in_user, fake_spotify)

        assert [e.msg for e in outcome.errors] == ["Error: 401 The access token expired"]
        assert outcome.search_results.search_term == "daft punk"
        assert outcome.search_results.spotify_response is None

    async def test_network_error(self, fake_spotify, logged_in_user):
        fake_spotify.error = httpx.ConnectError("Connection refused")

        outcome = await search_spotify("daft punk", logged_in_user, fake_spotify)

        assert outcome.errors[0].msg == "Error: Connection refused"

    async def test_serialized_shape(self, fake_spotify, logged_in_user):
        """Test the wire names of the outcome."""
        outcome = await search_spotify("daft punk", logged_in_user, fake_spotify)
        data = outcome.model_dump(by_alias=True, exclude_none=True)

        assert set(data) == {"errors", "searchResults"}
        assert set(data["searchResults"]) == {"search_term", "spotifyResponse"}
        assert set(data["searchResults"]["spotifyResponse"]) == {
            "albums",
            "artists",
            "tracks",
            "playlists",
        }


class TestSpotifyClient:
    """Tests for the Web API client."""

    async def test_search_request(self, search_response_json):
        """Test the search query parameters and authorization header."""
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=search_response_json)

        async with mock_client(handler) as client:
            data = await client.search("daft punk", "token-123")

        assert data == search_response_json
        request = requests[0]
        assert request.url.path == "/v1/search"
        assert request.url.params["q"] == "daft punk"
        assert request.url.params["type"] == "album,artist,track,playlist"
        assert request.url.params["limit"] == "10"
        assert request.headers["Authorization"] == "Bearer token-123"

    async def test_search_limit_and_types(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={})

        async with mock_client(handler) as client:
            await client.search("x", "token", types=["track"], limit=3)

        assert requests[0].url.params["type"] == "track"
        assert requests[0].url.params["limit"] == "3"

    async def test_unauthorized(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                401,
                json={"error": {"status": 401, "message": "The access token expired"}},
            )

        async with mock_client(handler) as client:
            with pytest.raises(AuthenticationError) as exc_info:
                await client.search("x", "expired")

        assert exc_info.value.status_code == 401
        assert str(exc_info.value) == "The access token expired"

    async def test_rate_limited(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(429, headers={"Retry-After": "7"}, json={})

        async with mock_client(handler) as client:
            with pytest.raises(RateLimitError) as exc_info:
                await client.search("x", "token")

        assert exc_info.value.status_code == 429
        assert exc_info.value.retry_after == 7

    async def test_rate_limited_with_http_date(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                429, headers={"Retry-After": "Wed, 21 Oct 2026 07:28:00 GMT"}, json={}
            )

        async with mock_client(handler) as client:
            with pytest.raises(RateLimitError) as exc_info:
                await client.search("x", "token")

        assert exc_info.value.retry_after is None

    async def test_error_body_not_an_object(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json=["unexpected"])

        async with mock_client(handler) as client:
            with pytest.raises(SpotifyAPIError) as exc_info:
                await client.search("x", "token")

        assert exc_info.value.status_code == 500
        assert str(exc_info.value) == "Internal Server Error"

    async def test_success_body_not_an_object(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=["unexpected"])

        async with mock_client(handler) as client:
            with pytest.raises(SpotifyAPIError) as exc_info:
                await client.search("x", "token")

        assert exc_info.value.status_code == 200

    async def test_server_error_without_json(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="Bad Gateway")

        async with mock_client(handler) as client:
            with pytest.raises(SpotifyAPIError) as exc_info:
                await client.search("x", "token")

        assert exc_info.value.status_code == 502
        assert exc_info.value.response_body == "Bad Gateway"

    async def test_search_errors_end_to_end(self, logged_in_user):
        """Test that a 400 from Spotify reaches the user as an error message."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                400, json={"error": {"status": 400, "message": "No search query"}}
            )

        async with mock_client(handler) as client:
            outcome = await search_spotify("x", logged_in_user, client)

        assert outcome.errors[0].msg == "Error: 400 No search query"

    async def test_malformed_errors_reported_to_user(self, logged_in_user):
        """Test that odd error responses still come back as error messages."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(429, headers={"Retry-After": "soon"}, json="slow down")

        async with mock_client(handler) as client:
            outcome = await search_spotify("x", logged_in_user, client)

        assert outcome.errors[0].msg == "Error: 429 Too Many Requests"
