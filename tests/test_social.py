"""Tests for status truncation, OAuth signing and post error classification."""

import json

import aiohttp
import pytest

from conftest import OWNER, aiohttp_response, mock_session
from mcp_server_repo.core.handlers import CallToolHandler
from mcp_server_repo.error_handling import ErrorKind, ToolValidationError, UpstreamError
from mcp_server_repo.social import MAX_STATUS_LENGTH, TwitterClient, create_post, truncate_status


def created(post_id: str, text: str):
    return aiohttp_response(201, json.dumps({"data": {"id": post_id, "text": text}}))


def twitter_client(credentials, response):
    session = mock_session(response, method="post")
    return TwitterClient(credentials=credentials, session=session), session


class TestTruncation:
    def test_short_status_unchanged(self):
        assert truncate_status("hello") == "hello"

    def test_status_at_limit_unchanged(self):
        status = "x" * MAX_STATUS_LENGTH
        assert truncate_status(status) == status

    def test_long_status_cut_with_marker(self):
        status = "a" * 275 + "b" * 30

        result = truncate_status(status)

        assert len(result) == 278
        assert result == "a" * 275 + "..."


class TestTwitterClient:
    def test_sign_builds_oauth1_header(self, twitter_credentials):
        client = TwitterClient(credentials=twitter_credentials, session=None)

        headers = client.sign("POST", "https://api.twitter.com/2/tweets")

        assert headers["Authorization"].startswith("OAuth ")
        assert 'oauth_consumer_key="key"' in headers["Authorization"]
        assert 'oauth_token="token"' in headers["Authorization"]
        assert 'oauth_signature_method="HMAC-SHA1"' in headers["Authorization"]

    @pytest.mark.asyncio
    async def test_post_json_sends_payload_with_signed_headers(self, twitter_credentials):
        client, session = twitter_client(twitter_credentials, created("1", "hi"))

        response = await client.post_json("/2/tweets", {"text": "hi"})

        assert response.status == 201
        args, kwargs = session.post.call_args
        assert args == ("https://api.twitter.com/2/tweets",)
        assert kwargs["json"] == {"text": "hi"}
        assert kwargs["headers"]["Authorization"].startswith("OAuth ")

    @pytest.mark.asyncio
    async def test_connection_failure_is_server_error(self, twitter_credentials):
        session = mock_session(created("1", "hi"), method="post")
        session.post.side_effect = aiohttp.ClientConnectionError("refused")
        client = TwitterClient(credentials=twitter_credentials, session=session)

        with pytest.raises(UpstreamError) as exc_info:
            await client.post_json("/2/tweets", {"text": "hi"})

        assert exc_info.value.kind == ErrorKind.SERVER
        assert exc_info.value.status == 0


class TestCreatePost:
    @pytest.mark.asyncio
    async def test_returns_id_and_text(self, twitter_credentials):
        client, _ = twitter_client(twitter_credentials, created("123", "hello"))

        post = await create_post(client, "hello")

        assert post == {"id": "123", "text": "hello"}

    @pytest.mark.asyncio
    async def test_long_status_is_truncated_before_sending(self, twitter_credentials):
        client, session = twitter_client(twitter_credentials, created("1", "x"))

        await create_post(client, "x" * 400)

        sent = session.post.call_args.kwargs["json"]["text"]
        assert len(sent) == 278
        assert sent.endswith("...")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403])
    async def test_auth_failures(self, twitter_credentials, status):
        client, _ = twitter_client(
            twitter_credentials, aiohttp_response(status, json.dumps({"title": "Forbidden"}))
        )

        with pytest.raises(UpstreamError) as exc_info:
            await create_post(client, "hello")

        assert exc_info.value.kind == ErrorKind.AUTH
        assert exc_info.value.message == (
            "Twitter API: Authentication failed. Please check your API keys and tokens."
        )

    @pytest.mark.asyncio
    async def test_rate_limited(self, twitter_credentials):
        client, _ = twitter_client(
            twitter_credentials, aiohttp_response(429, json.dumps({"title": "Too Many Requests"}))
        )

        with pytest.raises(UpstreamError) as exc_info:
            await create_post(client, "hello")

        assert exc_info.value.kind == ErrorKind.RATE_LIMITED
        assert exc_info.value.message == "Twitter API: Rate limit exceeded. Please try again later."

    @pytest.mark.asyncio
    async def test_other_rejection_carries_upstream_detail(self, twitter_credentials):
        client, _ = twitter_client(
            twitter_credentials,
            aiohttp_response(400, json.dumps({"detail": "duplicate content"})),
        )

        with pytest.raises(UpstreamError) as exc_info:
            await create_post(client, "hello")

        assert exc_info.value.kind == ErrorKind.CLIENT
        assert exc_info.value.message == "Twitter API: duplicate content"

    @pytest.mark.asyncio
    async def test_missing_post_data(self, twitter_credentials):
        client, _ = twitter_client(twitter_credentials, aiohttp_response(201, "{}"))

        with pytest.raises(UpstreamError) as exc_info:
            await create_post(client, "hello")

        assert exc_info.value.message == "Failed to create post: No response data"


class TestCreatePostAction:
    @pytest.mark.asyncio
    async def test_action_text(self, fake_github, twitter_credentials):
        client, _ = twitter_client(twitter_credentials, created("99", "shipped"))
        handler = CallToolHandler(fake_github, OWNER, twitter_client=client)

        envelope = await handler.call_tool("createPost", {"status": "shipped"})

        assert envelope["content"][0]["text"] == "Posted: shipped\nPost ID: 99"

    @pytest.mark.asyncio
    async def test_blank_status_rejected(self, fake_github, twitter_credentials):
        client, session = twitter_client(twitter_credentials, created("1", "x"))
        handler = CallToolHandler(fake_github, OWNER, twitter_client=client)

        with pytest.raises(ToolValidationError):
            await handler.call_tool("createPost", {"status": "  "})

        session.post.assert_not_called()
