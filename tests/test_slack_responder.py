import json

import httpx
import pytest

from app.services.slack_responder import SlackResponder

pytestmark = pytest.mark.anyio

RESPONSE_URL = "https://hooks.slack.com/commands/T0001/1234/5678"


async def test_posts_in_channel_message():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text="ok")

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    responder = SlackResponder(client=client)

    assert await responder.in_channel(RESPONSE_URL, "hello") is True

    assert len(seen) == 1
    assert str(seen[0].url) == RESPONSE_URL
    assert json.loads(seen[0].content) == {"response_type": "in_channel", "text": "hello"}
    await responder.aclose()


async def test_http_error_is_swallowed():
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(500)))
    responder = SlackResponder(client=client)

    assert await responder.in_channel(RESPONSE_URL, "hello") is False
    await responder.aclose()


async def test_connection_error_is_swallowed():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    responder = SlackResponder(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))

    assert await responder.in_channel(RESPONSE_URL, "hello") is False
    await responder.aclose()


async def test_missing_response_url_is_skipped():
    responder = SlackResponder(
        client=httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
    )
    assert await responder.in_channel(None, "hello") is False
    await responder.aclose()


@pytest.mark.parametrize("bad_url", ["http://[::1", "https://exa\x00mple.com/x"])
async def test_invalid_response_url_is_swallowed(bad_url):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200)

    responder = SlackResponder(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))

    assert await responder.in_channel(bad_url, "hello") is False
    assert seen == []
    await responder.aclose()
