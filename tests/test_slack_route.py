import time
from urllib.parse import urlencode

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select

from app.database import get_db
from app.deps.security import get_signing_secret
from app.main import app
from app.models.competition import Competition
from app.services.slack_responder import get_slack_responder
from app.slack_signature import compute_signature

pytestmark = pytest.mark.anyio

SECRET = "test-signing-secret"
RESPONSE_URL = "https://hooks.slack.com/commands/T0001/1234/5678"


class RecordingResponder:
    def __init__(self):
        self.messages: list[tuple[str, str]] = []

    async def in_channel(self, response_url, text):
        self.messages.append((response_url, text))
        return True


@pytest.fixture
def responder():
    return RecordingResponder()


@pytest.fixture
async def client(session_factory, responder):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_signing_secret] = lambda: SECRET
    app.dependency_overrides[get_slack_responder] = lambda: responder

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


def _form(text: str, user_id: str = "U2147483697", user_name: str = "Steve") -> str:
    return urlencode(
        {
            "token": "gIkuvaNzQIHg97ATvDxqgjtO",
            "team_id": "T0001",
            "team_domain": "example",
            "channel_id": "C2147483705",
            "channel_name": "test",
            "user_id": user_id,
            "user_name": user_name,
            "command": "/sotw",
            "text": text,
            "api_app_id": "A123456",
            "response_url": RESPONSE_URL,
            "trigger_id": "13345224609.738474920.8088930838d88f008e0",
        }
    )


async def _post(client, body: str, *, timestamp=None, secret=SECRET):
    timestamp = int(time.time()) if timestamp is None else timestamp
    headers = {
        "Content-Type": "application/x-www-form-urlencoded",
        "X-Slack-Request-Timestamp": str(timestamp),
        "X-Slack-Signature": compute_signature(secret, timestamp, body),
    }
    return await client.post("/", content=body, headers=headers)


async def _command(client, text: str, **kwargs):
    return await _post(client, _form(text, **kwargs))


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"ok": True}


async def test_unsigned_request_is_unauthorized(client):
    response = await client.post(
        "/",
        content=_form("list"),
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    assert response.status_code == 401
    assert response.json()["error"] == "authentication_failed"


async def test_wrong_secret_is_unauthorized(client, session_factory):
    response = await _post(client, _form("start sneaky"), secret="other-secret")
    assert response.status_code == 401

    async with session_factory() as verify:
        assert (await verify.execute(select(Competition))).scalars().all() == []


async def test_expired_timestamp_is_unauthorized(client):
    response = await _post(client, _form("list"), timestamp=int(time.time()) - 400)
    assert response.status_code == 401


async def test_start_replies_and_announces(client, responder, session_factory):
    response = await _command(client, "start moar music please")

    assert response.status_code == 200
    payload = response.json()
    assert payload["response_type"] == "ephemeral"
    assert payload["text"].startswith("Started competition")

    assert responder.messages == [
        (
            RESPONSE_URL,
            "<@U2147483697> started competition with description: *moar music please*",
        )
    ]

    async with session_factory() as verify:
        competition = (
            await verify.execute(select(Competition).where(Competition.is_active.is_(True)))
        ).scalar_one()
    assert competition.description == "moar music please"
    assert competition.user_name == "Steve"


async def test_second_start_conflicts(client):
    await _command(client, "start week one")
    response = await _command(client, "start week two", user_id="U2")

    assert response.status_code == 409
    assert response.json()["error"] == "active_competition_exists"


async def test_stop_by_non_owner_is_forbidden(client):
    await _command(client, "start mine")
    response = await _command(client, "stop", user_id="U2")

    assert response.status_code == 403
    assert response.json()["error"] == "user_does_not_own_entity"


async def test_stop_by_owner(client, responder):
    await _command(client, "start closing")
    response = await _command(client, "stop")

    assert response.status_code == 200
    assert responder.messages[-1][1] == (
        "<@U2147483697> *ended* competition with description: *closing*"
    )


async def test_list_without_competition_is_not_found(client):
    response = await _command(client, "list")
    assert response.status_code == 404
    assert response.json()["error"] == "no_active_competition"


async def test_song_then_list(client, responder):
    await _command(client, "start songs")
    response = await _command(client, "song https://open.spotify.com/track/42", user_id="U9")
    assert response.status_code == 200
    assert responder.messages[-1][1] == "<@U9> *added* song: https://open.spotify.com/track/42"

    listing = await _command(client, "list")
    assert listing.status_code == 200
    assert "<@U9> - https://open.spotify.com/track/42" in listing.json()["text"]


async def test_vote(client, responder):
    song_id = "0b7e7dd4-1c43-4d38-9a4c-4c1b2b8f6a10"
    response = await _command(client, f"vote {song_id}", user_id="U5")

    assert response.status_code == 200
    assert responder.messages[-1][1] == f"<@U5> *voted* for song_id: {song_id}"


async def test_info(client):
    response = await _command(client, "info")
    assert response.status_code == 200
    assert "No competition is running" in response.json()["text"]


async def test_empty_text_is_a_noop(client, responder):
    response = await _command(client, "")
    assert response.status_code == 200
    assert "Usage" in response.json()["text"]
    assert responder.messages == []


@pytest.mark.parametrize(
    "text, code",
    [
        ("bogus", "unrecognized_command"),
        ("start", "missing_argument"),
        ("vote not-a-uuid", "invalid_argument"),
    ],
)
async def test_parse_errors_are_bad_requests(client, text, code):
    response = await _command(client, text)
    assert response.status_code == 400
    assert response.json()["error"] == code


async def test_body_without_user_is_malformed(client):
    response = await _post(client, urlencode({"text": "list"}))
    assert response.status_code == 400
    assert response.json()["error"] == "malformed_request"
