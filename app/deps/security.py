# app/deps/security.py
import os

from fastapi import Depends, Request

from app.slack_signature import SIGNATURE_HEADER, TIMESTAMP_HEADER, verify_slack_request


def get_signing_secret() -> str:
    """Slack signing secret; an empty value makes every request fail verification."""
    return os.getenv("SLACK_SIGNING_SECRET", "")


async def require_slack_request(
    request: Request,
    secret: str = Depends(get_signing_secret),
) -> bytes:
    """Verify the Slack signature and return the raw body it covers."""
    body = await request.body()
    verify_slack_request(
        request.headers.get(TIMESTAMP_HEADER),
        request.headers.get(SIGNATURE_HEADER),
        body,
        secret,
    )
    return body
