# app/schemas.py
# ------------------------------------------------------------
# Pydantic v2 schemas for the Slack slash command surface
# ------------------------------------------------------------
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator


# ---------- Slack ----------
class SlackCommandRequest(BaseModel):
    """Form fields Slack posts for a slash command; only ``user_id`` is required."""

    model_config = ConfigDict(extra="ignore")

    token: str = ""
    team_id: str = ""
    team_domain: str = ""
    channel_id: str = ""
    channel_name: str = ""
    user_id: str
    user_name: str = ""
    command: Optional[str] = None
    text: Optional[str] = None
    api_app_id: str = ""
    response_url: Optional[str] = None
    trigger_id: str = ""

    @field_validator("user_id")
    @classmethod
    def user_id_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("user_id cannot be empty")
        return v

    @field_validator("response_url")
    @classmethod
    def blank_url_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class SlackMessage(BaseModel):
    response_type: Literal["in_channel", "ephemeral"] = "ephemeral"
    text: str

