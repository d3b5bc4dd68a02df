"""Service layer: competition operations and outbound Slack messages."""

from . import competition_service
from .slack_responder import SlackResponder, get_slack_responder

__all__ = [
    "SlackResponder",
    "competition_service",
    "get_slack_responder",
]
