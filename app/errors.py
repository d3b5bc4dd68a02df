"""Typed failures raised by the request gate, the command parser and the engine.

Each error carries the HTTP status the boundary replies with and a stable
``code`` so callers can tell the kinds apart without matching on messages.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID


class SotwError(Exception):
    """Base error for everything the bot reports back to the caller."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AuthenticationError(SotwError):
    """Missing, stale or forged request signature."""

    status_code = 401
    code = "authentication_failed"


class CommandParseError(SotwError):
    status_code = 400
    code = "invalid_command"


class MissingArgument(CommandParseError):
    code = "missing_argument"

    def __init__(self, keyword: str) -> None:
        super().__init__(f"`{keyword}` needs an argument")
        self.keyword = keyword


class InvalidArgument(CommandParseError):
    code = "invalid_argument"


class UnrecognizedCommand(CommandParseError):
    code = "unrecognized_command"

    def __init__(self, keyword: str) -> None:
        super().__init__(f"Unknown command `{keyword}`")
        self.keyword = keyword


class MalformedRequest(SotwError):
    """The form body could not be decoded into a slash command."""

    status_code = 400
    code = "malformed_request"


class BusinessRuleError(SotwError):
    """A competition rule rejected the operation; nothing was written."""

    entity_id: Optional[UUID] = None


class ActiveCompetitionExists(BusinessRuleError):
    status_code = 409
    code = "active_competition_exists"

    def __init__(self, entity_id: UUID) -> None:
        super().__init__(f"An active competition already exists id={entity_id}")
        self.entity_id = entity_id


class NoActiveCompetition(BusinessRuleError):
    status_code = 404
    code = "no_active_competition"

    def __init__(self, message: str = "There is no active competition") -> None:
        super().__init__(message)


class UserDoesNotOwnEntity(BusinessRuleError):
    status_code = 403
    code = "user_does_not_own_entity"

    def __init__(self, entity_id: UUID) -> None:
        super().__init__(f"Competition id={entity_id} is owned by another user")
        self.entity_id = entity_id


class StoreError(SotwError):
    """The database failed; never a business rule violation."""

    status_code = 500
    code = "store_error"


__all__ = [
    "ActiveCompetitionExists",
    "AuthenticationError",
    "BusinessRuleError",
    "CommandParseError",
    "InvalidArgument",
    "MalformedRequest",
    "MissingArgument",
    "NoActiveCompetition",
    "SotwError",
    "StoreError",
    "UnrecognizedCommand",
    "UserDoesNotOwnEntity",
]
