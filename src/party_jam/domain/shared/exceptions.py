"""Exception hierarchy for domain-level errors.

Every failure a caller can trigger maps to a stable ``code`` and one of four
categories (``INVALID_REQUEST``, ``NOT_FOUND``, ``FORBIDDEN``,
``INVALID_STATE``). Callers surface ``to_payload()`` to clients.
"""

from __future__ import annotations

from typing import ClassVar

from party_jam.domain.shared.messages import ErrorMessages


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    category: ClassVar[str] = "DOMAIN_ERROR"
    default_code: ClassVar[str | None] = None

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code or self.__class__.__name__

    def to_payload(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


# === Invalid request ===


class InvalidRequestError(DomainError):
    """Raised when required fields are missing or malformed."""

    category = "INVALID_REQUEST"
    default_code = "INVALID_REQUEST"

    def __init__(self, message: str, field: str | None = None, code: str | None = None) -> None:
        super().__init__(message, code=code)
        self.field = field

    @classmethod
    def missing(cls, field: str) -> InvalidRequestError:
        return cls(ErrorMessages.FIELD_REQUIRED.format(field_name=field), field=field)


class InvalidVoteError(InvalidRequestError):
    default_code = "INVALID_VOTE"

    def __init__(self, message: str = ErrorMessages.INVALID_VOTE) -> None:
        super().__init__(message, field="vote")


class InvalidSettingError(InvalidRequestError):
    default_code = "INVALID_SETTING"

    def __init__(self, key: str, message: str) -> None:
        super().__init__(message, field=key)
        self.key = key


# === Not found ===


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""

    category = "NOT_FOUND"
    default_code = "NOT_FOUND"

    def __init__(self, entity_type: str, identifier: str, message: str | None = None) -> None:
        msg = message or f"{entity_type} with id '{identifier}' not found"
        super().__init__(msg)
        self.entity_type = entity_type
        self.identifier = identifier


class PartyNotFoundError(NotFoundError):
    default_code = "PARTY_NOT_FOUND"

    def __init__(self, party_id: str) -> None:
        super().__init__("Party", party_id, ErrorMessages.PARTY_NOT_FOUND)


class MemberNotFoundError(NotFoundError):
    default_code = "MEMBER_NOT_FOUND"

    def __init__(self, user_id: str) -> None:
        super().__init__("Member", user_id, ErrorMessages.MEMBER_NOT_FOUND)


class JoinCodeNotFoundError(NotFoundError):
    default_code = "JOIN_CODE_NOT_FOUND"

    def __init__(self, code: str) -> None:
        super().__init__("JoinCode", code, ErrorMessages.JOIN_CODE_NOT_FOUND.format(code=code))


class TrackNotFoundError(NotFoundError):
    default_code = "TRACK_NOT_FOUND"

    def __init__(self, track_id: str, context: str = "party") -> None:
        super().__init__(
            "Track",
            track_id,
            ErrorMessages.TRACK_NOT_FOUND.format(track_id=track_id, context=context),
        )


# === Forbidden ===


class ForbiddenError(DomainError):
    """Raised when an operation is not permitted for the caller or settings."""

    category = "FORBIDDEN"
    default_code = "FORBIDDEN"


class NotHostError(ForbiddenError):
    default_code = "NOT_HOST"

    def __init__(self, action: str) -> None:
        super().__init__(ErrorMessages.NOT_HOST.format(action=action))
        self.action = action


class SuggestionsDisabledError(ForbiddenError):
    default_code = "SUGGESTIONS_DISABLED"

    def __init__(self) -> None:
        super().__init__(ErrorMessages.SUGGESTIONS_DISABLED)


class ExplicitContentBlockedError(ForbiddenError):
    default_code = "EXPLICIT_CONTENT_BLOCKED"

    def __init__(self) -> None:
        super().__init__(ErrorMessages.EXPLICIT_CONTENT_BLOCKED)


# === Invalid state ===


class InvalidStateError(DomainError):
    """Raised when an operation is invalid for the party's current status."""

    category = "INVALID_STATE"
    default_code = "INVALID_STATE"

    def __init__(self, operation: str, current_state: str, message: str | None = None) -> None:
        msg = message or f"Cannot perform '{operation}' in state '{current_state}'"
        super().__init__(msg)
        self.operation = operation
        self.current_state = current_state


class PartyNotLiveError(InvalidStateError):
    default_code = "PARTY_NOT_LIVE"

    def __init__(self, operation: str, current_state: str) -> None:
        super().__init__(
            operation, current_state, ErrorMessages.PARTY_NOT_LIVE.format(action=operation)
        )


class TrackAlreadyPresentError(InvalidStateError):
    default_code = "TRACK_ALREADY_PRESENT"

    def __init__(self, track_id: str, current_state: str, message: str | None = None) -> None:
        super().__init__(
            "suggest",
            current_state,
            message or ErrorMessages.TRACK_ALREADY_PRESENT.format(track_id=track_id),
        )
        self.track_id = track_id


# === Internal invariants ===


class DuplicatePartyError(DomainError):
    """Raised when a party id is inserted twice into the store."""

    category = "INVALID_STATE"
    default_code = "DUPLICATE_PARTY"

    def __init__(self, party_id: str) -> None:
        super().__init__(ErrorMessages.DUPLICATE_PARTY.format(party_id=party_id))
        self.party_id = party_id


class JoinCodeExhaustedError(DomainError):
    """Raised when no free join code could be generated."""

    category = "INVALID_STATE"
    default_code = "JOIN_CODE_EXHAUSTED"

    def __init__(self, attempts: int) -> None:
        super().__init__(ErrorMessages.JOIN_CODE_EXHAUSTED.format(attempts=attempts))
        self.attempts = attempts
