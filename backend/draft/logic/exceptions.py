"""Typed domain exceptions for draft rule violations.

Every rejected draft operation raises a DraftRuleError subclass carrying
the wire error code. They are recoverable: the session layer reports them
to the originating client only and the stored session is left untouched.
"""

from draft.logic.enums import DraftErrorCode


class DraftRuleError(Exception):
    """Base exception for draft rule violations."""

    code: DraftErrorCode

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class SessionNotFoundError(DraftRuleError):
    """No session exists for the given code."""

    code = DraftErrorCode.NOT_FOUND

    def __init__(self, session_code: str) -> None:
        self.session_code = session_code
        super().__init__(f"Game {session_code} not found")


class SessionFullError(DraftRuleError):
    """Join attempted on a session that already has two participants."""

    code = DraftErrorCode.FULL


class AlreadyStartedError(DraftRuleError):
    """Join attempted after the draft left the waiting state."""

    code = DraftErrorCode.ALREADY_STARTED


class InvalidTransitionError(DraftRuleError):
    """Operation is not valid in the session's current state."""

    code = DraftErrorCode.INVALID_TRANSITION


class NotYourTurnError(DraftRuleError):
    """Pick submitted by a participant other than the one on the clock."""

    code = DraftErrorCode.NOT_YOUR_TURN


class AlreadyPickedError(DraftRuleError):
    """Target player was already drafted in this session."""

    code = DraftErrorCode.ALREADY_PICKED

    def __init__(self, player_id: str) -> None:
        self.player_id = player_id
        super().__init__(f"Player {player_id} has already been picked")


class IneligiblePickError(DraftRuleError):
    """Target player's position fits no open roster slot."""

    code = DraftErrorCode.INELIGIBLE_PICK
