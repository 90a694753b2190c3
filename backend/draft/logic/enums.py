"""
String enum definitions for draft concepts.
"""

from enum import Enum


class DraftStatus(str, Enum):
    """Lifecycle of a draft session. Transitions only move forward."""

    WAITING = "waiting"
    ACTIVE = "active"
    FINISHED = "finished"


class Position(str, Enum):
    """NFL positions that can be drafted."""

    QB = "QB"
    RB = "RB"
    WR = "WR"
    TE = "TE"
    K = "K"
    DEF = "DEF"


class RosterSlot(str, Enum):
    """Lineup slots. FLEX accepts a RB, WR or TE."""

    QB = "QB"
    RB = "RB"
    WR = "WR"
    TE = "TE"
    FLEX = "FLEX"
    K = "K"
    DEF = "DEF"


class DraftErrorCode(str, Enum):
    """Error codes sent to clients for rejected draft operations."""

    NOT_FOUND = "not_found"
    FULL = "full"
    ALREADY_STARTED = "already_started"
    INVALID_TRANSITION = "invalid_transition"
    NOT_YOUR_TURN = "not_your_turn"
    ALREADY_PICKED = "already_picked"
    INELIGIBLE_PICK = "ineligible_pick"
