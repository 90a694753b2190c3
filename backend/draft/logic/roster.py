"""Roster-slot rules: 1 QB, 2 RB, 2 WR, 1 TE, 1 FLEX (RB/WR/TE), 1 K, 1 DEF."""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from draft.logic.enums import Position, RosterSlot
from draft.logic.state import ROSTER_SIZE

if TYPE_CHECKING:
    from collections.abc import Iterable

SLOT_LIMITS: dict[RosterSlot, int] = {
    RosterSlot.QB: 1,
    RosterSlot.RB: 2,
    RosterSlot.WR: 2,
    RosterSlot.TE: 1,
    RosterSlot.FLEX: 1,
    RosterSlot.K: 1,
    RosterSlot.DEF: 1,
}

FLEX_POSITIONS = frozenset({Position.RB, Position.WR, Position.TE})


def slot_counts(positions: Iterable[Position]) -> Counter[RosterSlot]:
    """Assign drafted positions to slots in pick order and count the filled slots.

    A flex-eligible position fills its own slot first and spills into FLEX.
    Positions that fit nowhere are not counted.
    """
    filled: Counter[RosterSlot] = Counter()
    for position in positions:
        slot = _slot_for(filled, position)
        if slot is not None:
            filled[slot] += 1
    return filled


def open_slots(positions: Iterable[Position]) -> dict[RosterSlot, int]:
    """Remaining capacity per slot for a lineup with the given positions."""
    filled = slot_counts(positions)
    return {slot: limit - filled[slot] for slot, limit in SLOT_LIMITS.items()}


def can_fill_slot(positions: Iterable[Position], position: Position) -> RosterSlot | None:
    """Return the slot a player at `position` would fill, or None if none is open."""
    positions = list(positions)
    if len(positions) >= ROSTER_SIZE:
        return None
    return _slot_for(slot_counts(positions), position)


def _slot_for(filled: Counter[RosterSlot], position: Position) -> RosterSlot | None:
    own = RosterSlot(position.value)
    if filled[own] < SLOT_LIMITS[own]:
        return own
    if position in FLEX_POSITIONS and filled[RosterSlot.FLEX] < SLOT_LIMITS[RosterSlot.FLEX]:
        return RosterSlot.FLEX
    return None
