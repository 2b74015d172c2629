# FILE: lineup_core/assignment.py
from __future__ import annotations
from typing import Dict, Iterable, List

from .context import RosterContext
from .errors import InfeasibleQuarter
from .models import Slot
from .suitability import anyone_has_history, slot_key


def assign_positions(
    player_ids: Iterable[int],
    slots: Iterable[Slot],
    context: RosterContext,
    quarter: int,
) -> Dict[int, int]:
    """
    Return {slot number -> player id}, one player per slot.

    Slots are filled in ascending slot number; each takes the unassigned
    player with the most history at its abbreviation, lowest id on ties.
    When no remaining player has history there, preferred-position rank
    picks instead. Slot order changes the result, so the loop stays
    sequential.
    """
    pool: List[int] = sorted(set(player_ids))
    ordered = sorted(slots, key=lambda s: s.number)
    if len(pool) < len(ordered):
        raise InfeasibleQuarter(
            quarter, f"{len(pool)} players for {len(ordered)} field slots"
        )
    if len(pool) > len(ordered):
        raise ValueError(f"{len(pool)} players for {len(ordered)} slots; every player needs a slot")

    assignment: Dict[int, int] = {}
    for slot in ordered:
        by_history = anyone_has_history(context, pool, slot.abbreviation)
        best = min(pool, key=lambda pid: slot_key(context, pid, slot.abbreviation, by_history))
        assignment[slot.number] = best
        pool.remove(best)
    return assignment
