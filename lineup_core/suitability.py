# FILE: lineup_core/suitability.py
from __future__ import annotations
from typing import Iterable, Optional

from .context import RosterContext

NO_PREFERENCE = 99


def preference_rank(context: RosterContext, pid: int, abbreviation: str) -> Optional[int]:
    prefs = context.player(pid).preferred_positions
    for i, p in enumerate(prefs):
        if p == abbreviation.upper():
            return i + 1
    return None


def anyone_has_history(context: RosterContext, pids: Iterable[int], abbreviation: str) -> bool:
    return any(context.experience(pid, abbreviation) > 0 for pid in pids)


def slot_key(context: RosterContext, pid: int, abbreviation: str, by_history: bool = True) -> tuple:
    """
    Sort key for filling a slot. With history in play: most experience, then
    lowest id. Preference rank only decides when nobody has played the slot.
    """
    if by_history:
        return (-context.experience(pid, abbreviation), pid)
    pr = preference_rank(context, pid, abbreviation)
    return (pr if pr is not None else NO_PREFERENCE, pid)
