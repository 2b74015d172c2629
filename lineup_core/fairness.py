# FILE: lineup_core/fairness.py
from __future__ import annotations
import math
from typing import Iterable, List, Mapping

from .constants import FAIR_MINIMUM_RATIO, QUARTERS


def required_quarters(available: int, ratio: float = FAIR_MINIMUM_RATIO) -> int:
    """Minimum quarters a player must play out of the quarters they are available."""
    if available <= 0:
        return 0
    # round away float noise before ceil (0.75 * 4 must stay 3)
    return int(math.ceil(round(available * ratio, 9)))


def slack(available: int, required: int, sat: int) -> int:
    """Rotation sit-outs a player can still absorb without breaking the minimum."""
    return available - required - sat


def sit_opportunities(player, quarter: int, goalkeepers: Mapping[int, int]) -> int:
    """Later quarters where the player could still sit: available and not in goal."""
    return sum(
        1 for q in QUARTERS
        if q > quarter and player.is_available(q) and goalkeepers.get(q) != player.id
    )


def sitter_key(snap) -> tuple:
    # sit players with slack first, then the ones with the fewest chances left
    return (snap.slack <= 0, snap.sit_opportunities, -snap.slack, -snap.quarters_played, snap.id)


def rank_sitters(candidates: Iterable) -> List:
    return sorted(candidates, key=sitter_key)
