"""
Internal helpers for tests (not imported by the engine).
"""
from __future__ import annotations
from typing import Dict, List, Optional, Sequence, Union

from .models import Player


def quick_player(
    pid: int,
    name: str = "",
    prefs: Sequence[str] = (),
    history: Optional[Dict[str, int]] = None,
    absent: Union[str, Sequence[int]] = (),
    reason: str = "absent",
    injured: Union[str, Sequence[int]] = (),
) -> Player:
    return Player(
        id=pid,
        name=name or f"P{pid}",
        preferred_positions=list(prefs),
        position_history=history or {},
        absent_quarters=absent if isinstance(absent, str) else list(absent),
        absence_reason=reason,
        injured_quarters=injured if isinstance(injured, str) else list(injured),
    )


def quick_roster(n: int, start: int = 1) -> List[Player]:
    return [quick_player(pid) for pid in range(start, start + n)]
