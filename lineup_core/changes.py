# FILE: lineup_core/changes.py
"""
Who moves between two consecutive quarters, for the sideline call-outs.
"""
from __future__ import annotations
from typing import Dict, List, Literal, Mapping, Optional

from pydantic import BaseModel

from .models import QuarterPlan

ChangeType = Literal["new_in", "new_position", "position_swap", "sitting_out"]


class PositionChange(BaseModel):
    player_id: int
    name: str = ""
    change: ChangeType
    from_slot: Optional[int] = None
    to_slot: Optional[int] = None
    swaps_with: Optional[int] = None

    def describe(self, names: Optional[Mapping[int, str]] = None) -> str:
        if self.change == "new_in":
            return f"Coming in at #{self.to_slot}"
        if self.change == "sitting_out":
            return f"Going to bench from #{self.from_slot}"
        if self.change == "position_swap":
            other = (names or {}).get(self.swaps_with, f"#{self.swaps_with}")
            return f"Swapping with {other} (#{self.from_slot} <-> #{self.to_slot})"
        return f"Moving from #{self.from_slot} to #{self.to_slot}"


def _slot_of(lineup: Mapping[int, int]) -> Dict[int, int]:
    return {pid: slot for slot, pid in lineup.items()}


def quarter_changes(
    previous: QuarterPlan,
    current: QuarterPlan,
    names: Optional[Mapping[int, str]] = None,
) -> List[PositionChange]:
    """
    Changes from `previous` to `current`, ordered by slot number. Players
    who keep their slot are left out; two players trading slots are
    reported as a position_swap pair.
    """
    names = names or {}
    prev, curr = previous.lineup, current.lineup
    prev_slot, curr_slot = _slot_of(prev), _slot_of(curr)
    prev_bench, curr_bench = set(previous.sitting_out), set(current.sitting_out)

    changes: List[PositionChange] = []
    for slot in sorted(set(prev) | set(curr)):
        before, after = prev.get(slot), curr.get(slot)
        if before is not None and before == after:
            continue
        if after is not None:
            if after in prev_slot:
                changes.append(PositionChange(
                    player_id=after, name=names.get(after, ""), change="new_position",
                    from_slot=prev_slot[after], to_slot=slot,
                ))
            elif after in prev_bench:
                changes.append(PositionChange(
                    player_id=after, name=names.get(after, ""), change="new_in", to_slot=slot,
                ))
        # a player who moved is reported once, at the new slot
        if before is not None and before not in curr_slot and before in curr_bench:
            changes.append(PositionChange(
                player_id=before, name=names.get(before, ""), change="sitting_out", from_slot=slot,
            ))

    moved = [c for c in changes if c.change == "new_position"]
    swapped: Dict[int, int] = {}
    for i, a in enumerate(moved):
        for b in moved[i + 1:]:
            if a.from_slot == b.to_slot and a.to_slot == b.from_slot:
                swapped[a.player_id] = b.player_id
                swapped[b.player_id] = a.player_id
    return [
        c.model_copy(update={"change": "position_swap", "swaps_with": swapped[c.player_id]})
        if c.player_id in swapped else c
        for c in changes
    ]
