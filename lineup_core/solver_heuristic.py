# FILE: lineup_core/solver_heuristic.py
from __future__ import annotations
from typing import Dict, List

from .assignment import assign_positions
from .constants import GOALKEEPER_SLOT
from .context import RosterContext
from .errors import InfeasibleGoalkeeper, InfeasibleQuarter
from .fairness import rank_sitters
from .models import QuarterContext, QuarterPlan
from .proposers import plan_from_lineup


class GreedyProposer:
    """Deterministic fallback:
    - keep the planned goalkeeper in slot 1
    - sit the players who can best afford it (never must-play, never the keeper)
    - fill the field slots by position history
    """
    name = "greedy"

    def __init__(self, context: RosterContext):
        self.context = context

    def choose_sitters(self, ctx: QuarterContext) -> List[int]:
        slots = len(ctx.slots)
        sit_count = len(ctx.available) - slots
        if sit_count < 0:
            raise InfeasibleQuarter(
                ctx.quarter, f"{len(ctx.available)} available players for {slots} slots"
            )
        must = set(ctx.must_play)
        candidates = [
            ctx.snapshot(pid) for pid in ctx.available
            if pid not in must and pid != ctx.goalkeeper
        ]
        if len(candidates) < sit_count:
            raise InfeasibleQuarter(
                ctx.quarter,
                f"{len(must)} must-play players and the goalkeeper leave {len(candidates)} "
                f"players to sit, {sit_count} must sit",
            )
        return [s.id for s in rank_sitters(candidates)[:sit_count]]

    def propose(self, ctx: QuarterContext) -> QuarterPlan:
        if ctx.goalkeeper is None or ctx.goalkeeper not in ctx.available:
            raise InfeasibleGoalkeeper(ctx.quarter, "no available goalkeeper planned for this quarter")
        sitters = set(self.choose_sitters(ctx))
        playing = [pid for pid in ctx.available if pid not in sitters and pid != ctx.goalkeeper]
        lineup: Dict[int, int] = {GOALKEEPER_SLOT: ctx.goalkeeper}
        lineup.update(assign_positions(playing, ctx.field_slots, self.context, ctx.quarter))
        return plan_from_lineup(ctx.quarter, lineup, ctx)
