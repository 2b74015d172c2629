# lineup_core/solver_ilp.py
from __future__ import annotations
from typing import Dict

import pulp

from .constants import GOALKEEPER_SLOT
from .context import RosterContext
from .errors import InfeasibleGoalkeeper, OracleError
from .models import QuarterContext, QuarterPlan
from .proposers import plan_from_lineup
from .suitability import preference_rank

# Objective weights: a zero-slack player sitting out costs more than any
# amount of position experience gained elsewhere.
MUST_FIELD_WEIGHT = 1000.0
PREFERENCE_WEIGHTS = [0.5, 0.3, 0.2, 0.1]


class IlpProposer:
    """Single-quarter assignment model solved with CBC.

    x[p, s] = 1 when player p takes slot s. Every slot is filled once, every
    player takes at most one slot, must-play players and the planned keeper
    are forced in.
    """
    name = "ilp"

    def __init__(self, context: RosterContext, msg: bool = False):
        self.context = context
        self.msg = msg

    def _coeff(self, pid: int, abbr: str) -> float:
        r = preference_rank(self.context, pid, abbr)
        bonus = PREFERENCE_WEIGHTS[r - 1] if r and r <= len(PREFERENCE_WEIGHTS) else 0.0
        # small id tie-break keeps the optimum unique
        return self.context.experience(pid, abbr) + bonus - pid * 1e-6

    def propose(self, ctx: QuarterContext) -> QuarterPlan:
        q = ctx.quarter
        gk = ctx.goalkeeper
        if gk is None or gk not in ctx.available:
            raise InfeasibleGoalkeeper(q, "no available goalkeeper planned for this quarter")
        PIDS = list(ctx.available)
        SLOTS = {s.number: s.abbreviation for s in ctx.slots}

        prob = pulp.LpProblem(f"quarter_{q}", pulp.LpMaximize)
        X = {
            (pid, s): pulp.LpVariable(f"x_{pid}_{s}", cat="Binary")
            for pid in PIDS for s in SLOTS
        }

        terms = []
        for pid in PIDS:
            snap = ctx.snapshot(pid)
            urgent = MUST_FIELD_WEIGHT if snap.slack <= 0 else 0.0
            for s, abbr in SLOTS.items():
                terms.append((self._coeff(pid, abbr) + urgent) * X[(pid, s)])
        prob += pulp.lpSum(terms)

        # 1) Fill every slot
        for s in SLOTS:
            prob += pulp.lpSum(X[(pid, s)] for pid in PIDS) == 1, f"fill_{s}"
        # 2) One slot per player
        for pid in PIDS:
            prob += pulp.lpSum(X[(pid, s)] for s in SLOTS) <= 1, f"onepos_{pid}"
        # 3) Must-play players are on the field
        for pid in ctx.must_play:
            if pid in PIDS:
                prob += pulp.lpSum(X[(pid, s)] for s in SLOTS) == 1, f"must_{pid}"
        # 4) Planned keeper in goal
        prob += X[(gk, GOALKEEPER_SLOT)] == 1, "keeper"

        try:
            status = prob.solve(pulp.PULP_CBC_CMD(msg=self.msg))
        except pulp.PulpSolverError as exc:
            raise OracleError(q, f"ILP solver failed: {exc}") from exc
        if pulp.LpStatus[status] != "Optimal":
            raise OracleError(q, f"ILP solver status: {pulp.LpStatus[status]}")

        lineup: Dict[int, int] = {}
        for s in SLOTS:
            for pid in PIDS:
                if pulp.value(X[(pid, s)]) > 0.5:
                    lineup[s] = pid
                    break
        return plan_from_lineup(q, lineup, ctx)
