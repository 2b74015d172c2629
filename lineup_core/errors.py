# FILE: lineup_core/errors.py
"""
Planning failures. Raised inside the engine, returned to callers as
PlanError values by scheduler.plan_rotation.
"""
from __future__ import annotations
from typing import List, Optional, Sequence, Union


class RotationError(Exception):
    kind = "rotation-error"

    def __init__(self, quarter: Optional[int], reason: str):
        super().__init__(f"Quarter {quarter}: {reason}" if quarter else reason)
        self.quarter = quarter
        self.reason = reason


class InfeasibleQuarter(RotationError):
    kind = "infeasible-quarter"


class InfeasibleGoalkeeper(RotationError):
    kind = "infeasible-goalkeeper"


class ProposalRejected(RotationError):
    kind = "oracle-rejected"

    def __init__(self, quarter: Optional[int], reasons: Union[Sequence[str], str]):
        if isinstance(reasons, str):
            reasons = [reasons]
        self.reasons: List[str] = list(reasons)
        super().__init__(quarter, "; ".join(self.reasons))


class OracleError(ProposalRejected):
    """Timeout, transport failure, explicit 'infeasible' reply or unparseable reply."""
