# FILE: lineup_core/proposers.py
"""
Quarter proposers and the normalizer for replies from untrusted ones.

Every proposer returns a QuarterPlan for one QuarterContext; the planner
gates the result with validation.check_quarter no matter where it came from.
"""
from __future__ import annotations
from typing import List, Mapping, Protocol, Set

from pydantic import ValidationError

from .errors import OracleError, ProposalRejected
from .models import Assignment, QuarterContext, QuarterPlan


class QuarterProposer(Protocol):
    name: str

    def propose(self, ctx: QuarterContext) -> QuarterPlan:
        ...


def _error_reason(raw: Mapping) -> str:
    reason = raw.get("reason") or raw.get("errorMessage") or raw.get("message")
    kind = raw.get("error")
    if reason and isinstance(kind, str):
        return f"{kind}: {reason}"
    return str(reason or kind)


def parse_proposal(raw, ctx: QuarterContext) -> QuarterPlan:
    """
    Normalize a proposer reply into a QuarterPlan for ctx.quarter.

    Accepts a QuarterPlan or a dict with `assignments` (entries keyed
    slot/positionNumber/slotNumber + playerId) and optional
    `sittingOut`/`substitutes`. An `{"error": ..., "reason": ...}` reply
    raises OracleError. The sitting-out list is rebuilt from the active
    roster so it always equals everyone not assigned.
    """
    q = ctx.quarter
    if isinstance(raw, QuarterPlan):
        plan = raw
    elif isinstance(raw, Mapping):
        if raw.get("error"):
            raise OracleError(q, f"oracle declined: {_error_reason(raw)}")
        if "assignments" not in raw:
            raise OracleError(q, "malformed proposal: no assignments")
        data = dict(raw)
        data.setdefault("number", q)
        try:
            plan = QuarterPlan.model_validate(data)
        except ValidationError as exc:
            raise OracleError(q, f"malformed proposal: {exc.error_count()} field error(s)") from exc
    else:
        raise OracleError(q, f"malformed proposal: expected a mapping, got {type(raw).__name__}")

    if plan.number != q:
        raise ProposalRejected(q, f"proposal is for quarter {plan.number}")

    active: Set[int] = set(ctx.available) | set(ctx.absent)
    assigned = [a.player_id for a in plan.assignments]
    problems: List[str] = []
    unknown = sorted({pid for pid in assigned + list(plan.sitting_out) if pid not in active})
    if unknown:
        problems.append(f"unknown or whole-game-absent player id(s) {unknown}")
    both = sorted(set(assigned) & set(plan.sitting_out))
    if both:
        problems.append(f"player(s) {both} both assigned and sitting out")
    if problems:
        raise ProposalRejected(q, problems)

    return QuarterPlan(
        number=q,
        assignments=sorted(plan.assignments, key=lambda a: (a.slot, a.player_id)),
        sitting_out=sorted(active - set(assigned)),
    )


def plan_from_lineup(quarter: int, lineup: Mapping[int, int], ctx: QuarterContext) -> QuarterPlan:
    """Build a canonical QuarterPlan from slot -> player for the active roster."""
    active = set(ctx.available) | set(ctx.absent)
    return QuarterPlan(
        number=quarter,
        assignments=[Assignment(slot=s, player_id=pid) for s, pid in sorted(lineup.items())],
        sitting_out=sorted(active - set(lineup.values())),
    )
