# FILE: lineup_core/validation.py
"""
Compliance checks for finished plans (`validate`) and the per-quarter gate
every proposed quarter passes before the planner accepts it (`check_quarter`).
"""
from __future__ import annotations
from collections import Counter
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Union

from .constants import (
    FAIR_MINIMUM_RATIO, QUARTERS,
    RULE_AVAILABILITY, RULE_BALANCE, RULE_COVERAGE, RULE_FAIR_MINIMUM,
    RULE_GK_CAP, RULE_GK_CONTIGUITY, RULE_SLOT_INTEGRITY,
    goalkeeper_cap_for,
)
from .context import RosterContext
from .fairness import required_quarters
from .formations import FormationCatalog
from .goalkeeper import is_legal_block
from .models import Player, QuarterContext, QuarterPlan, RotationState, ValidationReport, Violation

PlanLike = Union[QuarterPlan, Mapping]


def coerce_quarters(quarters: Iterable[PlanLike]) -> List[QuarterPlan]:
    return [q if isinstance(q, QuarterPlan) else QuarterPlan.from_wire(q) for q in quarters]


def _players(roster) -> List[Player]:
    if isinstance(roster, RosterContext):
        return list(roster.players)
    return [p if isinstance(p, Player) else Player.model_validate(p) for p in roster]


def _dupes(values: Iterable[int]) -> List[int]:
    return sorted(v for v, n in Counter(values).items() if n > 1)


# ---------------------
# Per-quarter gate
# ---------------------
def check_quarter(
    plan: QuarterPlan,
    ctx: QuarterContext,
    state: RotationState,
    cap: int,
    rule: str = "same-half",
) -> List[str]:
    """Reasons the plan cannot be accepted for ctx.quarter; empty when it can."""
    reasons: List[str] = []
    q = ctx.quarter
    if plan.number != q:
        reasons.append(f"plan is for quarter {plan.number}, expected {q}")

    slots = [a.slot for a in plan.assignments]
    expected = sorted(s.number for s in ctx.slots)
    if _dupes(slots):
        reasons.append(f"slot(s) {_dupes(slots)} filled more than once")
    missing = sorted(set(expected) - set(slots))
    if missing:
        reasons.append(f"slot(s) {missing} not filled")
    extra = sorted(set(slots) - set(expected))
    if extra:
        reasons.append(f"slot(s) {extra} not in the formation")

    assigned = [a.player_id for a in plan.assignments]
    if _dupes(assigned):
        reasons.append(f"player(s) {_dupes(assigned)} in more than one slot")
    available = set(ctx.available)
    unavailable = sorted({pid for pid in assigned if pid not in available})
    if unavailable:
        reasons.append(f"player(s) {unavailable} not available in Q{q}")
    both = sorted(set(assigned) & set(plan.sitting_out))
    if both:
        reasons.append(f"player(s) {both} both assigned and sitting out")
    bench = (available | set(ctx.absent)) - set(assigned)
    if set(plan.sitting_out) != bench:
        reasons.append(
            f"sitting out {sorted(set(plan.sitting_out))} does not match the unassigned roster {sorted(bench)}"
        )
    left_out = sorted(set(ctx.must_play) - set(assigned))
    if left_out:
        reasons.append(f"must-play player(s) {left_out} not assigned")

    gk = plan.goalkeeper
    if gk is None:
        reasons.append("no goalkeeper in slot 1")
    else:
        history = state.goalkeeper_history(gk) + [q]
        if len(history) > cap:
            reasons.append(f"goalkeeper {gk} would exceed the cap of {cap} quarters")
        elif not is_legal_block(history, cap, rule):
            reasons.append(f"goalkeeper {gk} quarters {history} are not a legal {rule} block")
    return reasons


# ---------------------
# Full-plan validation
# ---------------------
def _coverage(plans: Sequence[QuarterPlan]) -> List[Violation]:
    numbers = [p.number for p in plans]
    if sorted(numbers) == list(QUARTERS):
        return []
    missing = sorted(set(QUARTERS) - set(numbers))
    repeated = _dupes(numbers)
    parts = []
    if missing:
        parts.append(f"missing quarter(s) {missing}")
    if repeated:
        parts.append(f"repeated quarter(s) {repeated}")
    return [Violation(rule=RULE_COVERAGE, detail="; ".join(parts), quarters=sorted(set(missing + repeated)))]


def _quarter_violations(
    plan: QuarterPlan,
    by_id: Dict[int, Player],
    active: Set[int],
    catalog: Optional[FormationCatalog],
) -> List[Violation]:
    out: List[Violation] = []
    q = plan.number
    slots = [a.slot for a in plan.assignments]
    for s in _dupes(slots):
        out.append(Violation(rule=RULE_SLOT_INTEGRITY, detail=f"Q{q}: slot {s} filled more than once", quarters=[q]))
    if catalog is not None:
        expected = set(catalog.slot_numbers(q))
        missing = sorted(expected - set(slots))
        extra = sorted(set(slots) - expected)
        if missing:
            out.append(Violation(rule=RULE_SLOT_INTEGRITY, detail=f"Q{q}: slot(s) {missing} not filled", quarters=[q]))
        if extra:
            out.append(Violation(rule=RULE_SLOT_INTEGRITY, detail=f"Q{q}: slot(s) {extra} not in the formation", quarters=[q]))
    elif plan.goalkeeper is None:
        out.append(Violation(rule=RULE_SLOT_INTEGRITY, detail=f"Q{q}: no goalkeeper in slot 1", quarters=[q]))

    assigned = [a.player_id for a in plan.assignments]
    for pid in _dupes(assigned):
        out.append(Violation(player_id=pid, rule=RULE_SLOT_INTEGRITY, detail=f"Q{q}: player in more than one slot", quarters=[q]))
    for pid in sorted(set(assigned) & set(plan.sitting_out)):
        out.append(Violation(player_id=pid, rule=RULE_SLOT_INTEGRITY, detail=f"Q{q}: both assigned and sitting out", quarters=[q]))

    # every active player is either on the field or sitting out
    listed = set(assigned) | set(plan.sitting_out)
    for pid in sorted(active - listed):
        out.append(Violation(player_id=pid, rule=RULE_SLOT_INTEGRITY, detail=f"Q{q}: neither assigned nor sitting out", quarters=[q]))
    for pid in sorted(set(plan.sitting_out) - active):
        player = by_id.get(pid)
        what = "absent the whole game" if player is not None else "not on the roster"
        out.append(Violation(player_id=pid, rule=RULE_SLOT_INTEGRITY, detail=f"Q{q}: sitting out while {what}", quarters=[q]))

    for pid in sorted(set(assigned)):
        player = by_id.get(pid)
        if player is None:
            out.append(Violation(player_id=pid, rule=RULE_SLOT_INTEGRITY, detail=f"Q{q}: player not on the roster", quarters=[q]))
        elif not player.is_available(q):
            out.append(Violation(player_id=pid, rule=RULE_AVAILABILITY, detail=f"Q{q}: assigned while {player.status(q)}", quarters=[q]))
    return out


def validate(
    quarters: Iterable[PlanLike],
    roster,
    format: str = "9v9",
    *,
    goalkeeper_rule: str = "same-half",
    formations=None,
    fair_minimum_ratio: float = FAIR_MINIMUM_RATIO,
    goalkeeper_cap: Optional[int] = None,
) -> ValidationReport:
    """
    Check a 4-quarter plan against every fairness rule. Pure and
    deterministic: the same inputs always give an identical report.
    """
    plans = sorted(coerce_quarters(quarters), key=lambda p: p.number)
    players = _players(roster)
    by_id = {p.id: p for p in players}
    active = {p.id for p in players if not p.absent_all}
    cap = goalkeeper_cap if goalkeeper_cap is not None else goalkeeper_cap_for(format)
    catalog = FormationCatalog.coerce(formations) if formations is not None else None

    violations: List[Violation] = _coverage(plans)
    for plan in plans:
        violations.extend(_quarter_violations(plan, by_id, active, catalog))

    played: Dict[int, List[int]] = {}
    keeping: Dict[int, List[int]] = {}
    for plan in plans:
        for a in plan.assignments:
            played.setdefault(a.player_id, []).append(plan.number)
            if a.slot == 1:
                keeping.setdefault(a.player_id, []).append(plan.number)

    eligible = [p for p in players if not p.absent_all]
    below: List[int] = []
    for p in eligible:
        qs = played.get(p.id, [])
        need = required_quarters(len(p.available_quarters), fair_minimum_ratio)
        if len(qs) < need:
            below.append(p.id)
            violations.append(Violation(
                player_id=p.id, rule=RULE_FAIR_MINIMUM,
                detail=f"{p.name or p.id} played {len(qs)} of {len(p.available_quarters)} available quarters, needs {need}",
                quarters=qs,
            ))
        gk = keeping.get(p.id, [])
        if len(gk) > cap:
            violations.append(Violation(
                player_id=p.id, rule=RULE_GK_CAP,
                detail=f"{p.name or p.id} kept goal {len(gk)} quarters, cap is {cap}",
                quarters=gk,
            ))
        # contiguity is judged on its own; the cap is reported separately
        if gk and not is_legal_block(gk, len(QUARTERS), goalkeeper_rule):
            violations.append(Violation(
                player_id=p.id, rule=RULE_GK_CONTIGUITY,
                detail=f"{p.name or p.id} kept goal in quarters {gk}, not a legal {goalkeeper_rule} block",
                quarters=gk,
            ))

    if below:
        for p in eligible:
            qs = played.get(p.id, [])
            if len(qs) >= len(QUARTERS):
                violations.append(Violation(
                    player_id=p.id, rule=RULE_BALANCE,
                    detail=f"{p.name or p.id} played all {len(qs)} quarters while {below} are below the minimum",
                    quarters=qs,
                ))
    return ValidationReport.from_violations(violations)
