# lineup_core/scheduler.py
"""
Quarter-by-quarter rotation planner.

Quarters are planned strictly in order: quarter n's must-play set is
quarter n-1's sit-outs. Each quarter comes from a locked (coach-saved) plan,
an optional proposer, or the deterministic greedy fallback, and every
non-greedy quarter passes validation.check_quarter before it is accepted.
"""
from __future__ import annotations
import logging
from typing import Dict, List, Mapping, Optional, Union

from .constants import QUARTERS
from .context import RosterContext
from .errors import (
    InfeasibleGoalkeeper, InfeasibleQuarter, OracleError, ProposalRejected,
)
from .fairness import sit_opportunities, slack
from .formations import FormationCatalog
from .goalkeeper import GoalkeeperPolicy, is_legal_block
from .models import (
    PlanError, PlannerConfig, PlanResult, PlayerSnapshot, QuarterContext,
    QuarterPlan, RotationState,
)
from .oracle import OracleProposer
from .proposers import QuarterProposer, parse_proposal
from .solver_heuristic import GreedyProposer
from .solver_ilp import IlpProposer
from .validation import check_quarter, validate

logger = logging.getLogger(__name__)


class RotationPlanner:
    """Owns the RotationState of one planning run. Not reusable across runs."""

    def __init__(
        self,
        context: RosterContext,
        catalog: FormationCatalog,
        config: Optional[PlannerConfig] = None,
        proposer: Optional[QuarterProposer] = None,
        locked: Optional[Mapping[int, Union[QuarterPlan, Mapping]]] = None,
        log: Optional[logging.Logger] = None,
    ):
        self.context = context
        self.catalog = catalog
        self.config = config or PlannerConfig()
        self.cap = self.config.max_goalkeeper_quarters
        self.rule = self.config.goalkeeper_rule
        self.proposer = proposer
        self.greedy = GreedyProposer(context)
        self.keepers = GoalkeeperPolicy(context, catalog, self.cap, self.rule)
        self.locked: Dict[int, Union[QuarterPlan, Mapping]] = {int(q): p for q, p in (locked or {}).items()}
        self.log = log or logger

        self.state = RotationState.start(p.id for p in context.active_players)
        self.quarters: List[QuarterPlan] = []
        self.rejections: List[str] = []
        self._keeper_plan: Dict[int, int] = {}

    # ===== Run =====
    def run(self) -> PlanResult:
        for q in QUARTERS:
            try:
                plan = self.step(q)
            except (InfeasibleQuarter, InfeasibleGoalkeeper) as exc:
                self.log.warning("Planning stopped at Q%s (%s): %s", exc.quarter, exc.kind, exc.reason)
                return PlanResult(
                    quarters=list(self.quarters),
                    error=PlanError.from_exception(exc),
                    rejections=list(self.rejections),
                )
            self.quarters.append(plan)

        report = validate(
            self.quarters,
            self.context,
            self.config.format,
            goalkeeper_rule=self.rule,
            formations=self.catalog,
            fair_minimum_ratio=self.config.fair_minimum_ratio,
            goalkeeper_cap=self.cap,
        )
        if not report.passed:
            self.log.warning("Plan failed %d compliance check(s): %s", len(report.violations), sorted(report.rules()))
        return PlanResult(quarters=list(self.quarters), report=report, rejections=list(self.rejections))

    def step(self, q: int) -> QuarterPlan:
        available = self.context.available_ids(q)
        absent = self.context.absent_ids(q)
        n = self.catalog.slot_count(q)
        if len(available) < n:
            raise InfeasibleQuarter(q, f"{len(available)} available players for {n} slots")

        present = set(available)
        must = sorted(pid for pid in self.state.last_sitting_out if pid in present)
        if len(must) > n:
            raise InfeasibleQuarter(q, f"{len(must)} must-play players for {n} slots")

        keeper = self._keeper_for(q, available, must, n)
        ctx = self.quarter_context(q, keeper, available, absent, must)
        plan = self._choose(ctx)

        if plan.goalkeeper != keeper:
            # a new block starts; later quarters get a fresh keeper plan
            self._keeper_plan = {k: v for k, v in self._keeper_plan.items() if k <= q}
        self.state.record(plan, absent)
        self.log.info(
            "Q%d planned: keeper %s, %d playing, sitting %s",
            q, plan.goalkeeper, len(plan.assignments), plan.sitting_out,
        )
        return plan

    # ===== Goalkeeper =====
    def _keeper_ok(self, pid: Optional[int], q: int, available: List[int]) -> bool:
        if pid is None or pid not in available:
            return False
        return is_legal_block(self.state.goalkeeper_history(pid) + [q], self.cap, self.rule)

    def _keeper_for(self, q: int, available: List[int], must: List[int], n: int) -> int:
        keeper = self._keeper_plan.get(q)
        if not self._keeper_ok(keeper, q, available):
            self._keeper_plan.update(self.keepers.plan(self.state, start=q))
            keeper = self._keeper_plan[q]
        if len(must) == n and keeper not in must:
            # every slot is taken by must-play players, so one of them keeps goal
            self.log.info("Q%d: re-planning keeper from the %d must-play players", q, len(must))
            self._keeper_plan.update(self.keepers.plan(self.state, start=q, pool=must))
            keeper = self._keeper_plan[q]
        return keeper

    # ===== Proposer context =====
    def quarter_context(
        self, q: int, keeper: int, available: List[int], absent: List[int], must: List[int]
    ) -> QuarterContext:
        ratio = self.config.fair_minimum_ratio
        snaps = []
        for p in self.context.active_players:
            need = self.context.required_quarters(p.id, ratio)
            sat = self.state.sat(p.id)
            snaps.append(PlayerSnapshot(
                id=p.id,
                name=p.name,
                position_history=self.context.frequencies(p.id),
                preferred_positions=p.preferred_positions,
                quarters_played=self.state.played(p.id),
                quarters_sitting=sat,
                goalkeeper_quarters=self.state.goalkeeper_history(p.id),
                required_quarters=need,
                slack=slack(len(p.available_quarters), need, sat),
                sit_opportunities=sit_opportunities(p, q, self._keeper_plan),
            ))
        return QuarterContext(
            quarter=q,
            format=self.config.format,
            slots=sorted(self.catalog.slots(q), key=lambda s: s.number),
            goalkeeper=keeper,
            available=available,
            absent=absent,
            must_play=must,
            players=snaps,
            previous_quarters=list(self.quarters),
        )

    # ===== Quarter source =====
    @property
    def _proposer_name(self) -> str:
        return getattr(self.proposer, "name", None) or type(self.proposer).__name__

    def _choose(self, ctx: QuarterContext) -> QuarterPlan:
        q = ctx.quarter
        if q in self.locked:
            return self._locked(ctx)
        if self.proposer is not None:
            try:
                return self._proposed(ctx)
            except ProposalRejected as exc:
                self.log.warning(
                    "%s proposal for Q%d rejected, using greedy: %s",
                    self._proposer_name, q, exc.reason,
                )
                self.rejections.append(f"Q{q}: {exc.reason}")
        return self.greedy.propose(ctx)

    def _locked(self, ctx: QuarterContext) -> QuarterPlan:
        q = ctx.quarter
        try:
            plan = parse_proposal(self.locked[q], ctx)
        except ProposalRejected as exc:
            raise InfeasibleQuarter(q, f"locked quarter rejected: {exc.reason}") from exc
        reasons = check_quarter(plan, ctx, self.state, self.cap, self.rule)
        if reasons:
            raise InfeasibleQuarter(q, "locked quarter rejected: " + "; ".join(reasons))
        return plan

    def _proposed(self, ctx: QuarterContext) -> QuarterPlan:
        q = ctx.quarter
        try:
            raw = self.proposer.propose(ctx)
        except ProposalRejected:
            raise
        except Exception as exc:
            raise OracleError(q, f"{self._proposer_name} raised {type(exc).__name__}: {exc}") from exc
        # sitting-out is rebuilt from the roster; must-play depends on it
        plan = parse_proposal(raw, ctx)
        reasons = check_quarter(plan, ctx, self.state, self.cap, self.rule)
        if reasons:
            raise ProposalRejected(q, reasons)
        if plan.goalkeeper != ctx.goalkeeper and q < QUARTERS[-1]:
            trial = self.state.model_copy(deep=True)
            trial.record(plan, ctx.absent)
            try:
                self.keepers.plan(trial, start=q + 1)
            except InfeasibleGoalkeeper as exc:
                raise ProposalRejected(
                    q, f"goalkeeper {plan.goalkeeper} leaves no legal keeper for later quarters"
                ) from exc
        return plan


def _proposer_for(oracle, context: RosterContext, config: PlannerConfig, log: logging.Logger):
    if oracle is None:
        return None
    if isinstance(oracle, str):
        if oracle == "ilp":
            return IlpProposer(context)
        raise ValueError(f"Unknown proposer: {oracle}")
    if hasattr(oracle, "propose"):
        return oracle
    if callable(oracle):
        return OracleProposer(oracle, timeout=config.oracle_timeout, log=log)
    raise ValueError("oracle must be a callable, a proposer or 'ilp'")


def plan_rotation(
    roster,
    formations=None,
    oracle=None,
    *,
    config: Optional[Union[PlannerConfig, Mapping]] = None,
    history=None,
    locked: Optional[Mapping[int, Union[QuarterPlan, Mapping]]] = None,
    logger: Optional[logging.Logger] = None,
) -> PlanResult:
    """
    Plan all four quarters.

    `formations` is a FormationCatalog, a format name ("9v9"), a
    quarter -> slots mapping or one formation for every quarter (defaults to
    the configured format's first built-in formation). `oracle` is None, a
    callable taking the quarter payload, any object with `propose(ctx)`, or
    "ilp". Planning failures come back inside the PlanResult; bad static
    inputs raise ValueError.
    """
    cfg = config if isinstance(config, PlannerConfig) else PlannerConfig(**dict(config or {}))
    if isinstance(formations, str) and formations != cfg.format:
        cfg = PlannerConfig(**{**cfg.model_dump(), "format": formations})
    log = logger or logging.getLogger(__name__)

    context = RosterContext.build(roster, history, history_games=cfg.history_games)
    catalog = FormationCatalog.coerce(formations if formations is not None else cfg.format)
    proposer = _proposer_for(oracle, context, cfg, log)

    planner = RotationPlanner(context, catalog, cfg, proposer=proposer, locked=locked, log=log)
    return planner.run()
