# FILE: lineup_core/goalkeeper.py
"""
Goalkeeper rotation: who takes slot 1 in each quarter.

A keeper's quarters must form one legal block. Under the "same-half" rule a
block is a single quarter, a half (Q1+Q2 or Q3+Q4) or the whole game; the
"adjacent" rule accepts any run of consecutive quarters. Every block is
also bounded by the format's goalkeeper cap.
"""
from __future__ import annotations
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .constants import GOALKEEPER_ABBR, GOALKEEPER_RULES, HALVES, QUARTERS
from .context import RosterContext
from .errors import InfeasibleGoalkeeper
from .formations import FormationCatalog
from .models import RotationState
from .suitability import NO_PREFERENCE, preference_rank

Block = Tuple[int, ...]


def _within_half(block: Block) -> bool:
    return any(set(block) <= set(h) for h in HALVES)


def legal_blocks(cap: int, rule: str = "same-half") -> List[Block]:
    if rule not in GOALKEEPER_RULES:
        raise ValueError(f"Unknown goalkeeper rule: {rule}")
    out: List[Block] = []
    for start in QUARTERS:
        for end in QUARTERS:
            if end < start:
                continue
            block = tuple(range(start, end + 1))
            if len(block) > cap:
                continue
            if rule == "same-half" and len(block) != len(QUARTERS) and not _within_half(block):
                continue
            out.append(block)
    return out


def is_legal_block(quarters: Iterable[int], cap: int, rule: str = "same-half") -> bool:
    qs = list(quarters)
    if not qs:
        return True
    if len(qs) != len(set(qs)):
        return False
    return tuple(sorted(qs)) in legal_blocks(cap, rule)


def tilings(start: int, cap: int, rule: str = "same-half") -> List[List[Block]]:
    """Ways to split quarters start..4 into legal blocks, most preferred first."""
    allowed = set(legal_blocks(cap, rule))
    last = QUARTERS[-1]

    def walk(q: int) -> List[List[Block]]:
        if q > last:
            return [[]]
        found: List[List[Block]] = []
        for end in range(last, q - 1, -1):
            block = tuple(range(q, end + 1))
            if block not in allowed:
                continue
            for rest in walk(end + 1):
                found.append([block] + rest)
        return found

    # half blocks first; a whole-game keeper never plays the field, so it goes last
    return sorted(walk(start), key=lambda t: (any(len(b) == len(QUARTERS) for b in t), len(t)))


class GoalkeeperPolicy:
    def __init__(self, context: RosterContext, catalog: FormationCatalog, cap: int, rule: str = "same-half"):
        self.context = context
        self.catalog = catalog
        self.cap = cap
        self.rule = rule

    def _abbr(self, quarter: int) -> str:
        return self.catalog.goalkeeper_slot(quarter).abbreviation or GOALKEEPER_ABBR

    def _rank(self, pid: int, block: Block, prior: List[int]) -> tuple:
        abbr = self._abbr(block[0])
        continuing = bool(prior) and prior[-1] == block[0] - 1
        pr = preference_rank(self.context, pid, abbr)
        return (not continuing, -self.context.experience(pid, abbr), pr or NO_PREFERENCE, pid)

    def candidates(
        self,
        block: Block,
        used: Set[int] = frozenset(),
        state: Optional[RotationState] = None,
        pool: Optional[Set[int]] = None,
    ) -> List[int]:
        ranked = []
        for p in self.context.active_players:
            if p.id in used or (pool is not None and p.id not in pool):
                continue
            if not all(p.is_available(q) for q in block):
                continue
            prior = state.goalkeeper_history(p.id) if state is not None else []
            if not is_legal_block(prior + list(block), self.cap, self.rule):
                continue
            ranked.append((self._rank(p.id, block, prior), p.id))
        return [pid for _, pid in sorted(ranked)]

    def plan(
        self,
        state: Optional[RotationState] = None,
        start: int = 1,
        pool: Optional[Iterable[int]] = None,
    ) -> Dict[int, int]:
        """
        Return {quarter -> goalkeeper id} for quarters start..4.
        `pool` limits who may keep goal in the first planned block.
        """
        first_pool = set(pool) if pool is not None else None
        for blocks in tilings(start, self.cap, self.rule):
            plan: Dict[int, int] = {}
            if self._fill(blocks, 0, set(), state, first_pool, plan):
                return plan
        raise InfeasibleGoalkeeper(
            start,
            f"no goalkeeper arrangement for quarters {start}-{QUARTERS[-1]} "
            f"within cap {self.cap} ({self.rule} blocks)",
        )

    def _fill(self, blocks, i, used, state, pool, plan) -> bool:
        if i == len(blocks):
            return True
        block = blocks[i]
        for pid in self.candidates(block, used, state, pool if i == 0 else None):
            for q in block:
                plan[q] = pid
            used.add(pid)
            if self._fill(blocks, i + 1, used, state, pool, plan):
                return True
            used.discard(pid)
            for q in block:
                plan.pop(q, None)
        return False
