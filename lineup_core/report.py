# lineup_core/report.py
from __future__ import annotations
from typing import Iterable, List, Optional

import numpy as np
import pandas as pd

from .constants import GOALKEEPER_SLOT, QUARTERS
from .context import RosterContext
from .fairness import required_quarters
from .formations import FormationCatalog
from .models import PlannerConfig, QuarterPlan
from .validation import PlanLike, coerce_quarters


def lineup_grid(
    quarters: Iterable[PlanLike],
    catalog: FormationCatalog,
    context: Optional[RosterContext] = None,
) -> pd.DataFrame:
    """Slot rows x Q1..Q4 columns; each cell is 'ABBR: name' (empty when unfilled)."""
    plans = {p.number: p for p in coerce_quarters(quarters)}
    slot_numbers = sorted({n for q in QUARTERS for n in catalog.slot_numbers(q)})

    data = {}
    for q in QUARTERS:
        lineup = plans[q].lineup if q in plans else {}
        col = []
        for n in slot_numbers:
            pid = lineup.get(n)
            if pid is None:
                col.append("")
                continue
            name = context.name(pid) if context is not None else f"#{pid}"
            col.append(f"{catalog.abbreviation(q, n)}: {name}")
        data[f"Q{q}"] = col

    sitting = []
    for q in QUARTERS:
        out = plans[q].sitting_out if q in plans else []
        sitting.append(", ".join(context.name(pid) if context is not None else f"#{pid}" for pid in out))
    df = pd.DataFrame(data, index=slot_numbers)
    df.loc["Sitting"] = sitting
    return df


def play_matrix(quarters: Iterable[QuarterPlan], player_ids: List[int]) -> np.ndarray:
    """players x quarters; 1 = on the field, 2 = in goal, 0 = not playing."""
    row = {pid: i for i, pid in enumerate(player_ids)}
    M = np.zeros((len(player_ids), len(QUARTERS)), dtype=int)
    for plan in quarters:
        for a in plan.assignments:
            if a.player_id in row:
                M[row[a.player_id], plan.number - 1] = 2 if a.slot == GOALKEEPER_SLOT else 1
    return M


def fairness_dashboard(
    quarters: Iterable[PlanLike],
    context: RosterContext,
    config: Optional[PlannerConfig] = None,
) -> pd.DataFrame:
    cfg = config or PlannerConfig()
    plans = coerce_quarters(quarters)
    players = context.active_players
    ids = [p.id for p in players]
    M = play_matrix(plans, ids)
    played = (M > 0).sum(axis=1)
    keeping = (M == 2).sum(axis=1)
    available = np.array([len(p.available_quarters) for p in players], dtype=int)
    sat = available - played

    rows = []
    for i, p in enumerate(players):
        need = required_quarters(int(available[i]), cfg.fair_minimum_ratio)
        rows.append({
            "player_id": p.id,
            "name": p.name,
            "available": int(available[i]),
            "required": need,
            "played": int(played[i]),
            "sat": int(sat[i]),
            "goalkeeper": int(keeping[i]),
            "flag_below_minimum": int(played[i]) < need,
            "flag_goalkeeper_cap": int(keeping[i]) > cfg.max_goalkeeper_quarters,
        })
    if not rows:
        return pd.DataFrame(rows)
    return pd.DataFrame(rows).sort_values(
        ["flag_below_minimum", "played", "name"], ascending=[False, True, True]
    ).reset_index(drop=True)
