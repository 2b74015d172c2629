# lineup_core/io.py
from __future__ import annotations
import io
import json
from typing import Dict, Iterable, List

import pandas as pd

from .aliases import HISTORY_ALIASES, map_headers
from .constants import ABSENT, INJURED
from .context import HISTORY_COLUMNS
from .formations import parse_formations_yaml
from .models import Player, QuarterPlan, Slot
from .validation import PlanLike, coerce_quarters

REQUIRED_COLUMNS = ["id", "name"]
OPTIONAL_COLUMNS = ["preferred_positions", "absent_quarters", "status", "injured_quarters"]


def _cell(v) -> str:
    if v is None or (isinstance(v, float) and pd.isna(v)):
        return ""
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    return str(v).strip()


def load_roster_csv(file_like) -> List[Player]:
    df = pd.read_csv(file_like, dtype=str, keep_default_na=False)
    df, _ = map_headers(df)
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}")
    for c in OPTIONAL_COLUMNS:
        if c not in df.columns:
            df[c] = ""

    players: List[Player] = []
    for _, r in df.iterrows():
        status = _cell(r["status"]).lower()
        players.append(Player(
            id=int(_cell(r["id"])),
            name=_cell(r["name"]),
            preferred_positions=_cell(r["preferred_positions"]),
            absent_quarters=_cell(r["absent_quarters"]),
            absence_reason=INJURED if status == INJURED else ABSENT,
            injured_quarters=_cell(r["injured_quarters"]),
        ))
    return players


def roster_to_csv_bytes(players: Iterable[Player]) -> bytes:
    rows = []
    for p in players:
        absent = p.absent_quarters if p.absent_quarters == "all" else ";".join(str(q) for q in p.absent_quarters)
        rows.append({
            "id": p.id,
            "name": p.name,
            "preferred_positions": ";".join(p.preferred_positions),
            "absent_quarters": absent,
            "status": p.absence_reason if absent else "",
            "injured_quarters": ";".join(str(q) for q in p.injured_quarters),
        })
    buf = io.StringIO()
    pd.DataFrame(rows, columns=REQUIRED_COLUMNS + OPTIONAL_COLUMNS).to_csv(buf, index=False)
    return buf.getvalue().encode("utf-8")


def load_history_csv(file_like) -> pd.DataFrame:
    df = pd.read_csv(file_like)
    df, _ = map_headers(df, HISTORY_ALIASES)
    if "player_id" not in df.columns:
        raise ValueError("Missing required columns: ['player_id']")
    for c in HISTORY_COLUMNS:
        if c not in df.columns:
            df[c] = None
    df["player_id"] = pd.to_numeric(df["player_id"], errors="coerce")
    df["position_number"] = pd.to_numeric(df["position_number"], errors="coerce")
    df["is_sitting_out"] = df["is_sitting_out"].map(
        lambda v: str(v).strip().lower() in ("1", "true", "yes", "y") if pd.notna(v) else False
    )
    if df["game_date"].notna().any():
        df["game_date"] = pd.to_datetime(df["game_date"], errors="coerce")
    return df[HISTORY_COLUMNS]


def load_formations_yaml(path: str) -> Dict[str, Dict[str, List[Slot]]]:
    with open(path, "r", encoding="utf-8") as f:
        return parse_formations_yaml(f.read())


def quarters_to_json(quarters: Iterable[PlanLike], indent=None) -> str:
    return json.dumps({"quarters": [q.to_wire() for q in coerce_quarters(quarters)]}, indent=indent)


def quarters_from_json(text: str) -> List[QuarterPlan]:
    obj = json.loads(text)
    items = obj["quarters"] if isinstance(obj, dict) else obj
    return coerce_quarters(items)
