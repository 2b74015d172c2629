# lineup_core/context.py
"""
Per-game planning snapshot: position frequency tables and availability.
"""
from __future__ import annotations
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

import pandas as pd

from .fairness import required_quarters
from .models import Player

HISTORY_COLUMNS = [
    "game_id", "game_date", "player_id", "position_number",
    "position_name", "quarter", "is_sitting_out",
]

_RECORD_ALIASES = {
    "gameId": "game_id",
    "gameDate": "game_date",
    "playerId": "player_id",
    "positionNumber": "position_number",
    "positionName": "position_name",
    "isSittingOut": "is_sitting_out",
}


def history_frame(records: Union[pd.DataFrame, Iterable[Mapping], None]) -> pd.DataFrame:
    """Normalize past assignment records (row dicts or DataFrame) to HISTORY_COLUMNS."""
    if records is None:
        return pd.DataFrame(columns=HISTORY_COLUMNS)
    df = records.copy() if isinstance(records, pd.DataFrame) else pd.DataFrame(list(records))
    df = df.rename(columns=_RECORD_ALIASES)
    for c in HISTORY_COLUMNS:
        if c not in df.columns:
            df[c] = None
    return df[HISTORY_COLUMNS]


def _position_label(row) -> str:
    name = row["position_name"]
    if isinstance(name, str) and name.strip():
        return name.strip().upper()
    if pd.notna(row["position_number"]):
        return f"POS{int(row['position_number'])}"
    return "POS?"


def calculate_position_history(
    records: Union[pd.DataFrame, Iterable[Mapping], None],
    max_games: Optional[int] = None,
) -> Dict[int, Dict[str, int]]:
    """
    Count appearances per (player, position) from past assignment records.
    Sitting-out rows are ignored; rows without a position name count as Pos<n>.
    With max_games, only the most recent games (by game_date) are used.
    """
    df = history_frame(records)
    if df.empty:
        return {}
    sitting = df["is_sitting_out"].map(lambda v: bool(v) if pd.notna(v) else False)
    df = df[~sitting.astype(bool)]
    df = df[df["player_id"].notna()]
    if max_games and df["game_date"].notna().any():
        games = (
            df[["game_id", "game_date"]].drop_duplicates()
            .sort_values("game_date", ascending=False)
            .head(max_games)
        )
        df = df[df["game_id"].isin(games["game_id"])]
    if df.empty:
        return {}

    df = df.assign(
        position=df.apply(_position_label, axis=1),
        player_id=df["player_id"].astype(int),
    )
    counts = df.groupby(["player_id", "position"]).size()

    out: Dict[int, Dict[str, int]] = {}
    for (pid, pos), n in counts.items():
        out.setdefault(int(pid), {})[pos] = int(n)
    return out


class RosterContext:
    """Read-only roster view used for one planning run."""

    def __init__(self, players: Sequence[Player], frequencies: Mapping[int, Mapping[str, int]]):
        ids = [p.id for p in players]
        if len(ids) != len(set(ids)):
            dupes = sorted({i for i in ids if ids.count(i) > 1})
            raise ValueError(f"Duplicate player id detected: {dupes}")
        self.players: List[Player] = list(players)
        self._by_id: Dict[int, Player] = {p.id: p for p in self.players}
        self._freq: Dict[int, Dict[str, int]] = {
            p.id: dict(frequencies.get(p.id, {})) for p in self.players
        }

    @classmethod
    def build(
        cls,
        roster: Sequence[Union[Player, Mapping]],
        history=None,
        history_games: Optional[int] = None,
    ) -> "RosterContext":
        players = [p if isinstance(p, Player) else Player.model_validate(p) for p in roster]
        from_records = calculate_position_history(history, max_games=history_games)
        freq: Dict[int, Dict[str, int]] = {}
        for p in players:
            merged = dict(p.position_history)
            for pos, n in from_records.get(p.id, {}).items():
                merged[pos] = merged.get(pos, 0) + n
            freq[p.id] = merged
        return cls(players, freq)

    # --- lookups ---
    def __contains__(self, pid: int) -> bool:
        return pid in self._by_id

    def player(self, pid: int) -> Player:
        return self._by_id[pid]

    def name(self, pid: int) -> str:
        p = self._by_id.get(pid)
        return p.name if p and p.name else f"#{pid}"

    def frequencies(self, pid: int) -> Dict[str, int]:
        return dict(self._freq.get(pid, {}))

    def experience(self, pid: int, abbreviation: str) -> int:
        return self._freq.get(pid, {}).get(abbreviation.upper(), 0)

    def has_history(self, pid: int) -> bool:
        return any(n > 0 for n in self._freq.get(pid, {}).values())

    # --- availability ---
    @property
    def whole_game_absent(self) -> List[int]:
        return [p.id for p in self.players if p.absent_all]

    @property
    def active_players(self) -> List[Player]:
        return [p for p in self.players if not p.absent_all]

    def available_ids(self, quarter: int) -> List[int]:
        return [p.id for p in self.players if p.is_available(quarter)]

    def absent_ids(self, quarter: int) -> List[int]:
        """Absent/injured this quarter, excluding players missing the whole game."""
        return [p.id for p in self.active_players if not p.is_available(quarter)]

    def available_quarter_count(self, pid: int) -> int:
        return len(self._by_id[pid].available_quarters)

    def required_quarters(self, pid: int, ratio: float) -> int:
        return required_quarters(self.available_quarter_count(pid), ratio)
