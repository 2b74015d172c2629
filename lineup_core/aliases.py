# FILE: lineup_core/aliases.py
ALIASES = {
    "id": ["id", "player_id", "playerId", "Player ID", "#"],
    "name": ["name", "Name", "Player", "Full Name"],
    "preferred_positions": [
        "preferred_positions", "preferredPositions", "Preferred Positions",
        "Positions", "Preferred",
    ],
    "absent_quarters": ["absent_quarters", "absentQuarters", "Absent Quarters", "Absent"],
    "status": ["status", "Status", "absence_reason", "Availability"],
    "injured_quarters": ["injured_quarters", "injuredQuarters", "Injured Quarters", "Injured"],
}

HISTORY_ALIASES = {
    "game_id": ["game_id", "gameId", "Game", "Game ID"],
    "game_date": ["game_date", "gameDate", "Date", "Game Date"],
    "player_id": ["player_id", "playerId", "Player ID"],
    "position_number": ["position_number", "positionNumber", "Slot", "Position Number"],
    "position_name": ["position_name", "positionName", "Position"],
    "quarter": ["quarter", "Quarter", "Q"],
    "is_sitting_out": ["is_sitting_out", "isSittingOut", "Sitting Out", "Bench"],
}


def map_headers(df, aliases=None):
    """
    Map input DataFrame columns to expected canonical names using aliases.
    Returns (renamed_df, mapping_report).
    """
    aliases = aliases or ALIASES
    mapping = {}
    rename_cols = {}
    for col in df.columns:
        matched = False
        key = str(col).strip().lower()
        for canon, names in aliases.items():
            if key == canon.lower() or key in [a.lower() for a in names]:
                rename_cols[col] = canon
                mapping[col] = canon
                matched = True
                break
        if not matched:
            mapping[col] = None
    df = df.rename(columns=rename_cols)
    return df, mapping
