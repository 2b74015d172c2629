# FILE: tests/test_io.py
import io

import pandas as pd
import pytest

from lineup_core.aliases import map_headers
from lineup_core.config import DEFAULT_SAMPLE_ROSTER_CSV
from lineup_core.io import (
    load_formations_yaml, load_history_csv, load_roster_csv,
    quarters_from_json, quarters_to_json, roster_to_csv_bytes,
)
from lineup_core.models import QuarterPlan


def test_map_headers_basic():
    df = pd.DataFrame(columns=["Player", "Preferred Positions", "absentQuarters", "Unknown"])
    mapped_df, mapping = map_headers(df)
    assert mapping["Player"] == "name"
    assert mapping["Preferred Positions"] == "preferred_positions"
    assert mapping["absentQuarters"] == "absent_quarters"
    assert mapping["Unknown"] is None
    assert "name" in mapped_df.columns


def test_load_sample_roster():
    players = load_roster_csv(io.StringIO(DEFAULT_SAMPLE_ROSTER_CSV))
    assert len(players) == 12
    assert players[0].preferred_positions == ["GK", "CB"]
    kai = players[10]
    assert kai.absent_quarters == [2]
    assert kai.status(2) == "injured"
    assert players[11].absent_all


def test_roster_missing_columns():
    with pytest.raises(ValueError):
        load_roster_csv(io.StringIO("name\nA\n"))


def test_roster_csv_round_trip():
    players = load_roster_csv(io.StringIO(DEFAULT_SAMPLE_ROSTER_CSV))
    again = load_roster_csv(io.BytesIO(roster_to_csv_bytes(players)))
    assert again == players


def test_load_history_csv():
    text = "Game,Date,Player ID,Slot,Position,Quarter,Bench\n1,2024-09-01,3,1,GK,1,false\n1,2024-09-01,4,,,1,true\n"
    df = load_history_csv(io.StringIO(text))
    assert list(df["player_id"]) == [3, 4]
    assert list(df["is_sitting_out"]) == [False, True]


def test_formations_yaml_file(tmp_path):
    path = tmp_path / "formations.yaml"
    path.write_text("9v9:\n  box:\n    1: GK\n    4: CB\n")
    out = load_formations_yaml(str(path))
    assert [s.number for s in out["9v9"]["box"]] == [1, 4]


def test_quarters_json_wire_shape():
    plans = [QuarterPlan.build(1, {2: 5, 1: 3}, [9, 7])]
    text = quarters_to_json(plans)
    assert '"positionNumber": 1' in text
    assert '"substitutes": [7, 9]' in text
    assert quarters_from_json(text) == plans


def test_injured_quarters_column():
    text = "id,name,absent_quarters,status,Injured\n1,Ana,1,,3;4\n2,Ben,,,\n"
    players = load_roster_csv(io.StringIO(text))
    assert players[0].statuses == {1: "absent", 2: "available", 3: "injured", 4: "injured"}
    assert players[1].injured_quarters == []
    again = load_roster_csv(io.BytesIO(roster_to_csv_bytes(players)))
    assert again == players
