# FILE: tests/test_scheduler.py
import logging

from lineup_core.engine_test_helpers import quick_player, quick_roster
from lineup_core.goalkeeper import is_legal_block
from lineup_core.scheduler import plan_rotation


def _played(result):
    counts = {}
    for plan in result.quarters:
        for a in plan.assignments:
            counts[a.player_id] = counts.get(a.player_id, 0) + 1
    return counts


def _keepers(result):
    out = {}
    for plan in result.quarters:
        out.setdefault(plan.goalkeeper, []).append(plan.number)
    return out


def test_scenario_a_twelve_players_nine_slots():
    roster = quick_roster(12)
    result = plan_rotation(roster, "9v9")
    assert result.ok, result.report
    q1, q2 = result.quarters[0], result.quarters[1]
    assert len(q1.assignments) == 9
    assert len(q1.sitting_out) == 3
    assert set(q1.sitting_out) <= q2.playing
    assert all(n == 3 for n in _played(result).values())
    assert len(_played(result)) == 12


def test_every_quarter_is_a_bijection():
    result = plan_rotation(quick_roster(14), "11v11")
    assert result.ok
    for plan in result.quarters:
        slots = [a.slot for a in plan.assignments]
        players = [a.player_id for a in plan.assignments]
        assert sorted(slots) == sorted(set(slots))
        assert len(players) == len(set(players)) == 11
        assert not set(players) & set(plan.sitting_out)
        assert set(players) | set(plan.sitting_out) == set(range(1, 15))


def test_scenario_b_whole_game_absence():
    roster = quick_roster(11) + [quick_player(12, absent="all")]
    result = plan_rotation(roster, "9v9")
    assert result.ok
    for plan in result.quarters:
        assert 12 not in plan.playing
        assert 12 not in plan.sitting_out
    assert result.report.passed


def test_scenario_c_keeper_absent_in_q2():
    roster = quick_roster(9)
    roster[0] = quick_player(1, history={"GK": 10}, absent=[2])
    result = plan_rotation(roster, "7v7")
    assert result.ok, result.report
    keepers = _keepers(result)
    assert 2 not in keepers.get(1, [])
    for pid, qs in keepers.items():
        assert len(qs) <= 2
        assert is_legal_block(qs, 2)


def test_scenario_d_too_many_must_play():
    # 12 available in Q1 sit 3 plus 7 absent in Q1 -> 10 must-play in Q2, 9 slots
    roster = quick_roster(12) + [quick_player(pid, absent=[1]) for pid in range(13, 20)]
    result = plan_rotation(roster, "9v9")
    assert not result.ok
    assert result.error.kind == "infeasible-quarter"
    assert result.error.quarter == 2
    assert [q.number for q in result.quarters] == [1]


def test_not_enough_players():
    result = plan_rotation(quick_roster(8), "9v9")
    assert result.error.kind == "infeasible-quarter"
    assert result.error.quarter == 1
    assert result.quarters == []


def test_later_failure_keeps_planned_quarters():
    # seven of eight players miss Q3
    roster = [quick_player(pid, absent=[3]) for pid in range(1, 8)] + [quick_player(8)]
    result = plan_rotation(roster, "7v7")
    assert not result.ok
    assert result.error.kind == "infeasible-quarter"
    assert result.error.quarter == 3
    assert [q.number for q in result.quarters] == [1, 2]
    assert result.report is None


def test_absences_do_not_count_as_sits():
    roster = quick_roster(10) + [quick_player(11, absent=[1])]
    result = plan_rotation(roster, "9v9")
    assert result.ok, result.report
    played = _played(result)
    assert played[11] >= 3
    assert 11 in result.quarters[0].sitting_out
    assert 11 in result.quarters[1].playing


def test_deterministic_without_oracle():
    roster = quick_roster(13)
    roster[2] = quick_player(3, history={"GK": 2, "CB": 4}, prefs=["CB"])
    a = plan_rotation(roster, "9v9")
    b = plan_rotation(roster, "9v9")
    assert a.model_dump_json() == b.model_dump_json()


def test_locked_quarter_is_kept():
    roster = quick_roster(9)
    locked = {1: {"assignments": [{"positionNumber": n, "playerId": pid} for n, pid in
                                  zip([1, 2, 3, 6, 7, 9, 11], [9, 8, 7, 6, 5, 4, 3])]}}
    result = plan_rotation(roster, "7v7", locked=locked)
    assert result.ok, result.report
    assert result.quarters[0].goalkeeper == 9
    assert result.quarters[0].sitting_out == [1, 2]
    assert {1, 2} <= result.quarters[1].playing


def test_bad_locked_quarter_stops_planning():
    roster = quick_roster(9)
    locked = {1: {"assignments": [{"positionNumber": 1, "playerId": 1}]}}
    result = plan_rotation(roster, "7v7", locked=locked)
    assert result.error.kind == "infeasible-quarter"
    assert result.error.quarter == 1
    assert "not filled" in result.error.reason


def test_config_mapping_and_logger(caplog):
    log = logging.getLogger("lineup-test")
    with caplog.at_level(logging.INFO, logger="lineup-test"):
        result = plan_rotation(quick_roster(10), config={"format": "9v9", "goalkeeper_cap": 1}, logger=log)
    assert result.ok
    assert len(_keepers(result)) == 4
    assert "Q1 planned" in caplog.text


def test_history_records_feed_positions():
    roster = quick_roster(9)
    history = [
        {"game_id": 1, "game_date": "2024-09-01", "player_id": 6, "position_number": 1,
         "position_name": "GK", "quarter": q, "is_sitting_out": False}
        for q in (1, 2, 3)
    ]
    result = plan_rotation(roster, "7v7", history=history)
    assert result.quarters[0].goalkeeper == 6
