# FILE: tests/test_oracle.py
import json
import threading

import httpx
import pytest

from lineup_core.context import RosterContext
from lineup_core.engine_test_helpers import quick_roster
from lineup_core.errors import OracleError, ProposalRejected
from lineup_core.models import QuarterContext, QuarterPlan, RotationState, Slot
from lineup_core.oracle import HttpOracle, OracleProposer
from lineup_core.proposers import parse_proposal
from lineup_core.scheduler import plan_rotation
from lineup_core.solver_heuristic import GreedyProposer
from lineup_core.validation import check_quarter


def descending_oracle(payload):
    """Valid but different from greedy: field slots go to the highest ids first."""
    gk = payload["goalkeeper"]
    field = [s["slotNumber"] for s in payload["slots"] if s["slotNumber"] != 1]
    pool = list(payload["mustPlay"])
    pool += [pid for pid in sorted(payload["available"], reverse=True) if pid != gk and pid not in pool]
    assignments = [{"positionNumber": 1, "playerId": gk}]
    assignments += [{"positionNumber": s, "playerId": pid} for s, pid in zip(field, pool)]
    return {"assignments": assignments}


def _ctx():
    return QuarterContext(
        quarter=2,
        format="7v7",
        slots=[Slot(number=1, abbreviation="GK"), Slot(number=2, abbreviation="CB")],
        goalkeeper=1,
        available=[1, 2, 3],
        absent=[4],
        must_play=[3],
    )


def test_oracle_proposal_is_used():
    result = plan_rotation(quick_roster(12), "9v9", oracle=descending_oracle)
    assert result.rejections == []
    assert len(result.quarters) == 4
    assert result.quarters[0].lineup[2] == 12
    assert set(result.quarters[0].sitting_out) <= result.quarters[1].playing


def test_oracle_error_reply_falls_back_to_greedy():
    greedy = plan_rotation(quick_roster(12), "9v9")
    result = plan_rotation(
        quick_roster(12), "9v9",
        oracle=lambda payload: {"error": "infeasible", "reason": "cannot decide"},
    )
    assert len(result.rejections) == 4
    assert "cannot decide" in result.rejections[0]
    assert result.quarters == greedy.quarters
    assert result.ok


def test_oracle_exception_falls_back():
    def broken(payload):
        raise RuntimeError("model overloaded")

    result = plan_rotation(quick_roster(10), "9v9", oracle=broken)
    assert result.ok
    assert all("model overloaded" in r for r in result.rejections)


def test_oracle_timeout_is_bounded():
    release = threading.Event()

    def slow(payload):
        release.wait(5)
        return descending_oracle(payload)

    try:
        result = plan_rotation(quick_roster(10), "9v9", oracle=slow, config={"oracle_timeout": 0.05})
    finally:
        release.set()
    assert result.ok
    assert len(result.rejections) == 4
    assert "timed out" in result.rejections[0]


def test_oracle_breaking_must_play_is_rejected():
    def skip_must_play(payload):
        must = set(payload["mustPlay"])
        payload = dict(payload, mustPlay=[], available=[p for p in payload["available"] if p not in must])
        return descending_oracle(payload)

    result = plan_rotation(quick_roster(12), "9v9", oracle=skip_must_play)
    assert result.ok
    assert result.rejections
    assert any("must-play" in r for r in result.rejections)


def test_oracle_unknown_player_is_rejected():
    def ghost(payload):
        reply = descending_oracle(payload)
        reply["assignments"][-1]["playerId"] = 999
        return reply

    result = plan_rotation(quick_roster(10), "9v9", oracle=ghost)
    assert result.ok
    assert len(result.rejections) == 4
    assert "999" in result.rejections[0]


def test_parse_proposal_normalizes_sitting_out():
    plan = parse_proposal(
        {"assignments": [{"slot": 2, "playerId": 3}, {"positionNumber": 1, "playerId": 1}], "sittingOut": [2]},
        _ctx(),
    )
    assert plan.number == 2
    assert plan.lineup == {1: 1, 2: 3}
    assert plan.sitting_out == [2, 4]


def test_parse_proposal_errors():
    with pytest.raises(OracleError):
        parse_proposal({"error": "infeasible", "errorMessage": "no"}, _ctx())
    with pytest.raises(OracleError):
        parse_proposal({"lineup": []}, _ctx())
    with pytest.raises(OracleError):
        parse_proposal(["not", "a", "dict"], _ctx())
    with pytest.raises(OracleError):
        parse_proposal({"assignments": [{"slot": "x"}]}, _ctx())
    with pytest.raises(ProposalRejected):
        parse_proposal({"assignments": [{"slot": 1, "playerId": 1}], "substitutes": [1]}, _ctx())
    with pytest.raises(ProposalRejected):
        parse_proposal({"number": 3, "assignments": [{"slot": 1, "playerId": 1}]}, _ctx())


def test_oracle_proposer_wraps_failures():
    with pytest.raises(ValueError):
        OracleProposer(descending_oracle, timeout=0)
    proposer = OracleProposer(lambda payload: "nonsense", timeout=1)
    with pytest.raises(OracleError):
        proposer.propose(_ctx())


def test_http_oracle_round_trip():
    seen = []

    def handler(request):
        payload = json.loads(request.content)
        seen.append(payload["quarter"])
        return httpx.Response(200, json=descending_oracle(payload))

    client = httpx.Client(transport=httpx.MockTransport(handler))
    with HttpOracle("http://suggest.local/quarter", client=client) as oracle:
        result = plan_rotation(quick_roster(12), "9v9", oracle=oracle)
    assert seen == [1, 2, 3, 4]
    assert result.rejections == []


def test_http_oracle_server_error_falls_back():
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(503)))
    with HttpOracle("http://suggest.local/quarter", client=client) as oracle:
        result = plan_rotation(quick_roster(10), "9v9", oracle=oracle)
    assert result.ok
    assert "transport error" in result.rejections[0]


class EmptyBenchProposer:
    """Greedy lineups, but reports nobody sitting out."""
    name = "empty-bench"

    def __init__(self, roster):
        self.greedy = GreedyProposer(RosterContext.build(roster))

    def propose(self, ctx):
        return self.greedy.propose(ctx).model_copy(update={"sitting_out": []})


class FailingProposer:
    def propose(self, ctx):
        raise RuntimeError("service exploded")


def test_proposer_sitting_out_is_rebuilt_from_roster():
    roster = quick_roster(12)
    result = plan_rotation(roster, "9v9", oracle=EmptyBenchProposer(roster))
    assert result.rejections == []
    q1, q2 = result.quarters[0], result.quarters[1]
    assert len(q1.sitting_out) == 3
    assert set(q1.sitting_out) | q1.playing == set(range(1, 13))
    assert set(q1.sitting_out) <= q2.playing
    assert result.ok, result.report


def test_proposer_exception_falls_back_to_greedy():
    greedy = plan_rotation(quick_roster(12), "9v9")
    result = plan_rotation(quick_roster(12), "9v9", oracle=FailingProposer())
    assert result.ok
    assert len(result.rejections) == 4
    assert all("RuntimeError: service exploded" in r for r in result.rejections)
    assert result.quarters == greedy.quarters


def test_check_quarter_requires_full_bench():
    ctx = _ctx()
    state = RotationState.start([1, 2, 3, 4])
    good = QuarterPlan.build(2, {1: 1, 2: 3}, [2, 4])
    assert check_quarter(good, ctx, state, cap=2) == []
    short = QuarterPlan.build(2, {1: 1, 2: 3}, [4])
    reasons = check_quarter(short, ctx, state, cap=2)
    assert len(reasons) == 1
    assert "does not match" in reasons[0]
