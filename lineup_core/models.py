# lineup_core/models.py
from __future__ import annotations
from typing import Dict, Iterable, List, Literal, Mapping, Optional, Set, Union
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .config import DEFAULT_CONFIG
from .constants import (
    ABSENT, AVAILABLE, GOALKEEPER_SLOT, INJURED, QUARTERS, goalkeeper_cap_for,
)


def _split_tokens(v) -> List[str]:
    if v is None:
        return []
    if isinstance(v, str):
        v = v.replace(",", ";").split(";")
    return [str(x).strip().upper() for x in v if str(x).strip()]


def _parse_quarters(v, label: str):
    if v is None or v == "":
        return []
    if isinstance(v, str):
        if v.strip().lower() == "all":
            return "all"
        v = [t for t in v.replace(",", ";").split(";") if t.strip()]
    quarters = sorted({int(q) for q in v})
    bad = [q for q in quarters if q not in QUARTERS]
    if bad:
        raise ValueError(f"{label} quarters must be within 1..4, got {bad}")
    return quarters


# ---------------------
# Roster inputs
# ---------------------
class Player(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    id: int
    name: str = ""
    position_history: Dict[str, int] = Field(default_factory=dict)
    preferred_positions: List[str] = Field(default_factory=list)
    absent_quarters: Union[Literal["all"], List[int]] = Field(default_factory=list)
    absence_reason: Literal["absent", "injured"] = ABSENT
    # quarters missed through injury; these read as "injured" whatever absence_reason says
    injured_quarters: List[int] = Field(default_factory=list)

    @field_validator("position_history", mode="before")
    @classmethod
    def _history(cls, v):
        if not v:
            return {}
        return {str(k).strip().upper(): int(n) for k, n in dict(v).items() if int(n) > 0}

    @field_validator("preferred_positions", mode="before")
    @classmethod
    def _prefs(cls, v):
        return _split_tokens(v)

    @field_validator("absent_quarters", mode="before")
    @classmethod
    def _absent(cls, v):
        return _parse_quarters(v, "absent")

    @field_validator("injured_quarters", mode="before")
    @classmethod
    def _injured(cls, v):
        quarters = _parse_quarters(v, "injured")
        return list(QUARTERS) if quarters == "all" else quarters

    @property
    def missed_quarters(self) -> Set[int]:
        absent = set(QUARTERS) if self.absent_quarters == "all" else set(self.absent_quarters)
        return absent | set(self.injured_quarters)

    @property
    def absent_all(self) -> bool:
        return self.missed_quarters >= set(QUARTERS)

    def is_available(self, quarter: int) -> bool:
        return quarter not in self.missed_quarters

    def status(self, quarter: int) -> str:
        if self.is_available(quarter):
            return AVAILABLE
        if quarter in self.injured_quarters:
            return INJURED
        return self.absence_reason

    @property
    def statuses(self) -> Dict[int, str]:
        return {q: self.status(q) for q in QUARTERS}

    @property
    def available_quarters(self) -> List[int]:
        return [q for q in QUARTERS if self.is_available(q)]


class Slot(BaseModel):
    model_config = ConfigDict(frozen=True)

    number: int = Field(ge=1, validation_alias=AliasChoices("number", "slotNumber", "positionNumber"))
    abbreviation: str

    @field_validator("abbreviation", mode="before")
    @classmethod
    def _abbr(cls, v):
        return str(v).strip().upper()

    @property
    def is_goalkeeper(self) -> bool:
        return self.number == GOALKEEPER_SLOT


# ---------------------
# Plans
# ---------------------
class Assignment(BaseModel):
    model_config = ConfigDict(frozen=True)

    slot: int = Field(validation_alias=AliasChoices("slot", "positionNumber", "slotNumber"))
    player_id: int = Field(validation_alias=AliasChoices("player_id", "playerId"))


class QuarterPlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    number: int = Field(ge=1, le=4)
    assignments: List[Assignment] = Field(default_factory=list)
    sitting_out: List[int] = Field(
        default_factory=list,
        validation_alias=AliasChoices("sitting_out", "sittingOut", "substitutes"),
    )

    @classmethod
    def build(cls, number: int, lineup: Mapping[int, int], sitting_out: Iterable[int]) -> "QuarterPlan":
        return cls(
            number=number,
            assignments=[Assignment(slot=s, player_id=pid) for s, pid in sorted(lineup.items())],
            sitting_out=sorted(set(sitting_out)),
        )

    @classmethod
    def from_wire(cls, data: Mapping) -> "QuarterPlan":
        return cls.model_validate(dict(data))

    @property
    def lineup(self) -> Dict[int, int]:
        return {a.slot: a.player_id for a in self.assignments}

    @property
    def goalkeeper(self) -> Optional[int]:
        return self.lineup.get(GOALKEEPER_SLOT)

    @property
    def playing(self) -> Set[int]:
        return {a.player_id for a in self.assignments}

    def to_wire(self) -> dict:
        return {
            "number": self.number,
            "assignments": [
                {"positionNumber": a.slot, "playerId": a.player_id}
                for a in sorted(self.assignments, key=lambda a: (a.slot, a.player_id))
            ],
            "substitutes": sorted(self.sitting_out),
        }


class RotationState(BaseModel):
    """Rolling per-player counters. Owned by one planning run."""
    quarters_played: Dict[int, int] = Field(default_factory=dict)
    quarters_sitting: Dict[int, int] = Field(default_factory=dict)
    quarters_goalkeeper: Dict[int, int] = Field(default_factory=dict)
    goalkeeper_quarters: Dict[int, List[int]] = Field(default_factory=dict)
    last_sitting_out: List[int] = Field(default_factory=list)
    completed: List[int] = Field(default_factory=list)

    @classmethod
    def start(cls, player_ids: Iterable[int]) -> "RotationState":
        ids = list(player_ids)
        return cls(
            quarters_played={pid: 0 for pid in ids},
            quarters_sitting={pid: 0 for pid in ids},
            quarters_goalkeeper={pid: 0 for pid in ids},
            goalkeeper_quarters={pid: [] for pid in ids},
        )

    def played(self, pid: int) -> int:
        return self.quarters_played.get(pid, 0)

    def sat(self, pid: int) -> int:
        return self.quarters_sitting.get(pid, 0)

    def goalkeeper_history(self, pid: int) -> List[int]:
        return list(self.goalkeeper_quarters.get(pid, []))

    def record(self, plan: QuarterPlan, absent_ids: Iterable[int] = ()) -> None:
        absent = set(absent_ids)
        for a in plan.assignments:
            self.quarters_played[a.player_id] = self.played(a.player_id) + 1
            if a.slot == GOALKEEPER_SLOT:
                self.quarters_goalkeeper[a.player_id] = self.quarters_goalkeeper.get(a.player_id, 0) + 1
                self.goalkeeper_quarters.setdefault(a.player_id, []).append(plan.number)
        for pid in plan.sitting_out:
            if pid in absent:
                continue  # absences never count against the sit-out quota
            self.quarters_sitting[pid] = self.sat(pid) + 1
        self.last_sitting_out = sorted(plan.sitting_out)
        self.completed.append(plan.number)


# ---------------------
# Validation / results
# ---------------------
class Violation(BaseModel):
    model_config = ConfigDict(frozen=True)

    player_id: Optional[int] = None
    rule: str
    detail: str
    quarters: List[int] = Field(default_factory=list)


class ValidationReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    violations: List[Violation] = Field(default_factory=list)
    passed: bool = True

    @classmethod
    def from_violations(cls, violations: Iterable[Violation]) -> "ValidationReport":
        vs = list(violations)
        return cls(violations=vs, passed=not vs)

    def rules(self) -> Set[str]:
        return {v.rule for v in self.violations}


class PlanError(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["infeasible-quarter", "infeasible-goalkeeper"]
    quarter: Optional[int] = None
    reason: str

    @classmethod
    def from_exception(cls, exc) -> "PlanError":
        return cls(kind=exc.kind, quarter=exc.quarter, reason=exc.reason)


class PlanResult(BaseModel):
    quarters: List[QuarterPlan] = Field(default_factory=list)
    error: Optional[PlanError] = None
    report: Optional[ValidationReport] = None
    rejections: List[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return (
            self.error is None
            and len(self.quarters) == len(QUARTERS)
            and (self.report is None or self.report.passed)
        )

    def to_wire(self) -> dict:
        return {"quarters": [q.to_wire() for q in self.quarters]}


class PlannerConfig(BaseModel):
    format: Literal["7v7", "9v9", "11v11"] = DEFAULT_CONFIG["format"]
    goalkeeper_rule: Literal["same-half", "adjacent"] = DEFAULT_CONFIG["goalkeeper_rule"]
    goalkeeper_cap: Optional[int] = DEFAULT_CONFIG["goalkeeper_cap"]
    fair_minimum_ratio: float = DEFAULT_CONFIG["fair_minimum_ratio"]
    oracle_timeout: float = DEFAULT_CONFIG["oracle_timeout"]
    history_games: Optional[int] = DEFAULT_CONFIG["history_games"]

    @field_validator("goalkeeper_cap")
    @classmethod
    def _cap(cls, v):
        if v is not None and not 1 <= v <= len(QUARTERS):
            raise ValueError("goalkeeper_cap must be between 1 and 4")
        return v

    @field_validator("fair_minimum_ratio")
    @classmethod
    def _ratio(cls, v):
        if not 0 < v <= 1:
            raise ValueError("fair_minimum_ratio must be in (0, 1]")
        return v

    @field_validator("oracle_timeout")
    @classmethod
    def _timeout(cls, v):
        if v <= 0:
            raise ValueError("oracle_timeout must be positive")
        return v

    @property
    def max_goalkeeper_quarters(self) -> int:
        if self.goalkeeper_cap is not None:
            return self.goalkeeper_cap
        return goalkeeper_cap_for(self.format)


# ---------------------
# Proposer context
# ---------------------
class PlayerSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    id: int
    name: str = ""
    position_history: Dict[str, int] = Field(default_factory=dict)
    preferred_positions: List[str] = Field(default_factory=list)
    quarters_played: int = 0
    quarters_sitting: int = 0
    goalkeeper_quarters: List[int] = Field(default_factory=list)
    required_quarters: int = 0
    slack: int = 0
    sit_opportunities: int = 0


class QuarterContext(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    quarter: int
    format: str
    slots: List[Slot]
    goalkeeper: Optional[int] = None
    available: List[int] = Field(default_factory=list)
    absent: List[int] = Field(default_factory=list)
    must_play: List[int] = Field(default_factory=list)
    players: List[PlayerSnapshot] = Field(default_factory=list)
    previous_quarters: List[QuarterPlan] = Field(default_factory=list)

    def snapshot(self, pid: int) -> PlayerSnapshot:
        for p in self.players:
            if p.id == pid:
                return p
        raise KeyError(pid)

    @property
    def field_slots(self) -> List[Slot]:
        return [s for s in self.slots if not s.is_goalkeeper]

    def to_payload(self) -> dict:
        payload = self.model_dump(by_alias=True, mode="json", exclude={"slots", "previous_quarters"})
        payload["slots"] = [{"slotNumber": s.number, "abbreviation": s.abbreviation} for s in self.slots]
        payload["previousQuarters"] = [q.to_wire() for q in self.previous_quarters]
        return payload
