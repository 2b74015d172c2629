# FILE: lineup_core/constants.py
from __future__ import annotations
from typing import Dict, List, Tuple

# --- Game shape ---
QUARTERS: Tuple[int, ...] = (1, 2, 3, 4)
HALVES: Tuple[Tuple[int, ...], ...] = ((1, 2), (3, 4))
GOALKEEPER_SLOT = 1
GOALKEEPER_ABBR = "GK"

# --- Formats ---
FORMATS: List[str] = ["7v7", "9v9", "11v11"]

GOALKEEPER_CAPS: Dict[str, int] = {
    "7v7": 2,
    "9v9": 3,
    "11v11": 4,
}

# Goalkeeper block readings: same half only, or any run of adjacent quarters
GOALKEEPER_RULES: List[str] = ["same-half", "adjacent"]

FAIR_MINIMUM_RATIO = 0.75

# --- Availability ---
AVAILABLE = "available"
ABSENT = "absent"
INJURED = "injured"

# --- Validation rule names ---
RULE_FAIR_MINIMUM = "fair-minimum"
RULE_GK_CAP = "goalkeeper-cap"
RULE_GK_CONTIGUITY = "goalkeeper-contiguity"
RULE_SLOT_INTEGRITY = "slot-integrity"
RULE_AVAILABILITY = "availability"
RULE_BALANCE = "rotation-balance"
RULE_COVERAGE = "quarter-coverage"


def goalkeeper_cap_for(fmt: str) -> int:
    if fmt not in GOALKEEPER_CAPS:
        raise ValueError(f"Unknown format: {fmt}")
    return GOALKEEPER_CAPS[fmt]
