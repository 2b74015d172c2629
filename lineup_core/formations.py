# lineup_core/formations.py
from __future__ import annotations
from typing import Dict, List, Mapping, Optional, Sequence, Union

import yaml

from .config import DEFAULT_FORMATIONS_YAML
from .constants import FORMATS, GOALKEEPER_SLOT, QUARTERS
from .models import Slot

SlotsLike = Union[Sequence[Slot], Sequence[Mapping], Mapping[int, str]]


def _to_slots(raw: SlotsLike, label: str) -> List[Slot]:
    if isinstance(raw, Mapping):
        slots = [Slot(number=int(n), abbreviation=abbr) for n, abbr in raw.items()]
    elif isinstance(raw, (list, tuple)):
        slots = [s if isinstance(s, Slot) else Slot.model_validate(dict(s)) for s in raw]
    else:
        raise ValueError(f"Formation {label} must be a list of slots or a number->abbreviation map.")
    numbers = [s.number for s in slots]
    if len(numbers) != len(set(numbers)):
        raise ValueError(f"Formation {label} repeats a slot number: {numbers}")
    if GOALKEEPER_SLOT not in numbers:
        raise ValueError(f"Formation {label} has no goalkeeper slot {GOALKEEPER_SLOT}.")
    return slots


def parse_formations_yaml(text: str) -> Dict[str, Dict[str, List[Slot]]]:
    """format -> formation name -> ordered slots."""
    obj = yaml.safe_load(text) or {}
    if not isinstance(obj, dict):
        raise ValueError("Formations YAML must map formats to formations.")
    out: Dict[str, Dict[str, List[Slot]]] = {}
    for fmt, forms in obj.items():
        if not isinstance(forms, dict):
            raise ValueError(f"Formats entry {fmt} must map formation names to slots.")
        out[str(fmt)] = {str(name): _to_slots(slots, f"{fmt}.{name}") for name, slots in forms.items()}
    return out


_BUILTIN: Optional[Dict[str, Dict[str, List[Slot]]]] = None


def builtin_formations() -> Dict[str, Dict[str, List[Slot]]]:
    global _BUILTIN
    if _BUILTIN is None:
        _BUILTIN = parse_formations_yaml(DEFAULT_FORMATIONS_YAML)
    return _BUILTIN


def formation_names(fmt: str) -> List[str]:
    if fmt not in FORMATS:
        raise ValueError(f"Unknown format: {fmt}")
    return list(builtin_formations()[fmt].keys())


class FormationCatalog:
    """Ordered slots to fill, per quarter. Slot 1 is always the goalkeeper."""

    def __init__(self, quarters: Mapping[int, SlotsLike], names: Optional[Mapping[int, str]] = None):
        missing = [q for q in QUARTERS if q not in quarters]
        if missing:
            raise ValueError(f"Formation missing for quarter(s): {missing}")
        self._slots: Dict[int, List[Slot]] = {
            q: _to_slots(quarters[q], f"Q{q}") for q in QUARTERS
        }
        self.names: Dict[int, str] = dict(names or {})

    @classmethod
    def for_format(
        cls,
        fmt: str,
        choices: Optional[Mapping[int, Union[int, str]]] = None,
        catalog: Optional[Mapping[str, Mapping[str, List[Slot]]]] = None,
    ) -> "FormationCatalog":
        """
        Pick a formation per quarter by name or index; unspecified quarters
        use the first formation of the format.
        """
        source = catalog if catalog is not None else builtin_formations()
        if fmt not in source or not source[fmt]:
            raise ValueError(f"No formations defined for format {fmt}")
        options = source[fmt]
        keys = list(options.keys())
        picked: Dict[int, str] = {}
        for q in QUARTERS:
            choice = (choices or {}).get(q, 0)
            if isinstance(choice, int):
                if not 0 <= choice < len(keys):
                    raise ValueError(f"Formation index {choice} out of range for {fmt}")
                picked[q] = keys[choice]
            elif choice in options:
                picked[q] = choice
            else:
                raise ValueError(f"Unknown formation {choice!r} for {fmt}")
        return cls({q: options[picked[q]] for q in QUARTERS}, names=picked)

    @classmethod
    def uniform(cls, slots: SlotsLike, name: str = "") -> "FormationCatalog":
        return cls({q: slots for q in QUARTERS}, names={q: name for q in QUARTERS} if name else None)

    @classmethod
    def coerce(cls, formations) -> "FormationCatalog":
        if isinstance(formations, FormationCatalog):
            return formations
        if isinstance(formations, str):
            return cls.for_format(formations)
        # quarter -> slots, as opposed to a single number -> abbreviation map
        if isinstance(formations, Mapping) and formations and not any(
            isinstance(v, str) for v in formations.values()
        ):
            return cls({int(q): v for q, v in formations.items()})
        return cls.uniform(formations)

    def slots(self, quarter: int) -> List[Slot]:
        return list(self._slots[quarter])

    def field_slots(self, quarter: int) -> List[Slot]:
        return sorted((s for s in self._slots[quarter] if not s.is_goalkeeper), key=lambda s: s.number)

    def goalkeeper_slot(self, quarter: int) -> Slot:
        return next(s for s in self._slots[quarter] if s.is_goalkeeper)

    def slot_count(self, quarter: int) -> int:
        return len(self._slots[quarter])

    def slot_numbers(self, quarter: int) -> List[int]:
        return sorted(s.number for s in self._slots[quarter])

    def abbreviation(self, quarter: int, number: int) -> str:
        for s in self._slots[quarter]:
            if s.number == number:
                return s.abbreviation
        return f"POS{number}"
