# FILE: tests/test_formations.py
import pytest

from lineup_core.formations import FormationCatalog, formation_names, parse_formations_yaml


def test_builtin_formats_have_goalkeeper_and_size():
    for fmt, size in [("7v7", 7), ("9v9", 9), ("11v11", 11)]:
        cat = FormationCatalog.for_format(fmt)
        for q in (1, 2, 3, 4):
            assert cat.slot_count(q) == size
            assert cat.goalkeeper_slot(q).abbreviation == "GK"
            assert all(not s.is_goalkeeper for s in cat.field_slots(q))


def test_per_quarter_choice_by_name_and_index():
    names = formation_names("9v9")
    cat = FormationCatalog.for_format("9v9", {2: 1, 3: names[2]})
    assert cat.names[1] == names[0]
    assert cat.names[2] == names[1]
    assert cat.names[3] == names[2]


def test_unknown_choice_rejected():
    with pytest.raises(ValueError):
        FormationCatalog.for_format("9v9", {1: 99})
    with pytest.raises(ValueError):
        FormationCatalog.for_format("9v9", {1: "9-0-0"})
    with pytest.raises(ValueError):
        formation_names("5v5")


def test_coerce_single_formation_and_per_quarter_mapping():
    slots = [{"slotNumber": 1, "abbreviation": "gk"}, {"slotNumber": 2, "abbreviation": "cb"}]
    cat = FormationCatalog.coerce(slots)
    assert cat.slot_numbers(4) == [1, 2]
    assert cat.abbreviation(3, 2) == "CB"
    assert cat.abbreviation(3, 5) == "POS5"

    cat2 = FormationCatalog.coerce({1: "GK", 2: "ST"})
    assert cat2.slot_numbers(1) == [1, 2]

    per_q = {q: [{"number": 1, "abbreviation": "GK"}, {"number": 3, "abbreviation": "LB"}] for q in (1, 2, 3, 4)}
    assert FormationCatalog.coerce(per_q).field_slots(2)[0].abbreviation == "LB"


def test_invalid_formations():
    with pytest.raises(ValueError):
        FormationCatalog.uniform([{"number": 2, "abbreviation": "CB"}])
    with pytest.raises(ValueError):
        FormationCatalog.uniform([{"number": 1, "abbreviation": "GK"}, {"number": 1, "abbreviation": "CB"}])
    with pytest.raises(ValueError):
        FormationCatalog({1: {1: "GK"}})


def test_parse_yaml():
    text = "7v7:\n  mini:\n    1: GK\n    2: cb\n"
    parsed = parse_formations_yaml(text)
    assert [s.abbreviation for s in parsed["7v7"]["mini"]] == ["GK", "CB"]
    with pytest.raises(ValueError):
        parse_formations_yaml("- just\n- a list\n")
