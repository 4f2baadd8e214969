from __future__ import annotations

from picker.modules.table_format import dump_table, format_table, load_table, parse_table, save_table
from picker.modules.weighted_set import WeightedSet


def test_old_format_with_flags_and_delete():
    text = """repetitive_picking
power_inversed
gold 10
silver 4
bronze 1
delete silver
end
ignored 99
"""
    result = parse_table(text)
    assert result.ok
    t = result.table
    assert t.repetitive and t.inverted
    assert t.as_dict() == {"gold": 10.0, "bronze": 1.0}


def test_key_value_format():
    text = """
# 'repetitive' and 'inversed' are special items
repetitive = true
inversed = false
[items]
oxygen = 47
silicon = 28
aluminium=8; iron=5; magnesium=4
others = 2; nonexistium = 31
   aluminium 7.9; delete nonexistium
"""
    result = parse_table(text)
    assert result.ok, result.errors
    t = result.table
    assert t.repetitive is True
    assert t.inverted is False
    assert t.names() == ["oxygen", "silicon", "aluminium", "iron", "magnesium", "others"]
    assert t.weight_of("aluminium") == 7.9


def test_malformed_lines_are_reported_and_valid_lines_kept():
    text = "a 1\nb heavy\nc-d 2\ne -1\nf 3\nrepetitive = 0\nlonely\ng 1 2\n"
    result = parse_table(text)
    assert not result.ok
    assert result.table.as_dict() == {"a": 1.0, "f": 3.0}
    assert len(result.errors) == 6
    assert result.errors[0].startswith("line 2:")
    assert result.table.repetitive is False


def test_parse_into_existing_table_upserts():
    t = WeightedSet({"a": 1, "b": 2})
    parse_table("b 5; c 1", t)
    assert t.as_dict() == {"a": 1.0, "b": 5.0, "c": 1.0}


def test_delete_unknown_name_is_ignored():
    result = parse_table("a 1\ndelete zzz\n")
    assert result.ok
    assert result.table.names() == ["a"]


def test_save_and_load_file(tmp_path):
    t = WeightedSet({"A": 1, "B": 0.1, "C": 2}, repetitive=True, inverted=True)
    path = tmp_path / "t.txt"
    assert save_table(t, path) is True
    text = path.read_text(encoding="utf-8")
    assert text.splitlines()[:2] == ["repetitive_picking", "power_inversed"]
    assert "A\t\t1.0" in text

    loaded = load_table(path)
    assert loaded.ok
    assert loaded.table.as_dict() == t.as_dict()
    assert loaded.table.repetitive and loaded.table.inverted


def test_save_refuses_empty_table(tmp_path):
    path = tmp_path / "empty.txt"
    assert save_table(WeightedSet(), path) is False
    assert not path.exists()


def test_dump_empty_table_keeps_flags():
    assert dump_table(WeightedSet(repetitive=True)) == "repetitive_picking\n"


def test_format_table_aligns_and_sorts():
    out = format_table({"bb": 0.5, "a": 25.0})
    assert out == " a = 25.000000\nbb =  0.500000\n"
    assert format_table({}) == ""
