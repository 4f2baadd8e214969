from __future__ import annotations

import io

from scripts.generation import random_picker
from picker.modules.table_format import load_table


def test_pick_prints_names_and_nonuniform_note(table_file, capsys):
    assert random_picker.main(["pick", str(table_file), "2", "--seed", "1"]) == 0
    out = capsys.readouterr().out.strip()
    assert out.endswith("(nonuniform)")
    names = out.replace("(nonuniform)", "").split()
    assert len(names) == 2 and len(set(names)) == 2


def test_pick_without_nonuniform_note(table_file, capsys):
    assert random_picker.main(["pick", str(table_file), "3", "-n", "-f"]) == 0
    out = capsys.readouterr().out.strip()
    assert sorted(out.split()) == ["A", "B", "C"]


def test_calc_prints_percentages(table_file, capsys):
    assert random_picker.main(["calc", str(table_file), "1", "--workers", "1"]) == 0
    out = capsys.readouterr().out
    assert "Calculating, please wait..." in out
    assert "A = 25.000000" in out
    assert "C = 50.000000" in out


def test_calc_repetitive_prints_group_note(tmp_path, capsys):
    path = tmp_path / "rep.txt"
    path.write_text("repetitive_picking\nA 1\nB 3\n", encoding="utf-8")
    assert random_picker.main(["calc", str(path), "5"]) == 0
    out = capsys.readouterr().out
    assert "B = 75.000000" in out
    assert "1 - (1 - Pi)^m" in out


def test_test_operation_prints_frequencies(table_file, capsys):
    code = random_picker.main(["test", str(table_file), "2", "--trials", "5000", "--seed", "4", "--workers", "1"])
    assert code == 0
    out = capsys.readouterr().out
    assert "Testing for 5000 times" in out
    assert "occurrence in a group" in out
    assert "Largest deviation from exact values" in out


def test_invalid_amount_exits_with_error(table_file, capsys):
    assert random_picker.main(["pick", str(table_file), "4"]) == 1
    assert "Error:" in capsys.readouterr().err


def test_missing_table_file(tmp_path, capsys):
    assert random_picker.main(["calc", str(tmp_path / "nope.txt")]) == 1
    assert "Table file not found" in capsys.readouterr().err


def test_conf_reads_stdin_and_saves(tmp_path, monkeypatch, capsys):
    path = tmp_path / "new.txt"
    monkeypatch.setattr("sys.stdin", io.StringIO("y\nn\nA 1\nB = 2; C 3\nbad name 1\ndelete C\nend\n"))
    assert random_picker.main(["conf", str(path)]) == 0
    out = capsys.readouterr().out
    assert "part of your input is not recorded" in out

    loaded = load_table(path)
    assert loaded.ok
    assert loaded.table.as_dict() == {"A": 1.0, "B": 2.0}
    assert loaded.table.repetitive is True
    assert loaded.table.inverted is False


def test_conf_refuses_table_without_positive_weight(tmp_path, monkeypatch, capsys):
    path = tmp_path / "zero.txt"
    monkeypatch.setattr("sys.stdin", io.StringIO("\n\nA 0\nend\n"))
    assert random_picker.main(["conf", str(path)]) == 1
    assert not path.exists()


def test_test_operation_with_several_workers(table_file, capsys):
    code = random_picker.main(["test", str(table_file), "2", "--trials", "4000", "--seed", "4", "--workers", "2"])
    assert code == 0
    out = capsys.readouterr().out
    assert "C = " in out
    assert "Largest deviation from exact values" in out
