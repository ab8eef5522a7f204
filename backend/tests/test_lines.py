"""Tests for the line catalogue and its lookup rule."""

from subway_motion.core.lines import DEFAULT_COLOR, Line, line_color, line_groups


def test_exact_lookup():
    assert Line.lookup("A") is Line.A
    assert Line.lookup("7") is Line.L7
    assert Line.lookup("SIR") is Line.SIR


def test_lookup_normalises_key():
    assert Line.lookup(" q ") is Line.Q
    assert Line.lookup("l") is Line.L


def test_first_character_fallback():
    assert Line.lookup("6X") is Line.L6
    assert Line.lookup("FS") is Line.F
    assert Line.lookup("GS") is Line.G


def test_unknown_route_has_no_line():
    assert Line.lookup("X9") is None
    assert Line.lookup("") is None
    assert Line.lookup(None) is None
    assert line_color("X9") == DEFAULT_COLOR


def test_line_color():
    assert line_color("1") == "#EE352E"
    assert line_color("5X") == "#00933C"
    assert line_color("SIR") == line_color("A")


def test_groups():
    groups = line_groups()
    assert [l.key for l in groups["Broadway"]] == ["N", "Q", "R", "W"]
    assert [l.key for l in groups["7th-Ave"]] == ["1", "2", "3"]
    assert sum(len(lines) for lines in groups.values()) == len(Line)
