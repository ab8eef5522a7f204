"""Catalogue of known subway lines with their official colours and trunk groups.

Feed route ids are not always catalogue keys: express and shuttle variants
("6X", "FS", "GS") are reported alongside the base lines. Lookup resolves
those with the first-character rule: when the full key is unknown, the line
whose key is the route's first character is used. Routes that match neither
way have no line and are drawn white.
"""

from enum import Enum

DEFAULT_COLOR = "#FFFFFF"


class Line(Enum):
    L1 = ("1", "#EE352E", "7th-Ave")
    L2 = ("2", "#EE352E", "7th-Ave")
    L3 = ("3", "#EE352E", "7th-Ave")
    L4 = ("4", "#00933C", "Lexington")
    L5 = ("5", "#00933C", "Lexington")
    L6 = ("6", "#00933C", "Lexington")
    L7 = ("7", "#B933AD", "Flushing")
    A = ("A", "#0039A6", "8th-Ave")
    C = ("C", "#0039A6", "8th-Ave")
    E = ("E", "#0039A6", "8th-Ave")
    B = ("B", "#FF6319", "6th-Ave")
    D = ("D", "#FF6319", "6th-Ave")
    F = ("F", "#FF6319", "6th-Ave")
    M = ("M", "#FF6319", "6th-Ave")
    N = ("N", "#FCCC0A", "Broadway")
    Q = ("Q", "#FCCC0A", "Broadway")
    R = ("R", "#FCCC0A", "Broadway")
    W = ("W", "#FCCC0A", "Broadway")
    L = ("L", "#A7A9AC", "Canarsie")
    G = ("G", "#6CBE45", "Crosstown")
    J = ("J", "#996633", "Archer")
    Z = ("Z", "#996633", "Archer")
    SIR = ("SIR", "#0039A6", "Staten-Island")
    S = ("S", "#808183", "Shuttles")
    H = ("H", "#808183", "Shuttles")

    def __init__(self, key: str, color: str, group: str) -> None:
        self.key = key
        self.color = color
        self.group = group

    @classmethod
    def lookup(cls, route: str | None) -> "Line | None":
        """Resolve a feed route id to a line (exact key, then first character)."""
        if not route:
            return None
        key = str(route).strip().upper()
        if not key:
            return None
        line = _BY_KEY.get(key)
        if line is None:
            line = _BY_KEY.get(key[0])
        return line


_BY_KEY: dict[str, Line] = {line.key: line for line in Line}


def line_color(route: str | None) -> str:
    line = Line.lookup(route)
    return line.color if line else DEFAULT_COLOR


def line_groups() -> dict[str, list[Line]]:
    """Group name -> lines, in catalogue order."""
    groups: dict[str, list[Line]] = {}
    for line in Line:
        groups.setdefault(line.group, []).append(line)
    return groups
