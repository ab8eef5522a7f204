"""Subway line catalogue endpoints."""

from fastapi import APIRouter, HTTPException

from subway_motion.core.lines import Line, line_groups
from subway_motion.schemas.line import LineGroupInfo, LineInfo

router = APIRouter(prefix="/api/lines", tags=["lines"])

# Will be set by main.py
engine = None


def _line_info(line: Line) -> LineInfo:
    segments = engine.tracks.segment_count(line.key) if engine is not None else 0
    return LineInfo(key=line.key, color=line.color, group=line.group, segments=segments)


@router.get("", response_model=list[LineGroupInfo])
async def list_lines():
    """Get all lines, grouped by trunk, with the number of indexed track segments."""
    return [
        LineGroupInfo(name=name, color=lines[0].color, lines=[_line_info(l) for l in lines])
        for name, lines in line_groups().items()
    ]


@router.get("/{route}", response_model=LineInfo)
async def get_line(route: str):
    """Resolve a feed route id (exact key or first-character fallback)."""
    line = Line.lookup(route)
    if line is None:
        raise HTTPException(status_code=404, detail="Unknown line")
    return _line_info(line)
