from pydantic import BaseModel


class LineInfo(BaseModel):
    key: str
    color: str
    group: str
    segments: int = 0


class LineGroupInfo(BaseModel):
    name: str
    color: str
    lines: list[LineInfo]
