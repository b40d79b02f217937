from __future__ import annotations
from pydantic import BaseModel
from typing import Any, Literal, Optional


class TouchRequest(BaseModel):
    type: Literal["click", "dblclick", "toggle"] = "click"


class SimPresenceRequest(BaseModel):
    present: bool


class SimPatternRequest(BaseModel):
    type: Literal["manual", "cycle"]
    present_s: float = 30
    absent_s: float = 150


class SimBusRequest(BaseModel):
    payload: Any
    topic: Optional[str] = None


class WindowOut(BaseModel):
    start_time: str  # "HH:MM"
    end_time: str    # "HH:MM"
    days: list[int]
    wraps_midnight: bool
