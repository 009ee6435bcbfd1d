from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from .artist import PerformanceStatus


class CueType(str, Enum):
    MC_BREAK = "mc_break"
    VIDEO_BREAK = "video_break"
    CLEANING_BREAK = "cleaning_break"
    SPEECH_BREAK = "speech_break"
    OPENING = "opening"
    COUNTDOWN = "countdown"
    ARTIST_ENDING = "artist_ending"
    ANIMATION = "animation"


class CueCreate(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: CueType
    title: str
    duration: Optional[float] = None
    performance_order: int = 0
    notes: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None


class CueUpdate(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    type: Optional[CueType] = None
    title: Optional[str] = None
    duration: Optional[float] = None
    performance_order: Optional[int] = None
    notes: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    performance_status: Optional[PerformanceStatus] = None
    is_completed: Optional[bool] = None
