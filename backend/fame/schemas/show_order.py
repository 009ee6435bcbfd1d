from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class ShowOrderItem(BaseModel):
    """One slot in the lineup; ``type`` is "artist" or "cue"."""

    model_config = ConfigDict(extra="allow")

    id: str
    type: str = "artist"
    performance_order: int
    status: Optional[str] = None
    last_updated: Optional[str] = None


class ShowOrderUpdate(BaseModel):
    items: List[ShowOrderItem]
    performance_date: Optional[str] = None


class RehearsalCreate(BaseModel):
    artist_id: str = ""
    date: str = ""
    start_time: str = ""
    duration: int = 15
    notes: Optional[str] = None


class RehearsalUpdate(BaseModel):
    rehearsal_id: str
    date: Optional[str] = None
    start_time: Optional[str] = None
    duration: Optional[int] = None
    status: Optional[str] = None
    notes: Optional[str] = None
    quality_rating: Optional[int] = None
