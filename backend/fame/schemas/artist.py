from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PerformanceStatus(str, Enum):
    """Live-board progression of a performer, in show order."""

    NOT_STARTED = "not_started"
    NEXT_ON_DECK = "next_on_deck"
    NEXT_ON_STAGE = "next_on_stage"
    CURRENTLY_ON_STAGE = "currently_on_stage"
    COMPLETED = "completed"


class ArtistStatus(str, Enum):
    """Registration state managed by the stage manager."""

    PENDING = "pending"
    APPROVED = "approved"
    ACTIVE = "active"
    INACTIVE = "inactive"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class MusicTrack(BaseModel):
    model_config = ConfigDict(extra="allow")

    song_title: str = ""
    duration: Optional[float] = None
    notes: Optional[str] = None
    is_main_track: bool = False
    tempo: Optional[str] = None
    file_url: Optional[str] = None


class GalleryFile(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = ""
    type: str = "image"
    url: Optional[str] = None
    size: Optional[int] = None
    content_type: Optional[str] = None


class ArtistBase(BaseModel):
    # Registration forms post many optional presentation fields
    model_config = ConfigDict(extra="allow")

    artist_name: Optional[str] = None
    real_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    style: Optional[str] = None
    performance_duration: Optional[float] = None
    actual_duration: Optional[float] = None
    biography: Optional[str] = None
    costume_color: Optional[str] = None
    custom_costume_color: Optional[str] = None
    light_color_single: Optional[str] = None
    light_color_two: Optional[str] = None
    light_color_three: Optional[str] = None
    light_requests: Optional[str] = None
    stage_position_start: Optional[str] = None
    stage_position_end: Optional[str] = None
    custom_stage_position: Optional[str] = None
    mc_notes: Optional[str] = None
    stage_manager_notes: Optional[str] = None
    notes: Optional[str] = None
    show_link: Optional[str] = None
    social_media: Optional[Dict[str, Any]] = None
    music_tracks: Optional[List[MusicTrack]] = None
    gallery_files: Optional[List[GalleryFile]] = None
    performance_order: Optional[int] = None
    performance_date: Optional[str] = None
    rehearsal_completed: Optional[bool] = None
    rehearsal_date: Optional[str] = None
    quality_rating: Optional[int] = None


class ArtistCreate(ArtistBase):
    artist_name: str = ""
    style: str = ""
    performance_duration: float = 5


class ArtistUpdate(ArtistBase):
    status: Optional[ArtistStatus] = None
    performance_status: Optional[PerformanceStatus] = None


class ArtistStatusUpdate(BaseModel):
    performance_status: PerformanceStatus
    performance_date: Optional[str] = None


class ArtistApproval(BaseModel):
    status: ArtistStatus
    notes: Optional[str] = None


class ArtistLogin(BaseModel):
    email: str = ""
    artist_name: str = Field("", description="Stage name used at registration")
