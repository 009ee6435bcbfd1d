import re
from typing import List, Optional

from pydantic import BaseModel, field_validator

_CLOCK = re.compile(r"([01]\d|2[0-3]):[0-5]\d")


class EventCreate(BaseModel):
    name: str = ""
    venue_name: str = ""
    start_date: str = ""
    end_date: str = ""
    description: str = ""
    show_dates: List[str] = []


class EventUpdate(BaseModel):
    name: Optional[str] = None
    venue_name: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    show_dates: Optional[List[str]] = None


class ShowDatesUpdate(BaseModel):
    dates: List[str]


class TimingSettings(BaseModel):
    """Backstage call time and curtain time for a show, as HH:MM."""

    backstage_ready_time: Optional[str] = None
    show_start_time: Optional[str] = None

    @field_validator("backstage_ready_time", "show_start_time", mode="before")
    @classmethod
    def check_clock(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        if not isinstance(v, str) or not _CLOCK.fullmatch(v.strip()):
            raise ValueError("must be a 24-hour time as HH:MM")
        return v.strip()
