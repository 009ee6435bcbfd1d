from typing import Optional

from pydantic import BaseModel


class BroadcastCreate(BaseModel):
    message: str = ""
    emergency_code: str = ""


class BroadcastUpdate(BaseModel):
    broadcast_id: str
    is_active: Optional[bool] = None
    message: Optional[str] = None
