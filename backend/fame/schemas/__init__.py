from .user import (
    UserRole,
    UserStatus,
    LoginRequest,
    StageManagerRegister,
    ChangePasswordRequest,
    UserAction,
    UserActionRequest,
    SessionData,
)
from .event import EventCreate, EventUpdate, ShowDatesUpdate, TimingSettings
from .artist import (
    PerformanceStatus,
    ArtistStatus,
    MusicTrack,
    GalleryFile,
    ArtistCreate,
    ArtistUpdate,
    ArtistStatusUpdate,
    ArtistApproval,
    ArtistLogin,
)
from .cue import CueType, CueCreate, CueUpdate
from .broadcast import BroadcastCreate, BroadcastUpdate
from .show_order import ShowOrderItem, ShowOrderUpdate, RehearsalCreate, RehearsalUpdate
