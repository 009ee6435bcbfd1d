import time
import uuid
from datetime import datetime, timezone


def now_ms() -> int:
    return int(time.time() * 1000)


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def new_id(prefix: str, sep: str = "_") -> str:
    """``<prefix><sep><epoch ms><sep><9 random hex chars>``, e.g. ``artist-1700000000000-1a2b3c4d5``."""
    return f"{prefix}{sep}{now_ms()}{sep}{uuid.uuid4().hex[:9]}"
