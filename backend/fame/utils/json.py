from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any

import orjson


def _default(o: Any):
    if isinstance(o, Enum):
        return o.value
    if isinstance(o, (datetime, date)):
        return o.isoformat()
    return str(o)


def dumps_bytes(obj: Any, pretty: bool = False) -> bytes:
    option = orjson.OPT_NON_STR_KEYS
    if pretty:
        option |= orjson.OPT_INDENT_2
    return orjson.dumps(obj, option=option, default=_default)


def loads(raw: bytes | str) -> Any:
    return orjson.loads(raw)
