from typing import Any, Dict


def ok(data: Any = None, **extra: Any) -> Dict[str, Any]:
    """Success envelope shared by every REST handler."""
    body: Dict[str, Any] = {"success": True, "data": data}
    body.update(extra)
    return body
