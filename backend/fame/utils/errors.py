from typing import Any, Dict, List, Optional
from fastapi import HTTPException, status
import logging

logger = logging.getLogger(__name__)


class ApiError(HTTPException):
    """HTTPException carrying a machine-readable error code.

    Rendered by the app's exception handler as
    ``{"success": false, "error": {"code", "message"}}``.
    """

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=message)
        self.code = code
        self.message = message
        self.details = details


def api_error(
    code: str,
    message: str,
    status_code: int = status.HTTP_400_BAD_REQUEST,
    details: Optional[Any] = None,
) -> ApiError:
    """Return an ApiError and log it at a level matching the status."""
    if status_code >= 500:
        logger.error("%s %s", code, message)
    else:
        logger.info("%s %s", code, message)
    return ApiError(status_code, code, message, details)


def not_found(what: str) -> ApiError:
    return api_error("NOT_FOUND", f"{what} not found", status.HTTP_404_NOT_FOUND)


def error_response(
    message: str,
    field_errors: List[str] | Dict[str, str],
    code: int = status.HTTP_400_BAD_REQUEST,
) -> ApiError:
    """Return a VALIDATION_ERROR with the offending fields and log details."""
    logger.error("%s %s", message, field_errors)
    return ApiError(code, "VALIDATION_ERROR", message, details=field_errors)


def error_body(code: str, message: str, details: Optional[Any] = None) -> Dict[str, Any]:
    error: Dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    return {"success": False, "error": error}
