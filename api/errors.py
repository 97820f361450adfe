from enum import IntEnum

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse

from db.errors import StorageError
from schemas.errors import ErrorResult

logger = structlog.get_logger()


class ErrorCode(IntEnum):
    INVALID_REFERENCE = 1000
    USER_NOT_FOUND = 1001
    EMAIL_IN_USE = 1002
    COUNTRY_NOT_FOUND = 1003
    USER_NOT_SAVED = 1004
    ASSESSMENT_NOT_FOUND = 1100
    ASSESSMENT_NOT_SUBMITTABLE = 1101
    ASSESSMENT_CLOSED = 1102
    FILE_ALREADY_UPLOADED = 1103
    FILE_EMPTY = 1104
    ASSESSMENT_NOT_SAVED = 1105
    UPLOAD_NOT_AUTHORIZED = 1106
    BANK_NOT_FOUND = 1200
    BANK_NOT_SAVED = 1201
    SERVER_ERROR = 5000


class ApiError(Exception):
    """An expected failure (not found, precondition) answered with a client error."""

    def __init__(self, http_status: int, code: ErrorCode, message: str):
        super().__init__(message)
        self.http_status = http_status
        self.code = code
        self.message = message


def _error_response(http_status: int, code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=http_status, content=ErrorResult(code=code, message=message).model_dump())


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return _error_response(exc.http_status, int(exc.code), exc.message)


async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error("request_failed", path=request.url.path, error=str(exc), cause=repr(exc.__cause__))
    return _error_response(500, int(ErrorCode.SERVER_ERROR), "Internal server error")
