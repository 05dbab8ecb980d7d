"""DONQ — Pipeline error → HTTP status mapping."""

from fastapi import HTTPException

from donq.core.errors import (
    ConfigError,
    DonqError,
    ExportWriteError,
    NotFoundError,
    StorageError,
    TransitionError,
)

STATUS_CODES = {
    NotFoundError: 404,
    TransitionError: 409,
    ConfigError: 422,
    ExportWriteError: 500,
    StorageError: 503,
}


def to_http(error: DonqError) -> HTTPException:
    for error_type, status_code in STATUS_CODES.items():
        if isinstance(error, error_type):
            break
    else:
        status_code = 500

    detail = str(error)
    if isinstance(error, ExportWriteError):
        detail = f"Donation approved, but export failed: {error}"
    return HTTPException(status_code=status_code, detail=detail)
