"""Maps application errors onto HTTP problem responses."""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from curation.core.exceptions import (
    AppError,
    ConcurrencyError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from curation.utils.logging import get_logger
from curation.utils.responses import create_error_detail

LOGGER = get_logger(__name__)

# Checked in order; subclasses before their bases
ERROR_STATUS = [
    (NotFoundError, status.HTTP_404_NOT_FOUND, "Not Found"),
    (ValidationError, 422, "Validation Failed"),
    (InvalidStateError, status.HTTP_409_CONFLICT, "Invalid State Transition"),
    (ConcurrencyError, status.HTTP_409_CONFLICT, "Concurrent Modification"),
]


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    for error_cls, status_code, title in ERROR_STATUS:
        if isinstance(exc, error_cls):
            break
    else:
        status_code, title = status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Error"
        LOGGER.error(f"Unhandled application error: {exc}", exc_info=exc)

    detail = create_error_detail(title=title, status=status_code, detail=str(exc), request=request)
    return JSONResponse(status_code=status_code, content={"detail": detail.model_dump(mode="json")})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
