from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from app.exceptions.rating import (
    RatingServiceException,
    ResourceNotFoundException,
    ConflictException,
    ForbiddenException,
    InvalidRequestException
)

STATUS_BY_EXCEPTION = {
    ResourceNotFoundException: status.HTTP_404_NOT_FOUND,
    ConflictException: status.HTTP_409_CONFLICT,
    ForbiddenException: status.HTTP_403_FORBIDDEN,
    InvalidRequestException: status.HTTP_400_BAD_REQUEST,
}


class ServiceHTTPException(HTTPException):
    """HTTPException that remembers which service error produced it."""

    def __init__(self, status_code: int, detail: str, code: str):
        super().__init__(status_code=status_code, detail=detail, headers={"X-Error-Code": code})
        self.code = code


def to_http_exception(e: RatingServiceException) -> ServiceHTTPException:
    status_code = STATUS_BY_EXCEPTION.get(type(e), status.HTTP_500_INTERNAL_SERVER_ERROR)
    return ServiceHTTPException(status_code=status_code, detail=str(e), code=e.code)


async def service_http_exception_handler(request: Request, exc: ServiceHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code},
        headers=exc.headers
    )


def paginate(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": (total + limit - 1) // limit if limit else 0
    }
