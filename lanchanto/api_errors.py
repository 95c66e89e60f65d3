"""
API error handling.

Every webhook response has the shape {"error": <string or null>}; errors
only differ in status code and message.
"""

from fastapi import Request
from fastapi.responses import JSONResponse


class APIError(Exception):
    """HTTP status plus the message placed in the "error" field."""

    def __init__(self, status: int, message: str):
        self.status = status
        self.message = message
        super().__init__(message)

    def response(self) -> JSONResponse:
        return JSONResponse(status_code=self.status,
                            content={"error": self.message})


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    return exc.response()


def invalid_credential() -> APIError:
    return APIError(403, "invalid credential")


def invalid_body() -> APIError:
    return APIError(400, "invalid body")


def unknown_repository() -> APIError:
    return APIError(400, "unknown repository")


def queue_full() -> APIError:
    return APIError(503, "deploy queue full")
