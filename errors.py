"""Errors raised by the ride and notification services.

Each ``ApiError`` knows the HTTP status and body it renders to, so route
handlers only have to catch and serialize them.
"""
from typing import Optional


class ApiError(Exception):
    status_code = 500

    def __init__(self, msg: str, details: Optional[str] = None, status_code: Optional[int] = None, flagged: bool = False):
        super().__init__(msg)
        self.msg = msg
        self.details = details
        self.flagged = flagged
        if status_code is not None:
            self.status_code = status_code

    def body(self, style: str = "msg") -> dict:
        if style == "message":
            return {"message": self.msg}
        out = {"msg": self.msg}
        if self.details is not None:
            out["details"] = self.details
        if self.flagged:
            out["error"] = True
        return out


class ValidationFailed(ApiError):
    status_code = 400

    def __init__(self, details: Optional[str] = None, msg: str = "Validation Error"):
        super().__init__(msg, details, flagged=True)


class NotAuthorized(ApiError):
    status_code = 403


class NotFound(ApiError):
    status_code = 404


class RideNotFound(NotFound):
    def __init__(self, details: Optional[str] = "The specified ride does not exist"):
        super().__init__("Ride not found", details)


class NoSeatsAvailable(ApiError):
    status_code = 400


class AlreadyAccepted(ApiError):
    status_code = 400


class NotificationError(ValueError):
    """Raised when a notification cannot be built from the given fields."""
