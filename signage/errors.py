"""
Service-level exceptions. Each one knows its HTTP status so the Flask error
handler can turn it into the JSON error envelope.
"""
from __future__ import annotations
from typing import Any, Dict, Optional


class GeneralError(Exception):
    http_status = 500
    code = "general_error"

    def __init__(self, message: str = "", property: Optional[str] = None, help: Optional[str] = None):
        super().__init__(message)
        self.message = message or self.__class__.__name__
        self.property = property
        self.help = help

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "success": False,
            "error": self.code,
            "message": self.message,
            "httpStatus": self.http_status,
        }
        if self.property:
            data["property"] = self.property
        if self.help:
            data["help"] = self.help
        return data


class InvalidArgumentError(GeneralError):
    http_status = 422
    code = "invalid_argument"


class DuplicateEntityError(InvalidArgumentError):
    http_status = 409
    code = "duplicate_entity"


class AccessDeniedError(GeneralError):
    http_status = 403
    code = "access_denied"

    def __init__(self, message: str = "Access denied", property: Optional[str] = None, help: Optional[str] = None):
        super().__init__(message, property, help)


class NotFoundError(GeneralError):
    http_status = 404
    code = "not_found"

    def __init__(self, message: str = "Not found", property: Optional[str] = None, help: Optional[str] = None):
        super().__init__(message, property, help)


class NotAuthenticatedError(GeneralError):
    http_status = 401
    code = "login_required"

    def __init__(self, message: str = "Login required"):
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["login"] = True
        return data


class FolderNotEmptyError(GeneralError):
    """Raised by the store when a folder still holds folders, datasets or layouts."""

    http_status = 409
    code = "folder_not_empty"
