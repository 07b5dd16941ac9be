# library_api/errors.py
from typing import List, Optional


class LibraryError(Exception):
    status_code = 500
    code = "InternalError"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class NotFound(LibraryError):
    status_code = 404
    code = "NotFound"

    def __init__(self, entity: str, message: Optional[str] = None):
        super().__init__(message or f"{entity} not found", code=entity)
        self.entity = entity


class Conflict(LibraryError):
    status_code = 409
    code = "Conflict"

    ALREADY_BORROWED = "AlreadyBorrowed"
    NO_COPIES_AVAILABLE = "NoCopiesAvailable"
    NOT_BORROWED_BY_USER = "NotBorrowedByUser"
    DUPLICATE_EMAIL = "DuplicateEmail"
    AUTHOR_HAS_BOOKS = "AuthorHasBooks"

    def __init__(self, reason: str, message: str):
        super().__init__(message, code=reason)
        self.reason = reason


class Unauthorized(LibraryError):
    status_code = 401
    code = "Unauthorized"


class Forbidden(LibraryError):
    status_code = 403
    code = "Forbidden"


class ValidationFailed(LibraryError):
    status_code = 400
    code = "ValidationFailed"

    def __init__(self, errors: List[dict], message: str = "Validation failed"):
        super().__init__(message)
        self.errors = errors


class Unavailable(LibraryError):
    status_code = 503
    code = "Unavailable"
