"""
Error types raised by the study group layer.

Each error carries the HTTP status the API adapter answers with.
"""

from typing import Optional


class StudyGroupError(Exception):
    """Base error; also what unexpected failures inside a mutation are re-raised as."""

    status_code = 500

    def __init__(self, message: str, code: Optional[str] = None):
        self.message = message
        self.code = code
        super().__init__(message)


class UnauthenticatedError(StudyGroupError):
    """No signed-in user or session. Raised before any remote call."""

    status_code = 401


class RemoteOperationError(StudyGroupError):
    """The backend rejected the operation (validation, constraint, RLS...)."""

    status_code = 400


class NotGroupOwnerError(StudyGroupError):
    """An owner-filtered update/delete matched no row."""

    status_code = 403
