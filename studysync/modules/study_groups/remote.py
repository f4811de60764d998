"""
Result type for remote calls.

Every PostgREST call made by the repository goes through ``run_query`` and comes
back as a ``RemoteResult``. Errors are classified once here so callers only
have to ask ``result.error.unprovisioned`` to pick between the local fallback
and surfacing the backend message.
"""

import logging
from typing import Any, List, Optional

import httpx
from postgrest.exceptions import APIError
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

# PGRST116: no/multiple rows for a single-object request
# PGRST205: table missing from the schema cache
# 42P01: undefined_table, 42501: insufficient_privilege
UNPROVISIONED_CODES = {"PGRST116", "PGRST205", "42P01", "42501"}
UNPROVISIONED_MESSAGE_MARKERS = ("permission denied", "relation", "does not exist")
# SQLSTATE classes 22 (data exception), 23 (integrity constraint), P0 (raised by triggers)
CONSTRAINT_CODE_CLASSES = {"22", "23", "P0"}

UNIQUE_VIOLATION_CODE = "23505"
TRANSPORT_ERROR_CODE = "TRANSPORT"


class RemoteError(BaseModel):
    code: Optional[str] = None
    message: str
    unprovisioned: bool = False


class RemoteResult(BaseModel):
    data: List[Any] = Field(default_factory=list)
    error: Optional[RemoteError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class RemoteQueryError(Exception):
    """Raised by the read path so the whole fetch sequence aborts on the first failing query."""

    def __init__(self, error: RemoteError):
        self.error = error
        super().__init__(error.message)


def is_unprovisioned(code: Optional[str], message: Optional[str]) -> bool:
    if code in UNPROVISIONED_CODES:
        return True
    # Constraint and data errors mention the relation by name but are genuine rejections
    if code and code[:2] in CONSTRAINT_CODE_CLASSES:
        return False
    lowered = (message or "").lower()
    return any(marker in lowered for marker in UNPROVISIONED_MESSAGE_MARKERS)


def classify_error(exc: Exception) -> RemoteError:
    if isinstance(exc, APIError):
        code = str(exc.code) if exc.code is not None else None
        message = exc.message or str(exc)
        return RemoteError(code=code, message=message, unprovisioned=is_unprovisioned(code, message))
    if isinstance(exc, httpx.TransportError):
        # Backend unreachable is handled like a backend that is not provisioned
        return RemoteError(code=TRANSPORT_ERROR_CODE, message=str(exc) or exc.__class__.__name__, unprovisioned=True)
    return RemoteError(message=str(exc) or exc.__class__.__name__)


async def run_query(query) -> RemoteResult:
    """Execute a PostgREST request builder. Exceptions other than API/transport errors propagate."""
    try:
        response = await query.execute()
    except (APIError, httpx.TransportError) as e:
        error = classify_error(e)
        logger.debug(f"Remote call failed: code={error.code} unprovisioned={error.unprovisioned} message={error.message}")
        return RemoteResult(error=error)
    return RemoteResult(data=response.data or [])
