"""
Identity resolution between the auth subject and the profile record.

Two ids exist for every signed-in person:

- ``AuthSubjectId``: ``auth.users.id`` assigned by Supabase Auth. Every write
  uses it (``study_groups.creator_id``, ``study_group_members.user_id``).
- ``ProfileId``: ``profiles.id``, used for display and exposed as ``Member.id``.

The lookup between them is ``profiles.user_id -> profiles.id``.
"""

import logging
from typing import Any, Callable, List, NewType, Optional

from studysync.core.errors import UnauthenticatedError

logger = logging.getLogger(__name__)

AuthSubjectId = NewType("AuthSubjectId", str)
ProfileId = NewType("ProfileId", str)

IdentityListener = Callable[[Optional[AuthSubjectId]], None]


def subject_id_from_session(session: Any) -> Optional[AuthSubjectId]:
    user = getattr(session, "user", None) if session else None
    if user and getattr(user, "id", None):
        return AuthSubjectId(user.id)
    return None


class IdentityResolver:
    """Tracks the auth subject id of the current Supabase session."""

    def __init__(self, auth):
        self.auth = auth
        self.auth_subject_id: Optional[AuthSubjectId] = None
        self.email: Optional[str] = None
        self._subscription = None
        self._listeners: List[IdentityListener] = []

    async def start(self) -> Optional[AuthSubjectId]:
        """Read the current session once, then follow auth state changes."""
        session = await self.auth.get_session()
        self._set_session(session)
        if self._subscription is None:
            self._subscription = self.auth.on_auth_state_change(self._handle_auth_event)
        return self.auth_subject_id

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
            logger.debug("Unsubscribed from auth state changes")

    def add_listener(self, listener: IdentityListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    async def resolve(self) -> AuthSubjectId:
        """Cached subject id, or a direct session query when no auth event has arrived yet."""
        if self.auth_subject_id:
            return self.auth_subject_id
        session = await self.auth.get_session()
        subject_id = subject_id_from_session(session)
        if not subject_id:
            raise UnauthenticatedError("User session not found")
        return subject_id

    def _handle_auth_event(self, event, session) -> None:
        logger.debug(f"Auth state change: {event}")
        self._set_session(session)

    def _set_session(self, session) -> None:
        subject_id = subject_id_from_session(session)
        self.email = getattr(session.user, "email", None) if subject_id else None
        if subject_id == self.auth_subject_id:
            return
        self.auth_subject_id = subject_id
        for listener in list(self._listeners):
            listener(subject_id)
