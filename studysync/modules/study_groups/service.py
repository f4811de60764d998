import asyncio
import logging
from typing import List, Optional, Set

from supabase import AsyncClient
from studysync.config import settings
from studysync.core.errors import (
    NotGroupOwnerError, RemoteOperationError, StudyGroupError, UnauthenticatedError
)
from studysync.core.identity import AuthSubjectId, IdentityResolver
from studysync.modules.study_groups.fallback import LocalGroupFallback, get_fallback_study_groups
from studysync.modules.study_groups.normalizer import normalize_study_group
from studysync.modules.study_groups.remote import UNIQUE_VIOLATION_CODE, RemoteError, RemoteQueryError
from studysync.modules.study_groups.repository import StudyGroupRepository
from studysync.modules.study_groups.schemas import (
    CurrentUser, MemberRole, StudyGroup, StudyGroupCreate, StudyGroupUpdate
)
from studysync.modules.study_groups.store import GroupStore

logger = logging.getLogger(__name__)


class StudyGroupService:
    """Keeps a GroupStore in sync with Supabase for one signed-in session.

    Successful remote writes are followed by a full refetch. Local patching of
    the store only happens when the backend is unreachable or unprovisioned.
    """

    def __init__(
        self,
        supabase: AsyncClient,
        user: Optional[CurrentUser] = None,
        store: Optional[GroupStore] = None,
        fallback_enabled: Optional[bool] = None,
    ):
        self.supabase = supabase
        self.user = user
        self.store = store or GroupStore()
        self.repository = StudyGroupRepository(supabase)
        self.identity = IdentityResolver(supabase.auth)
        self.fallback = LocalGroupFallback()
        self.fallback_enabled = settings.fallback_enabled if fallback_enabled is None else fallback_enabled
        self._fetch_generation = 0
        self._latest_fetch: Optional[asyncio.Task] = None
        self._pending: Set[asyncio.Task] = set()
        self._remove_identity_listener = None

    async def __aenter__(self) -> "StudyGroupService":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # Session lifecycle

    async def start(self) -> None:
        """Follow the auth session: sign-in loads the profile and fetches, sign-out clears."""
        if self._remove_identity_listener is None:
            self._remove_identity_listener = self.identity.add_listener(self._on_identity_change)
        await self.identity.start()
        if self.identity.auth_subject_id is None:
            # No session yet: publish whatever the supplied user (if any) can see
            await self.fetch_study_groups()

    async def close(self) -> None:
        if self._remove_identity_listener is not None:
            self._remove_identity_listener()
            self._remove_identity_listener = None
        self.identity.close()
        for task in list(self._pending):
            task.cancel()
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        self._pending.clear()

    async def set_user(self, user: Optional[CurrentUser]) -> List[StudyGroup]:
        self.user = user
        return await self.fetch_study_groups()

    def _on_identity_change(self, auth_subject_id: Optional[AuthSubjectId]) -> None:
        if auth_subject_id is None:
            logger.info("Signed out, clearing study groups")
            self.user = None
            self._fetch_generation += 1
            self._latest_fetch = None
            self.store.replace([])
            return
        task = asyncio.ensure_future(self._handle_sign_in(auth_subject_id))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _handle_sign_in(self, auth_subject_id: AuthSubjectId) -> None:
        try:
            if self.user is None or self.user.auth_subject_id != auth_subject_id:
                self.user = await self._load_current_user(auth_subject_id)
            await self.fetch_study_groups()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error handling sign-in for {auth_subject_id}: {e}")

    async def _load_current_user(self, auth_subject_id: AuthSubjectId) -> CurrentUser:
        """Resolve the auth subject to its profile row (profiles.user_id -> profiles.id)."""
        try:
            profile = await self.repository.fetch_profile(auth_subject_id)
        except RemoteQueryError as e:
            logger.warning(f"Profile lookup failed, using session identity: {e.error.message}")
            profile = None
        if not profile:
            return CurrentUser(id=auth_subject_id, auth_subject_id=auth_subject_id, name="You", email=self.identity.email)
        return CurrentUser(
            id=profile["id"],
            auth_subject_id=auth_subject_id,
            name=profile.get("name"),
            email=profile.get("email"),
            college=profile.get("college"),
            branch=profile.get("branch"),
            year=profile.get("year"),
            is_verified=profile.get("is_verified"),
            avatar=profile.get("avatar_url"),
        )

    # Read path

    async def fetch_study_groups(self) -> List[StudyGroup]:
        """Replace the store with the joined remote collection. Never raises.

        When a newer fetch starts before this one completes, this one waits for
        the newest fetch to publish and returns what it published.
        """
        self._fetch_generation += 1
        task = asyncio.ensure_future(self._run_fetch(self._fetch_generation))
        self._latest_fetch = task
        return await task

    async def _run_fetch(self, generation: int) -> List[StudyGroup]:
        user = self.user
        if user is None:
            self.store.replace([])
            return []

        self.store.set_loading(True)
        error: Optional[str] = None
        try:
            rows = await self.repository.fetch_joined_rows()
            groups = [normalize_study_group(row, user) for row in rows]
            if not groups:
                logger.info("No study groups found in database")
        except RemoteQueryError as e:
            groups, error = self._groups_for_failed_fetch(e.error)
        except Exception as e:
            logger.warning(f"Error fetching study groups, using fallback data: {e}")
            groups, error = self._groups_for_failed_fetch(RemoteError(message=str(e), unprovisioned=True))

        if generation != self._fetch_generation:
            logger.debug(f"Discarding stale study group fetch #{generation}")
            latest = self._latest_fetch
            if latest is not None and latest is not asyncio.current_task() and not latest.done():
                return await asyncio.shield(latest)
            return self.store.groups
        self.store.replace(groups, error=error)
        return groups

    def _groups_for_failed_fetch(self, error: RemoteError):
        if error.unprovisioned and self.fallback_enabled:
            logger.warning(f"Study groups table not available, using fallback data: {error.message}")
            return get_fallback_study_groups(), None
        logger.error(f"Error fetching study groups: {error.message}")
        return [], error.message

    # Mutations

    def _require_user(self) -> CurrentUser:
        if self.user is None:
            raise UnauthenticatedError("User not authenticated")
        return self.user

    def _degrades(self, error: RemoteError) -> bool:
        return error.unprovisioned and self.fallback_enabled

    async def create_study_group(self, group_data: StudyGroupCreate) -> StudyGroup:
        user = self._require_user()
        try:
            creator_id = await self.identity.resolve()
            logger.info(f"Creating study group: {group_data.name}")
            result = await self.repository.insert_group(group_data, creator_id)

            if result.error:
                if self._degrades(result.error):
                    logger.warning("Database table not available, creating study group locally")
                    group = self.fallback.create(group_data, user)
                    self.store.update(lambda groups: [group, *groups])
                    return group
                raise RemoteOperationError(result.error.message or "Failed to create study group", code=result.error.code)

            if not result.data:
                raise StudyGroupError("Failed to create study group: No data returned")

            row = result.data[0]
            logger.info(f"Study group created successfully: {row['id']}")

            member_result = await self.repository.insert_membership(row["id"], creator_id, MemberRole.ADMIN)
            if member_result.error:
                # The group exists; only the creator's membership row is missing
                logger.warning(f"Failed to add creator as member of {row['id']}: {member_result.error.message}")

            await self.fetch_study_groups()
            return self.store.get(str(row["id"])) or normalize_study_group(row, user)
        except StudyGroupError:
            raise
        except Exception as e:
            logger.error(f"Error creating study group: {e}")
            raise StudyGroupError(str(e) or "Failed to create study group") from e

    async def join_study_group(self, group_id: str) -> None:
        user = self._require_user()
        try:
            user_id = await self.identity.resolve()
            result = await self.repository.insert_membership(group_id, user_id, MemberRole.MEMBER)

            if result.error:
                if self._degrades(result.error):
                    logger.warning("Database not available, joining study group locally")
                    self.store.update(lambda groups: self.fallback.join(groups, group_id, user))
                    return
                if result.error.code != UNIQUE_VIOLATION_CODE:
                    raise RemoteOperationError(result.error.message or "Failed to join study group", code=result.error.code)
                logger.info(f"Already a member of study group {group_id}")

            await self.fetch_study_groups()
        except StudyGroupError:
            raise
        except Exception as e:
            logger.error(f"Error joining study group: {e}")
            raise StudyGroupError(str(e) or "Failed to join study group") from e

    async def leave_study_group(self, group_id: str) -> None:
        user = self._require_user()
        try:
            user_id = await self.identity.resolve()
            result = await self.repository.delete_membership(group_id, user_id)

            if result.error:
                logger.warning(f"Database not available, leaving study group locally: {result.error.message}")
                self.store.update(lambda groups: self.fallback.leave(groups, group_id, user))
                return

            await self.fetch_study_groups()
        except StudyGroupError:
            raise
        except Exception as e:
            logger.error(f"Error leaving study group: {e}")
            raise StudyGroupError(str(e) or "Failed to leave study group") from e

    async def update_study_group(self, group_id: str, updates: StudyGroupUpdate) -> None:
        self._require_user()
        try:
            creator_id = await self.identity.resolve()
            if not updates.model_dump(exclude_unset=True, exclude_none=True):
                raise RemoteOperationError("No fields to update")

            result = await self.repository.update_group(group_id, updates, creator_id)
            if result.error:
                raise RemoteOperationError(result.error.message, code=result.error.code)
            if not result.data:
                raise NotGroupOwnerError("Study group not found or you are not its owner")

            await self.fetch_study_groups()
        except StudyGroupError:
            raise
        except Exception as e:
            logger.error(f"Error updating study group: {e}")
            raise StudyGroupError(str(e) or "Failed to update study group") from e

    async def delete_study_group(self, group_id: str) -> None:
        self._require_user()
        try:
            creator_id = await self.identity.resolve()

            owned = await self.repository.fetch_owned_group(group_id, creator_id)
            if owned.error:
                raise RemoteOperationError(owned.error.message, code=owned.error.code)
            if not owned.data:
                raise NotGroupOwnerError("Study group not found or you are not its owner")

            members_result = await self.repository.delete_group_memberships(group_id)
            if members_result.error:
                raise RemoteOperationError(members_result.error.message, code=members_result.error.code)

            result = await self.repository.delete_group(group_id, creator_id)
            if result.error:
                raise RemoteOperationError(result.error.message, code=result.error.code)
            if not result.data:
                raise NotGroupOwnerError("Study group not found or you are not its owner")

            await self.fetch_study_groups()
        except StudyGroupError:
            raise
        except Exception as e:
            logger.error(f"Error deleting study group: {e}")
            raise StudyGroupError(str(e) or "Failed to delete study group") from e

    # Queries over the current collection, no remote calls

    def is_member(self, group_id: str) -> bool:
        if self.user is None:
            return False
        group = self.store.get(group_id)
        return bool(group) and any(m.id == self.user.id for m in group.members)

    def is_owner(self, group_id: str) -> bool:
        if self.user is None:
            return False
        group = self.store.get(group_id)
        return bool(group) and group.created_by.id == self.user.id
