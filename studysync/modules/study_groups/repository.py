from supabase import AsyncClient
from studysync.config import settings
from studysync.core.identity import AuthSubjectId
from studysync.modules.study_groups.models import PROFILE_COLUMNS, MEMBER_PROFILE_JOIN
from studysync.modules.study_groups.remote import RemoteQueryError, RemoteResult, run_query
from studysync.modules.study_groups.schemas import MemberRole, StudyGroupCreate, StudyGroupUpdate
from typing import Any, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)


class StudyGroupRepository:
    """Remote access to the study group relations. Joins are done client-side."""

    def __init__(self, supabase: AsyncClient):
        self.supabase = supabase
        self.groups_table = settings.groups_table
        self.members_table = settings.members_table
        self.profiles_table = settings.profiles_table

    async def _fetch(self, query) -> List[Dict[str, Any]]:
        result = await run_query(query)
        if result.error:
            raise RemoteQueryError(result.error)
        return result.data

    async def fetch_joined_rows(self) -> List[Dict[str, Any]]:
        """Group rows (newest first) with ``profiles`` (creator) and ``study_group_members`` (member profiles) attached."""
        groups = await self._fetch(
            self.supabase.table(self.groups_table)
                .select("*")
                .order("created_at", desc=True)
        )
        if not groups:
            return []

        # creator_id holds the auth subject id; drop null/empty and keep first-seen order
        creator_ids = list(dict.fromkeys(g["creator_id"] for g in groups if g.get("creator_id")))
        creator_profiles = []
        if creator_ids:
            creator_profiles = await self._fetch(
                self.supabase.table(self.profiles_table)
                    .select(PROFILE_COLUMNS)
                    .in_("user_id", creator_ids)
            )

        group_ids = [g["id"] for g in groups]
        memberships = await self._fetch(
            self.supabase.table(self.members_table)
                .select(MEMBER_PROFILE_JOIN)
                .in_("group_id", group_ids)
        )

        creator_by_user_id = {p["user_id"]: p for p in creator_profiles if p.get("user_id")}

        members_by_group: Dict[str, List[Dict[str, Any]]] = {}
        seen: Dict[str, set] = {}
        for membership in memberships:
            group_members = members_by_group.setdefault(membership["group_id"], [])
            profile = membership.get("profiles")
            if not profile:
                continue
            group_seen = seen.setdefault(membership["group_id"], set())
            if profile.get("id") in group_seen:
                continue
            group_seen.add(profile.get("id"))
            group_members.append(profile)

        logger.debug(
            f"Fetched {len(groups)} group(s), {len(creator_profiles)} creator profile(s), "
            f"{len(memberships)} membership(s)"
        )
        return [
            {
                **group,
                "profiles": creator_by_user_id.get(group.get("creator_id")),
                "study_group_members": members_by_group.get(group["id"], []),
            }
            for group in groups
        ]

    async def fetch_profile(self, auth_subject_id: AuthSubjectId) -> Optional[Dict[str, Any]]:
        """Profile row linked to an auth subject, or None."""
        rows = await self._fetch(
            self.supabase.table(self.profiles_table)
                .select(PROFILE_COLUMNS)
                .eq("user_id", auth_subject_id)
                .limit(1)
        )
        return rows[0] if rows else None

    async def insert_group(self, group_data: StudyGroupCreate, creator_id: AuthSubjectId) -> RemoteResult:
        return await run_query(
            self.supabase.table(self.groups_table).insert({
                "name": group_data.name,
                "subject": group_data.subject,
                "description": group_data.description,
                "max_members": group_data.max_members,
                "is_private": group_data.is_private,
                "tags": group_data.tags,
                "creator_id": creator_id,
            })
        )

    async def insert_membership(self, group_id: str, user_id: AuthSubjectId, role: MemberRole) -> RemoteResult:
        return await run_query(
            self.supabase.table(self.members_table).insert({
                "group_id": group_id,
                "user_id": user_id,
                "role": role.value,
            })
        )

    async def delete_membership(self, group_id: str, user_id: AuthSubjectId) -> RemoteResult:
        return await run_query(
            self.supabase.table(self.members_table)
                .delete()
                .eq("group_id", group_id)
                .eq("user_id", user_id)
        )

    async def fetch_owned_group(self, group_id: str, creator_id: AuthSubjectId) -> RemoteResult:
        """The group row if it exists and belongs to ``creator_id``, otherwise no data."""
        return await run_query(
            self.supabase.table(self.groups_table)
                .select("id")
                .eq("id", group_id)
                .eq("creator_id", creator_id)
                .limit(1)
        )

    async def delete_group_memberships(self, group_id: str) -> RemoteResult:
        return await run_query(
            self.supabase.table(self.members_table)
                .delete()
                .eq("group_id", group_id)
        )

    async def update_group(self, group_id: str, updates: StudyGroupUpdate, creator_id: AuthSubjectId) -> RemoteResult:
        """Update restricted to the owner's row; an empty ``data`` means nothing matched."""
        update_data = updates.model_dump(exclude_unset=True, exclude_none=True)
        return await run_query(
            self.supabase.table(self.groups_table)
                .update(update_data)
                .eq("id", group_id)
                .eq("creator_id", creator_id)
        )

    async def delete_group(self, group_id: str, creator_id: AuthSubjectId) -> RemoteResult:
        return await run_query(
            self.supabase.table(self.groups_table)
                .delete()
                .eq("id", group_id)
                .eq("creator_id", creator_id)
        )
