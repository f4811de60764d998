"""Mapping of joined backend rows (snake_case columns) to StudyGroup entities."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from studysync.modules.study_groups.schemas import CurrentUser, Member, StudyGroup


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_member(profile: Dict[str, Any], now: Optional[datetime] = None) -> Member:
    """joined_at/last_active are not tracked by the backend and are stamped with ``now``."""
    now = now or utcnow()
    return Member(
        id=profile["id"],
        name=profile.get("name") or "",
        email=profile.get("email") or "",
        college=profile.get("college") or "",
        branch=profile.get("branch") or "",
        year=profile.get("year") or 1,
        is_verified=bool(profile.get("is_verified")),
        is_anonymous=False,
        avatar=profile.get("avatar_url"),
        joined_at=now,
        last_active=now,
    )


def member_from_user(
    user: Optional[CurrentUser],
    now: Optional[datetime] = None,
    default_name: str = "Unknown",
) -> Member:
    now = now or utcnow()
    return Member(
        id=user.id if user and user.id else "",
        name=user.name if user and user.name else default_name,
        email=user.email if user and user.email else "",
        college=user.college if user and user.college else "",
        branch=user.branch if user and user.branch else "",
        year=user.year if user and user.year else 1,
        is_verified=bool(user and user.is_verified),
        is_anonymous=False,
        avatar=user.avatar if user else None,
        joined_at=now,
        last_active=now,
    )


def normalize_study_group(
    row: Dict[str, Any],
    user: Optional[CurrentUser],
    now: Optional[datetime] = None,
) -> StudyGroup:
    """Build a StudyGroup from a group row carrying ``profiles`` and ``study_group_members``.

    When the creator profile did not resolve, ``created_by`` is built from the
    current user so it is never null.
    """
    now = now or utcnow()
    creator_profile = row.get("profiles")
    created_by = normalize_member(creator_profile, now) if creator_profile else member_from_user(user, now)
    return StudyGroup(
        id=str(row["id"]),
        name=row["name"],
        subject=row["subject"],
        description=row.get("description"),
        members=[normalize_member(p, now) for p in row.get("study_group_members") or []],
        max_members=row["max_members"],
        created_by=created_by,
        is_private=bool(row.get("is_private")),
        tags=list(dict.fromkeys(row.get("tags") or [])),
        created_at=row.get("created_at") or now,
    )
