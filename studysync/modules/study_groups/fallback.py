"""
Local stand-in for the study group backend.

``get_fallback_study_groups`` is what the read path publishes when the tables
are missing or unreachable. ``LocalGroupFallback`` applies create/join/leave to
the in-memory collection in that mode; nothing done here is ever pushed to
Supabase later.
"""

import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from studysync.modules.study_groups.normalizer import member_from_user, utcnow
from studysync.modules.study_groups.schemas import CurrentUser, Member, StudyGroup, StudyGroupCreate

_SAMPLE_PEOPLE: Dict[str, Dict[str, Any]] = {
    "1": {"name": "Sarah Chen", "email": "sarah@mit.edu", "college": "MIT", "branch": "Computer Science", "year": 3},
    "2": {"name": "Mike Johnson", "email": "mike@stanford.edu", "college": "Stanford", "branch": "Computer Science", "year": 2},
    "3": {"name": "Alex Rodriguez", "email": "alex@caltech.edu", "college": "Caltech", "branch": "Physics", "year": 4},
    "4": {"name": "Emily Wang", "email": "emily@stanford.edu", "college": "Stanford", "branch": "Mechanical Engineering", "year": 3},
}

_SAMPLE_GROUPS: List[Dict[str, Any]] = [
    {
        "id": "1",
        "name": "Data Structures & Algorithms Mastery",
        "subject": "Computer Science",
        "description": "Weekly problem-solving sessions focusing on coding interview preparation and algorithmic thinking.",
        "members": ["1", "2"],
        "max_members": 15,
        "created_by": "1",
        "is_private": False,
        "tags": ["DSA", "Coding", "Interview Prep"],
        "age_days": 7,
    },
    {
        "id": "2",
        "name": "Quantum Physics Discussion Circle",
        "subject": "Physics",
        "description": "Deep dive into quantum mechanics concepts, problem-solving, and research discussions.",
        "members": ["3"],
        "max_members": 10,
        "created_by": "3",
        "is_private": True,
        "tags": ["Quantum", "Physics", "Research"],
        "age_days": 14,
    },
    {
        "id": "3",
        "name": "Mechanical Design Project Team",
        "subject": "Mechanical Engineering",
        "description": "Collaborative group working on innovative mechanical design projects and CAD modeling.",
        "members": ["4"],
        "max_members": 8,
        "created_by": "4",
        "is_private": False,
        "tags": ["CAD", "Design", "Projects"],
        "age_days": 3,
    },
]


def _sample_member(person_id: str, now: datetime) -> Member:
    return Member(
        id=person_id,
        is_verified=True,
        is_anonymous=False,
        joined_at=now,
        last_active=now,
        **_SAMPLE_PEOPLE[person_id],
    )


def get_fallback_study_groups(now: Optional[datetime] = None) -> List[StudyGroup]:
    """Fresh copies of the sample groups, so local edits never leak into the next fallback."""
    now = now or utcnow()
    return [
        StudyGroup(
            id=group["id"],
            name=group["name"],
            subject=group["subject"],
            description=group["description"],
            members=[_sample_member(person_id, now) for person_id in group["members"]],
            max_members=group["max_members"],
            created_by=_sample_member(group["created_by"], now),
            is_private=group["is_private"],
            tags=list(group["tags"]),
            created_at=now - timedelta(days=group["age_days"]),
        )
        for group in _SAMPLE_GROUPS
    ]


class LocalGroupFallback:
    """Local-only create/join/leave. Each method returns a rebuilt list."""

    def current_member(self, user: CurrentUser) -> Member:
        return member_from_user(user, default_name="You")

    def create(self, group_data: StudyGroupCreate, user: CurrentUser) -> StudyGroup:
        creator = self.current_member(user)
        return StudyGroup(
            id=uuid.uuid4().hex,
            name=group_data.name,
            subject=group_data.subject,
            description=group_data.description,
            members=[creator.model_copy()],
            max_members=group_data.max_members,
            created_by=creator,
            is_private=group_data.is_private,
            tags=list(dict.fromkeys(group_data.tags)),
            created_at=utcnow(),
        )

    def join(self, groups: List[StudyGroup], group_id: str, user: CurrentUser) -> List[StudyGroup]:
        rebuilt = []
        for group in groups:
            if group.id == group_id and not any(m.id == user.id for m in group.members):
                group = group.model_copy(update={"members": [*group.members, self.current_member(user)]})
            rebuilt.append(group)
        return rebuilt

    def leave(self, groups: List[StudyGroup], group_id: str, user: CurrentUser) -> List[StudyGroup]:
        rebuilt = []
        for group in groups:
            if group.id == group_id:
                group = group.model_copy(update={"members": [m for m in group.members if m.id != user.id]})
            rebuilt.append(group)
        return rebuilt
