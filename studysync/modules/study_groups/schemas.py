from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from enum import Enum


class MemberRole(str, Enum):
    ADMIN = "admin"
    MEMBER = "member"


class Member(BaseModel):
    id: str
    name: str
    email: str = ""
    college: str = ""
    branch: str = ""
    year: int = 1
    is_verified: bool = False
    is_anonymous: bool = False
    avatar: Optional[str] = None
    joined_at: datetime
    last_active: datetime


class StudyGroup(BaseModel):
    id: str
    name: str
    subject: str
    description: Optional[str] = None
    members: List[Member] = Field(default_factory=list)
    max_members: int
    created_by: Member
    is_private: bool = False
    tags: List[str] = Field(default_factory=list)
    created_at: datetime

    class Config:
        from_attributes = True


class StudyGroupCreate(BaseModel):
    name: str
    subject: str
    description: str = ""
    max_members: int
    is_private: bool = False
    tags: List[str] = Field(default_factory=list)


class StudyGroupUpdate(BaseModel):
    name: Optional[str] = None
    subject: Optional[str] = None
    description: Optional[str] = None
    max_members: Optional[int] = None
    is_private: Optional[bool] = None
    tags: Optional[List[str]] = None


class CurrentUser(BaseModel):
    """Profile-level user supplied by the auth layer."""
    id: str  # profiles.id
    auth_subject_id: Optional[str] = None  # auth.users.id
    name: Optional[str] = None
    email: Optional[str] = None
    college: Optional[str] = None
    branch: Optional[str] = None
    year: Optional[int] = None
    is_verified: Optional[bool] = None
    avatar: Optional[str] = None


class StoreSnapshot(BaseModel):
    groups: List[StudyGroup]
    loading: bool
    error: Optional[str] = None


class MembershipStatus(BaseModel):
    group_id: str
    is_member: bool
    is_owner: bool
