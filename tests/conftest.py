"""
Shared fixtures: a fake Supabase backend with two people and a service
running as the first of them.
"""

import pytest

from studysync.modules.study_groups.schemas import CurrentUser
from studysync.modules.study_groups.service import StudyGroupService
from tests.fakes import FakeSupabase

ALICE_AUTH_ID = "auth-alice"
ALICE_PROFILE_ID = "profile-alice"
BOB_AUTH_ID = "auth-bob"
BOB_PROFILE_ID = "profile-bob"


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    fake = FakeSupabase(user_id=ALICE_AUTH_ID, email="alice@mit.edu")
    fake.add_profile(ALICE_PROFILE_ID, ALICE_AUTH_ID, "Alice Park", email="alice@mit.edu", year=3)
    fake.add_profile(BOB_PROFILE_ID, BOB_AUTH_ID, "Bob Stone", email="bob@stanford.edu", college="Stanford")
    return fake


@pytest.fixture
def alice() -> CurrentUser:
    return CurrentUser(
        id=ALICE_PROFILE_ID,
        auth_subject_id=ALICE_AUTH_ID,
        name="Alice Park",
        email="alice@mit.edu",
        college="MIT",
        branch="Computer Science",
        year=3,
        is_verified=True,
    )


@pytest.fixture
def bob() -> CurrentUser:
    return CurrentUser(
        id=BOB_PROFILE_ID,
        auth_subject_id=BOB_AUTH_ID,
        name="Bob Stone",
        email="bob@stanford.edu",
        college="Stanford",
        branch="Computer Science",
        year=2,
        is_verified=True,
    )


@pytest.fixture
def service(fake_supabase, alice) -> StudyGroupService:
    """Service for Alice; the identity resolver is not started so ids come from direct session queries."""
    return StudyGroupService(fake_supabase, user=alice, fallback_enabled=True)
