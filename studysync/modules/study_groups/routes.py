from fastapi import APIRouter, Depends
from studysync.modules.study_groups.schemas import (
    StudyGroup, StudyGroupCreate, StudyGroupUpdate, StoreSnapshot, MembershipStatus
)
from studysync.modules.study_groups.service import StudyGroupService
from studysync.core.dependencies import get_study_group_service

router = APIRouter(prefix="/study-groups", tags=["study-groups"])


@router.get("", response_model=StoreSnapshot)
async def list_study_groups(
    service: StudyGroupService = Depends(get_study_group_service)
):
    """Current collection with its loading flag and error message"""
    return service.store.snapshot()


@router.post("/refresh", response_model=StoreSnapshot)
async def refresh_study_groups(
    service: StudyGroupService = Depends(get_study_group_service)
):
    """Refetch the full collection from Supabase"""
    await service.fetch_study_groups()
    return service.store.snapshot()


@router.post("", response_model=StudyGroup, status_code=201)
async def create_study_group(
    group_data: StudyGroupCreate,
    service: StudyGroupService = Depends(get_study_group_service)
):
    """Create a study group owned by the current user"""
    return await service.create_study_group(group_data)


@router.patch("/{group_id}", response_model=StoreSnapshot)
async def update_study_group(
    group_id: str,
    updates: StudyGroupUpdate,
    service: StudyGroupService = Depends(get_study_group_service)
):
    """Update a study group (owner only)"""
    await service.update_study_group(group_id, updates)
    return service.store.snapshot()


@router.delete("/{group_id}", status_code=204)
async def delete_study_group(
    group_id: str,
    service: StudyGroupService = Depends(get_study_group_service)
):
    """Delete a study group and its memberships (owner only)"""
    await service.delete_study_group(group_id)
    return None


@router.post("/{group_id}/join", response_model=StoreSnapshot)
async def join_study_group(
    group_id: str,
    service: StudyGroupService = Depends(get_study_group_service)
):
    await service.join_study_group(group_id)
    return service.store.snapshot()


@router.post("/{group_id}/leave", response_model=StoreSnapshot)
async def leave_study_group(
    group_id: str,
    service: StudyGroupService = Depends(get_study_group_service)
):
    await service.leave_study_group(group_id)
    return service.store.snapshot()


@router.get("/{group_id}/membership", response_model=MembershipStatus)
async def get_membership(
    group_id: str,
    service: StudyGroupService = Depends(get_study_group_service)
):
    """Membership and ownership of the current user, from the local collection"""
    return MembershipStatus(
        group_id=group_id,
        is_member=service.is_member(group_id),
        is_owner=service.is_owner(group_id),
    )
