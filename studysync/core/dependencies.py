"""
Core dependencies for the API routes
"""

from fastapi import Depends, HTTPException, Request, status
from studysync.modules.study_groups.schemas import CurrentUser
from studysync.modules.study_groups.service import StudyGroupService


def get_study_group_service(request: Request) -> StudyGroupService:
    """The session-wide service created at startup"""
    service = getattr(request.app.state, "study_group_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Study group service is not ready"
        )
    return service


def get_current_user(
    service: StudyGroupService = Depends(get_study_group_service)
) -> CurrentUser:
    """Profile-level user of the active session"""
    if service.user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not authenticated"
        )
    return service.user
