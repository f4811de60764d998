from fastapi import APIRouter, Depends
from studysync.database.supabase_client import get_supabase
from studysync.modules.auth.schemas import LoginRequest, TokenResponse
from studysync.modules.auth.service import AuthService
from studysync.modules.study_groups.schemas import CurrentUser
from studysync.core.dependencies import get_current_user
from supabase import AsyncClient

router = APIRouter(prefix="/auth", tags=["auth"])


def get_auth_service(supabase: AsyncClient = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Sign in; study groups are loaded once the session change is observed"""
    return await service.login(login_data)


@router.post("/logout", status_code=200)
async def logout(service: AuthService = Depends(get_auth_service)):
    """Sign out and clear the study group collection"""
    await service.logout()
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=CurrentUser)
async def me(current_user: CurrentUser = Depends(get_current_user)):
    """Current profile-level user"""
    return current_user
