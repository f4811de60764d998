from supabase import AsyncClient
from studysync.modules.auth.schemas import LoginRequest, TokenResponse
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class AuthService:
    """Password sign-in/sign-out on the shared client.

    The resulting auth state change is what the study group service listens to,
    so signing in here also triggers the profile lookup and the first fetch.
    """

    def __init__(self, supabase: AsyncClient):
        self.supabase = supabase

    async def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user using Supabase Auth"""
        try:
            auth_response = await self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })

            if not auth_response.user or not auth_response.session:
                raise HTTPException(status_code=401, detail="Invalid credentials")

            return TokenResponse(
                access_token=auth_response.session.access_token,
                token_type="bearer",
                user_id=auth_response.user.id,
                email=auth_response.user.email or login_data.email
            )
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "invalid" in error_message.lower() or "credentials" in error_message.lower():
                raise HTTPException(status_code=401, detail="Invalid email or password")
            raise HTTPException(status_code=500, detail=f"Login failed: {error_message}")

    async def logout(self) -> bool:
        """Sign out locally; the SIGNED_OUT event clears the study group store."""
        try:
            await self.supabase.auth.sign_out()
            return True
        except Exception as e:
            logger.warning(f"Sign-out failed: {e}")
            return False
