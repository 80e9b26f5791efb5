"""Authentication API routes.

This module defines the REST API endpoints for user authentication workflows.
"""

from fastapi import APIRouter, Depends, status, Response, Request
from src.auth.services import AuthServices
from src.auth.schemas import (
    SignupInput,
    UserCreateResponse,
    LoginInput,
    LoginResponse,
    LogoutResponse
)
from sqlmodel.ext.asyncio.session import AsyncSession
from src.db.main import get_Session
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from src.utils.limiter import limiter
from src.utils.auth import get_current_user


authRouter = APIRouter()

authServices = AuthServices()
security = HTTPBearer(auto_error=False)

cookie_settings = {
    "httponly": True,
    "secure": True,
    "samesite": "none"
}


@authRouter.post("/signup", status_code=status.HTTP_201_CREATED, response_model=UserCreateResponse)
@limiter.limit("5/minute")
async def signupUser(
    signupInput: SignupInput,
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_Session)
):
    new_user = await authServices.signup(signupInput, session)

    return {
        "success": True,
        "message": "User created successfully",
        "data": new_user
    }


@authRouter.post("/login", status_code=status.HTTP_200_OK, response_model=LoginResponse)
@limiter.limit("5/minute")
async def loginUser(
    loginInput: LoginInput,
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_Session)
):
    """Authenticate user.

    The access token is set as an httponly cookie for the dashboard and is
    also returned in the body for API clients.
    """
    user = await authServices.login(loginInput, session)

    response.set_cookie(
        key="access_token",
        value=user.get('access_token'),
        **cookie_settings,
        max_age = 60 * 60 * 24
    )

    return {
        "success": True,
        "message": "login successful",
        "data": user
    }


@authRouter.get("/me", status_code=status.HTTP_200_OK)
async def get_me(
    user_info: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_Session)
):
    """Get current authenticated user details."""
    user = await authServices.check_user_exists(user_info.get("user_id"), session)

    return {
        "success": True,
        "message": "User details fetched successfully",
        "data": {
            "id": str(user.user_id),
            "email": user.email,
        }
    }


@authRouter.post("/logout", status_code=status.HTTP_200_OK, response_model=LogoutResponse)
async def logout(
    request: Request,
    response: Response,
    bearer_token: HTTPAuthorizationCredentials = Depends(security),
):
    """Logout user by revoking the access token."""

    await authServices.logout(request, response, bearer_token)

    return {
        "success": True,
        "message": "Logged out successfully",
        "data": {}
    }
