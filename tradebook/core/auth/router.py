from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tradebook.core.auth.dependencies import CurrentUser
from tradebook.core.auth.schemas import (
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    TokenResponse,
    UserResponse,
)
from tradebook.core.auth.service import AuthService
from tradebook.core.database import get_db
from tradebook.shared.schemas import ApiResponse

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=ApiResponse[LoginResponse])
async def login(
    request: Request,
    data: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """Authenticate user and return tokens."""
    user, access_token, refresh_token = await AuthService(db).authenticate(
        email=data.email,
        password=data.password,
        ip_address=request.client.host if request.client else None,
    )
    return ApiResponse(
        data=LoginResponse(
            user=UserResponse.model_validate(user),
            access_token=access_token,
            refresh_token=refresh_token,
        ),
        message="Login successful",
    )


@router.post("/refresh", response_model=ApiResponse[TokenResponse])
async def refresh_tokens(
    data: RefreshRequest,
    db: AsyncSession = Depends(get_db),
):
    access_token, refresh_token = await AuthService(db).refresh_tokens(data.refresh_token)
    return ApiResponse(
        data=TokenResponse(access_token=access_token, refresh_token=refresh_token),
        message="Tokens refreshed",
    )


@router.get("/me", response_model=ApiResponse[UserResponse])
async def get_current_user_info(current_user: CurrentUser):
    return ApiResponse(data=UserResponse.model_validate(current_user))
