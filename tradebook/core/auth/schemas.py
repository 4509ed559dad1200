from datetime import datetime

from pydantic import EmailStr

from tradebook.shared.schemas import BaseSchema


class LoginRequest(BaseSchema):
    email: EmailStr
    password: str


class RefreshRequest(BaseSchema):
    refresh_token: str


class TokenResponse(BaseSchema):
    """Access/refresh pair issued at login and on refresh."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class UserResponse(BaseSchema):
    """Staff account as shown to the signed-in user (Admin or User role)."""

    id: int
    email: str
    full_name: str
    role: str
    is_active: bool
    last_login_at: datetime | None


class LoginResponse(TokenResponse):
    user: UserResponse
