"""Authentication endpoints (password sign-in via the identity service)."""

from fastapi import APIRouter, Depends

from havaasa.api.deps import get_auth_client
from havaasa.exceptions import ValidationError
from havaasa.schemas.auth import LoginRequest, LoginResponse
from havaasa.services.auth_service import AuthClient

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
async def login(
    credentials: LoginRequest,
    auth: AuthClient = Depends(get_auth_client),
) -> LoginResponse:
    """Sign in with email and password and return the access token."""
    if not credentials.email or not credentials.password:
        raise ValidationError("Email and password are required")
    return await auth.sign_in(credentials.email, credentials.password)
