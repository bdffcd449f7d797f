"""HTTP route handlers for authentication and OTP operations."""

from fastapi import APIRouter, Depends, status

from app.api import deps
from app.schemas.auth import (
    AccountResponse,
    AuthResponse,
    LoginRequest,
    SignupRequest,
    TokenResponse,
    UserResponse,
    VerificationModeRequest,
)
from app.schemas.common import Message
from app.schemas.otp import OTPVerify
from app.services.auth import AuthService
from app.services.session_guard import Identity

router = APIRouter(prefix="/api/auth", tags=["authentication"])


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_200_OK)
async def signup(
    payload: SignupRequest,
    auth_service: AuthService = Depends(deps.get_auth_service),
) -> AuthResponse:
    """Create an unverified account and return a session token for the OTP flow."""

    user, token = await auth_service.signup(payload)
    return AuthResponse(message="Signup successful!", user=UserResponse.model_validate(user), token=token)


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: LoginRequest,
    auth_service: AuthService = Depends(deps.get_auth_service),
) -> AuthResponse:
    user, token = await auth_service.login(payload)
    return AuthResponse(message="Login successful", user=UserResponse.model_validate(user), token=token)


@router.post("/verify-mode", response_model=Message)
async def select_verification_mode(
    payload: VerificationModeRequest,
    identity: Identity = Depends(deps.get_current_identity),
    auth_service: AuthService = Depends(deps.get_auth_service),
) -> Message:
    """Choose email or phone verification; email sends a fresh OTP."""

    message = await auth_service.select_verification_mode(identity, payload.emailcheck, payload.phonecheck)
    return Message(message=message)


@router.post("/verify-otp", response_model=TokenResponse)
async def verify_otp(
    payload: OTPVerify,
    identity: Identity = Depends(deps.get_current_identity),
    auth_service: AuthService = Depends(deps.get_auth_service),
) -> TokenResponse:
    token = await auth_service.verify_otp(identity, payload.code)
    return TokenResponse(message="OTP verified successfully", token=token)


@router.post("/resend-otp", response_model=Message)
async def resend_otp(
    identity: Identity = Depends(deps.get_current_identity),
    auth_service: AuthService = Depends(deps.get_auth_service),
) -> Message:
    await auth_service.resend_otp(identity)
    return Message(message="OTP resent successfully")


@router.get("/me", response_model=AccountResponse)
async def get_account(
    identity: Identity = Depends(deps.get_verified_identity),
    auth_service: AuthService = Depends(deps.get_auth_service),
) -> AccountResponse:
    """Return the verified caller's account."""

    user = await auth_service.get_account(identity)
    return AccountResponse(user=UserResponse.model_validate(user))
