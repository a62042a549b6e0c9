"""Account endpoints: login, registration and profile management."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from fastapi_users import exceptions

from inkwell.auth import (
    MIN_PASSWORD_LENGTH,
    UserManager,
    current_active_user,
    get_jwt_strategy,
    get_user_manager,
)
from inkwell.config import settings
from inkwell.models.user import User
from inkwell.schemas.user import (
    ChangePasswordRequest,
    LoginRequest,
    ProfileUpdateRequest,
    RegisterRequest,
    UserCreate,
    UserRead,
    UserUpdate,
)
from inkwell.security import limiter
from inkwell.utils.responses import envelope
from inkwell.utils.text import normalize_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


async def _session_payload(user: User) -> dict:
    token = await get_jwt_strategy().write_token(user)
    return {"user": UserRead.model_validate(user), "token": token}


@router.post("/login")
@limiter.limit(settings.auth_rate_limit)
async def login(
    request: Request,
    payload: LoginRequest,
    user_manager: UserManager = Depends(get_user_manager),
):
    if not payload.email or not payload.password:
        raise HTTPException(status_code=400, detail="Email and password are required")
    email = normalize_email(payload.email)
    if email is None:
        raise HTTPException(status_code=400, detail="Invalid email format")

    user = await user_manager.authenticate(
        OAuth2PasswordRequestForm(username=email, password=payload.password)
    )
    if user is None or not user.is_active:
        logger.info("Failed login for %s", email)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    await user_manager.on_after_login(user, request)
    return envelope("Login successful", await _session_payload(user))


@router.post("/register", status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.auth_rate_limit)
async def register(
    request: Request,
    payload: RegisterRequest,
    user_manager: UserManager = Depends(get_user_manager),
):
    name = (payload.name or "").strip()
    if not name or not payload.email or not payload.password:
        raise HTTPException(
            status_code=400, detail="Name, email and password are required"
        )
    email = normalize_email(payload.email)
    if email is None:
        raise HTTPException(status_code=400, detail="Invalid email format")
    if len(name) > 50:
        raise HTTPException(status_code=400, detail="Name cannot exceed 50 characters")

    try:
        user = await user_manager.create(
            UserCreate(name=name, email=email, password=payload.password),
            safe=True,
            request=request,
        )
    except exceptions.UserAlreadyExists:
        raise HTTPException(
            status_code=400, detail="User already exists with this email"
        )
    except exceptions.InvalidPasswordException as exc:
        raise HTTPException(status_code=400, detail=exc.reason)

    return envelope("Registration successful", await _session_payload(user))


@router.get("/profile")
async def get_profile(user: User = Depends(current_active_user)):
    return envelope(
        "Profile retrieved successfully", {"user": UserRead.model_validate(user)}
    )


@router.put("/profile")
async def update_profile(
    request: Request,
    payload: ProfileUpdateRequest,
    user: User = Depends(current_active_user),
    user_manager: UserManager = Depends(get_user_manager),
):
    name = (payload.name or "").strip()
    if not name or not payload.email:
        raise HTTPException(status_code=400, detail="Name and email are required")
    email = normalize_email(payload.email)
    if email is None:
        raise HTTPException(status_code=400, detail="Invalid email format")
    if len(name) > 50:
        raise HTTPException(status_code=400, detail="Name cannot exceed 50 characters")

    try:
        user = await user_manager.update(
            UserUpdate(name=name, email=email), user, safe=True, request=request
        )
    except exceptions.UserAlreadyExists:
        raise HTTPException(
            status_code=400, detail="Email already taken by another user"
        )

    return envelope(
        "Profile updated successfully", {"user": UserRead.model_validate(user)}
    )


@router.put("/change-password")
async def change_password(
    request: Request,
    payload: ChangePasswordRequest,
    user: User = Depends(current_active_user),
    user_manager: UserManager = Depends(get_user_manager),
):
    if not payload.current_password or not payload.new_password:
        raise HTTPException(
            status_code=400,
            detail="Current password and new password are required",
        )
    if len(payload.new_password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"New password must be at least {MIN_PASSWORD_LENGTH} characters long",
        )

    verified, _ = user_manager.password_helper.verify_and_update(
        payload.current_password, user.hashed_password
    )
    if not verified:
        raise HTTPException(status_code=400, detail="Current password is incorrect")

    try:
        await user_manager.update(
            UserUpdate(password=payload.new_password), user, safe=True, request=request
        )
    except exceptions.InvalidPasswordException as exc:
        raise HTTPException(status_code=400, detail=exc.reason)

    logger.info("Password changed for user %s", user.id)
    return envelope("Password changed successfully")
