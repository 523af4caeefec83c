"""Routes handling registration, login and the caller's own profile."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...deps import AuthServiceDependency, CurrentIdentityDependency
from ...models import User
from ...schemas import (
    ApiResponse,
    LoginRequest,
    LoginResult,
    ProfileUpdate,
    RegisterRequest,
    UserPublic,
)

router = APIRouter(prefix="/auth", tags=["auth"])


def _map_user(user: User) -> UserPublic:
    return UserPublic.model_validate(user)


@router.post(
    "/register",
    response_model=ApiResponse[UserPublic],
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user account",
)
async def register(
    payload: RegisterRequest,
    service: AuthServiceDependency,
) -> ApiResponse[UserPublic]:
    user = await service.register_user(
        email=payload.email,
        password=payload.password,
        name=payload.name,
    )
    return ApiResponse(data=_map_user(user), message="User registered successfully")


@router.post(
    "/login",
    response_model=ApiResponse[LoginResult],
    status_code=status.HTTP_200_OK,
    summary="Authenticate using email and password",
)
async def login(
    payload: LoginRequest,
    service: AuthServiceDependency,
) -> ApiResponse[LoginResult]:
    result = await service.authenticate_user(payload.email, payload.password)
    return ApiResponse(
        data=LoginResult(token=result.token.token, user=_map_user(result.user)),
        message="Login successful",
    )


@router.get(
    "/profile",
    response_model=ApiResponse[UserPublic],
    summary="Return the authenticated user's profile",
)
async def read_profile(
    identity: CurrentIdentityDependency,
    service: AuthServiceDependency,
) -> ApiResponse[UserPublic]:
    user = await service.get_profile(identity.id)
    return ApiResponse(data=_map_user(user))


@router.put(
    "/profile",
    response_model=ApiResponse[UserPublic],
    summary="Update the authenticated user's profile",
)
async def update_profile(
    identity: CurrentIdentityDependency,
    payload: ProfileUpdate,
    service: AuthServiceDependency,
) -> ApiResponse[UserPublic]:
    user = await service.update_profile(
        identity.id,
        name=payload.name,
        email=payload.email,
        password=payload.password,
    )
    return ApiResponse(data=_map_user(user), message="Profile updated successfully")


@router.delete(
    "/profile",
    response_model=ApiResponse[None],
    summary="Delete the authenticated user's account and tasks",
)
async def delete_profile(
    identity: CurrentIdentityDependency,
    service: AuthServiceDependency,
) -> ApiResponse[None]:
    await service.delete_account(identity.id)
    return ApiResponse(message="Profile deleted successfully")
