"""
Users router: registration, login, and the user-scoped resources.

Endpoints:
  POST   /users/register            public        Register (user + account [+ carrier])
  POST   /users/login               public        Get a bearer token
  GET    /users                     admin         List active users
  GET    /users/{user_id}           owner/admin   Get a user
  PATCH  /users/{user_id}           owner/admin   Update profile fields
  DELETE /users/{user_id}           owner/admin   Deactivate a user
  GET    /users/{user_id}/account   owner/admin   Get the user's account
  PUT    /users/{user_id}/account   owner/admin   Partially update the account
  DELETE /users/{user_id}/account   owner/admin   Delete the account
  GET    /users/{user_id}/carrier   owner/admin   Get the carrier profile
  PUT    /users/{user_id}/carrier   owner/admin   Partially update the carrier profile
  DELETE /users/{user_id}/carrier   owner/admin   Delete the carrier profile

Each protected endpoint lists its identity dependency first: the token is
verified, then ownership is checked, and only then does the body call a
mapper. Mapper errors (NotFoundError, ConflictError) propagate unchanged to
the exception handlers.

PUT on the sub-resources keeps partial-update semantics: fields left out of
the body are not touched.
"""

import uuid

from fastapi import APIRouter, Depends, Response, status

from colis.dependencies import (
    get_account_mapper,
    get_authorized_identity,
    get_carrier_mapper,
    get_user_mapper,
    require_admin,
)
from colis.exceptions import NotFoundError, Resource
from colis.identity import AuthenticatedIdentity
from colis.mappers import AccountMapper, CarrierMapper, UserMapper
from colis.models.user import UserRole
from colis.schemas.account import AccountResponse, AccountUpdateRequest
from colis.schemas.auth import TokenResponse, UserLoginRequest, UserRegisterRequest
from colis.schemas.carrier import CarrierResponse, CarrierUpdateRequest
from colis.schemas.user import UserResponse, UserUpdateRequest

router = APIRouter()


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------

@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
async def register(
    request: UserRegisterRequest,
    users: UserMapper = Depends(get_user_mapper),
    accounts: AccountMapper = Depends(get_account_mapper),
    carriers: CarrierMapper = Depends(get_carrier_mapper),
):
    """
    Register a customer, or a carrier when ``carrier`` is true.

    The user, their account and (for carriers) an empty carrier profile are
    written in one transaction. A duplicate email returns 409 and writes
    nothing.
    """
    role = UserRole.CARRIER if request.carrier else UserRole.CUSTOMER
    user = await users.create_secure_user(
        request.model_dump(exclude={"carrier"}),
        role=role,
    )
    await accounts.create_for_user(user)
    if role is UserRole.CARRIER:
        await carriers.create_for_user(user.id)
    return user


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Authenticate and get a token",
)
async def login(
    request: UserLoginRequest,
    users: UserMapper = Depends(get_user_mapper),
):
    """
    Authenticate with email and password.

    Send the returned token on later requests:

        Authorization: Bearer <token>
    """
    identity, token = await users.authenticate(request.email, request.password)
    return TokenResponse(
        token=token,
        user_id=identity.user_id,
        role=identity.role.value,
    )


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

@router.get(
    "",
    response_model=list[UserResponse],
    summary="[Admin] List users",
)
async def list_users(
    role: UserRole | None = None,
    admin: AuthenticatedIdentity = Depends(require_admin),
    users: UserMapper = Depends(get_user_mapper),
):
    """List active users, oldest first, optionally filtered by role."""
    return await users.find_all(role=role)


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    summary="Get a user",
)
async def get_user(
    user_id: uuid.UUID,
    identity: AuthenticatedIdentity = Depends(get_authorized_identity),
    users: UserMapper = Depends(get_user_mapper),
):
    return await users.find_by_key(user_id)


@router.patch(
    "/{user_id}",
    response_model=UserResponse,
    summary="Update profile fields",
)
async def update_user(
    user_id: uuid.UUID,
    updates: UserUpdateRequest,
    identity: AuthenticatedIdentity = Depends(get_authorized_identity),
    users: UserMapper = Depends(get_user_mapper),
):
    """Only fields present in the body are changed."""
    return await users.update(
        user_id, updates.model_dump(exclude_unset=True, exclude_none=True)
    )


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Deactivate a user",
)
async def delete_user(
    user_id: uuid.UUID,
    identity: AuthenticatedIdentity = Depends(get_authorized_identity),
    users: UserMapper = Depends(get_user_mapper),
):
    """
    Soft-delete the user.

    The record is kept for delivery history; the user can no longer log in
    and disappears from lookups.
    """
    await users.delete_by_key(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# Account sub-resource
# ---------------------------------------------------------------------------

@router.get(
    "/{user_id}/account",
    response_model=AccountResponse,
    summary="Get a user's account",
)
async def get_account(
    user_id: uuid.UUID,
    identity: AuthenticatedIdentity = Depends(get_authorized_identity),
    accounts: AccountMapper = Depends(get_account_mapper),
):
    account = await accounts.find_by_owning_user(user_id)
    if account is None:
        raise NotFoundError(Resource.ACCOUNT, user_id, by_owner=True)
    return account


@router.put(
    "/{user_id}/account",
    response_model=AccountResponse,
    summary="Update a user's account",
)
async def update_account(
    user_id: uuid.UUID,
    updates: AccountUpdateRequest,
    identity: AuthenticatedIdentity = Depends(get_authorized_identity),
    accounts: AccountMapper = Depends(get_account_mapper),
):
    """
    Update username, email and/or password.

    A new password is hashed before storage. A new email or password is
    what the user logs in with afterwards; an email held by another user
    returns 409. Returns 404 if the user has no account.
    """
    return await accounts.update(
        user_id, updates.model_dump(exclude_unset=True, exclude_none=True)
    )


@router.delete(
    "/{user_id}/account",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a user's account",
)
async def delete_account(
    user_id: uuid.UUID,
    identity: AuthenticatedIdentity = Depends(get_authorized_identity),
    accounts: AccountMapper = Depends(get_account_mapper),
):
    await accounts.delete_by_owning_user(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# Carrier sub-resource
# ---------------------------------------------------------------------------

@router.get(
    "/{user_id}/carrier",
    response_model=CarrierResponse,
    summary="Get a user's carrier profile",
)
async def get_carrier(
    user_id: uuid.UUID,
    identity: AuthenticatedIdentity = Depends(get_authorized_identity),
    carriers: CarrierMapper = Depends(get_carrier_mapper),
):
    carrier = await carriers.find_by_owning_user(user_id)
    if carrier is None:
        raise NotFoundError(Resource.CARRIER, user_id, by_owner=True)
    return carrier


@router.put(
    "/{user_id}/carrier",
    response_model=CarrierResponse,
    summary="Update a user's carrier profile",
)
async def update_carrier(
    user_id: uuid.UUID,
    updates: CarrierUpdateRequest,
    identity: AuthenticatedIdentity = Depends(get_authorized_identity),
    carriers: CarrierMapper = Depends(get_carrier_mapper),
):
    return await carriers.update(
        user_id, updates.model_dump(exclude_unset=True, exclude_none=True)
    )


@router.delete(
    "/{user_id}/carrier",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a user's carrier profile",
)
async def delete_carrier(
    user_id: uuid.UUID,
    identity: AuthenticatedIdentity = Depends(get_authorized_identity),
    carriers: CarrierMapper = Depends(get_carrier_mapper),
):
    await carriers.delete_by_owning_user(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
