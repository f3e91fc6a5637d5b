"""
Tests for the entity mappers, run directly against an AsyncSession.

These tests verify:
  - Registration hashes the password and rejects duplicate emails without
    writing a row
  - Login returns the user's identity and rejects bad credentials
  - find_by_owning_user reports a missing account/carrier as None
  - Partial updates only touch the fields in the patch, and an empty patch
    changes nothing
  - NotFoundError for updates/deletes of missing records
  - Soft deletion of users, whose account and carrier profile become absent
  - Account email and password changes are the credentials used at login
"""

import uuid

import pytest
from sqlalchemy import func, select

from colis.exceptions import (
    AuthenticationError,
    AuthFailureReason,
    DuplicateEmailError,
    NotFoundError,
    Resource,
)
from colis.identity import resolve_identity
from colis.mappers import (
    AccountMapper,
    CarrierMapper,
    EntityMapper,
    UserMapper,
    apply_patch,
)
from colis.models.user import User, UserRole
from colis.security import verify_password


REGISTRATION = {
    "email": "e@x.com",
    "password": "PlainTextPass1",
    "first_name": "Eve",
    "last_name": "Martin",
    "address": "3 place du Marché",
    "comp_address": None,
    "zipcode": "69001",
    "city": "Lyon",
    "birth_date": None,
    "phone_number": "0611223344",
}


async def register(db_session, email="e@x.com", role=UserRole.CUSTOMER) -> User:
    user = await UserMapper(db_session).create_secure_user(
        {**REGISTRATION, "email": email}, role=role
    )
    await AccountMapper(db_session).create_for_user(user)
    if role is UserRole.CARRIER:
        await CarrierMapper(db_session).create_for_user(user.id)
    return user


async def count_users(db_session) -> int:
    result = await db_session.execute(select(func.count()).select_from(User))
    return result.scalar_one()


# ---------------------------------------------------------------------------
# User mapper
# ---------------------------------------------------------------------------

class TestCreateSecureUser:

    async def test_password_is_hashed(self, db_session):
        user = await register(db_session)

        assert user.hashed_password != REGISTRATION["password"]
        assert REGISTRATION["password"] not in user.hashed_password
        assert not hasattr(user, "password")
        assert verify_password(REGISTRATION["password"], user.hashed_password)

    async def test_duplicate_email_is_a_conflict(self, db_session):
        await register(db_session)
        before = await count_users(db_session)

        with pytest.raises(DuplicateEmailError):
            await UserMapper(db_session).create_secure_user(REGISTRATION)

        assert await count_users(db_session) == before

    async def test_registration_data_is_not_mutated(self, db_session):
        data = dict(REGISTRATION)
        await UserMapper(db_session).create_secure_user(data)
        assert data == REGISTRATION


class TestAuthenticate:

    async def test_correct_password_returns_identity(self, db_session):
        user = await register(db_session)

        identity, token = await UserMapper(db_session).authenticate(
            "e@x.com", REGISTRATION["password"]
        )

        assert identity.user_id == user.id
        assert identity.role is UserRole.CUSTOMER
        assert resolve_identity(token) == identity

    @pytest.mark.parametrize(
        "email, password",
        [
            ("e@x.com", "WrongPassword1"),
            ("nobody@x.com", REGISTRATION["password"]),
        ],
    )
    async def test_bad_credentials(self, db_session, email, password):
        await register(db_session)

        with pytest.raises(AuthenticationError) as exc_info:
            await UserMapper(db_session).authenticate(email, password)
        assert exc_info.value.reason is AuthFailureReason.INVALID_CREDENTIAL

    async def test_deactivated_user_cannot_log_in(self, db_session):
        user = await register(db_session)
        users = UserMapper(db_session)
        await users.delete_by_key(user.id)

        with pytest.raises(AuthenticationError):
            await users.authenticate("e@x.com", REGISTRATION["password"])


class TestUserLookupAndDelete:

    async def test_find_by_key_missing(self, db_session):
        missing = uuid.uuid4()
        with pytest.raises(NotFoundError) as exc_info:
            await UserMapper(db_session).find_by_key(missing)
        assert exc_info.value.resource is Resource.USER
        assert exc_info.value.key == missing

    async def test_soft_delete_keeps_the_row(self, db_session):
        user = await register(db_session)
        users = UserMapper(db_session)

        await users.delete_by_key(user.id)

        assert await count_users(db_session) == 1
        with pytest.raises(NotFoundError):
            await users.find_by_key(user.id)
        assert await users.find_all() == []

    async def test_find_all_filters_by_role(self, db_session):
        customer = await register(db_session, "c@x.com")
        carrier = await register(db_session, "k@x.com", role=UserRole.CARRIER)
        users = UserMapper(db_session)

        assert {u.id for u in await users.find_all()} == {customer.id, carrier.id}
        assert [u.id for u in await users.find_all(role=UserRole.CARRIER)] == [carrier.id]

    async def test_profile_update_is_partial(self, db_session):
        user = await register(db_session)

        updated = await UserMapper(db_session).update(user.id, {"city": "Marseille"})

        assert updated.city == "Marseille"
        assert updated.first_name == "Eve"
        assert updated.zipcode == "69001"


# ---------------------------------------------------------------------------
# Account mapper
# ---------------------------------------------------------------------------

class TestAccountMapper:

    async def test_registration_creates_account(self, db_session):
        user = await register(db_session)

        account = await AccountMapper(db_session).find_by_owning_user(user.id)

        assert account is not None
        assert account.username == "e"
        assert account.email == "e@x.com"
        assert account.hashed_password == user.hashed_password

    async def test_no_account_is_none_not_an_error(self, db_session):
        assert await AccountMapper(db_session).find_by_owning_user(uuid.uuid4()) is None

    async def test_update_preserves_omitted_fields(self, db_session):
        user = await register(db_session)
        accounts = AccountMapper(db_session)
        await accounts.update(user.id, {"username": "a", "email": "a@x.com"})

        updated = await accounts.update(user.id, {"username": "b"})

        assert updated.username == "b"
        assert updated.email == "a@x.com"

    async def test_empty_patch_is_idempotent(self, db_session):
        user = await register(db_session)
        accounts = AccountMapper(db_session)
        original = await accounts.find_by_owning_user(user.id)
        snapshot = (original.username, original.email, original.hashed_password)

        for _ in range(2):
            account = await accounts.update(user.id, {})
            assert (account.username, account.email, account.hashed_password) == snapshot

    async def test_password_patch_is_hashed(self, db_session):
        user = await register(db_session)

        account = await AccountMapper(db_session).update(
            user.id, {"password": "BrandNewPass9"}
        )

        assert account.hashed_password != "BrandNewPass9"
        assert verify_password("BrandNewPass9", account.hashed_password)

    async def test_credential_changes_apply_to_login(self, db_session):
        user = await register(db_session)
        users = UserMapper(db_session)

        await AccountMapper(db_session).update(
            user.id, {"email": "new@x.com", "password": "BrandNewPass9"}
        )

        identity, _ = await users.authenticate("new@x.com", "BrandNewPass9")
        assert identity.user_id == user.id
        with pytest.raises(AuthenticationError):
            await users.authenticate("e@x.com", REGISTRATION["password"])
        with pytest.raises(AuthenticationError):
            await users.authenticate("new@x.com", REGISTRATION["password"])

    async def test_email_of_another_user_is_a_conflict(self, db_session):
        user = await register(db_session)
        await register(db_session, "taken@x.com")
        accounts = AccountMapper(db_session)

        with pytest.raises(DuplicateEmailError):
            await accounts.update(user.id, {"email": "taken@x.com"})

        account = await accounts.find_by_owning_user(user.id)
        assert account.email == "e@x.com"

    async def test_deactivated_owner_has_no_account(self, db_session):
        user = await register(db_session)
        await UserMapper(db_session).delete_by_key(user.id)
        accounts = AccountMapper(db_session)

        assert await accounts.find_by_owning_user(user.id) is None
        with pytest.raises(NotFoundError):
            await accounts.update(user.id, {"username": "b"})
        with pytest.raises(NotFoundError):
            await accounts.delete_by_owning_user(user.id)

    async def test_update_without_account_is_not_found(self, db_session):
        missing = uuid.uuid4()
        with pytest.raises(NotFoundError) as exc_info:
            await AccountMapper(db_session).update(missing, {"username": "b"})
        assert exc_info.value.resource is Resource.ACCOUNT

    async def test_delete_by_owning_user(self, db_session):
        user = await register(db_session)
        accounts = AccountMapper(db_session)

        await accounts.delete_by_owning_user(user.id)

        assert await accounts.find_by_owning_user(user.id) is None
        with pytest.raises(NotFoundError):
            await accounts.delete_by_owning_user(user.id)

    async def test_delete_by_key(self, db_session):
        user = await register(db_session)
        accounts = AccountMapper(db_session)
        account = await accounts.find_by_owning_user(user.id)

        await accounts.delete_by_key(account.id)

        with pytest.raises(NotFoundError):
            await accounts.find_by_key(account.id)


# ---------------------------------------------------------------------------
# Carrier mapper
# ---------------------------------------------------------------------------

class TestCarrierMapper:

    async def test_customer_has_no_carrier_profile(self, db_session):
        user = await register(db_session)
        assert await CarrierMapper(db_session).find_by_owning_user(user.id) is None

    async def test_update_preserves_omitted_fields(self, db_session):
        user = await register(db_session, role=UserRole.CARRIER)
        carriers = CarrierMapper(db_session)
        await carriers.update(user.id, {"vehicle_type": "van", "capacity_kg": 500})

        updated = await carriers.update(user.id, {"coverage_area": "Lyon"})

        assert updated.vehicle_type == "van"
        assert updated.capacity_kg == 500
        assert updated.coverage_area == "Lyon"
        assert updated.is_available is True

    async def test_update_without_profile_is_not_found(self, db_session):
        user = await register(db_session)
        with pytest.raises(NotFoundError) as exc_info:
            await CarrierMapper(db_session).update(user.id, {"vehicle_type": "bike"})
        assert exc_info.value.resource is Resource.CARRIER

    async def test_deactivated_owner_has_no_profile(self, db_session):
        user = await register(db_session, role=UserRole.CARRIER)
        await UserMapper(db_session).delete_by_key(user.id)

        assert await CarrierMapper(db_session).find_by_owning_user(user.id) is None

    async def test_find_all_by_owner(self, db_session):
        carrier = await register(db_session, "k@x.com", role=UserRole.CARRIER)
        await register(db_session, "k2@x.com", role=UserRole.CARRIER)

        profiles = await CarrierMapper(db_session).find_all(user_id=carrier.id)

        assert [p.user_id for p in profiles] == [carrier.id]


# ---------------------------------------------------------------------------
# Patch merge
# ---------------------------------------------------------------------------

class TestApplyPatch:

    class Record:
        def __init__(self):
            self.name = "old"
            self.note = "keep"

    def test_none_never_blanks_a_field(self):
        record = self.Record()
        changed = apply_patch(record, {"name": None, "note": "new"}, frozenset({"name", "note"}))
        assert (record.name, record.note) == ("old", "new")
        assert changed == {"note"}

    def test_unknown_field_is_rejected(self):
        with pytest.raises(ValueError):
            apply_patch(self.Record(), {"id": "x"}, frozenset({"name"}))


@pytest.mark.parametrize("mapper_class", [UserMapper, AccountMapper, CarrierMapper])
async def test_every_mapper_offers_the_shared_capabilities(db_session, mapper_class):
    assert isinstance(mapper_class(db_session), EntityMapper)
