"""Tests for users_service.

Tests cover:
- normalize_email
- register_user validation, organization lookup and duplicate emails
- login success and the shared 401 for unknown email / wrong password
- get_users_by_same_organization
"""

import pytest

from core.auth import decode_access_token
from schemas import RegisterRequest
from services.errors import ValidationError
from services.users_service import (
    INVALID_CREDENTIALS_MESSAGE,
    get_users_by_same_organization,
    login,
    normalize_email,
    register_user,
)
from tests.factories import (
    DEFAULT_PASSWORD,
    OrganizationFactory,
    UserFactory,
    create_async,
)


@pytest.mark.unit
class TestNormalizeEmail:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("Alice@Example.COM", "alice@example.com"),
            ("  bob@example.com ", "bob@example.com"),
            ("carol@example.com", "carol@example.com"),
        ],
    )
    def test_lowercases_and_strips(self, raw, expected):
        assert normalize_email(raw) == expected


@pytest.mark.integration
class TestRegisterUser:
    async def test_registers_with_defaults(self, db_session):
        result = await register_user(
            db_session,
            RegisterRequest(name="Ada", email="Ada@Example.com", password="long-enough"),
        )

        assert result.message == "User registered successfully"
        assert result.data.email == "ada@example.com"
        assert result.data.role == "USER"
        assert result.data.organization_id is None

    async def test_role_is_upper_cased_and_org_attached(self, db_session):
        org = await create_async(OrganizationFactory, db_session)

        result = await register_user(
            db_session,
            RegisterRequest(
                name="Grace",
                email="grace@example.com",
                password="long-enough",
                role="manager",
                organization_id=org.id,
            ),
        )

        assert result.data.role == "MANAGER"
        assert result.data.organization_id == org.id

    @pytest.mark.parametrize(
        "payload,message",
        [
            ({"email": "a@b.co", "password": "long-enough"}, "Name is required"),
            ({"name": "A", "password": "long-enough"}, "Email is required"),
            ({"name": "A", "email": "not-an-email", "password": "long-enough"},
             "Invalid email format"),
            ({"name": "A", "email": "a..b@example.com", "password": "long-enough"},
             "Invalid email format"),
            ({"name": "A", "email": "a@example..com", "password": "long-enough"},
             "Invalid email format"),
            ({"name": "A", "email": "a@b.co", "password": "short"},
             "Password must be at least 8 characters long"),
        ],
    )
    async def test_rejects_invalid_input(self, db_session, payload, message):
        with pytest.raises(ValidationError) as exc_info:
            await register_user(db_session, RegisterRequest(**payload))

        assert exc_info.value.code == 400
        assert exc_info.value.message == message

    async def test_unknown_organization_is_404(self, db_session):
        with pytest.raises(ValidationError) as exc_info:
            await register_user(
                db_session,
                RegisterRequest(
                    name="A",
                    email="a@example.com",
                    password="long-enough",
                    organization_id="no-such-org",
                ),
            )

        assert exc_info.value.code == 404

    async def test_duplicate_email_is_conflict(self, db_session):
        await create_async(UserFactory, db_session, email="taken@example.com")

        with pytest.raises(ValidationError) as exc_info:
            await register_user(
                db_session,
                RegisterRequest(
                    name="Other", email="TAKEN@example.com", password="long-enough"
                ),
            )

        assert exc_info.value.code == 409


@pytest.mark.integration
class TestLogin:
    async def test_returns_token_for_valid_credentials(self, db_session):
        org = await create_async(OrganizationFactory, db_session)
        user = await create_async(
            UserFactory,
            db_session,
            email="login@example.com",
            organization_id=org.id,
            role="ADMIN",
        )

        result = await login(db_session, "Login@Example.com", DEFAULT_PASSWORD)

        assert result.data.token_type == "bearer"
        assert result.data.expires_in > 0
        assert result.data.user.id == user.id
        claims = decode_access_token(result.data.token)
        assert claims["sub"] == user.id
        assert claims["org"] == org.id
        assert claims["role"] == "ADMIN"

    async def test_wrong_password_is_401(self, db_session):
        await create_async(UserFactory, db_session, email="login@example.com")

        with pytest.raises(ValidationError) as exc_info:
            await login(db_session, "login@example.com", "wrong-password")

        assert exc_info.value.code == 401
        assert exc_info.value.message == INVALID_CREDENTIALS_MESSAGE

    async def test_unknown_email_gets_same_message(self, db_session):
        with pytest.raises(ValidationError) as exc_info:
            await login(db_session, "nobody@example.com", DEFAULT_PASSWORD)

        assert exc_info.value.code == 401
        assert exc_info.value.message == INVALID_CREDENTIALS_MESSAGE

    async def test_user_without_password_cannot_log_in(self, db_session):
        await create_async(
            UserFactory, db_session, email="sso@example.com", password_hash=None
        )

        with pytest.raises(ValidationError) as exc_info:
            await login(db_session, "sso@example.com", "")

        assert exc_info.value.code == 401


@pytest.mark.integration
class TestSameOrganizationUsers:
    async def test_lists_other_members_by_name(self, db_session):
        org = await create_async(OrganizationFactory, db_session)
        other_org = await create_async(OrganizationFactory, db_session)
        user = await create_async(UserFactory, db_session, organization_id=org.id)
        await create_async(UserFactory, db_session, organization_id=org.id, name="Zed")
        await create_async(UserFactory, db_session, organization_id=org.id, name="Amy")
        await create_async(UserFactory, db_session, organization_id=other_org.id)

        result = await get_users_by_same_organization(db_session, user.id)

        assert [u.name for u in result.data] == ["Amy", "Zed"]

    async def test_user_without_organization_gets_empty_list(self, db_session):
        user = await create_async(UserFactory, db_session)

        result = await get_users_by_same_organization(db_session, user.id)

        assert result.data == []

    async def test_unknown_user_is_404(self, db_session):
        with pytest.raises(ValidationError) as exc_info:
            await get_users_by_same_organization(db_session, "ghost")

        assert exc_info.value.code == 404
