"""User service: registration, login and organization membership."""

from email_validator import EmailNotValidError, validate_email
from sqlalchemy.ext.asyncio import AsyncSession

from core import get_logger
from core.auth import create_access_token, hash_password, verify_password
from core.config import get_settings
from repositories.organization_repository import OrganizationRepository
from repositories.user_repository import UserRepository
from schemas import Envelope, LoginResult, RegisterRequest, UserResponse
from services.errors import ValidationError, service_boundary
from services.validation import require_id, require_non_empty

logger = get_logger(__name__)

MIN_PASSWORD_LENGTH = 8
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"


def normalize_email(email: str) -> str:
    """Emails are stored and compared lower-case."""
    return email.strip().lower()


@service_boundary(
    "user.register",
    "Failed to register user",
    duplicate_message="A user with this email already exists",
)
async def register_user(db: AsyncSession, data: RegisterRequest) -> Envelope[UserResponse]:
    name = require_non_empty(data.name, "Name is required")
    email = require_non_empty(data.email, "Email is required")
    try:
        valid = validate_email(email, check_deliverability=False)
        email = normalize_email(valid.normalized)
    except EmailNotValidError as e:
        logger.info("user.register.invalid_email", reason=str(e))
        raise ValidationError("Invalid email format") from None
    if not data.password or len(data.password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )

    organization_id = None
    if data.organization_id is not None:
        organization_id = require_id(data.organization_id, "Invalid organization ID")
        if not await OrganizationRepository(db).exists(organization_id):
            raise ValidationError("Organization not found", code=404)

    user_repo = UserRepository(db)
    if await user_repo.get_by_email(email) is not None:
        raise ValidationError("A user with this email already exists", code=409)

    user = await user_repo.create(
        name=name,
        email=email,
        password_hash=hash_password(data.password),
        role=data.role.strip().upper() if data.role and data.role.strip() else "USER",
        avatar=data.avatar,
        organization_id=organization_id,
    )
    logger.info("user.registered", user_id=user.id, organization_id=organization_id)
    return Envelope[UserResponse](
        data=UserResponse.model_validate(user),
        message="User registered successfully",
    )


@service_boundary("user.login", "Failed to log in")
async def login(db: AsyncSession, email: str, password: str) -> Envelope[LoginResult]:
    """Exchange credentials for an access token.

    Unknown email and wrong password produce the same 401 message.
    """
    user = None
    if email and email.strip():
        user = await UserRepository(db).get_by_email(normalize_email(email))

    if user is None or not verify_password(password or "", user.password_hash):
        logger.info("user.login.rejected")
        raise ValidationError(INVALID_CREDENTIALS_MESSAGE, code=401)

    token = create_access_token(
        user.id, organization_id=user.organization_id, role=user.role
    )
    logger.info("user.login.succeeded", user_id=user.id)
    return Envelope[LoginResult](
        data=LoginResult(
            token=token,
            expires_in=get_settings().jwt_access_expires_minutes * 60,
            user=UserResponse.model_validate(user),
        ),
        message="Login successful",
    )


@service_boundary("user.same_organization", "Failed to fetch organization users")
async def get_users_by_same_organization(
    db: AsyncSession, user_id: str
) -> Envelope[list[UserResponse]]:
    """Other members of the user's organization, ordered by name."""
    user_id = require_id(user_id, "User ID is required")

    user_repo = UserRepository(db)
    user = await user_repo.get_by_id(user_id)
    if user is None:
        raise ValidationError("User not found", code=404)

    members = []
    if user.organization_id:
        members = await user_repo.list_by_organization(
            user.organization_id, exclude_user_id=user.id
        )

    return Envelope[list[UserResponse]](
        data=[UserResponse.model_validate(m) for m in members],
        message="Organization users retrieved successfully",
    )
