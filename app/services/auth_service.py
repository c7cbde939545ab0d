from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from typing import List, Optional
import logging
import uuid

from app.repositories.user_repo import UserRepository
from app.core.security import verify_password, create_access_token, get_password_hash
from app.core.exceptions import (
    AuthenticationError, AuthorizationError, ConflictError, ValidationError,
)
from app.models.user import User, UserRoleEnum
from app.schemas.user_schema import UserCreate, UserLogin, ProfileUpdate, PasswordChange

logger = logging.getLogger(__name__)

# profile fields only a freelancer may set
SELLER_FIELDS = ("title", "skills", "bio", "portfolio", "languages", "experience_level")

MIN_PASSWORD_LENGTH = 8


def _clean_list(values: Optional[List[str]]) -> List[str]:
    return [v.strip() for v in (values or []) if v and v.strip()]


class AuthService:
    def __init__(self, db: AsyncSession):
        self.user_repo = UserRepository(db)

    async def register_user(self, user_create: UserCreate) -> User:
        """
        Register a client or freelancer. Email and phone must be unused.
        """
        email = user_create.email.lower() if user_create.email else None
        phone = user_create.phone.strip() if user_create.phone and user_create.phone.strip() else None

        existing_user = await self.user_repo.find_by_email_or_phone(email, phone)
        if existing_user:
            raise ConflictError("User with this email or phone already exists")

        new_user = User(
            user_id=str(uuid.uuid4()),
            name=user_create.name,
            email=email,
            phone=phone,
            password_hash=get_password_hash(user_create.password),
            role=UserRoleEnum(user_create.role),
            otp_enabled=user_create.otp_enabled,
        )

        try:
            created_user = await self.user_repo.create_user(new_user)
        except IntegrityError:
            # lost a race with a concurrent registration
            await self.user_repo.db.rollback()
            raise ConflictError("User with this email or phone already exists")

        logger.info(f"Registered {created_user.role.value} {created_user.user_id}")
        return created_user

    async def authenticate_user(self, email: Optional[str], phone: Optional[str], password: str) -> User:
        """
        Check the credentials and return the User.
        Unknown account and wrong password give the same error.
        """
        user = await self.user_repo.find_by_email_or_phone(email, phone)

        if not user or not verify_password(plain_password=password, hashed_password=user.password_hash):
            logger.warning(f"Failed login for {email or phone}")
            raise AuthenticationError("Invalid credentials")

        if not user.is_active:
            raise AuthorizationError("This account has been suspended")

        return user

    async def login(self, credentials: UserLogin) -> User:
        user = await self.authenticate_user(credentials.email, credentials.phone, credentials.password)
        if credentials.role and user.role != credentials.role:
            raise AuthorizationError(f"This account is not registered as {credentials.role.value}")
        logger.info(f"User logged in: {user.user_id}")
        return user

    def create_login_token(self, user: User) -> str:
        return create_access_token(
            data={
                "sub": user.user_id,
                "user_id": str(user.user_id),
                "role": user.role.value,
            }
        )

    async def update_profile(self, user: User, data: ProfileUpdate) -> User:
        changes = data.model_dump(exclude_unset=True)

        if user.role != UserRoleEnum.freelancer:
            for field in SELLER_FIELDS:
                changes.pop(field, None)

        if "name" in changes:
            name = (changes["name"] or "").strip()
            if not name:
                raise ValidationError("Name cannot be empty")
            changes["name"] = name

        if changes.get("email"):
            changes["email"] = changes["email"].lower()
            other = await self.user_repo.get_user_by_email(changes["email"])
            if other and other.user_id != user.user_id:
                raise ConflictError("Email is already in use")

        if changes.get("username"):
            changes["username"] = changes["username"].strip().lower()
            other = await self.user_repo.get_user_by_username(changes["username"])
            if other and other.user_id != user.user_id:
                raise ConflictError("Username is already taken")

        for field in ("skills", "languages"):
            if field in changes:
                changes[field] = _clean_list(changes[field])
        if changes.get("portfolio") is not None:
            portfolio = changes["portfolio"]
            changes["portfolio"] = {
                "images": _clean_list(portfolio.get("images")),
                "links": _clean_list(portfolio.get("links")),
            }

        for key, value in changes.items():
            setattr(user, key, value)

        try:
            updated = await self.user_repo.update_user(user)
        except IntegrityError:
            await self.user_repo.db.rollback()
            raise ConflictError("Email, phone or username is already in use")

        logger.info(f"Profile updated for {user.user_id}: {sorted(changes)}")
        return updated

    async def change_password(self, user: User, data: PasswordChange) -> None:
        if not verify_password(data.current_password, user.password_hash):
            raise AuthenticationError("Current password is incorrect")
        if len(data.new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"New password must be at least {MIN_PASSWORD_LENGTH} characters long")
        if data.current_password == data.new_password:
            raise ValidationError("New password must be different from the current password")

        user.password_hash = get_password_hash(data.new_password)
        await self.user_repo.update_user(user)
        logger.info(f"Password changed for {user.user_id}")

    async def is_username_available(self, username: str) -> bool:
        username = username.strip().lower()
        if not username:
            raise ValidationError("Username is required")
        return await self.user_repo.get_user_by_username(username) is None
