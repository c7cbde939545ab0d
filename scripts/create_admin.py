# scripts/create_admin.py
# Create the admin account, or reset its password when it already exists.
#
#   python -m scripts.create_admin --email admin@example.com --password 'S3cret!pw'
import argparse
import asyncio
import logging
import uuid

from app.core.database import AsyncSessionLocal
from app.core.security import get_password_hash
from app.models.user import User, UserRoleEnum
from app.repositories.user_repo import UserRepository

# register every table referenced by User's foreign keys
from app.models import gig, order, message, payment_detail  # noqa: F401

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger("create_admin")


async def create_admin(name: str, email: str, password: str) -> User:
    async with AsyncSessionLocal() as session:
        repo = UserRepository(session)
        user = await repo.get_user_by_email(email)

        if user is None:
            user = User(
                user_id=str(uuid.uuid4()),
                name=name,
                email=email.lower(),
                password_hash=get_password_hash(password),
                role=UserRoleEnum.admin,
            )
            user = await repo.create_user(user)
            logger.info(f"Admin created: {user.email} ({user.user_id})")
            return user

        if user.role != UserRoleEnum.admin:
            raise SystemExit(f"{email} belongs to a {user.role.value} account, refusing to touch it")

        user.password_hash = get_password_hash(password)
        user.is_active = True
        user = await repo.update_user(user)
        logger.info(f"Admin password reset: {user.email}")
        return user


def main() -> None:
    parser = argparse.ArgumentParser(description="Create or reset the admin account")
    parser.add_argument("--name", default="Admin")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    args = parser.parse_args()

    if len(args.password) < 8:
        parser.error("password must be at least 8 characters long")

    asyncio.run(create_admin(args.name, args.email, args.password))


if __name__ == "__main__":
    main()
