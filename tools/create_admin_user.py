#!/usr/bin/env python3
"""Create or promote the admin account from ADMIN_* settings."""

import asyncio
import sys

from fastapi_users import exceptions

from inkwell.auth import get_user_db, get_user_manager
from inkwell.config import settings
from inkwell.database_async import AsyncSessionLocal
from inkwell.schemas.user import UserCreate, UserUpdate


async def create_admin_user(reset_password: bool = False) -> None:
    """Create the admin user, or promote/reset an existing account."""
    async with AsyncSessionLocal() as session:
        async for user_db in get_user_db(session):
            async for user_manager in get_user_manager(user_db):
                try:
                    existing = await user_manager.get_by_email(settings.admin_email)
                except exceptions.UserNotExists:
                    existing = None

                if existing is not None:
                    fields = {"is_superuser": True, "is_active": True}
                    if reset_password:
                        fields["password"] = settings.admin_password
                    await user_manager.update(UserUpdate(**fields), existing)
                    action = "reset" if reset_password else "promoted"
                    print(f"✅ Admin user '{settings.admin_email}' {action}")
                    return

                try:
                    user = await user_manager.create(
                        UserCreate(
                            name=settings.admin_name,
                            email=settings.admin_email,
                            password=settings.admin_password,
                            is_superuser=True,
                            is_verified=True,
                        )
                    )
                except exceptions.InvalidPasswordException as e:
                    print(f"❌ Failed to create admin user: {e.reason}", file=sys.stderr)
                    raise
                print(f"✅ Created admin user: {user.email}")


if __name__ == "__main__":
    asyncio.run(create_admin_user(reset_password="--reset-password" in sys.argv))
