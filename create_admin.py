"""
Create initial admin user
Run this script once to create the first admin account:

    python create_admin.py admin@example.com 'S3cret-pass' "Site Administrator"
"""
import asyncio
import sys

from sqlalchemy import select

from worksite.models.database import async_session_maker, init_db
from worksite.models.user import User, UserRole
from worksite.core.security import get_password_hash


async def create_admin(email: str, password: str, full_name: str):
    # Initialize DB tables first
    await init_db()

    async with async_session_maker() as session:
        result = await session.execute(select(User).where(User.email == email))
        admin = result.scalar_one_or_none()

        if admin:
            admin.hashed_password = get_password_hash(password)
            admin.role = UserRole.ADMIN
            admin.is_active = True
            print(f"Existing user {email} promoted to admin, password reset")
        else:
            session.add(User(
                email=email,
                hashed_password=get_password_hash(password),
                full_name=full_name,
                role=UserRole.ADMIN,
                is_active=True
            ))
            print(f"Admin user created: {email}")

        await session.commit()


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print(__doc__)
        sys.exit(1)
    name = sys.argv[3] if len(sys.argv) > 3 else "System Administrator"
    asyncio.run(create_admin(sys.argv[1], sys.argv[2], name))
