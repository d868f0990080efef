import asyncio
import sys

from sqlalchemy import select

from quillpost.db.session import async_session_maker
from quillpost.models.user import ROLES, Profile, User


async def set_role(email: str, role: str):
    """Give the user with ``email`` the given role (admin by default)."""
    async with async_session_maker() as session:
        result = await session.execute(
            select(User, Profile).join(Profile, Profile.user_id == User.id).where(User.email == email.lower())
        )
        row = result.first()

        if not row:
            print(f"Error: User '{email}' not found.")
            return

        user, profile = row
        profile.role = role
        await session.commit()
        print(f"Success: {profile.name} ({user.email}) is now {role}.")


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python scripts/make_admin.py <email> [admin|author|user]")
        sys.exit(1)

    target_role = sys.argv[2] if len(sys.argv) > 2 else "admin"
    if target_role not in ROLES:
        print(f"Error: role must be one of {', '.join(ROLES)}")
        sys.exit(1)
    asyncio.run(set_role(sys.argv[1], target_role))
