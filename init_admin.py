"""
Create the first operator account.

Credentials come from PAYRECON_ADMIN_USERNAME / PAYRECON_ADMIN_PASSWORD, falling
back to admin / admin123 for local development.
"""
import asyncio
import os

from sqlalchemy import select

from payrecon.core.config import get_settings
from payrecon.db.models import Account
from payrecon.infrastructure.database import build_engine, build_session_factory, init_db, session_scope
from payrecon.modules.accounts import AccountCreateInput, AccountService


async def create_default_admin():
    """Create the admin operator unless one already exists."""
    settings = get_settings()
    engine = build_engine(settings)
    await init_db(engine)

    username = os.getenv("PAYRECON_ADMIN_USERNAME", "admin")
    password = os.getenv("PAYRECON_ADMIN_PASSWORD", "admin123")

    try:
        async with session_scope(build_session_factory(engine)) as db:
            stmt = select(Account).where(Account.role == "admin")
            result = await db.execute(stmt)
            if result.scalars().first() is not None:
                print("Admin operator already exists, nothing to do")
                return

            service = AccountService.with_session(db)
            await service.create_account(
                AccountCreateInput(username=username, password=password, role="admin")
            )

        print("=" * 50)
        print("Admin operator created")
        print("=" * 50)
        print(f"Username: {username}")
        print(f"Password: {password}")
        print("=" * 50)
        print("Change the password after the first login!")
        print("=" * 50)
    finally:
        await engine.dispose()


def main() -> None:
    asyncio.run(create_default_admin())


if __name__ == "__main__":
    main()
