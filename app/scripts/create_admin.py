import argparse
import asyncio
import getpass
import sys

from app.database import AsyncSessionLocal, create_tables
from app.errors import AppError
from app.models.enums import UserRole
from app.services.users import create_account


async def create_admin(username: str, email: str, password: str) -> int:
    await create_tables()
    async with AsyncSessionLocal() as db:
        user = await create_account(db, username, email, password, role=UserRole.ADMIN)
        await db.commit()
        return user.id


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create an admin account")
    parser.add_argument("username")
    parser.add_argument("email")
    parser.add_argument("--password", help="Prompted for when omitted")
    args = parser.parse_args(argv)

    password = args.password or getpass.getpass("Password: ")
    try:
        user_id = asyncio.run(create_admin(args.username, args.email, password))
    except AppError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1
    print(f"Created admin '{args.username}' (ID: {user_id})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
