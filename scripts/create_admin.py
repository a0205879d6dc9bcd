"""
Create an administrator account, or promote an existing user to admin.

Usage:
    python scripts/create_admin.py --username root --email root@example.com \
        --full-name "Site Admin" --password 'ChangeMe123'
    python scripts/create_admin.py --promote alice
"""
import argparse
import asyncio
import getpass
import os
import sys

# Ensure we can import unishare from a source checkout
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


async def main(args: argparse.Namespace) -> int:
    from unishare.database import async_session_maker, init_db, close_db
    from unishare.kernel.identity.identity_service import IdentityService
    from unishare.kernel.models.user import UserRole
    from unishare.schemas.auth import check_password_strength

    await init_db()
    try:
        async with async_session_maker() as session:
            identity = IdentityService(session)

            if args.promote:
                user = await identity.get_user_by_username(args.promote)
                if not user:
                    print(f"No user named '{args.promote}'", file=sys.stderr)
                    return 1
                await identity.change_role(user.id, UserRole.ADMIN, changed_by=user.id)
                await session.commit()
                print(f"Promoted {user.username} to admin")
                return 0

            password = args.password or getpass.getpass("Password: ")
            try:
                check_password_strength(password)
                user = await identity.register_user(
                    username=args.username,
                    email=args.email,
                    password=password,
                    full_name=args.full_name,
                    role=UserRole.ADMIN,
                )
            except ValueError as e:
                print(str(e), file=sys.stderr)
                return 1
            await session.commit()
            print(f"Created admin {user.username} ({user.email})")
            return 0
    finally:
        await close_db()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--promote", metavar="USERNAME", help="promote an existing user")
    parser.add_argument("--username")
    parser.add_argument("--email")
    parser.add_argument("--full-name", default="Administrator")
    parser.add_argument("--password", help="prompted for when omitted")
    args = parser.parse_args()
    if not args.promote and not (args.username and args.email):
        parser.error("--username and --email are required unless --promote is given")
    return args


if __name__ == "__main__":
    sys.exit(asyncio.run(main(parse_args())))
