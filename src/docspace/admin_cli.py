"""Maintenance CLI: schema migrations, database reset and super admin management."""

import argparse
import asyncio
import getpass
import re
import sys
from pathlib import Path

from alembic import command
from alembic.config import Config

from docspace.config import settings
from docspace.db.engine import create_all_tables, create_db_engine, create_session_factory, drop_all_tables
from docspace.repositories.user_repo import UserRepository
from docspace.services.org_service import OrganizationService

CONFIRM_PHRASE = "CLEAN DATABASE"

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PASSWORD_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,}$")


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email))


def is_strong_password(password: str) -> bool:
    """At least 8 chars with upper, lower, digit and one of @$!%*?&."""
    return bool(_PASSWORD_RE.match(password))


def alembic_config(database_url: str | None) -> Config:
    cfg = Config()
    cfg.set_main_option("script_location", str(Path(__file__).parent / "db" / "migrations"))
    # ConfigParser interpolation treats "%" specially.
    url = database_url or settings.effective_database_url
    cfg.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    return cfg


async def clean_database(database_url: str | None) -> None:
    engine = create_db_engine(database_url)
    try:
        await drop_all_tables(engine)
        await create_all_tables(engine)
    finally:
        await engine.dispose()


async def _with_service(database_url: str | None, action):
    engine = create_db_engine(database_url)
    try:
        async with create_session_factory(engine)() as session:
            return await action(session)
    finally:
        await engine.dispose()


def _cmd_clean(args) -> int:
    print("WARNING: this permanently deletes every organization, workspace, document and user.")
    answer = args.confirm if args.confirm is not None else input(f'Type "{CONFIRM_PHRASE}" to confirm: ')
    if answer.strip() != CONFIRM_PHRASE:
        print("Cleanup cancelled. The database is unchanged.")
        return 1
    asyncio.run(clean_database(args.database_url))
    print("Database cleaned. Create a super admin with: docspace-admin super-admin create")
    return 0


def _cmd_migrate(args) -> int:
    command.upgrade(alembic_config(args.database_url), args.revision)
    print(f"Database upgraded to {args.revision}.")
    return 0


def _cmd_create(args) -> int:
    email = args.email.strip()
    if not is_valid_email(email):
        print(f"Invalid email address: {email}", file=sys.stderr)
        return 2
    password = args.password or getpass.getpass(
        "Password (min 8 chars with uppercase, lowercase, digit and special char): "
    )
    if not is_strong_password(password):
        print("Password does not meet the requirements.", file=sys.stderr)
        return 2

    async def _create(session):
        return await OrganizationService(session).upsert_super_admin(
            email, password, args.firstname, args.lastname
        )

    user, created = asyncio.run(_with_service(args.database_url, _create))
    print(f"Super admin {user.email} {'created' if created else 'updated'}.")
    return 0


def _cmd_list(args) -> int:
    async def _list(session):
        return await UserRepository(session).list_super_admins()

    admins = asyncio.run(_with_service(args.database_url, _list))
    if not admins:
        print("No super admins found.")
        return 0
    for admin in admins:
        name = " ".join(part for part in (admin.firstname, admin.lastname) if part)
        print(f"{admin.email}\t{name}\t{admin.created_at:%Y-%m-%d}")
    return 0


def _cmd_remove(args) -> int:
    if not args.yes:
        answer = input(f"Remove super admin {args.email}? (yes/no): ")
        if answer.strip().lower() != "yes":
            print("Operation cancelled.")
            return 1

    async def _remove(session):
        return await OrganizationService(session).remove_super_admin(args.email)

    if not asyncio.run(_with_service(args.database_url, _remove)):
        print(f"No super admin with email {args.email}.", file=sys.stderr)
        return 1
    print(f"Super admin {args.email} removed.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="docspace-admin", description="docspace maintenance commands")
    parser.add_argument("--database-url", help="Override DATABASE_URL")
    commands = parser.add_subparsers(dest="command", required=True)

    clean = commands.add_parser("clean-database", help="Drop and recreate every table")
    clean.add_argument("--confirm", help=f'Pass "{CONFIRM_PHRASE}" to skip the prompt')
    clean.set_defaults(handler=_cmd_clean)

    migrate = commands.add_parser("migrate", help="Apply schema migrations")
    migrate.add_argument("--revision", default="head")
    migrate.set_defaults(handler=_cmd_migrate)

    admins = commands.add_parser("super-admin", help="Manage super admin users")
    admin_commands = admins.add_subparsers(dest="admin_command", required=True)

    create = admin_commands.add_parser("create", help="Create or update a super admin")
    create.add_argument("--email", required=True)
    create.add_argument("--password", help="Prompted for when omitted")
    create.add_argument("--firstname", default="")
    create.add_argument("--lastname", default="")
    create.set_defaults(handler=_cmd_create)

    listing = admin_commands.add_parser("list", help="List super admins")
    listing.set_defaults(handler=_cmd_list)

    remove = admin_commands.add_parser("remove", help="Delete a super admin")
    remove.add_argument("--email", required=True)
    remove.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    remove.set_defaults(handler=_cmd_remove)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
