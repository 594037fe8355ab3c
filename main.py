"""Command-line interface for the RentSwipe auth service."""

from __future__ import annotations
import argparse
import logging
import sys
from getpass import getpass
from pathlib import Path
from typing import Sequence

from rentswipe.auth import AuthService
from rentswipe.config import Settings, load_settings
from rentswipe.database import Database
from rentswipe.errors import AuthServiceError, ConflictError
from rentswipe.models import AccountType
from rentswipe.security import PasswordHasher

logger = logging.getLogger("rentswipe.main")

_DEFAULT_PORT = 8787
_MIN_PASSWORD_LENGTH = 8

# Accounts the mobile prototype shipped with, so the app can log in against a
# fresh database.
DEMO_ACCOUNTS = (
    ("Jessica Lee", "jessica.lee@rentswipe.mock", "swiftui123", AccountType.TENANT),
    ("Michael Chen", "michael.chen@rentswipe.mock", "swiftrocks", AccountType.TENANT),
    ("David Roberts", "david.roberts@rentswipe.mock", "landlord!", AccountType.LANDLORD),
    ("Rachel Green", "rachel.green@rentswipe.mock", "rentals22", AccountType.LANDLORD),
)


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a YAML settings file (defaults to RENTSWIPE_CONFIG)",
    )

    parser = argparse.ArgumentParser(description="RentSwipe auth service utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    subparsers.add_parser("init-db", parents=[common], help="Initialise the user database")

    serve_parser = subparsers.add_parser("serve", parents=[common], help="Start the HTTP auth service")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Bind address for the API")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=_DEFAULT_PORT,
        help=f"Port for the HTTP API (default: {_DEFAULT_PORT})",
    )

    create_parser = subparsers.add_parser("create-user", parents=[common], help="Create an account interactively")
    create_parser.add_argument("name", help="Full name for the user")
    create_parser.add_argument("email", help="Unique email address for login")
    create_parser.add_argument(
        "--account-type",
        choices=sorted(AccountType.values()),
        default=AccountType.TENANT.value,
        help="Role of the new account (default: tenant)",
    )

    subparsers.add_parser("seed-demo", parents=[common], help="Create the prototype demo accounts")

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "init-db", "create-user", "seed-demo"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _initialise_database(settings: Settings) -> Database:
    database = Database(settings.database_path)
    database.initialize()
    logger.info("Database initialised at %s", settings.database_path)
    return database


def _uvicorn_log_level(settings: Settings) -> str:
    return logging.getLevelName(settings.numeric_log_level).lower()


def _serve(*, settings: Settings, database: Database, host: str, port: int) -> None:
    from rentswipe.service import create_app
    import uvicorn

    logger.info("Starting RentSwipe auth API on http://%s:%s", host, port)

    app = create_app(settings=settings, database=database)
    uvicorn.run(app, host=host, port=port, log_level=_uvicorn_log_level(settings))


def _prompt_for_password() -> str:
    for _ in range(3):
        password = getpass("Password: ")
        confirm = getpass("Confirm password: ")
        if password != confirm:
            print("Passwords do not match. Try again.", file=sys.stderr)
            continue
        if len(password.strip()) < _MIN_PASSWORD_LENGTH:
            print(f"Password must be at least {_MIN_PASSWORD_LENGTH} characters long.", file=sys.stderr)
            continue
        return password
    raise SystemExit("Failed to set password after three attempts.")


def _create_user(service: AuthService, *, name: str, email: str, account_type: str) -> int:
    password = _prompt_for_password()
    try:
        profile = service.signup(name, email, password, account_type)
    except AuthServiceError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1

    print(f"Created {profile.account_type.value} account: {profile.full_name} <{profile.email}>")
    return 0


def _seed_demo(service: AuthService) -> int:
    created = 0
    for full_name, email, password, account_type in DEMO_ACCOUNTS:
        try:
            service.signup(full_name, email, password, account_type.value)
        except ConflictError:
            print(f"Skipping {email}: account already exists.")
            continue
        created += 1
        print(f"Created {account_type.value} account {email}")
    print(f"Seeded {created} demo account(s).")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    args = _parse_args(argv)
    try:
        settings = load_settings(args.config)
    except (OSError, ValueError) as exc:
        raise SystemExit(f"Invalid configuration: {exc}") from exc

    logging.basicConfig(level=settings.numeric_log_level, format="%(asctime)s [%(levelname)s] %(message)s")

    database = _initialise_database(settings)

    if args.command == "serve":
        _serve(settings=settings, database=database, host=args.host, port=args.port)
        return 0

    service = AuthService(database, PasswordHasher(settings.password_scheme))
    if args.command == "create-user":
        return _create_user(service, name=args.name, email=args.email, account_type=args.account_type)
    if args.command == "seed-demo":
        return _seed_demo(service)

    print("Database initialisation complete.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
