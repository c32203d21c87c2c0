#!/usr/bin/env python3
"""
authgate -- provisioning and server commands.

Usage:
  python main.py seed
  python main.py create-user alice --role advisor
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8080

Environment variables (see core/config.py for the full list):
  JWT_SECRET      Signing secret, at least 32 characters. Required unless DEBUG=true.
  DATABASE_URL    SQLAlchemy URL of the user store (default sqlite:///./authgate.db).
  BCRYPT_ROUNDS   Work factor for new password hashes (default 10).
"""

import argparse
import getpass
import logging
import sys
from typing import Optional

from sqlalchemy.exc import IntegrityError

from auth.models import Role, User
from auth.passwords import hash_password
from auth.store import UserStore
from core.config import get_settings

logger = logging.getLogger("authgate.cli")

# Demo accounts for local development only. Plaintext lives here and nowhere
# else -- each password is hashed before it reaches the store.
DEMO_USERS: list[tuple[str, str, Role]] = [
    ("user1", "password1", Role.user),
    ("advisor1", "password2", Role.advisor),
    ("admin1", "password3", Role.admin),
]


def _open_store() -> UserStore:
    store = UserStore(get_settings().database_url)
    store.connect()
    return store


def seed_users(store: UserStore, users: Optional[list[tuple[str, str, Role]]] = None) -> int:
    """Insert the demo users, skipping usernames that already exist.

    Safe to run repeatedly. Returns the number of users actually created.
    """
    created = 0
    for username, password, role in users or DEMO_USERS:
        user = User(username=username, hashed_password=hash_password(password), role=role)
        try:
            store.create_user(user)
        except IntegrityError:
            logger.info("User %s already exists, skipping", username)
            continue
        created += 1
    return created


def _cmd_seed(args: argparse.Namespace) -> int:
    store = _open_store()
    try:
        created = seed_users(store)
    finally:
        store.close()
    print(f"Users seeded ({created} created).")
    return 0


def _cmd_create_user(args: argparse.Namespace) -> int:
    password = getpass.getpass("Password: ")
    if not password:
        print("  [!] Password must not be empty.")
        return 1
    if password != getpass.getpass("Confirm password: "):
        print("  [!] Passwords do not match.")
        return 1

    store = _open_store()
    try:
        uid = store.create_user(User(username=args.username, hashed_password=hash_password(password), role=args.role))
    except IntegrityError:
        print(f"  [!] User '{args.username}' already exists.")
        return 1
    finally:
        store.close()
    print(f"Created user '{args.username}' (id={uid}, role={args.role.value}).")
    return 0


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("asgi:app", host=args.host, port=args.port or get_settings().port, reload=args.reload)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="authgate",
        description="Credential login, signed access tokens, and role-gated endpoints.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    seed = sub.add_parser("seed", help="Create the demo users (user1, advisor1, admin1)")
    seed.set_defaults(func=_cmd_seed)

    create = sub.add_parser("create-user", help="Create a single user; prompts for the password")
    create.add_argument("username", help="Login name (must be unique)")
    create.add_argument(
        "--role",
        type=Role,
        choices=list(Role),
        default=Role.user,
        metavar="ROLE",
        help="One of: user, advisor, admin (default: user)",
    )
    create.set_defaults(func=_cmd_create_user)

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=None, help="Bind port (default: PORT setting, 3000)")
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development)")
    serve.set_defaults(func=_cmd_serve)

    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 0

    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
