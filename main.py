#!/usr/bin/env python3
"""
Roster -- user directory and session authentication for the admin console.

Usage:
  python main.py init
  python main.py sweep-sessions
  python main.py serve --host 0.0.0.0 --port 8000

Configuration comes from the environment or a .env file (see core/config.py):
  DATABASE_URL   Store location. Defaults to a SQLite file under auth/.
  ADMIN_EMAIL    Email of the admin account seeded by `init`.
"""

import argparse
import sys

from auth.bootstrap import ADMIN_USERNAME, seed_admin
from auth.directory import UserDirectory
from auth.sessions import SessionStore
from auth.store import Database
from core.config import get_settings


def _cmd_init(args: argparse.Namespace) -> int:
    """Create the tables and seed the admin account on an empty directory."""
    settings = get_settings()
    db = Database()
    try:
        password = seed_admin(UserDirectory(db), settings.admin_email)
    finally:
        db.close()

    print(f"  Tables ready: {settings.users_table}, {settings.sessions_table}")
    if password is None:
        if not settings.admin_email:
            print("  [!] ADMIN_EMAIL is not set; no admin account was created.")
        else:
            print("  Users already exist; no admin account was created.")
        return 0

    print(f"  Admin account created: {ADMIN_USERNAME} <{settings.admin_email}>")
    print(f"  Password: {password}")
    print("  This password is shown once. Store it now.")
    return 0


def _cmd_sweep(args: argparse.Namespace) -> int:
    db = Database()
    try:
        removed = SessionStore(db, timeout=get_settings().session_timeout).sweep_expired()
    finally:
        db.close()
    print(f"  Removed {removed} expired session(s).")
    return 0


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("api.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="roster",
        description="User directory and session authentication for the admin console.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  ADMIN_EMAIL=ops@example.com python main.py init
  python main.py sweep-sessions
  python main.py serve --port 8080
        """,
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    init_parser = subparsers.add_parser("init", help="Create tables and seed the admin account")
    init_parser.set_defaults(func=_cmd_init)

    sweep_parser = subparsers.add_parser("sweep-sessions", help="Delete expired sessions")
    sweep_parser.set_defaults(func=_cmd_sweep)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port (default: 8000)")
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes (development)")
    serve_parser.set_defaults(func=_cmd_serve)

    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 1
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
