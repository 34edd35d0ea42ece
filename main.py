"""Command-line interface for the mentorship registry service."""

from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from mentorship.config import Settings, load_settings
from mentorship.core import MentorshipCore, open_core
from mentorship.database import Database

logger = logging.getLogger("mentorship.main")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Mentorship registry utilities")
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a YAML configuration file (default: MENTORSHIP_CONFIG or config/mentorship.yaml)",
    )
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve", host=None, port=None)

    subparsers.add_parser("init-db", help="Initialise the registry database")
    subparsers.add_parser("list-users", help="Print every registered user")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP registry service")
    serve_parser.add_argument("--host", default=None, help="Bind address for the API")
    serve_parser.add_argument("--port", type=int, default=None, help="Port for the HTTP API")

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "init-db", "list-users"}

    # Global options must precede the subcommand.
    prefix: list[str] = []
    if args_list[:1] == ["--config"]:
        prefix, args_list = args_list[:2], args_list[2:]
    elif args_list and args_list[0].startswith("--config="):
        prefix, args_list = args_list[:1], args_list[1:]

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args([*prefix, *args_list])
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args([*prefix, *args_list])
            args_list = ["serve", *args_list]

    return parser.parse_args([*prefix, *args_list])


def _initialise_core(settings: Settings) -> MentorshipCore:
    database = Database(settings.database_path)
    core = open_core(database)
    logger.info("Database initialised at %s", settings.database_path)
    return core


def _serve(*, core: MentorshipCore, host: str, port: int, log_level: str) -> None:
    from mentorship.service import create_app
    import uvicorn

    logger.info("Starting mentorship registry on http://%s:%s", host, port)
    app = create_app(core=core)
    uvicorn.run(app, host=host, port=port, log_level=log_level.lower())


def _list_users(core: MentorshipCore) -> None:
    users = core.list_users()
    if not users:
        print("No users are currently registered.")
        return

    print(f"{len(users)} user(s) found:")
    print(f"{'ID':<36}  {'Username':<24}  {'Role':<6}  {'Expertise':<10}  Created")
    print("-" * 100)
    for user in users:
        created = user.created_at.strftime("%Y-%m-%d %H:%M:%S %Z")
        expertise = user.expertise.value if user.expertise is not None else "-"
        print(f"{user.id:<36}  {user.username:<24}  {user.role.value:<6}  {expertise:<10}  {created}")


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for CLI usage."""

    args = _parse_args(argv)
    settings = load_settings(Path(args.config) if args.config else None)

    logging.basicConfig(level=settings.log_level, format="%(asctime)s [%(levelname)s] %(message)s")

    core = _initialise_core(settings)

    if args.command == "serve":
        _serve(
            core=core,
            host=args.host or settings.host,
            port=args.port or settings.port,
            log_level=settings.log_level,
        )
    elif args.command == "list-users":
        _list_users(core)
    elif args.command == "init-db":
        print("Database initialisation complete.")


if __name__ == "__main__":
    main()
