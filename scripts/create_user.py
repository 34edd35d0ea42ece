import argparse
import getpass
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from mentorship.core import open_core
from mentorship.database import Database, resolve_database_path
from mentorship.errors import RegistryError
from mentorship.models import Expertise, Role


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Register a mentorship platform user")
    parser.add_argument("username", help="Unique username used to log in")
    parser.add_argument("role", choices=[role.value for role in Role], help="Account role")
    parser.add_argument(
        "--expertise",
        choices=[tag.value for tag in Expertise],
        default=None,
        help="Domain tag advertised by mentors",
    )
    parser.add_argument(
        "--db",
        dest="db_path",
        default=None,
        help="Path to the SQLite database (defaults to MENTORSHIP_DB_PATH or data/mentorship.sqlite3)",
    )
    return parser.parse_args(argv)


def prompt_for_password() -> str:
    for _ in range(3):
        password = getpass.getpass("Password: ")
        confirm = getpass.getpass("Confirm password: ")
        if password != confirm:
            print("Passwords do not match. Try again.", file=sys.stderr)
            continue
        if not password:
            print("Password must not be empty.", file=sys.stderr)
            continue
        return password
    raise SystemExit("Failed to set password after three attempts.")


def main(argv=None) -> int:
    args = parse_args(argv)
    password = prompt_for_password()

    db_env = args.db_path or os.getenv("MENTORSHIP_DB_PATH")
    core = open_core(Database(resolve_database_path(db_env)))

    try:
        user = core.register_user(args.username, password, args.role, args.expertise)
    except RegistryError as exc:  # duplicates, invalid input
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    expertise = user.expertise.value if user.expertise is not None else "no expertise"
    print(f"Created {user.role.value} {user.username} ({expertise}) with id {user.id}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
