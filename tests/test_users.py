from __future__ import annotations

import sqlite3
from datetime import datetime, timezone

import pytest

from mentorship.core import MentorshipCore, open_core
from mentorship.database import Database
from mentorship.errors import ConflictError, NotFoundError, ValidationError
from mentorship.models import Expertise, Role, User
from mentorship.users import MAX_USERNAME_LENGTH


def test_registered_user_round_trips_through_get(core: MentorshipCore) -> None:
    user = core.register_user("alice", "pw1", "mentor", "ICP")

    assert user.role is Role.MENTOR
    assert user.expertise is Expertise.ICP
    assert user.updated_at is None
    assert core.get_user(user.id) == user


def test_registered_user_persists_in_sqlite(durable_core: MentorshipCore) -> None:
    user = durable_core.register_user("bob", "pw2", Role.MENTEE, None)
    assert durable_core.get_user(user.id) == user
    assert durable_core.users.find_by_username("bob") == user


def test_duplicate_username_is_rejected(core: MentorshipCore) -> None:
    core.register_user("alice", "pw1", "mentor", "ICP")
    with pytest.raises(ConflictError):
        core.register_user("alice", "other", "mentee")
    with pytest.raises(ConflictError):
        core.register_user("  alice ", "other", "mentee")
    assert len(core.list_users()) == 1


def test_distinct_usernames_get_distinct_ids(core: MentorshipCore) -> None:
    first = core.register_user("alice", "pw1", "mentor", "SUI")
    second = core.register_user("bob", "pw2", "mentee")
    assert first.id != second.id
    assert {user.username for user in core.list_users()} == {"alice", "bob"}


def test_get_unknown_user_raises_not_found(core: MentorshipCore) -> None:
    with pytest.raises(NotFoundError):
        core.get_user("does-not-exist")


def test_find_by_username_returns_none_when_missing(core: MentorshipCore) -> None:
    assert core.users.find_by_username("nobody") is None


@pytest.mark.parametrize(
    "username, password, role, expertise",
    [
        ("", "pw", "mentor", None),
        ("   ", "pw", "mentor", None),
        ("carol", "", "mentor", None),
        ("carol", "pw", "admin", None),
        ("carol", "pw", "mentor", "COBOL"),
        ("x" * 65, "pw", "mentee", None),
    ],
)
def test_invalid_registration_input(core: MentorshipCore, username, password, role, expertise) -> None:
    with pytest.raises(ValidationError):
        core.register_user(username, password, role, expertise)
    assert core.list_users() == []


def test_created_at_comes_from_clock(core: MentorshipCore, clock) -> None:
    expected = clock.current
    user = core.register_user("dave", "pw", "mentee")
    assert user.created_at == expected


def test_username_length_limit_is_inclusive(core: MentorshipCore) -> None:
    longest = "x" * MAX_USERNAME_LENGTH
    assert core.register_user(f"  {longest}  ", "pw", "mentee").username == longest


def test_uniqueness_holds_across_cores_sharing_a_database(database, durable_core: MentorshipCore) -> None:
    other = open_core(Database(database.path))
    durable_core.register_user("erin", "pw", "mentor")

    with pytest.raises(ConflictError):
        other.register_user("erin", "pw2", "mentee")
    assert [user.username for user in other.list_users()] == ["erin"]


def test_exclusive_block_locks_out_other_connections(database) -> None:
    holder = database.ordered_map("users", encode=User.to_record, decode=User.from_record)
    rival = Database(database.path, timeout=0.1).ordered_map(
        "users", encode=User.to_record, decode=User.from_record
    )
    frank = User(
        id="u-frank",
        username="frank",
        password="pw",
        role=Role.MENTEE,
        expertise=None,
        created_at=datetime(2024, 4, 30, tzinfo=timezone.utc),
    )

    with holder.exclusive():
        assert holder.values() == []
        holder.insert(frank.id, frank)
        assert holder.get(frank.id) == frank
        with pytest.raises(sqlite3.OperationalError):
            rival.insert("u-other", frank)

    assert rival.get(frank.id) == frank
    assert rival.get("u-other") is None


def test_exclusive_block_rolls_back_on_error(database) -> None:
    holder = database.ordered_map("users", encode=User.to_record, decode=User.from_record)
    frank = User(
        id="u-frank",
        username="frank",
        password="pw",
        role=Role.MENTEE,
        expertise=None,
        created_at=datetime(2024, 4, 30, tzinfo=timezone.utc),
    )

    with pytest.raises(ConflictError):
        with holder.exclusive():
            holder.insert(frank.id, frank)
            raise ConflictError("taken")

    assert holder.get(frank.id) is None
