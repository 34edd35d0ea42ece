"""User registry enforcing unique usernames over the ``users`` namespace."""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Callable, List, Optional

from .errors import ConflictError, NotFoundError, ValidationError
from .models import Expertise, Role, User
from .storage import OrderedMap

logger = logging.getLogger("mentorship.users")

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


MAX_USERNAME_LENGTH = 64


def _normalise_username(username: str) -> str:
    value = (username or "").strip()
    if not value:
        raise ValidationError("Username must not be empty")
    if len(value) > MAX_USERNAME_LENGTH:
        raise ValidationError(f"Username must be {MAX_USERNAME_LENGTH} characters or fewer")
    return value


def _normalise_role(role: Role | str) -> Role:
    try:
        return Role(role)
    except ValueError as exc:
        raise ValidationError(f"Unknown role {role!r}; expected 'mentor' or 'mentee'") from exc


def _normalise_expertise(expertise: Expertise | str | None) -> Optional[Expertise]:
    if expertise is None:
        return None
    try:
        return Expertise(expertise)
    except ValueError as exc:
        choices = ", ".join(tag.value for tag in Expertise)
        raise ValidationError(f"Unknown expertise {expertise!r}; expected one of {choices}") from exc


class UserRegistry:
    """Register and look up mentor/mentee accounts."""

    def __init__(self, storage: OrderedMap[User], *, clock: Clock = utcnow) -> None:
        self._storage = storage
        self._clock = clock
        self._lock = threading.Lock()

    def register(
        self,
        username: str,
        password: str,
        role: Role | str,
        expertise: Expertise | str | None = None,
    ) -> User:
        """Store a new user and return it; usernames must be unique."""

        normalized_username = _normalise_username(username)
        if not password:
            raise ValidationError("Password must not be empty")
        normalized_role = _normalise_role(role)
        normalized_expertise = _normalise_expertise(expertise)

        # The storage lock spans the scan and the insert so a second process
        # sharing the database cannot claim the same username in between.
        with self._lock, self._storage.exclusive():
            if self.find_by_username(normalized_username) is not None:
                raise ConflictError(f"Username {normalized_username!r} is already taken")

            user = User(
                id=str(uuid.uuid4()),
                username=normalized_username,
                password=password,
                role=normalized_role,
                expertise=normalized_expertise,
                created_at=self._clock(),
                updated_at=None,
            )
            self._storage.insert(user.id, user)

        logger.info("Registered %s %s (%s)", user.role.value, user.username, user.id)
        return user

    def get_by_id(self, user_id: str) -> User:
        user = self._storage.get(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    def find_by_username(self, username: str) -> Optional[User]:
        # Linear scan; a username index would have to be kept in step with every insert.
        wanted = (username or "").strip()
        for user in self._storage.values():
            if user.username == wanted:
                return user
        return None

    def list_users(self) -> List[User]:
        return self._storage.values()


__all__ = ["Clock", "MAX_USERNAME_LENGTH", "UserRegistry", "utcnow"]
