"""Durable login sessions keyed by user id."""

from __future__ import annotations

import logging
import threading

from .errors import AuthError, NotLoggedInError
from .models import Session
from .storage import OrderedMap
from .users import Clock, UserRegistry, utcnow

logger = logging.getLogger("mentorship.sessions")


class SessionStore:
    """Create, inspect, and revoke the single live session of each user.

    Sessions never expire on their own. Logging in again overwrites the
    existing entry rather than rejecting the second login.
    """

    def __init__(
        self,
        storage: OrderedMap[Session],
        users: UserRegistry,
        *,
        clock: Clock = utcnow,
    ) -> None:
        self._storage = storage
        self._users = users
        self._clock = clock
        self._lock = threading.Lock()

    def login(self, username: str, password: str) -> Session:
        user = self._users.find_by_username(username)
        # Plain comparison: credentials are stored verbatim.
        if user is None or user.password != password:
            logger.warning("Rejected login attempt for username %r", username)
            raise AuthError("Invalid username or password")

        session = Session(user=user, logged_in_at=self._clock())
        with self._lock:
            previous = self._storage.insert(user.id, session)

        if previous is not None:
            logger.info("User %s logged in again; previous session replaced", user.id)
        else:
            logger.info("User %s logged in", user.id)
        return session

    def logout(self, user_id: str) -> None:
        with self._lock:
            removed = self._storage.remove(user_id)
        if removed is None:
            raise NotLoggedInError(f"User {user_id} is not logged in")
        logger.info("User %s logged out", user_id)

    def is_logged_in(self, user_id: str) -> bool:
        return self._storage.get(user_id) is not None

    def get_session(self, user_id: str) -> Session:
        session = self._storage.get(user_id)
        if session is None:
            raise NotLoggedInError(f"User {user_id} is not logged in")
        return session


__all__ = ["SessionStore"]
