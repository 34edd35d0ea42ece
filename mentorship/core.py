"""Operation set the request-handling layer calls into."""

from __future__ import annotations

from datetime import date, time
from typing import List, Optional

from .bookings import BookingLedger
from .database import Database
from .models import Booking, Expertise, Role, Session, User
from .sessions import SessionStore
from .storage import InMemoryOrderedMap, OrderedMap
from .users import Clock, UserRegistry, utcnow


class MentorshipCore:
    """Wire the user registry, session store, and booking ledger together.

    Each component owns exactly one ordered map. The maps are injected so the
    same core runs against SQLite in production and in-memory maps in tests.
    """

    def __init__(
        self,
        *,
        users: OrderedMap[User],
        sessions: OrderedMap[Session],
        bookings: OrderedMap[Booking],
        clock: Clock = utcnow,
    ) -> None:
        self.users = UserRegistry(users, clock=clock)
        self.sessions = SessionStore(sessions, self.users, clock=clock)
        self.bookings = BookingLedger(bookings, self.users, clock=clock)

    @classmethod
    def from_database(cls, database: Database, *, clock: Clock = utcnow) -> "MentorshipCore":
        """Attach to the ``users``, ``sessions`` and ``bookings`` namespaces."""

        return cls(
            users=database.ordered_map("users", encode=User.to_record, decode=User.from_record),
            sessions=database.ordered_map(
                "sessions", encode=Session.to_record, decode=Session.from_record
            ),
            bookings=database.ordered_map(
                "bookings", encode=Booking.to_record, decode=Booking.from_record
            ),
            clock=clock,
        )

    @classmethod
    def in_memory(cls, *, clock: Clock = utcnow) -> "MentorshipCore":
        return cls(
            users=InMemoryOrderedMap(),
            sessions=InMemoryOrderedMap(),
            bookings=InMemoryOrderedMap(),
            clock=clock,
        )

    # ------------------------------------------------------------------
    # Users and sessions
    # ------------------------------------------------------------------
    def register_user(
        self,
        username: str,
        password: str,
        role: Role | str,
        expertise: Expertise | str | None = None,
    ) -> User:
        return self.users.register(username, password, role, expertise)

    def get_user(self, user_id: str) -> User:
        return self.users.get_by_id(user_id)

    def list_users(self) -> List[User]:
        return self.users.list_users()

    def login(self, username: str, password: str) -> Session:
        return self.sessions.login(username, password)

    def logout(self, user_id: str) -> None:
        self.sessions.logout(user_id)

    def is_logged_in(self, user_id: str) -> bool:
        return self.sessions.is_logged_in(user_id)

    # ------------------------------------------------------------------
    # Bookings
    # ------------------------------------------------------------------
    def create_booking(
        self,
        mentor_id: str,
        mentee_id: str,
        slot_date: date | str,
        start_time: time | str,
        end_time: time | str,
    ) -> Booking:
        return self.bookings.create(mentor_id, mentee_id, slot_date, start_time, end_time)

    def get_booking(self, booking_id: str) -> Booking:
        return self.bookings.get_by_id(booking_id)

    def list_bookings_for_user(self, user_id: str) -> List[Booking]:
        self.users.get_by_id(user_id)
        return self.bookings.list_for_user(user_id)

    def reschedule(
        self,
        booking_id: str,
        new_date: date | str,
        new_start_time: time | str,
        new_end_time: time | str,
    ) -> Booking:
        return self.bookings.reschedule(booking_id, new_date, new_start_time, new_end_time)

    def accept_booking(self, booking_id: str) -> Booking:
        return self.bookings.accept(booking_id)

    def reject_booking(self, booking_id: str) -> Booking:
        return self.bookings.reject(booking_id)

    def cancel_booking(self, booking_id: str) -> Booking:
        return self.bookings.cancel(booking_id)


def open_core(database: Database, *, clock: Optional[Clock] = None) -> MentorshipCore:
    """Initialise ``database`` and return a core attached to it."""

    database.initialize()
    return MentorshipCore.from_database(database, clock=clock or utcnow)


__all__ = ["MentorshipCore", "open_core"]
