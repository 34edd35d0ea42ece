"""Booking ledger and the status state machine for mentorship slots."""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import replace
from datetime import date, datetime, time
from typing import Dict, FrozenSet, List, Optional, Tuple

from .errors import InvalidTransitionError, NotFoundError, ValidationError
from .models import Booking, BookingStatus, Role
from .storage import OrderedMap
from .users import Clock, UserRegistry, utcnow

logger = logging.getLogger("mentorship.bookings")

ALLOWED_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.ACCEPTED: frozenset(
        {BookingStatus.RESCHEDULED, BookingStatus.REJECTED, BookingStatus.CANCELLED}
    ),
    BookingStatus.RESCHEDULED: frozenset({BookingStatus.ACCEPTED, BookingStatus.CANCELLED}),
    BookingStatus.REJECTED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}


def _coerce_date(value: date | str) -> date:
    if isinstance(value, datetime):
        raise ValidationError(f"Expected a calendar date, got datetime {value.isoformat()!r}")
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError as exc:
        raise ValidationError(f"Invalid date {value!r}; expected YYYY-MM-DD") from exc


def _coerce_time(value: time | str, field_name: str) -> time:
    if isinstance(value, time):
        parsed = value
    else:
        try:
            parsed = time.fromisoformat(str(value).strip())
        except ValueError as exc:
            raise ValidationError(f"Invalid {field_name} {value!r}; expected HH:MM") from exc
    if parsed.tzinfo is not None:
        raise ValidationError(f"Invalid {field_name} {value!r}; slot times must not carry a UTC offset")
    return parsed.replace(second=0, microsecond=0)


def _normalise_slot(
    slot_date: date | str,
    start_time: time | str,
    end_time: time | str,
) -> Tuple[date, time, time]:
    parsed_date = _coerce_date(slot_date)
    start = _coerce_time(start_time, "start time")
    end = _coerce_time(end_time, "end time")
    if start >= end:
        raise ValidationError("Start time must be before end time")
    return parsed_date, start, end


class BookingLedger:
    """Own booking records and drive their status transitions.

    Every mutation re-reads the stored record, checks the transition against
    :data:`ALLOWED_TRANSITIONS`, and writes the new snapshot back with a single
    ``insert``.
    """

    def __init__(
        self,
        storage: OrderedMap[Booking],
        users: UserRegistry,
        *,
        clock: Clock = utcnow,
    ) -> None:
        self._storage = storage
        self._users = users
        self._clock = clock
        self._lock = threading.Lock()

    def create(
        self,
        mentor_id: str,
        mentee_id: str,
        slot_date: date | str,
        start_time: time | str,
        end_time: time | str,
    ) -> Booking:
        parsed_date, start, end = _normalise_slot(slot_date, start_time, end_time)
        if mentor_id == mentee_id:
            raise ValidationError("A booking needs two distinct users")

        with self._lock:
            mentor = self._users.get_by_id(mentor_id)
            mentee = self._users.get_by_id(mentee_id)
            if mentor.role is not Role.MENTOR:
                raise ValidationError(f"User {mentor_id} is not a mentor")
            if mentee.role is not Role.MENTEE:
                raise ValidationError(f"User {mentee_id} is not a mentee")

            booking = Booking(
                id=str(uuid.uuid4()),
                mentor_id=mentor.id,
                mentee_id=mentee.id,
                date=parsed_date,
                start_time=start,
                end_time=end,
                status=BookingStatus.ACCEPTED,
                created_at=self._clock(),
                updated_at=None,
            )
            self._storage.insert(booking.id, booking)

        logger.info(
            "Booking %s created between mentor %s and mentee %s on %s",
            booking.id,
            booking.mentor_id,
            booking.mentee_id,
            booking.date.isoformat(),
        )
        return booking

    def get_by_id(self, booking_id: str) -> Booking:
        booking = self._storage.get(booking_id)
        if booking is None:
            raise NotFoundError(f"Booking {booking_id} not found")
        return booking

    def list_for_user(self, user_id: str) -> List[Booking]:
        return [booking for booking in self._storage.values() if booking.involves(user_id)]

    def reschedule(
        self,
        booking_id: str,
        new_date: date | str,
        new_start_time: time | str,
        new_end_time: time | str,
    ) -> Booking:
        parsed_date, start, end = _normalise_slot(new_date, new_start_time, new_end_time)
        return self._transition(
            booking_id,
            BookingStatus.RESCHEDULED,
            slot_date=parsed_date,
            start=start,
            end=end,
        )

    def accept(self, booking_id: str) -> Booking:
        return self._transition(booking_id, BookingStatus.ACCEPTED)

    def reject(self, booking_id: str) -> Booking:
        return self._transition(booking_id, BookingStatus.REJECTED)

    def cancel(self, booking_id: str) -> Booking:
        return self._transition(booking_id, BookingStatus.CANCELLED)

    def _transition(
        self,
        booking_id: str,
        target: BookingStatus,
        *,
        slot_date: Optional[date] = None,
        start: Optional[time] = None,
        end: Optional[time] = None,
    ) -> Booking:
        with self._lock:
            current = self.get_by_id(booking_id)

            # Confirming an already accepted booking is a no-op.
            if target is BookingStatus.ACCEPTED and current.status is BookingStatus.ACCEPTED:
                return current

            if target not in ALLOWED_TRANSITIONS[current.status]:
                raise InvalidTransitionError(
                    f"Booking {booking_id} cannot move from {current.status.value} to {target.value}"
                )

            updated = replace(
                current,
                status=target,
                date=slot_date if slot_date is not None else current.date,
                start_time=start if start is not None else current.start_time,
                end_time=end if end is not None else current.end_time,
                updated_at=self._clock(),
            )
            self._storage.insert(updated.id, updated)

        logger.info(
            "Booking %s moved from %s to %s",
            booking_id,
            current.status.value,
            updated.status.value,
        )
        return updated


__all__ = ["ALLOWED_TRANSITIONS", "BookingLedger"]
