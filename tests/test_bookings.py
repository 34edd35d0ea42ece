from __future__ import annotations

from datetime import date, datetime, time, timezone

import pytest

from mentorship.bookings import ALLOWED_TRANSITIONS
from mentorship.core import MentorshipCore
from mentorship.errors import InvalidTransitionError, NotFoundError, ValidationError
from mentorship.models import BookingStatus


@pytest.fixture()
def pair(core: MentorshipCore):
    mentor = core.register_user("alice", "pw1", "mentor", "ICP")
    mentee = core.register_user("bob", "pw2", "mentee", None)
    return mentor, mentee


@pytest.fixture()
def booking(core: MentorshipCore, pair):
    mentor, mentee = pair
    return core.create_booking(mentor.id, mentee.id, "2024-05-01", "10:00", "11:00")


def test_booking_lifecycle_scenario(core: MentorshipCore, pair) -> None:
    mentor, mentee = pair
    created = core.create_booking(mentor.id, mentee.id, "2024-05-01", "10:00", "11:00")
    assert created.status is BookingStatus.ACCEPTED
    assert created.date == date(2024, 5, 1)
    assert (created.start_time, created.end_time) == (time(10, 0), time(11, 0))
    assert created.updated_at is None

    accepted = core.accept_booking(created.id)
    assert accepted.status is BookingStatus.ACCEPTED

    rescheduled = core.reschedule(created.id, "2024-05-02", "09:00", "10:00")
    assert rescheduled.status is BookingStatus.RESCHEDULED
    assert rescheduled.date == date(2024, 5, 2)
    assert (rescheduled.start_time, rescheduled.end_time) == (time(9, 0), time(10, 0))
    assert rescheduled.updated_at is not None
    assert rescheduled.created_at == created.created_at

    cancelled = core.cancel_booking(created.id)
    assert cancelled.status is BookingStatus.CANCELLED
    assert cancelled.status.is_terminal

    with pytest.raises(InvalidTransitionError):
        core.accept_booking(created.id)
    assert core.get_booking(created.id) == cancelled


def test_cancel_twice_fails(core: MentorshipCore, booking) -> None:
    core.cancel_booking(booking.id)
    with pytest.raises(InvalidTransitionError):
        core.cancel_booking(booking.id)


def test_rescheduled_booking_can_be_accepted_again(core: MentorshipCore, booking) -> None:
    core.reschedule(booking.id, date(2024, 5, 3), time(14, 0), time(15, 0))
    confirmed = core.accept_booking(booking.id)
    assert confirmed.status is BookingStatus.ACCEPTED
    assert confirmed.date == date(2024, 5, 3)


def test_accept_on_accepted_booking_is_unchanged(core: MentorshipCore, booking) -> None:
    assert core.accept_booking(booking.id) == booking


def test_reject_is_terminal(core: MentorshipCore, booking) -> None:
    rejected = core.reject_booking(booking.id)
    assert rejected.status is BookingStatus.REJECTED
    for operation in (core.accept_booking, core.cancel_booking, core.reject_booking):
        with pytest.raises(InvalidTransitionError):
            operation(booking.id)
    with pytest.raises(InvalidTransitionError):
        core.reschedule(booking.id, "2024-06-01", "10:00", "11:00")


def test_reject_and_reschedule_not_allowed_from_rescheduled(core: MentorshipCore, booking) -> None:
    core.reschedule(booking.id, "2024-05-02", "09:00", "10:00")
    with pytest.raises(InvalidTransitionError):
        core.reject_booking(booking.id)
    with pytest.raises(InvalidTransitionError):
        core.reschedule(booking.id, "2024-05-03", "09:00", "10:00")


def test_terminal_states_have_no_exits() -> None:
    for status, targets in ALLOWED_TRANSITIONS.items():
        assert (not targets) == status.is_terminal


def test_unknown_booking_raises_not_found(core: MentorshipCore) -> None:
    with pytest.raises(NotFoundError):
        core.get_booking("missing")
    with pytest.raises(NotFoundError):
        core.cancel_booking("missing")


def test_create_requires_existing_users(core: MentorshipCore, pair) -> None:
    mentor, _ = pair
    with pytest.raises(NotFoundError):
        core.create_booking(mentor.id, "ghost", "2024-05-01", "10:00", "11:00")


def test_create_validates_roles_and_distinct_users(core: MentorshipCore, pair) -> None:
    mentor, mentee = pair
    with pytest.raises(ValidationError):
        core.create_booking(mentee.id, mentor.id, "2024-05-01", "10:00", "11:00")
    with pytest.raises(ValidationError):
        core.create_booking(mentor.id, mentor.id, "2024-05-01", "10:00", "11:00")


@pytest.mark.parametrize(
    "slot",
    [
        ("2024-13-01", "10:00", "11:00"),
        ("2024-05-01", "25:00", "26:00"),
        ("2024-05-01", "11:00", "10:00"),
        ("2024-05-01", "10:00", "10:00"),
    ],
)
def test_create_validates_slot(core: MentorshipCore, pair, slot) -> None:
    mentor, mentee = pair
    with pytest.raises(ValidationError):
        core.create_booking(mentor.id, mentee.id, *slot)


def test_invalid_reschedule_leaves_booking_untouched(core: MentorshipCore, booking) -> None:
    with pytest.raises(ValidationError):
        core.reschedule(booking.id, "2024-05-02", "12:00", "09:00")
    assert core.get_booking(booking.id) == booking


def test_list_for_user_includes_both_sides(core: MentorshipCore, pair, booking) -> None:
    mentor, mentee = pair
    outsider = core.register_user("carol", "pw3", "mentee")

    assert core.list_bookings_for_user(mentor.id) == [booking]
    assert core.list_bookings_for_user(mentee.id) == [booking]
    assert core.list_bookings_for_user(outsider.id) == []
    with pytest.raises(NotFoundError):
        core.list_bookings_for_user("ghost")


def test_bookings_survive_reopen(database, durable_core: MentorshipCore) -> None:
    mentor = durable_core.register_user("alice", "pw1", "mentor", "ICP")
    mentee = durable_core.register_user("bob", "pw2", "mentee")
    created = durable_core.create_booking(mentor.id, mentee.id, "2024-05-01", "10:00", "11:00")
    rescheduled = durable_core.reschedule(created.id, "2024-05-02", "09:00", "10:00")

    reopened = MentorshipCore.from_database(database)
    assert reopened.get_booking(created.id) == rescheduled


def test_datetime_is_not_accepted_as_a_booking_date(durable_core: MentorshipCore) -> None:
    mentor = durable_core.register_user("alice", "pw1", "mentor", "ICP")
    mentee = durable_core.register_user("bob", "pw2", "mentee")

    with pytest.raises(ValidationError):
        durable_core.create_booking(mentor.id, mentee.id, datetime(2024, 5, 1, 9, 30), "10:00", "11:00")
    assert durable_core.list_bookings_for_user(mentor.id) == []

    created = durable_core.create_booking(mentor.id, mentee.id, date(2024, 5, 1), "10:00", "11:00")
    with pytest.raises(ValidationError):
        durable_core.reschedule(created.id, datetime(2024, 5, 2, 9, 0), "09:00", "10:00")
    assert durable_core.get_booking(created.id) == created
    assert durable_core.list_bookings_for_user(mentee.id) == [created]


@pytest.mark.parametrize(
    "start, end",
    [
        ("10:00+02:00", "11:00+02:00"),
        ("10:00", "11:00Z"),
        (time(10, 0, tzinfo=timezone.utc), time(11, 0)),
    ],
)
def test_slot_times_with_utc_offset_are_rejected(core: MentorshipCore, pair, start, end) -> None:
    mentor, mentee = pair
    with pytest.raises(ValidationError):
        core.create_booking(mentor.id, mentee.id, "2024-05-01", start, end)
    assert core.list_bookings_for_user(mentor.id) == []
