"""Domain records persisted by the mentorship registry."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Dict, Optional


class Role(str, Enum):
    """Which side of a mentorship a user account acts on."""

    MENTOR = "mentor"
    MENTEE = "mentee"


class Expertise(str, Enum):
    """Domain tags a mentor can advertise."""

    ALGORAND = "ALGORAND"
    SUI = "SUI"
    ETHEREUM = "ETHEREUM"
    ICP = "ICP"
    BITCOIN = "BITCOIN"
    SOLIDITY = "SOLIDITY"
    SOLANA = "SOLANA"


class BookingStatus(str, Enum):
    """Lifecycle state of a scheduled mentorship slot."""

    ACCEPTED = "accepted"
    RESCHEDULED = "rescheduled"
    REJECTED = "rejected"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (BookingStatus.REJECTED, BookingStatus.CANCELLED)


def _serialize_datetime(value: datetime) -> str:
    return value.isoformat()


def _parse_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value)


def _serialize_optional_datetime(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return _serialize_datetime(value)


def _parse_optional_datetime(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return _parse_datetime(value)


def format_time(value: time) -> str:
    return value.strftime("%H:%M")


@dataclass(frozen=True)
class User:
    """Represents a registered mentor or mentee account."""

    id: str
    username: str
    password: str
    role: Role
    expertise: Optional[Expertise]
    created_at: datetime
    updated_at: Optional[datetime] = None

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "password": self.password,
            "role": self.role.value,
            "expertise": self.expertise.value if self.expertise is not None else None,
            "created_at": _serialize_datetime(self.created_at),
            "updated_at": _serialize_optional_datetime(self.updated_at),
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "User":
        expertise = record.get("expertise")
        return cls(
            id=str(record["id"]),
            username=str(record["username"]),
            password=str(record["password"]),
            role=Role(record["role"]),
            expertise=Expertise(expertise) if expertise is not None else None,
            created_at=_parse_datetime(str(record["created_at"])),
            updated_at=_parse_optional_datetime(record.get("updated_at")),
        )


@dataclass(frozen=True)
class Session:
    """The authenticated principal captured when a user logs in."""

    user: User
    logged_in_at: datetime

    @property
    def user_id(self) -> str:
        return self.user.id

    def to_record(self) -> Dict[str, Any]:
        return {
            "user": self.user.to_record(),
            "logged_in_at": _serialize_datetime(self.logged_in_at),
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Session":
        return cls(
            user=User.from_record(record["user"]),
            logged_in_at=_parse_datetime(str(record["logged_in_at"])),
        )


@dataclass(frozen=True)
class Booking:
    """A mentorship slot agreed between a mentor and a mentee."""

    id: str
    mentor_id: str
    mentee_id: str
    date: date
    start_time: time
    end_time: time
    status: BookingStatus
    created_at: datetime
    updated_at: Optional[datetime] = None

    def involves(self, user_id: str) -> bool:
        return user_id in (self.mentor_id, self.mentee_id)

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "mentor_id": self.mentor_id,
            "mentee_id": self.mentee_id,
            "date": self.date.isoformat(),
            "start_time": format_time(self.start_time),
            "end_time": format_time(self.end_time),
            "status": self.status.value,
            "created_at": _serialize_datetime(self.created_at),
            "updated_at": _serialize_optional_datetime(self.updated_at),
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Booking":
        return cls(
            id=str(record["id"]),
            mentor_id=str(record["mentor_id"]),
            mentee_id=str(record["mentee_id"]),
            date=date.fromisoformat(str(record["date"])),
            start_time=time.fromisoformat(str(record["start_time"])),
            end_time=time.fromisoformat(str(record["end_time"])),
            status=BookingStatus(record["status"]),
            created_at=_parse_datetime(str(record["created_at"])),
            updated_at=_parse_optional_datetime(record.get("updated_at")),
        )


__all__ = ["Booking", "BookingStatus", "Expertise", "Role", "Session", "User", "format_time"]
