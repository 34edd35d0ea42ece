"""HTTP API exposing the mentorship registry operations."""

from __future__ import annotations

import datetime as dt
import logging
import os
from typing import Dict, List, Optional, Type

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_validator

from .core import MentorshipCore, open_core
from .database import Database, resolve_database_path
from .errors import (
    AuthError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    NotLoggedInError,
    RegistryError,
    ValidationError,
)
from .models import Booking, BookingStatus, Expertise, Role, User, format_time

logger = logging.getLogger("mentorship.service")

ERROR_STATUS_CODES: Dict[Type[RegistryError], int] = {
    AuthError: status.HTTP_401_UNAUTHORIZED,
    NotLoggedInError: status.HTTP_401_UNAUTHORIZED,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    InvalidTransitionError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ValidationError: status.HTTP_400_BAD_REQUEST,
}


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    role: Role
    expertise: Optional[Expertise] = None

    @field_validator("username")
    @classmethod
    def _normalize_username(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("username must not be empty")
        return stripped


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str


class UserResponse(BaseModel):
    id: str
    username: str
    role: Role
    expertise: Optional[Expertise]
    created_at: dt.datetime
    updated_at: Optional[dt.datetime]


class UserMessageResponse(BaseModel):
    message: str
    user: UserResponse


class LoginResponse(UserMessageResponse):
    logged_in_at: dt.datetime


class MessageResponse(BaseModel):
    message: str


class BookingSlot(BaseModel):
    date: dt.date
    start_time: dt.time
    end_time: dt.time


class CreateBookingRequest(BookingSlot):
    mentor_id: str = Field(..., min_length=1)
    mentee_id: str = Field(..., min_length=1)


class BookingResponse(BaseModel):
    id: str
    mentor_id: str
    mentee_id: str
    date: dt.date
    start_time: str
    end_time: str
    status: BookingStatus
    created_at: dt.datetime
    updated_at: Optional[dt.datetime]


class BookingListResponse(BaseModel):
    bookings: List[BookingResponse]


def _user_to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        username=user.username,
        role=user.role,
        expertise=user.expertise,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def _booking_to_response(booking: Booking) -> BookingResponse:
    return BookingResponse(
        id=booking.id,
        mentor_id=booking.mentor_id,
        mentee_id=booking.mentee_id,
        date=booking.date,
        start_time=format_time(booking.start_time),
        end_time=format_time(booking.end_time),
        status=booking.status,
        created_at=booking.created_at,
        updated_at=booking.updated_at,
    )


def _status_for(exc: RegistryError) -> int:
    for error_type, code in ERROR_STATUS_CODES.items():
        if isinstance(exc, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


def register_api_routes(app: FastAPI, core: MentorshipCore) -> None:
    """Expose the JSON API endpoints on the provided FastAPI application."""

    @app.exception_handler(RegistryError)
    async def handle_registry_error(request: Request, exc: RegistryError) -> JSONResponse:
        return JSONResponse(
            status_code=_status_for(exc),
            content={"error": exc.kind, "message": exc.message},
        )

    @app.get("/healthz")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/register", response_model=UserMessageResponse)
    def register(request: RegisterRequest) -> UserMessageResponse:
        user = core.register_user(request.username, request.password, request.role, request.expertise)
        return UserMessageResponse(message="User registered successfully", user=_user_to_response(user))

    @app.post("/login", response_model=LoginResponse)
    def login(request: LoginRequest) -> LoginResponse:
        session = core.login(request.username, request.password)
        return LoginResponse(
            message="User logged in successfully",
            user=_user_to_response(session.user),
            logged_in_at=session.logged_in_at,
        )

    @app.post("/logout/{user_id}", response_model=MessageResponse)
    def logout(user_id: str) -> MessageResponse:
        core.logout(user_id)
        return MessageResponse(message="User logged out successfully")

    @app.get("/users/{user_id}", response_model=UserResponse)
    def get_user(user_id: str) -> UserResponse:
        return _user_to_response(core.get_user(user_id))

    @app.get("/users/{user_id}/bookings", response_model=BookingListResponse)
    def list_user_bookings(user_id: str) -> BookingListResponse:
        bookings = core.list_bookings_for_user(user_id)
        return BookingListResponse(bookings=[_booking_to_response(item) for item in bookings])

    @app.post("/bookings", status_code=status.HTTP_201_CREATED, response_model=BookingResponse)
    def create_booking(request: CreateBookingRequest) -> BookingResponse:
        booking = core.create_booking(
            request.mentor_id,
            request.mentee_id,
            request.date,
            request.start_time,
            request.end_time,
        )
        return _booking_to_response(booking)

    @app.get("/bookings/{booking_id}", response_model=BookingResponse)
    def get_booking(booking_id: str) -> BookingResponse:
        return _booking_to_response(core.get_booking(booking_id))

    @app.patch("/bookings/{booking_id}/reschedule", response_model=BookingResponse)
    def reschedule_booking(booking_id: str, request: BookingSlot) -> BookingResponse:
        booking = core.reschedule(booking_id, request.date, request.start_time, request.end_time)
        return _booking_to_response(booking)

    @app.post("/bookings/{booking_id}/accept", response_model=BookingResponse)
    def accept_booking(booking_id: str) -> BookingResponse:
        return _booking_to_response(core.accept_booking(booking_id))

    @app.post("/bookings/{booking_id}/reject", response_model=BookingResponse)
    def reject_booking(booking_id: str) -> BookingResponse:
        return _booking_to_response(core.reject_booking(booking_id))

    @app.post("/bookings/{booking_id}/cancel", response_model=BookingResponse)
    def cancel_booking(booking_id: str) -> BookingResponse:
        return _booking_to_response(core.cancel_booking(booking_id))


def create_app(
    *,
    core: MentorshipCore | None = None,
    database: Database | None = None,
) -> FastAPI:
    """Instantiate the FastAPI application for the mentorship registry."""

    if core is None:
        db = database or Database(resolve_database_path(os.getenv("MENTORSHIP_DB_PATH")))
        core = open_core(db)
        logger.info("Registry attached to %s", db.path)

    app = FastAPI(
        title="Mentorship Registry API",
        version="0.1.0",
        description="Users, login sessions, and mentor/mentee bookings.",
    )
    app.state.core = core

    register_api_routes(app, core)
    return app


__all__ = ["ERROR_STATUS_CODES", "create_app", "register_api_routes"]
