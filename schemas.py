"""
Shared request/response contract

Every JSON body accepted or returned by the API is described by one of the
Pydantic models below. Field names are snake_case in Python and camelCase on
the wire (``departure_time`` <-> ``departureTime``). The JSON schemas are
published at ``GET /schema`` so clients validate against the same shapes
instead of guessing optional fields.
"""

from datetime import datetime, timezone
from typing import Annotated, Optional, List, Dict, Any
from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator

from models import Ride, Notification, User, RideStatus, NotificationStatus


class _Wire(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _utc_text(value: datetime) -> str:
    return _naive_utc(value).isoformat() + "Z"


# stored naive, always UTC; rendered with an explicit Z
UtcDatetime = Annotated[datetime, PlainSerializer(_utc_text, return_type=str, when_used="json")]


# ─────────────────────────── requests ───────────────────────────────────────

class Point(_Wire):
    """A named location; coordinates are [longitude, latitude]."""
    type: str = "Point"
    coordinates: List[float] = Field(..., min_length=2, max_length=2)
    address: str = Field(..., min_length=1)


class RideIn(_Wire):
    from_: Point = Field(..., alias="from")
    to: Point
    departure_time: datetime = Field(..., alias="departureTime")
    available_seats: int = Field(..., ge=1, alias="availableSeats")

    @field_validator("departure_time")
    @classmethod
    def naive_utc(cls, value):
        return _naive_utc(value)


class RideUpdate(_Wire):
    """Partial ride update; only the fields sent are applied."""
    from_: Optional[Point] = Field(None, alias="from")
    to: Optional[Point] = None
    departure_time: Optional[datetime] = Field(None, alias="departureTime")
    available_seats: Optional[int] = Field(None, ge=1, alias="availableSeats")
    status: Optional[RideStatus] = None

    @field_validator("departure_time")
    @classmethod
    def naive_utc(cls, value):
        return _naive_utc(value)


class SearchIn(_Wire):
    from_coordinates: Optional[List[float]] = Field(None, alias="fromCoordinates", min_length=2, max_length=2)
    to_coordinates: Optional[List[float]] = Field(None, alias="toCoordinates", min_length=2, max_length=2)


class ProfileUpdate(_Wire):
    name: Optional[str] = None
    phone: Optional[str] = None
    college: Optional[str] = None
    department: Optional[str] = None


# ─────────────────────────── responses ──────────────────────────────────────

class UserRef(_Wire):
    id: Optional[int] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class UserOut(_Wire):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    college: Optional[str] = None
    department: Optional[str] = None
    profile_picture: Optional[str] = Field(None, alias="profilePicture")


class ParticipantOut(_Wire):
    id: int
    user_id: int = Field(..., alias="userId")
    name: str
    phone: str
    status: str


class RideOut(_Wire):
    id: int
    creator: Optional[UserRef] = None
    from_: Point = Field(..., alias="from")
    to: Point
    departure_time: UtcDatetime = Field(..., alias="departureTime")
    available_seats: int = Field(..., alias="availableSeats")
    participants: List[ParticipantOut] = []
    status: str
    created_at: UtcDatetime = Field(..., alias="createdAt")


class RideSummary(_Wire):
    id: int
    from_: Point = Field(..., alias="from")
    to: Point
    departure_time: UtcDatetime = Field(..., alias="departureTime")


class NotificationOut(_Wire):
    id: int
    recipient: int
    type: str
    ride: Optional[RideSummary] = None
    user: Optional[UserRef] = None
    message: str
    context: Optional[Dict[str, Any]] = None
    priority: str
    status: str
    read: bool
    created_at: UtcDatetime = Field(..., alias="createdAt")
    updated_at: UtcDatetime = Field(..., alias="updatedAt")
    expires_at: Optional[UtcDatetime] = Field(None, alias="expiresAt")


def _points(ride: Ride):
    return (
        Point(coordinates=[ride.from_lng, ride.from_lat], address=ride.from_address),
        Point(coordinates=[ride.to_lng, ride.to_lat], address=ride.to_address),
    )


def _user_ref(user: Optional[User]) -> Optional[UserRef]:
    if user is None:
        return None
    return UserRef(id=user.id, name=user.name, email=user.email, phone=user.phone)


def ride_out(ride: Ride, default_creator: bool = False) -> dict:
    """Render a ride with its creator and participants populated.

    ``default_creator`` fills in ``Unknown``/empty strings when the creator
    reference cannot be resolved or lacks fields (used by search results).
    """
    creator = _user_ref(ride.creator)
    if default_creator:
        creator = creator or UserRef()
        creator.name = creator.name or "Unknown"
        creator.email = creator.email or ""
        creator.phone = creator.phone or ""
    frm, to = _points(ride)
    out = RideOut(
        id=ride.id,
        creator=creator,
        from_=frm,
        to=to,
        departure_time=ride.departure_time,
        available_seats=ride.available_seats,
        participants=[
            ParticipantOut(id=p.id, user_id=p.user_id, name=p.name, phone=p.phone, status=p.status)
            for p in ride.participants
        ],
        status=ride.status,
        created_at=ride.created_at,
    )
    return out.model_dump(by_alias=True, mode="json")


def notification_out(n: Notification) -> dict:
    summary = None
    if n.ride is not None:
        frm, to = _points(n.ride)
        summary = RideSummary(id=n.ride.id, from_=frm, to=to, departure_time=n.ride.departure_time)
    user = UserRef(id=n.user.id, name=n.user.name) if n.user is not None else None
    out = NotificationOut(
        id=n.id,
        recipient=n.recipient_id,
        type=n.type,
        ride=summary,
        user=user,
        message=n.message,
        context=n.context,
        priority=n.priority,
        status=n.status,
        read=n.status == NotificationStatus.READ,
        created_at=n.created_at,
        updated_at=n.updated_at,
        expires_at=n.expires_at,
    )
    return out.model_dump(by_alias=True, mode="json")


def user_out(user: User) -> dict:
    out = UserOut(
        id=user.id,
        name=user.name,
        email=user.email,
        phone=user.phone,
        college=user.college,
        department=user.department,
        profile_picture=user.profile_picture,
    )
    return out.model_dump(by_alias=True, mode="json")


def contract_schemas() -> dict:
    models = {
        "point": Point,
        "ride_in": RideIn,
        "ride_update": RideUpdate,
        "search": SearchIn,
        "profile_update": ProfileUpdate,
        "ride": RideOut,
        "notification": NotificationOut,
        "user": UserOut,
    }
    return {name: m.model_json_schema(by_alias=True) for name, m in models.items()}
