from enum import Enum
from typing import Optional, List, Dict, Any
from sqlmodel import SQLModel, Field, Relationship, Column, JSON
from datetime import datetime


class RideStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FULL = "full"  # set when availableSeats reaches zero


class ParticipantStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class NotificationType(str, Enum):
    RIDE_JOIN = "RIDE_JOIN"
    RIDE_CANCEL = "RIDE_CANCEL"
    RIDE_UPDATE = "RIDE_UPDATE"
    RIDE_REQUEST = "RIDE_REQUEST"
    RIDE_CONFIRMATION = "RIDE_CONFIRMATION"
    RIDE_REJECTION = "RIDE_REJECTION"
    USER_PROFILE_UPDATE = "USER_PROFILE_UPDATE"
    USER_SECURITY_ALERT = "USER_SECURITY_ALERT"
    SYSTEM_MAINTENANCE = "SYSTEM_MAINTENANCE"
    SYSTEM_UPDATE = "SYSTEM_UPDATE"


class NotificationPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class NotificationStatus(str, Enum):
    UNREAD = "UNREAD"
    READ = "READ"
    ARCHIVED = "ARCHIVED"


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str = Field(unique=True, index=True)
    phone: Optional[str] = None
    college: Optional[str] = None
    department: Optional[str] = None
    profile_picture: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


class AuthToken(SQLModel, table=True):
    token: str = Field(primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Ride(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    creator_id: int = Field(foreign_key="user.id", index=True)
    # points are stored as [lng, lat] pairs split into columns
    from_address: str
    from_lng: float
    from_lat: float
    to_address: str
    to_lng: float
    to_lat: float
    departure_time: datetime = Field(index=True)
    available_seats: int
    status: str = Field(default=RideStatus.ACTIVE.value, index=True)  # active, completed, cancelled, full
    created_at: datetime = Field(default_factory=datetime.utcnow)

    creator: Optional[User] = Relationship()
    participants: List["Participant"] = Relationship(
        back_populates="ride",
        sa_relationship_kwargs={"order_by": "Participant.id", "cascade": "all, delete-orphan"},
    )


class Participant(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    ride_id: int = Field(foreign_key="ride.id", index=True, ondelete="CASCADE")
    user_id: int = Field(foreign_key="user.id", index=True)
    name: str
    phone: str
    status: str = Field(default=ParticipantStatus.PENDING.value)  # pending, accepted, rejected
    created_at: datetime = Field(default_factory=datetime.utcnow)

    ride: Optional[Ride] = Relationship(back_populates="participants")


class Notification(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    recipient_id: int = Field(foreign_key="user.id", index=True)
    type: str = Field(index=True)
    ride_id: Optional[int] = Field(default=None, foreign_key="ride.id", ondelete="SET NULL")
    user_id: Optional[int] = Field(default=None, foreign_key="user.id")
    message: str = Field(max_length=500)
    context: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    priority: str = Field(default=NotificationPriority.LOW.value)
    status: str = Field(default=NotificationStatus.UNREAD.value, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    expires_at: Optional[datetime] = None

    ride: Optional[Ride] = Relationship()
    user: Optional[User] = Relationship(
        sa_relationship_kwargs={"foreign_keys": "[Notification.user_id]"}
    )
