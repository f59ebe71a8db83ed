"""
Database Schemas for the StayVista rental API

Each stored Pydantic model maps to a MongoDB collection named after the
lowercase of the class name: User -> "user", Room -> "room",
Booking -> "booking". The remaining models are request and response bodies.
"""

from datetime import datetime, timezone
from typing import List, Optional, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Role = Literal["guest", "host", "admin"]
UserStatus = Literal["none", "requested"]


class User(BaseModel):
    email: str
    name: Optional[str] = None
    image: Optional[str] = None
    role: Role = Field("guest", description="Only an admin may change this")
    status: UserStatus = Field("none", description="'requested' once a guest asks to become a host")


class HostInfo(BaseModel):
    email: str
    name: Optional[str] = None
    image: Optional[str] = None


class GuestInfo(BaseModel):
    email: str
    name: Optional[str] = None
    image: Optional[str] = None


class Room(BaseModel):
    title: str
    category: str
    price: float = Field(..., ge=0, description="Nightly price in major currency units")
    location: Optional[str] = None
    image: Optional[str] = None
    description: Optional[str] = None
    guests: Optional[int] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[float] = None
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None
    host: HostInfo
    booked: bool = False


class Booking(BaseModel):
    room_id: str = Field(..., description="ObjectId string of the booked Room")
    guest: GuestInfo
    host: Optional[HostInfo] = Field(None, description="Ignored on input, copied from the booked Room")
    price: float = Field(..., gt=0)
    transaction_id: str = Field(..., min_length=1, description="Payment reference, one booking per payment")
    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    title: Optional[str] = None
    location: Optional[str] = None
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None


# ------------------------
# Request bodies
# ------------------------
class TokenRequest(BaseModel):
    email: str


class UserUpsert(BaseModel):
    email: str
    name: Optional[str] = None
    image: Optional[str] = None
    status: Optional[str] = None


class RoleUpdate(BaseModel):
    role: Role
    status: UserStatus = "none"


class RoomUpdate(BaseModel):
    title: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    location: Optional[str] = None
    image: Optional[str] = None
    description: Optional[str] = None
    guests: Optional[int] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[float] = None
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None


class RoomStatusUpdate(BaseModel):
    status: bool


class PaymentIntentRequest(BaseModel):
    price: Optional[float] = None


# ------------------------
# Dashboard statistics (camelCase on the wire)
# ------------------------
ChartRow = List[Union[str, float]]


class Stats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_bookings: int
    chart_data: List[ChartRow]


class AdminStats(Stats):
    total_users: int
    total_rooms: int
    total_sales: float


class HostStats(Stats):
    total_rooms: int
    total_sales: float
    host_since: Optional[datetime] = None


class GuestStats(Stats):
    total_spent: float
    guest_since: Optional[datetime] = None
