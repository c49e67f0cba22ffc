"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from typing import List, Optional

from domain.enums import Role, RoomStatus, RoomType


class CamelModel(BaseModel):
    """Booking payloads use camelCase on the wire"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


# ============================================================================
# BOOKING SCHEMAS
# ============================================================================

class CreateBookingRequest(CamelModel):
    """Create booking request DTO"""
    room_id: int
    check_in_date: date
    check_out_date: date
    guest_count: int = Field(ge=1, default=1)
    special_requests: Optional[str] = None


class WalkInBookingRequest(CreateBookingRequest):
    """Walk-in booking request DTO"""
    guest_name: Optional[str] = None
    guest_email: Optional[str] = None
    guest_phone: Optional[str] = None


class UpdateBookingStatusRequest(CamelModel):
    """Status change request DTO; the value is validated by the lifecycle"""
    status: str


class BookingResponse(CamelModel):
    """Booking response DTO"""
    booking_id: UUID
    booking_number: str
    user_id: UUID
    room_id: int
    check_in_date: date
    check_out_date: date
    guest_count: int
    nights: int
    total_amount: Decimal
    status: str
    special_requests: Optional[str] = None
    created_by: Optional[UUID] = None
    created_at: datetime
    modified_at: datetime
    version: int


class BookingCreatedResponse(CamelModel):
    message: str
    booking: BookingResponse


class MessageResponse(CamelModel):
    message: str


class AvailabilityResponse(CamelModel):
    """Availability check response DTO"""
    room_id: int
    is_available: bool
    check_in_date: date
    check_out_date: date


# ============================================================================
# ROOM SCHEMAS
# ============================================================================

class CreateRoomRequest(CamelModel):
    """Create room request DTO"""
    room_number: str = Field(min_length=1)
    room_type: RoomType
    price: Decimal = Field(gt=0)
    capacity: int = Field(gt=0, default=1)
    air_conditioned: bool = False
    description: Optional[str] = None
    amenities: List[str] = []
    property_id: Optional[str] = None


class UpdateRoomRequest(CamelModel):
    """Update room request DTO; omitted fields are left unchanged"""
    room_type: Optional[RoomType] = None
    price: Optional[Decimal] = Field(None, gt=0)
    capacity: Optional[int] = Field(None, gt=0)
    air_conditioned: Optional[bool] = None
    description: Optional[str] = None
    amenities: Optional[List[str]] = None
    status: Optional[RoomStatus] = None


class RoomResponse(CamelModel):
    """Room response DTO"""
    room_id: int
    room_number: str
    room_type: RoomType
    price: Decimal
    capacity: int
    air_conditioned: bool
    description: Optional[str] = None
    amenities: List[str]
    property_id: str
    status: RoomStatus


# ============================================================================
# REPORT SCHEMAS
# ============================================================================

class DailyOccupancyResponse(CamelModel):
    date: date
    booked_rooms: int
    available_rooms: int
    occupancy_rate: Decimal


class OccupancySummaryResponse(CamelModel):
    total_nights_booked: int
    average_occupancy_rate: Decimal


class OccupancyReportResponse(CamelModel):
    """Occupancy report response DTO; rates are percentages"""
    property_id: str
    total_rooms: int
    start_date: date
    end_date: date
    total_days: int
    has_data: bool
    summary: OccupancySummaryResponse
    daily_occupancy: List[DailyOccupancyResponse]


# ============================================================================
# AUTH SCHEMAS
# ============================================================================

class Token(BaseModel):
    """Token response DTO"""
    access_token: str
    token_type: str


class TokenData(BaseModel):
    """Token payload DTO"""
    username: Optional[str] = None


class UserResponse(BaseModel):
    """User response DTO"""
    user_id: UUID
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: Role
    disabled: bool
