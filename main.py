import logging
from contextlib import asynccontextmanager
from datetime import date
from typing import Callable, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordRequestForm

from api.dependencies import get_context, get_current_active_user, require_roles
from api.schemas import (
    # Bookings
    CreateBookingRequest, WalkInBookingRequest, UpdateBookingStatusRequest,
    BookingResponse, BookingCreatedResponse, MessageResponse, AvailabilityResponse,
    # Rooms
    CreateRoomRequest, UpdateRoomRequest, RoomResponse,
    # Reports
    OccupancyReportResponse,
    # Auth
    Token, UserResponse,
)
from bootstrap import AppContext, build_context, seed_demo_data
from domain.auth import User
from domain.entities import Booking, Room
from domain.enums import BookingStatus, Role, RoomStatus, RoomType
from domain.errors import (
    BookingDomainError, ConflictError, InternalError, NotFoundError,
    UnauthorizedError, ValidationError,
)
from domain.notifications import BookingNotifier
from infrastructure.config import Settings, get_settings
from infrastructure.logging_config import setup_logging

logger = logging.getLogger(__name__)

router = APIRouter()

STAFF = (Role.MANAGER, Role.FRONT_DESK)


# ============================================================================
# HEALTH & ENUM REFERENCE ENDPOINTS
# ============================================================================

@router.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running"}

@router.get("/api/enums/booking-status", tags=["Enum Reference"])
async def get_booking_statuses():
    """Get all BookingStatus values"""
    return {"values": [item.value for item in BookingStatus]}

@router.get("/api/enums/room-status", tags=["Enum Reference"])
async def get_room_statuses():
    """Get all RoomStatus values"""
    return {"values": [item.value for item in RoomStatus]}

@router.get("/api/enums/roles", tags=["Enum Reference"])
async def get_roles():
    """Get all Role values"""
    return {"values": [item.value for item in Role]}

# ============================================================================
# AUTH ENDPOINTS
# ============================================================================

@router.post("/token", response_model=Token, tags=["Auth"])
async def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    context: AppContext = Depends(get_context)
):
    user = await context.users.find_by_username(form_data.username)
    if not user or not context.security.verify_password(form_data.password, user.hashed_password):
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token = context.security.create_access_token(data={"sub": user.username})
    return {"access_token": access_token, "token_type": "bearer"}

@router.get("/users/me", response_model=UserResponse, tags=["Auth"])
async def read_users_me(current_user: User = Depends(get_current_active_user)):
    return current_user

# ============================================================================
# BOOKING ENDPOINTS
# ============================================================================

@router.get("/api/bookings", response_model=List[BookingResponse], tags=["Bookings"])
async def get_all_bookings(
    context: AppContext = Depends(get_context),
    current_user: User = Depends(require_roles(*STAFF))
):
    """Get all bookings (staff view)"""
    bookings = await context.booking_service.get_all_bookings(current_user)
    return [_booking_to_response(b) for b in bookings]

@router.get("/api/bookings/my-bookings", response_model=List[BookingResponse], tags=["Bookings"])
async def get_my_bookings(
    context: AppContext = Depends(get_context),
    current_user: User = Depends(get_current_active_user)
):
    """Get the caller's own bookings"""
    bookings = await context.booking_service.get_user_bookings(current_user)
    return [_booking_to_response(b) for b in bookings]

@router.get("/api/bookings/check-availability", response_model=AvailabilityResponse, tags=["Bookings"])
async def check_room_availability(
    room_id: int = Query(..., alias="roomId"),
    check_in_date: date = Query(..., alias="checkInDate"),
    check_out_date: date = Query(..., alias="checkOutDate"),
    context: AppContext = Depends(get_context)
):
    """Check whether a room can be booked for a date range (public)"""
    available = await context.availability_service.check_room_availability(
        room_id, check_in_date, check_out_date
    )
    return AvailabilityResponse(
        room_id=room_id,
        is_available=available,
        check_in_date=check_in_date,
        check_out_date=check_out_date,
    )

@router.get("/api/bookings/reports/occupancy", response_model=OccupancyReportResponse, tags=["Reports"])
async def get_occupancy_report(
    property_id: Optional[str] = Query(None, alias="propertyId"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    context: AppContext = Depends(get_context),
    current_user: User = Depends(require_roles(Role.MANAGER))
):
    """Per-day occupancy for a property (manager only)"""
    report = await context.occupancy_service.occupancy_report(
        current_user,
        property_id or context.settings.DEFAULT_PROPERTY_ID,
        start_date=start_date,
        end_date=end_date,
    )
    return OccupancyReportResponse.model_validate(report.model_dump())

@router.get("/api/bookings/number/{booking_number}", response_model=BookingResponse, tags=["Bookings"])
async def get_booking_by_number(
    booking_number: str,
    context: AppContext = Depends(get_context),
    current_user: User = Depends(get_current_active_user)
):
    """Get booking by booking number"""
    booking = await context.booking_service.get_booking_by_number(booking_number, current_user)
    return _booking_to_response(booking)

@router.post("/api/bookings", response_model=BookingCreatedResponse, status_code=201, tags=["Bookings"])
async def create_booking(
    request: CreateBookingRequest,
    context: AppContext = Depends(get_context),
    current_user: User = Depends(get_current_active_user)
):
    """Create a booking for the caller"""
    booking = await context.booking_service.create_booking(
        user_id=current_user.user_id,
        room_id=request.room_id,
        check_in=request.check_in_date,
        check_out=request.check_out_date,
        guest_count=request.guest_count,
        special_requests=request.special_requests,
    )
    return BookingCreatedResponse(
        message="Booking added successfully, Status pending",
        booking=_booking_to_response(booking),
    )

@router.post("/api/bookings/walk-in", response_model=BookingCreatedResponse, status_code=201, tags=["Bookings"])
async def create_walk_in_booking(
    request: WalkInBookingRequest,
    context: AppContext = Depends(get_context),
    current_user: User = Depends(require_roles(*STAFF))
):
    """Create a confirmed booking for a guest at the front desk"""
    booking = await context.booking_service.create_walk_in_booking(
        actor=current_user,
        room_id=request.room_id,
        check_in=request.check_in_date,
        check_out=request.check_out_date,
        guest_count=request.guest_count,
        guest_email=request.guest_email,
        guest_name=request.guest_name,
        guest_phone=request.guest_phone,
        special_requests=request.special_requests,
    )
    return BookingCreatedResponse(
        message="Walk-in booking created and confirmed successfully",
        booking=_booking_to_response(booking),
    )

@router.get("/api/bookings/{booking_id}", response_model=BookingResponse, tags=["Bookings"])
async def get_booking(
    booking_id: UUID,
    context: AppContext = Depends(get_context),
    current_user: User = Depends(get_current_active_user)
):
    """Get booking by ID (staff or owner)"""
    booking = await context.booking_service.get_booking(booking_id, current_user)
    return _booking_to_response(booking)

@router.put("/api/bookings/{booking_id}/status", response_model=BookingResponse, tags=["Bookings"])
async def update_booking_status(
    booking_id: UUID,
    request: UpdateBookingStatusRequest,
    context: AppContext = Depends(get_context),
    current_user: User = Depends(require_roles(*STAFF))
):
    """Change booking status; room status follows"""
    booking = await context.booking_service.set_status(booking_id, request.status, current_user)
    return _booking_to_response(booking)

@router.put("/api/bookings/{booking_id}/cancel", response_model=BookingResponse, tags=["Bookings"])
async def cancel_booking(
    booking_id: UUID,
    context: AppContext = Depends(get_context),
    current_user: User = Depends(get_current_active_user)
):
    """Cancel own booking"""
    booking = await context.booking_service.cancel_booking(booking_id, current_user)
    return _booking_to_response(booking)

# ============================================================================
# ROOM ENDPOINTS
# ============================================================================

@router.post("/api/rooms", response_model=RoomResponse, status_code=201, tags=["Rooms"])
async def create_room(
    request: CreateRoomRequest,
    context: AppContext = Depends(get_context),
    current_user: User = Depends(require_roles(Role.MANAGER))
):
    """Create a room (manager only)"""
    room = await context.room_service.create_room(current_user, **request.model_dump())
    return _room_to_response(room)

@router.get("/api/rooms", response_model=List[RoomResponse], tags=["Rooms"])
async def get_all_rooms(
    status: Optional[RoomStatus] = None,
    room_type: Optional[RoomType] = Query(None, alias="type"),
    context: AppContext = Depends(get_context),
    current_user: User = Depends(get_current_active_user)
):
    """List rooms, optionally filtered by status and type"""
    rooms = await context.room_service.list_rooms(status=status, room_type=room_type)
    return [_room_to_response(r) for r in rooms]

@router.get("/api/rooms/search", response_model=RoomResponse, tags=["Rooms"])
async def search_room_by_number(
    room_number: str = Query(..., alias="roomNumber"),
    context: AppContext = Depends(get_context),
    current_user: User = Depends(get_current_active_user)
):
    """Find a room by its number"""
    room = await context.room_service.search_by_number(room_number)
    return _room_to_response(room)

@router.get("/api/rooms/{room_id}", response_model=RoomResponse, tags=["Rooms"])
async def get_room(
    room_id: int,
    context: AppContext = Depends(get_context),
    current_user: User = Depends(get_current_active_user)
):
    """Get room by ID"""
    room = await context.room_service.get_room(room_id)
    return _room_to_response(room)

@router.patch("/api/rooms/{room_id}", response_model=RoomResponse, tags=["Rooms"])
async def update_room(
    room_id: int,
    request: UpdateRoomRequest,
    context: AppContext = Depends(get_context),
    current_user: User = Depends(require_roles(Role.MANAGER))
):
    """Update room details (manager only)"""
    room = await context.room_service.update_room(current_user, room_id, **request.model_dump())
    return _room_to_response(room)

@router.delete("/api/rooms/{room_id}", response_model=MessageResponse, tags=["Rooms"])
async def delete_room(
    room_id: int,
    context: AppContext = Depends(get_context),
    current_user: User = Depends(require_roles(Role.MANAGER))
):
    """Delete a room with no active bookings (manager only)"""
    await context.room_service.delete_room(current_user, room_id)
    return MessageResponse(message="Room deleted successfully")

# ============================================================================
# ERROR HANDLERS
# ============================================================================

def _error_response(status_code: int, exc: BookingDomainError) -> JSONResponse:
    content = {"detail": exc.message}
    if exc.details:
        content["context"] = exc.details
    return JSONResponse(status_code=status_code, content=content)

async def handle_validation_error(request: Request, exc: ValidationError):
    return _error_response(400, exc)

async def handle_conflict(request: Request, exc: ConflictError):
    return _error_response(400, exc)

async def handle_not_found(request: Request, exc: NotFoundError):
    return _error_response(404, exc)

async def handle_unauthorized(request: Request, exc: UnauthorizedError):
    return _error_response(403, exc)

async def handle_internal(request: Request, exc: BookingDomainError):
    logger.error(
        "Internal failure on %s %s: %s", request.method, request.url.path, exc.message,
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"detail": "Request could not be completed"})

def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, handle_validation_error)
    app.add_exception_handler(ConflictError, handle_conflict)
    app.add_exception_handler(NotFoundError, handle_not_found)
    app.add_exception_handler(UnauthorizedError, handle_unauthorized)
    app.add_exception_handler(InternalError, handle_internal)
    app.add_exception_handler(BookingDomainError, handle_internal)

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def _booking_to_response(booking: Booking) -> BookingResponse:
    """Convert Booking entity to BookingResponse"""
    return BookingResponse(
        booking_id=booking.booking_id,
        booking_number=booking.booking_number,
        user_id=booking.user_id,
        room_id=booking.room_id,
        check_in_date=booking.check_in_date,
        check_out_date=booking.check_out_date,
        guest_count=booking.guest_count,
        nights=booking.nights,
        total_amount=booking.total_amount,
        status=booking.status.value,
        special_requests=booking.special_requests,
        created_by=booking.created_by,
        created_at=booking.created_at,
        modified_at=booking.modified_at,
        version=booking.version,
    )

def _room_to_response(room: Room) -> RoomResponse:
    """Convert Room entity to RoomResponse"""
    return RoomResponse.model_validate(room.model_dump())

# ============================================================================
# APPLICATION FACTORY
# ============================================================================

def create_app(
    settings: Optional[Settings] = None,
    notifier: Optional[BookingNotifier] = None,
    today: Callable[[], date] = date.today,
) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings)
    context = build_context(settings, notifier=notifier, today=today)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.SEED_DEMO_DATA:
            await seed_demo_data(context)
        yield
        await context.dispatcher.drain()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Room availability, booking lifecycle and occupancy reporting",
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
    )
    app.state.context = context
    register_exception_handlers(app)
    app.include_router(router)
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
