"""Shared fixtures for the booking service tests"""
from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from bootstrap import build_context
from domain.auth import UserInDB
from domain.entities import Room
from domain.enums import Role, RoomType
from domain.notifications import BookingNotifier
from infrastructure.config import Settings
from main import create_app

TODAY = date(2024, 5, 1)


def fixed_today() -> date:
    return TODAY


class RecordingNotifier(BookingNotifier):
    """Captures confirmations instead of sending them"""

    def __init__(self):
        self.sent = []

    async def send_booking_confirmation(self, guest_email, summary):
        self.sent.append((guest_email, summary))


class FailingNotifier(BookingNotifier):
    def __init__(self):
        self.attempts = 0

    async def send_booking_confirmation(self, guest_email, summary):
        self.attempts += 1
        raise ConnectionError("SMTP relay unreachable")


@pytest.fixture
def settings():
    return Settings(
        SECRET_KEY="test-secret-key",
        PASSWORD_BCRYPT_ROUNDS=4,
        ROOM_LOCK_TIMEOUT_SECONDS=2,
        SEED_DEMO_DATA=True,
    )


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def context(settings, notifier):
    return build_context(settings, notifier=notifier, today=fixed_today)


@pytest.fixture
def booking_service(context):
    return context.booking_service


@pytest.fixture
def availability_service(context):
    return context.availability_service


@pytest.fixture
def room_service(context):
    return context.room_service


@pytest.fixture
def occupancy_service(context):
    return context.occupancy_service


async def _add_user(context, username, role):
    user = UserInDB(
        username=username,
        email=f"{username}@example.com",
        full_name=username.title(),
        role=role,
        hashed_password="not-used",
    )
    await context.users.save(user)
    return user


@pytest.fixture
async def manager(context):
    return await _add_user(context, "manager", Role.MANAGER)


@pytest.fixture
async def front_desk(context):
    return await _add_user(context, "frontdesk", Role.FRONT_DESK)


@pytest.fixture
async def guest(context):
    return await _add_user(context, "alice", Role.CUSTOMER)


@pytest.fixture
async def other_guest(context):
    return await _add_user(context, "bob", Role.CUSTOMER)


async def add_room(context, number="101", price="100.00", capacity=2, property_id="MAIN"):
    room = Room(
        room_id=await context.rooms.next_id(),
        room_number=number,
        room_type=RoomType.STANDARD,
        price=Decimal(price),
        capacity=capacity,
        property_id=property_id,
    )
    await context.rooms.save(room)
    return room


@pytest.fixture
async def room(context):
    return await add_room(context)


# ============================================================================
# API FIXTURES
# ============================================================================

@pytest.fixture
def client(settings, notifier):
    """FastAPI test client with demo data seeded"""
    app = create_app(settings, notifier=notifier, today=fixed_today)
    with TestClient(app) as test_client:
        yield test_client


def _login(client, username, password):
    response = client.post("/token", data={"username": username, "password": password})
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def manager_headers(client):
    return _login(client, "manager", "manager123")


@pytest.fixture
def front_desk_headers(client):
    return _login(client, "frontdesk", "frontdesk123")


@pytest.fixture
def guest_headers(client):
    return _login(client, "guest", "guest123")
