"""Seed the database with sample hotel data for local development.

Creates an administrator, a receptionist, a guest account, a set of rooms
and a few promotions. The schema must already exist.

Run from the project root:
    alembic upgrade head
    python -m scripts.seed_data
"""

import asyncio
import sys
from datetime import timedelta
from pathlib import Path

# Add the project root to the path so imports work when run as a script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import delete, select

from staydesk.auth.security import hash_password
from staydesk.booking.pricing import format_currency
from staydesk.booking.window import CheckoutWindow
from staydesk.database import async_session_factory, engine
from staydesk.models.booking import Booking
from staydesk.models.payment import Payment
from staydesk.models.promotion import Promotion
from staydesk.models.room import Room
from staydesk.models.user import User

# ---------------------------------------------------------------------------
# Seed data definitions
# ---------------------------------------------------------------------------

USERS = [
    {"email": "admin@staydesk.dev", "password": "admin1234", "name": "Hotel Administrator", "role": "admin"},
    {"email": "desk@staydesk.dev", "password": "desk1234", "name": "Front Desk", "role": "receptionist"},
    {"email": "guest@staydesk.dev", "password": "guest1234", "name": "Demo Guest", "role": "guest"},
]

ROOMS = [
    {
        "name": "Room 101",
        "room_type": "standard",
        "price": 85.0,
        "capacity": 2,
        "description": "Queen bed, garden view, air conditioning.",
    },
    {
        "name": "Room 102",
        "room_type": "standard",
        "price": 85.0,
        "capacity": 2,
        "description": "Twin beds, garden view, air conditioning.",
    },
    {
        "name": "Room 201",
        "room_type": "deluxe",
        "price": 120.0,
        "capacity": 3,
        "description": "King bed and sofa bed, city view, work desk.",
    },
    {
        "name": "Room 202",
        "room_type": "deluxe",
        "price": 120.0,
        "capacity": 3,
        "description": "King bed, balcony, city view.",
        "status": "maintenance",
    },
    {
        "name": "Kafubu Suite",
        "room_type": "suite",
        "price": 210.0,
        "capacity": 4,
        "description": "Separate lounge, kitchenette and panoramic view.",
    },
]


def _promotions(today) -> list[dict]:
    return [
        {
            "title": "Early Bird",
            "description": "10% off any stay.",
            "discount_type": "percentage",
            "discount_percent": 10.0,
            "start_date": today - timedelta(days=7),
            "end_date": today + timedelta(days=60),
        },
        {
            "title": "Long Stay",
            "description": "$15 off per night on stays of $400 or more.",
            "discount_type": "fixed",
            "discount_amount": 15.0,
            "minimum_amount": 400.0,
            "start_date": today,
            "end_date": today + timedelta(days=120),
        },
        {
            "title": "Partner Rate",
            "description": "20% off for partner company staff, first 25 bookings.",
            "partner_name": "Lubumbashi Mining Co.",
            "discount_type": "percentage",
            "discount_percent": 20.0,
            "maximum_uses": 25,
            "start_date": today - timedelta(days=30),
            "end_date": today + timedelta(days=30),
        },
    ]


async def seed() -> None:
    """Populate the database with sample rooms, promotions and accounts.

    Idempotent: removes previously seeded accounts, rooms and promotions
    (with their bookings and payments) before re-creating them.
    """
    async with async_session_factory() as session:
        emails = [u["email"] for u in USERS]
        result = await session.execute(select(User).where(User.email.in_(emails)))
        existing_users = list(result.scalars().all())
        if existing_users:
            print("⚠️  Seed accounts already exist. Deleting and re-seeding...")
            user_ids = [u.id for u in existing_users]
            booking_ids = select(Booking.id).where(Booking.user_id.in_(user_ids))
            await session.execute(delete(Payment).where(Payment.booking_id.in_(booking_ids)))
            await session.execute(delete(Booking).where(Booking.user_id.in_(user_ids)))
            await session.execute(delete(User).where(User.id.in_(user_ids)))
            await session.flush()

        room_names = [r["name"] for r in ROOMS]
        room_ids = select(Room.id).where(Room.name.in_(room_names))
        await session.execute(delete(Booking).where(Booking.room_id.in_(room_ids)))
        await session.execute(delete(Room).where(Room.name.in_(room_names)))

        today = CheckoutWindow.from_settings().today()
        promotions = _promotions(today)
        await session.execute(delete(Promotion).where(Promotion.title.in_([p["title"] for p in promotions])))
        await session.flush()

        # ------------------------------------------------------------------
        # 1. Accounts
        # ------------------------------------------------------------------
        for user_data in USERS:
            user = User(
                email=user_data["email"],
                hashed_password=hash_password(user_data["password"]),
                name=user_data["name"],
                role=user_data["role"],
                is_active=True,
            )
            session.add(user)
            await session.flush()
            print(f"✅ Created {user.role}: {user.email} (id={user.id})")

        # ------------------------------------------------------------------
        # 2. Rooms
        # ------------------------------------------------------------------
        for room_data in ROOMS:
            room = Room(**room_data)
            session.add(room)
            await session.flush()
            print(f"   🛏️  {room.name} ({room.room_type}) {format_currency(room.price)}/night")

        # ------------------------------------------------------------------
        # 3. Promotions
        # ------------------------------------------------------------------
        for promo_data in promotions:
            session.add(Promotion(**promo_data))
        await session.flush()
        await session.commit()

        print(f"✅ Created {len(promotions)} promotions")
        print()
        print("=" * 60)
        print("📊 Seed Summary")
        print("=" * 60)
        for user_data in USERS:
            print(f"   {user_data['role']:<13} {user_data['email']} / {user_data['password']}")
        print(f"   Rooms:         {len(ROOMS)}")
        print(f"   Promotions:    {len(promotions)}")
        print("=" * 60)
        print("🎉 Done! You can now log in at /api/v1/auth/login")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
