#!/usr/bin/env python3
"""
Seed Data Script

Creates the tables, the reference cities and the initial administrator for
the Bus Travel Booking System. Safe to run more than once.

Usage:
    python seed_data.py
"""

import logging

from bustravel.auth.utils import get_password_hash
from bustravel.config import settings
from bustravel.database import Base, SessionLocal, engine
from bustravel.models import City, User, UserRole

logger = logging.getLogger(__name__)

CITIES = [
    {"name": "Jakarta", "center_lat": -6.2088, "center_lng": 106.8456, "pickup_radius_km": 10.0},
    {"name": "Bandung", "center_lat": -6.9175, "center_lng": 107.6191, "pickup_radius_km": 7.0},
]


def seed_cities(db) -> int:
    """Insert the reference cities that are not there yet"""
    created = 0
    for data in CITIES:
        if db.query(City).filter(City.name == data["name"]).first():
            print(f"✅ City {data['name']} already exists, skipping...")
            continue
        db.add(City(**data))
        created += 1
    db.flush()
    return created


def seed_admin(db) -> bool:
    """Create the initial administrator account"""
    if db.query(User).filter(User.email == settings.ADMIN_EMAIL).first():
        print("✅ Admin user already exists, skipping...")
        return False

    db.add(User(
        email=settings.ADMIN_EMAIL,
        name=settings.ADMIN_NAME,
        password=get_password_hash(settings.ADMIN_PASSWORD),
        role=UserRole.ADMIN
    ))
    db.flush()
    return True


def create_seed_data():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    try:
        print("🚀 Creating seed data for Bus Travel Booking System...")

        print("Creating cities...")
        cities_created = seed_cities(db)

        print("Creating admin user...")
        admin_created = seed_admin(db)

        db.commit()
        logger.info("Seeded %s cities, admin created: %s", cities_created, admin_created)
        print("✅ Successfully created seed data for Bus Travel Booking System!")
        print("Created:")
        print(f"  - {cities_created} cities")
        print(f"  - {1 if admin_created else 0} admin users")
        if admin_created:
            print(f"\n📋 Admin login: {settings.ADMIN_EMAIL}")
            print("⚠️  Change the default admin password after first login.")

    except Exception as e:
        print(f"❌ Error creating seed data: {e}")
        db.rollback()
        raise
    finally:
        db.close()

if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL.upper())
    create_seed_data()
