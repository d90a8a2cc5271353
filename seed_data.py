#!/usr/bin/env python3

from datetime import date, timedelta

from src.auth.schemas import UserCreate
from src.auth.service import UserService
from src.database import SessionLocal, init_db
from src.exceptions import DuplicateTrip
from src.logger import logger, setup_logging
from src.trips.ledger import TripLedger
from src.trips.schemas import TripCreate, SegmentCreate

ADMIN = UserCreate(name="Administrateur", email="admin@kocrou.ci", password="admin123")
PASSENGER = UserCreate(name="Awa Koné", email="awa@example.com", password="passenger123")

def sample_trips(start: date):
    return [
        TripCreate(
            origin="Abidjan",
            destination="Yamoussoukro",
            departure_date=start,
            departure_time="07:00",
            arrival_time="10:30",
            price=5000,
            total_seats=50,
            vehicle_type="Autocar",
            segments=[
                SegmentCreate(origin="Abidjan", destination="Tiassalé", price=2000),
                SegmentCreate(origin="Tiassalé", destination="Yamoussoukro", price=3000),
            ]
        ),
        TripCreate(
            origin="Abidjan",
            destination="Bouaké",
            departure_date=start,
            departure_time="08:00",
            arrival_time="13:00",
            price=8000,
            total_seats=40,
            vehicle_type="Bus VIP",
            segments=[
                SegmentCreate(origin="Abidjan", destination="Yamoussoukro", price=5000),
            ]
        ),
        TripCreate(
            company="Kocrou Express",
            origin="Yamoussoukro",
            destination="Daloa",
            departure_date=start + timedelta(days=1),
            departure_time="06:30",
            arrival_time="09:00",
            price=4000,
            total_seats=18,
            vehicle_type="Minibus"
        ),
    ]

def create_seed_data():
    init_db()
    db = SessionLocal()

    try:
        logger.info("Creating seed data...")

        for account, is_admin in ((ADMIN, True), (PASSENGER, False)):
            if UserService.get_user_by_email(db, account.email):
                logger.info(f"User {account.email} already exists, skipping")
                continue
            UserService.create_user(db, account, is_admin=is_admin)

        ledger = TripLedger(db)
        for trip in sample_trips(date.today() + timedelta(days=1)):
            try:
                ledger.create(trip)
            except DuplicateTrip as e:
                logger.info(f"{e.message}, skipping")

        logger.info("Seed data created")
        logger.info(f"Admin login: {ADMIN.email} / {ADMIN.password}")
    finally:
        db.close()

if __name__ == "__main__":
    setup_logging()
    create_seed_data()
