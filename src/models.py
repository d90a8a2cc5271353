from sqlalchemy import Column, Integer, String, Boolean, DateTime, Date, Text, ForeignKey, Index, CheckConstraint, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from src.database import Base

# ================================
# Users
# ================================
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False)
    is_admin = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    reservations = relationship("Reservation", back_populates="user")

# ================================
# Trips (capacity ledger) & Segments
# ================================
class Trip(Base):
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True)
    company = Column(String(255), nullable=False)
    origin = Column(String(255), nullable=False)
    destination = Column(String(255), nullable=False)
    origin_key = Column(String(255), nullable=False, index=True)
    destination_key = Column(String(255), nullable=False, index=True)
    departure_date = Column(Date, nullable=False, index=True)
    departure_time = Column(String(5), nullable=False)
    arrival_time = Column(String(5))
    price = Column(Integer, nullable=False)
    total_price = Column(Integer, nullable=False)
    total_seats = Column(Integer, nullable=False, default=10)
    remaining_seats = Column(Integer, nullable=False)
    vehicle_type = Column(String(50), nullable=False, default="Autocar")
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    segments = relationship(
        "TripSegment",
        back_populates="trip",
        order_by="TripSegment.position",
        cascade="all, delete-orphan"
    )
    reservations = relationship("Reservation", back_populates="trip")

    __table_args__ = (
        CheckConstraint(
            "remaining_seats >= 0 AND remaining_seats <= total_seats",
            name="ck_trips_remaining_within_total"
        ),
        # One active departure per route and calendar day
        Index(
            "uq_active_trip_route_day",
            "origin_key", "destination_key", "departure_date",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active")
        ),
    )

class TripSegment(Base):
    __tablename__ = "trip_segments"

    id = Column(Integer, primary_key=True, index=True)
    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    origin = Column(String(255), nullable=False)
    destination = Column(String(255), nullable=False)
    price = Column(Integer, nullable=False)

    # Relationships
    trip = relationship("Trip", back_populates="segments")

# ================================
# Reservations
# ================================
class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)

    # Commercial terms copied at booking time
    company = Column(String(255), nullable=False)
    origin = Column(String(255), nullable=False)
    destination = Column(String(255), nullable=False)
    departure_time = Column(String(5))
    arrival_time = Column(String(5))
    price = Column(Integer, nullable=False)

    # "*" for the full route, "origin|destination" for a segment
    scope_key = Column(String(512), nullable=False)
    seat = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default="confirmed", index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="reservations")
    trip = relationship("Trip", back_populates="reservations")

    __table_args__ = (
        CheckConstraint("seat > 0", name="ck_reservations_seat_positive"),
        Index(
            "uq_active_seat_per_scope",
            "trip_id", "scope_key", "seat",
            unique=True,
            postgresql_where=text("status IN ('confirmed', 'validated')"),
            sqlite_where=text("status IN ('confirmed', 'validated')")
        ),
    )

# ================================
# Admin notifications
# ================================
class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(String(20), nullable=False, index=True)
    message = Column(Text, nullable=False)
    user_name = Column(String(255))
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

# ================================
# Activity log
# ================================
class ActivityLog(Base):
    __tablename__ = "logs"

    id = Column(Integer, primary_key=True, index=True)
    # Null for system entries; kept when the account is removed
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    type = Column(String(30), nullable=False, default="info", index=True)
    action = Column(String(255), nullable=False)
    details = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    user = relationship("User")
