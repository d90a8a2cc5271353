import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from src.database import Base, get_db
from src.main import app
from src.monitoring.presence import AdminPresenceRegistry
from src.monitoring.websocket import ConnectionManager
from src.reservations.allocator import ReservationAllocator
from src.trips.ledger import TripLedger
from tests.utils import RecordingEventSink, create_user, make_trip_spec, segment
import src.models  # noqa: F401


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False}
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def event_sink():
    return RecordingEventSink()


@pytest.fixture
def ledger(db):
    return TripLedger(db)


@pytest.fixture
def allocator(db, ledger, event_sink):
    return ReservationAllocator(db, event_sink=event_sink, ledger=ledger)


@pytest.fixture
def trip(ledger):
    return ledger.create(make_trip_spec(
        segments=[
            segment("Abidjan", "Tiassalé", 2000),
            segment("Tiassalé", "Yamoussoukro", 3000),
        ]
    ))


@pytest.fixture
def passenger(db):
    return create_user(db, "awa@example.com", name="Awa Koné")


@pytest.fixture
def other_passenger(db):
    return create_user(db, "yao@example.com", name="Yao Kouassi")


@pytest.fixture
def admin(db):
    return create_user(db, "admin@kocrou.ci", is_admin=True, name="Administrateur")


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    previous_factory = app.state.session_factory
    app.dependency_overrides[get_db] = override_get_db
    app.state.session_factory = session_factory
    app.state.presence_registry = AdminPresenceRegistry()
    app.state.connection_manager = ConnectionManager()

    yield TestClient(app)

    app.dependency_overrides.clear()
    app.state.session_factory = previous_factory
