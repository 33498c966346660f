import datetime as dt

import pytest
from sqlalchemy import event
from sqlalchemy.orm import sessionmaker

from app.database import Base, build_engine
from app.domain.consultations.schemas import BookingRequest
from app.domain.tenancy.resolver import TenantResolver
from app.models import ActiveDay, Consultation, ConsultationLocation, Doctor, TimeSlot

BOOKING_DAY = dt.datetime(2030, 3, 4, 9, 30)


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


def use_write_lock_on_begin(engine):
    """Make every SQLite transaction take the write lock up front.

    Without it two pysqlite connections that both read and then write can
    dead-lock each other and one gets "database is locked".
    """

    @event.listens_for(engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def make_doctor(db, registration_no="BMDC123456", name="Rahim Uddin", uid="firebase-uid-1"):
    doctor = Doctor(
        registration_no=registration_no,
        firebase_uid=uid,
        name=name,
        email=f"{registration_no.lower()}@example.com",
    )
    db.add(doctor)
    db.commit()
    db.refresh(doctor)
    return doctor


def make_location(db, doctor, capacity=3, published=True, name="Popular Diagnostic"):
    """A location with one Monday slot; returns (location, slot)"""
    location = ConsultationLocation(
        doctor_id=doctor.id,
        location_name=name,
        address="House 16, Road 2, Dhanmondi",
        location_type="chamber",
        consultation_fee=800,
        is_published=published,
    )
    day = ActiveDay(day="Monday", is_active=True)
    slot = TimeSlot(start_time="09:00", end_time="12:00", slot_duration=15, capacity=capacity)
    day.time_slots = [slot]
    location.active_days = [day]
    db.add(location)
    db.commit()
    db.refresh(location)
    db.refresh(slot)
    return location, slot


def make_request(location, slot, phone="01711000001", **overrides) -> BookingRequest:
    data = {
        "name": "Karim Ahmed",
        "age": 42,
        "sex": "Male",
        "phone": phone,
        "email": None,
        "date": BOOKING_DAY.isoformat(),
        "timeSlotId": slot.id,
        "consultLocationId": location.id,
        "address": "Mirpur, Dhaka",
        "verificationToken": "token",
    }
    data.update(overrides)
    return BookingRequest(**data)


async def allow_all(token, ip):
    return True


async def deny_all(token, ip):
    return False


class RecordingNotifier:
    def __init__(self, error=None):
        self.calls = []
        self.error = error

    async def __call__(self, confirmation, to_email):
        self.calls.append((confirmation, to_email))
        if self.error:
            raise self.error


@pytest.fixture
def doctor(db):
    return make_doctor(db)


@pytest.fixture
def other_doctor(db):
    return make_doctor(db, registration_no="BMDC999999", name="Salma Begum", uid="firebase-uid-2")


@pytest.fixture
def tenant(doctor):
    return TenantResolver.for_doctor(doctor)


@pytest.fixture
def other_tenant(other_doctor):
    return TenantResolver.for_doctor(other_doctor)


@pytest.fixture
def chamber(db, doctor):
    return make_location(db, doctor)


def add_consultation(db, tenant, location, slot, serial=1, **overrides):
    fields = {
        "name": "Karim Ahmed",
        "age": 42,
        "sex": "Male",
        "phone": f"0171100{serial:04d}",
        "email": "karim@example.com",
        "scheduled_at": BOOKING_DAY,
        "consultation_date": BOOKING_DAY.date(),
    }
    fields.update(overrides)
    consultation = Consultation(
        doctor_id=tenant.doctor_id,
        serial_no=serial,
        location_id=location.id,
        time_slot_id=slot.id,
        **fields,
    )
    db.add(consultation)
    db.commit()
    db.refresh(consultation)
    return consultation


@pytest.fixture
def consultation(db, tenant, chamber):
    location, slot = chamber
    return add_consultation(db, tenant, location, slot)


@pytest.fixture
def client(db, tenant):
    """API client bound to the test session, signed in as ``tenant``"""
    from fastapi.testclient import TestClient

    from app.auth import get_current_tenant
    from app.database import get_db
    from app.domain.consultations.booking import BookingCoordinator
    from app.domain.consultations.router import get_booking_coordinator
    from app.main import app
    from app.rate_limiter import rate_limit_booking_per_ip

    notifier = RecordingNotifier()

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_tenant] = lambda: tenant
    app.dependency_overrides[get_booking_coordinator] = lambda: BookingCoordinator(
        db, verifier=allow_all, notifier=notifier
    )
    app.dependency_overrides[rate_limit_booking_per_ip] = lambda: None

    test_client = TestClient(app)
    test_client.notifier = notifier
    yield test_client
    app.dependency_overrides.clear()
