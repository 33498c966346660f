from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

BOOKED = "booked"
CANCELLED = "Cancelled"
COMPLETED = "Completed"


class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    # External registration number (BMDC), the provider identifier used by public booking links
    registration_no = Column(String(32), unique=True, index=True, nullable=False)
    firebase_uid = Column(String(255), unique=True, index=True, nullable=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    phone = Column(String(32), unique=True, nullable=True)
    specialty = Column(String(100), nullable=True)
    address = Column(String(255), nullable=True)
    image_url = Column(String(512), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    locations = relationship(
        "ConsultationLocation", back_populates="doctor", cascade="all, delete-orphan"
    )


class ConsultationLocation(Base):
    __tablename__ = "consultation_locations"

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="CASCADE"), index=True, nullable=False)
    location_name = Column(String(255), nullable=False)
    address = Column(String(500), nullable=True)
    location_type = Column(String(50), nullable=True)  # chamber, hospital, online
    room_number = Column(String(50), nullable=True)
    consultation_fee = Column(Integer, nullable=True)
    is_published = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    doctor = relationship("Doctor", back_populates="locations")
    active_days = relationship(
        "ActiveDay",
        back_populates="location",
        cascade="all, delete-orphan",
        order_by="ActiveDay.id",
    )


class ActiveDay(Base):
    __tablename__ = "active_days"

    id = Column(Integer, primary_key=True, index=True)
    location_id = Column(
        Integer, ForeignKey("consultation_locations.id", ondelete="CASCADE"), index=True, nullable=False
    )
    day = Column(String(16), nullable=False)  # Monday .. Sunday
    is_active = Column(Boolean, default=True, nullable=False)

    location = relationship("ConsultationLocation", back_populates="active_days")
    time_slots = relationship(
        "TimeSlot",
        back_populates="active_day",
        cascade="all, delete-orphan",
        order_by="TimeSlot.start_time",
    )


class TimeSlot(Base):
    __tablename__ = "time_slots"

    id = Column(Integer, primary_key=True, index=True)
    active_day_id = Column(
        Integer, ForeignKey("active_days.id", ondelete="CASCADE"), index=True, nullable=False
    )
    slot_active = Column(Boolean, default=True, nullable=False)
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)  # HH:MM
    slot_duration = Column(Integer, nullable=True)  # minutes per patient
    # Maximum bookings for this slot on any single calendar date
    capacity = Column(Integer, default=0, nullable=False)

    active_day = relationship("ActiveDay", back_populates="time_slots")


class Consultation(Base):
    __tablename__ = "consultations"
    __table_args__ = (
        UniqueConstraint(
            "doctor_id",
            "consultation_date",
            "location_id",
            "time_slot_id",
            "serial_no",
            name="uq_consultation_slot_serial",
        ),
        Index("ix_consultation_requester", "doctor_id", "phone", "consultation_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="CASCADE"), index=True, nullable=False)
    serial_no = Column(Integer, nullable=False)

    # Requester identity as submitted on the booking form
    name = Column(String(100), nullable=False)
    age = Column(Integer, nullable=False)
    sex = Column(String(20), nullable=False)
    phone = Column(String(32), nullable=False)
    email = Column(String(255), nullable=True)
    address = Column(String(1024), nullable=True)

    location_id = Column(Integer, ForeignKey("consultation_locations.id"), nullable=False)
    time_slot_id = Column(Integer, ForeignKey("time_slots.id"), nullable=False)
    scheduled_at = Column(DateTime, nullable=False)  # Requested date-time, as sent by the client
    consultation_date = Column(Date, nullable=False)  # Calendar date of scheduled_at
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=True)
    appointment_status = Column(String(20), default=BOOKED, nullable=False)

    # Clinical fields, filled in by the doctor after the visit
    consult_type = Column(String(20), nullable=True)
    patient_condition = Column(String(1024), nullable=True)
    consultation_fee = Column(Integer, nullable=True)
    payment_status = Column(String(20), default="pending", nullable=True)
    audio_url = Column(String(512), nullable=True)
    medical_tests = Column(String(512), nullable=True)
    medical_reports = Column(String(1024), nullable=True)
    medical_files = Column(String(1024), nullable=True)
    report_comments = Column(String(1024), nullable=True)
    patient_advice = Column(String(1024), nullable=True)
    medicine = Column(String(512), nullable=True)
    disease = Column(String(100), nullable=True)
    recovery_status = Column(Integer, nullable=True)
    follow_up = Column(Date, nullable=True)
    prescription = Column(String(512), nullable=True)
    medical_report = Column(String(512), nullable=True)
    symptoms = Column(JSON, nullable=True)
    visit_date = Column(Date, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    location = relationship("ConsultationLocation")
    time_slot = relationship("TimeSlot")
    patient = relationship("Patient", foreign_keys=[patient_id])


class Patient(Base):
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="CASCADE"), index=True, nullable=False)
    # Plain column: consultations already reference patients, avoid a circular FK
    last_consultation_id = Column(Integer, nullable=True)
    name = Column(String(100), nullable=False)
    image_url = Column(String(512), nullable=True)
    age = Column(Integer, nullable=True)
    sex = Column(String(10), nullable=True)
    address = Column(String(255), nullable=True)
    phone = Column(String(32), nullable=True)
    email = Column(String(255), nullable=True)
    height = Column(Float, nullable=True)
    weight = Column(Float, nullable=True)
    blood_group = Column(String(10), nullable=True)
    dob = Column(Date, nullable=True)
    consult_location = Column(String(255), nullable=True)
    treatment_status = Column(String(20), nullable=True)
    disease = Column(String(100), nullable=True)
    registration_date = Column(Date, nullable=True)
    recent_appointment_date = Column(Date, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
