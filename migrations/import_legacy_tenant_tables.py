"""
Import per-doctor legacy tables into the shared consultations/patients tables

The old schema kept one `patient_<REGNO>` and one `consultation_<REGNO>` table
per doctor. Doctors, locations, active days and time slots must already exist
in the new schema with their original ids; this script only moves the tenant
tables. Legacy tables are read from LEGACY_DATABASE_URL (defaults to
DATABASE_URL) and are left untouched.

A doctor that already has consultations or patients in the shared tables is
skipped, so re-running the script does not import the same rows twice.

Legacy serial numbers that collide with a row already imported for the same
date, location and slot are moved to the next free number.

Usage: python migrations/import_legacy_tenant_tables.py [REGNO ...]
"""

# Ensure this script can be run directly from repo root
import sys
from pathlib import Path

CURRENT_DIR = Path(__file__).resolve().parent
BACKEND_DIR = CURRENT_DIR.parent
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

import json
import logging
import os
from datetime import date, datetime

from sqlalchemy import func, inspect, text

from app.config import DATABASE_URL
from app.database import SessionLocal, build_engine
from app.models import BOOKED, Consultation, Doctor, Patient
from app.shared.validators import validate_registration_no

logger = logging.getLogger(__name__)

PATIENT_COLUMNS = {
    "name": "name",
    "age": "age",
    "sex": "sex",
    "address": "address",
    "phone": "phone",
    "email": "email",
    "height": "height",
    "weight": "weight",
    "bloodGroup": "blood_group",
    "dob": "dob",
    "consultlocation": "consult_location",
    "treatmentStatus": "treatment_status",
    "disease": "disease",
    "registrationDate": "registration_date",
    "recentAppointmentDate": "recent_appointment_date",
}

CONSULTATION_COLUMNS = {
    "name": "name",
    "age": "age",
    "sex": "sex",
    "phone": "phone",
    "email": "email",
    "address": "address",
    "consultType": "consult_type",
    "patientCondition": "patient_condition",
    "consultationFee": "consultation_fee",
    "paymentStatus": "payment_status",
    "audioURL": "audio_url",
    "medicalTests": "medical_tests",
    "medicalReports": "medical_reports",
    "medicalFiles": "medical_files",
    "reportComments": "report_comments",
    "patientAdvice": "patient_advice",
    "medicine": "medicine",
    "disease": "disease",
    "recoveryStatus": "recovery_status",
    "followUp": "follow_up",
    "prescription": "prescription",
    "medical_report": "medical_report",
}


def _as_date(value):
    if value is None or isinstance(value, date) and not isinstance(value, datetime):
        return value
    if isinstance(value, datetime):
        return value.date()
    return date.fromisoformat(str(value)[:10])


def _as_datetime(value):
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    return datetime.fromisoformat(str(value).replace("Z", "+00:00")).replace(tzinfo=None)


def _parse_symptoms(value):
    if not value:
        return None
    try:
        parsed = json.loads(value)
        if isinstance(parsed, list):
            return [str(item) for item in parsed]
    except (TypeError, ValueError):
        pass
    return [part.strip() for part in str(value).split(",") if part.strip()]


def _next_free_serial(db, doctor_id, consultation_date, location_id, slot_id):
    current = (
        db.query(func.coalesce(func.max(Consultation.serial_no), 0))
        .filter(
            Consultation.doctor_id == doctor_id,
            Consultation.consultation_date == consultation_date,
            Consultation.location_id == location_id,
            Consultation.time_slot_id == slot_id,
        )
        .scalar()
    )
    return int(current or 0) + 1


def import_tenant(source_conn, db, doctor: Doctor) -> dict:
    """Copy one doctor's legacy tables; returns counts of imported rows"""
    regno = validate_registration_no(doctor.registration_no)
    patient_table = f"patient_{regno}"
    consultation_table = f"consultation_{regno}"
    already_imported = (
        db.query(Consultation.id).filter(Consultation.doctor_id == doctor.id).first()
        or db.query(Patient.id).filter(Patient.doctor_id == doctor.id).first()
    )
    if already_imported:
        logger.info(f"⏭️ {regno} already has rows in the shared tables, skipping")
        return {"patients": 0, "consultations": 0, "renumbered": 0, "skipped": True}

    existing_tables = set(inspect(source_conn).get_table_names())
    quote = source_conn.dialect.identifier_preparer.quote

    patient_ids = {}
    if patient_table in existing_tables:
        rows = source_conn.execute(text(f"SELECT * FROM {quote(patient_table)} ORDER BY id")).mappings()
        for row in rows:
            patient = Patient(
                doctor_id=doctor.id,
                **{column: row.get(legacy) for legacy, column in PATIENT_COLUMNS.items()},
            )
            for column in ("dob", "registration_date", "recent_appointment_date"):
                setattr(patient, column, _as_date(getattr(patient, column)))
            db.add(patient)
            db.flush()
            patient_ids[row["id"]] = (patient, row.get("lastConsultationId"))

    consultation_ids = {}
    renumbered = 0
    if consultation_table in existing_tables:
        rows = source_conn.execute(
            text(f"SELECT * FROM {quote(consultation_table)} ORDER BY date, serialNo, id")
        ).mappings()
        for row in rows:
            scheduled_at = _as_datetime(row["date"])
            consultation_date = scheduled_at.date()
            location_id = row["consultLocationId"]
            slot_id = row["timeSlotId"]

            serial = row["serialNo"]
            taken = (
                db.query(Consultation.id)
                .filter(
                    Consultation.doctor_id == doctor.id,
                    Consultation.consultation_date == consultation_date,
                    Consultation.location_id == location_id,
                    Consultation.time_slot_id == slot_id,
                    Consultation.serial_no == serial,
                )
                .first()
            )
            if taken:
                new_serial = _next_free_serial(db, doctor.id, consultation_date, location_id, slot_id)
                logger.warning(
                    f"⚠️ {consultation_table} row {row['id']}: serial {serial} already used "
                    f"on {consultation_date}, imported as {new_serial}"
                )
                serial = new_serial
                renumbered += 1

            linked = patient_ids.get(row.get("patientId"))
            consultation = Consultation(
                doctor_id=doctor.id,
                serial_no=serial,
                location_id=location_id,
                time_slot_id=slot_id,
                scheduled_at=scheduled_at,
                consultation_date=consultation_date,
                patient_id=linked[0].id if linked else None,
                appointment_status=row.get("appointmentStatus") or BOOKED,
                symptoms=_parse_symptoms(row.get("symptoms_list")),
                **{column: row.get(legacy) for legacy, column in CONSULTATION_COLUMNS.items()},
            )
            consultation.follow_up = _as_date(consultation.follow_up)
            db.add(consultation)
            db.flush()
            consultation_ids[row["id"]] = consultation.id

    for patient, legacy_last_id in patient_ids.values():
        patient.last_consultation_id = consultation_ids.get(legacy_last_id)

    db.commit()
    return {
        "patients": len(patient_ids),
        "consultations": len(consultation_ids),
        "renumbered": renumbered,
        "skipped": False,
    }


def upgrade(registration_numbers=None):
    source_engine = build_engine(os.getenv("LEGACY_DATABASE_URL", DATABASE_URL))
    db = SessionLocal()
    try:
        query = db.query(Doctor).order_by(Doctor.id)
        if registration_numbers:
            query = query.filter(Doctor.registration_no.in_([r.upper() for r in registration_numbers]))

        with source_engine.connect() as source_conn:
            for doctor in query.all():
                try:
                    counts = import_tenant(source_conn, db, doctor)
                except Exception as e:
                    db.rollback()
                    logger.error(f"❌ Import failed for {doctor.registration_no}: {e}")
                    raise
                if counts["skipped"]:
                    continue
                logger.info(
                    f"✅ {doctor.registration_no}: {counts['patients']} patients, "
                    f"{counts['consultations']} consultations ({counts['renumbered']} renumbered)"
                )
    finally:
        db.close()
        source_engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    upgrade(sys.argv[1:])
