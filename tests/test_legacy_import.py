import datetime as dt

from sqlalchemy import text

from app.database import build_engine
from app.models import Consultation, Patient
from conftest import make_location
from migrations.import_legacy_tenant_tables import import_tenant


def legacy_database(tmp_path, location_id, slot_id):
    engine = build_engine(f"sqlite:///{tmp_path / 'legacy.db'}")
    with engine.begin() as conn:
        conn.execute(
            text(
                """
                CREATE TABLE patient_BMDC123456 (
                    id INTEGER PRIMARY KEY, doctor_id INTEGER, name VARCHAR(100), age INTEGER,
                    sex VARCHAR(10), address VARCHAR(100), phone VARCHAR(20), email VARCHAR(100),
                    height DECIMAL(5,2), weight DECIMAL(5,2), bloodGroup VARCHAR(10), dob DATE,
                    lastConsultationId INTEGER, consultlocation VARCHAR(100),
                    treatmentStatus VARCHAR(20), disease VARCHAR(100), registrationDate DATE,
                    recentAppointmentDate DATE
                )
                """
            )
        )
        conn.execute(
            text(
                """
                CREATE TABLE consultation_BMDC123456 (
                    id INTEGER PRIMARY KEY, doctor_id INTEGER, serialNo INTEGER, name VARCHAR(100),
                    age INTEGER, sex VARCHAR(20), email VARCHAR(100), phone VARCHAR(50),
                    address VARCHAR(1024), consultLocationId INTEGER, date DATETIME,
                    timeSlotId INTEGER, patientId INTEGER, consultType VARCHAR(20),
                    patientCondition VARCHAR(1024), consultationFee INTEGER,
                    paymentStatus VARCHAR(20), appointmentStatus VARCHAR(20), audioURL VARCHAR(512),
                    medicalTests VARCHAR(512), medicalReports VARCHAR(1024),
                    medicalFiles VARCHAR(1024), reportComments VARCHAR(1024),
                    patientAdvice VARCHAR(1024), medicine VARCHAR(512), disease VARCHAR(100),
                    recoveryStatus INTEGER, followUp DATE, prescription VARCHAR(512),
                    medical_report VARCHAR(512), symptoms_list TEXT
                )
                """
            )
        )
        conn.execute(
            text(
                "INSERT INTO patient_BMDC123456 (id, doctor_id, name, age, bloodGroup, lastConsultationId, "
                "registrationDate) VALUES (41, 1, 'Karim Ahmed', 42, 'B+', 12, '2024-01-10')"
            )
        )
        insert = text(
            "INSERT INTO consultation_BMDC123456 (id, doctor_id, serialNo, name, age, sex, phone, "
            "consultLocationId, date, timeSlotId, patientId, appointmentStatus, symptoms_list) "
            "VALUES (:id, 1, :serial, :name, 40, 'Male', :phone, :loc, :date, :slot, :patient, "
            ":status, :symptoms)"
        )
        rows = [
            (11, 1, "Karim Ahmed", "01711000001", "2024-01-10 10:00:00", None, "Completed", '["fever", "cough"]'),
            # Same serial twice on one day, as the old allocator could produce
            (12, 1, "Karim Ahmed", "01711000001", "2024-01-17 10:00:00", 41, "Completed", "headache, nausea"),
            (13, 1, "Salam Mia", "01711000002", "2024-01-17 10:30:00", None, None, None),
        ]
        for id_, serial, name, phone, date, patient, status, symptoms in rows:
            conn.execute(
                insert,
                {
                    "id": id_,
                    "serial": serial,
                    "name": name,
                    "phone": phone,
                    "loc": location_id,
                    "date": date,
                    "slot": slot_id,
                    "patient": patient,
                    "status": status,
                    "symptoms": symptoms,
                },
            )
    return engine


def test_import_copies_and_relinks_rows(tmp_path, db, doctor):
    location, slot = make_location(db, doctor)
    legacy = legacy_database(tmp_path, location.id, slot.id)

    with legacy.connect() as source_conn:
        counts = import_tenant(source_conn, db, doctor)
    legacy.dispose()

    assert counts == {"patients": 1, "consultations": 3, "renumbered": 1, "skipped": False}

    patient = db.query(Patient).one()
    assert patient.doctor_id == doctor.id
    assert patient.blood_group == "B+"
    assert patient.registration_date == dt.date(2024, 1, 10)

    consultations = db.query(Consultation).order_by(Consultation.scheduled_at).all()
    first, second, third = consultations
    assert first.symptoms == ["fever", "cough"]
    assert second.symptoms == ["headache", "nausea"]
    assert second.patient_id == patient.id
    assert patient.last_consultation_id == second.id
    assert (second.consultation_date, second.serial_no) == (dt.date(2024, 1, 17), 1)
    assert (third.consultation_date, third.serial_no) == (dt.date(2024, 1, 17), 2)
    assert third.appointment_status == "booked"
    assert {c.doctor_id for c in consultations} == {doctor.id}


def test_missing_legacy_tables_import_nothing(tmp_path, db, doctor):
    empty = build_engine(f"sqlite:///{tmp_path / 'empty.db'}")

    with empty.connect() as source_conn:
        counts = import_tenant(source_conn, db, doctor)
    empty.dispose()

    assert counts == {"patients": 0, "consultations": 0, "renumbered": 0, "skipped": False}


def test_second_run_skips_already_imported_doctor(tmp_path, db, doctor):
    location, slot = make_location(db, doctor)
    legacy = legacy_database(tmp_path, location.id, slot.id)

    with legacy.connect() as source_conn:
        import_tenant(source_conn, db, doctor)
        again = import_tenant(source_conn, db, doctor)
    legacy.dispose()

    assert again == {"patients": 0, "consultations": 0, "renumbered": 0, "skipped": True}
    assert db.query(Consultation).count() == 3
    assert db.query(Patient).count() == 1
    serials = sorted(c.serial_no for c in db.query(Consultation).all())
    assert serials == [1, 1, 2]
