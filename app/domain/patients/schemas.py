"""Patient schemas"""

import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...shared.validators import validate_email, validate_phone


class PatientLinkRequest(BaseModel):
    """Patient data sent when a doctor attaches a patient record to a consultation.

    With ``patientId`` the existing record is updated, otherwise a new one is
    created and ``name`` is required.
    """

    patientId: Optional[int] = None
    name: Optional[str] = Field(default=None, max_length=100)
    imageUrl: Optional[str] = None
    age: Optional[int] = Field(default=None, ge=0, le=150)
    sex: Optional[str] = Field(default=None, max_length=10)
    address: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = None
    email: Optional[str] = None
    height: Optional[float] = Field(default=None, gt=0)
    weight: Optional[float] = Field(default=None, gt=0)
    bloodGroup: Optional[str] = Field(default=None, max_length=10)
    dob: Optional[dt.date] = None
    consultLocation: Optional[str] = None
    treatmentStatus: Optional[str] = Field(default=None, max_length=20)
    disease: Optional[str] = Field(default=None, max_length=100)
    consultType: Optional[str] = Field(default=None, max_length=20)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return validate_phone(v) if v else None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return validate_email(v) if v else None

    @model_validator(mode="after")
    def check_name_for_new_patient(self):
        if self.patientId is None and not (self.name and self.name.strip()):
            raise ValueError("name is required when creating a patient")
        return self


class RecentAppointmentUpdate(BaseModel):
    date: dt.date

    @field_validator("date", mode="before")
    @classmethod
    def keep_date_part(cls, v):
        if isinstance(v, str) and "T" in v:
            return v.split("T")[0]
        return v


class PatientResponse(BaseModel):
    id: int
    name: str
    imageUrl: Optional[str] = None
    age: Optional[int] = None
    sex: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    height: Optional[float] = None
    weight: Optional[float] = None
    bloodGroup: Optional[str] = None
    dob: Optional[dt.date] = None
    consultLocation: Optional[str] = None
    treatmentStatus: Optional[str] = None
    disease: Optional[str] = None
    registrationDate: Optional[dt.date] = None
    recentAppointmentDate: Optional[dt.date] = None
    lastConsultationId: Optional[int] = None
