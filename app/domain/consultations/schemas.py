"""Consultation domain schemas - Pydantic models for booking and record updates"""

import datetime as dt
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ...shared.validators import validate_email, validate_phone


class BookingRequest(BaseModel):
    """Public booking form submission"""

    name: str = Field(min_length=1, max_length=100)
    age: int = Field(ge=0, le=150)
    sex: str = Field(min_length=1, max_length=20)
    phone: str
    email: Optional[str] = None
    date: dt.datetime  # ISO-8601 date-time chosen on the booking page
    timeSlotId: int
    consultLocationId: int
    address: Optional[str] = Field(default=None, max_length=1024)
    verificationToken: Optional[str] = None

    @field_validator("name", "sex")
    @classmethod
    def strip_text(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if not v.strip():
            raise ValueError("Phone number is required")
        return validate_phone(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return validate_email(v) if v else None


class RequesterInfo(BaseModel):
    name: str
    age: int
    sex: str
    phone: str
    email: Optional[str] = None
    address: Optional[str] = None


class ProviderInfo(BaseModel):
    name: str
    providerId: str


class LocationInfo(BaseModel):
    id: int
    name: str


class SlotInfo(BaseModel):
    id: int
    startTime: str
    endTime: str
    capacity: int


class BookingConfirmation(BaseModel):
    """Denormalized view of a fresh booking, so the caller does not need to re-query"""

    consultationId: int
    status: str
    serialNo: int
    date: str
    slotTimeWindow: str
    requester: RequesterInfo
    provider: ProviderInfo
    location: LocationInfo
    slot: SlotInfo


def _date_part(v):
    # Clients send full ISO date-times; only the calendar date is kept
    if isinstance(v, str) and "T" in v:
        return v.split("T")[0]
    if isinstance(v, dt.datetime):
        return v.date()
    return v


# Columns that cannot be cleared with an explicit null
REQUIRED_FIELDS = ("name", "age", "sex", "phone", "appointmentStatus")


class ConsultationUpdate(BaseModel):
    """Sparse update of a booking; only fields present in the request are applied"""

    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    age: Optional[int] = Field(default=None, ge=0, le=150)
    sex: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    patientId: Optional[int] = None
    patientCondition: Optional[str] = None
    appointmentStatus: Optional[str] = Field(default=None, max_length=20)
    audioURL: Optional[str] = None
    medicalTests: Optional[str] = None
    medicalReports: Optional[str] = None
    medicalFiles: Optional[str] = None
    reportComments: Optional[str] = None
    patientAdvice: Optional[str] = None
    medicine: Optional[str] = None
    disease: Optional[str] = None
    recoveryStatus: Optional[int] = None
    followUp: Optional[dt.date] = None
    prescription: Optional[str] = None
    medical_report: Optional[str] = None
    symptoms: Optional[Union[list[str], str]] = None
    consultationFee: Optional[int] = Field(default=None, ge=0)
    paymentStatus: Optional[str] = None
    consultType: Optional[str] = None
    date: Optional[dt.date] = None

    @field_validator("date", "followUp", mode="before")
    @classmethod
    def keep_date_part(cls, v):
        return _date_part(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return validate_phone(v)

    @field_validator("symptoms")
    @classmethod
    def symptoms_as_list(cls, v):
        if v is None or isinstance(v, list):
            return v
        return [v] if v else []

    @model_validator(mode="after")
    def check_required_not_cleared(self):
        for field in REQUIRED_FIELDS:
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be cleared")
        return self
