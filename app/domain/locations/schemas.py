"""Consultation location schemas - locations, weekly active days and time slots"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...shared.validators import validate_time_of_day

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


class TimeSlotIn(BaseModel):
    id: Optional[int] = None  # Existing slot to edit in place
    slotActive: bool = True
    startTime: str
    endTime: str
    slotDuration: Optional[int] = Field(default=None, gt=0)
    capacity: int = Field(ge=0)

    @field_validator("startTime", "endTime")
    @classmethod
    def validate_time(cls, v):
        return validate_time_of_day(v)

    @model_validator(mode="after")
    def check_window(self):
        # HH:MM strings compare correctly as text
        if self.endTime <= self.startTime:
            raise ValueError("endTime must be after startTime")
        return self


class ActiveDayIn(BaseModel):
    id: Optional[int] = None
    day: str
    isActive: bool = True
    timeSlots: list[TimeSlotIn] = []

    @field_validator("day")
    @classmethod
    def validate_day(cls, v):
        day = v.strip().capitalize()
        if day not in WEEKDAYS:
            raise ValueError(f"day must be one of {', '.join(WEEKDAYS)}")
        return day


class LocationCreate(BaseModel):
    """Schema for creating or replacing a consultation location"""

    locationName: str = Field(min_length=1, max_length=255)
    address: Optional[str] = None
    locationType: Optional[str] = None
    roomNumber: Optional[str] = None
    consultationFee: Optional[int] = Field(default=None, ge=0)
    activeDays: list[ActiveDayIn] = []


class PublishRequest(BaseModel):
    isPublished: bool


class TimeSlotResponse(BaseModel):
    id: int
    slotActive: bool
    startTime: str
    endTime: str
    slotDuration: Optional[int] = None
    capacity: int


class ActiveDayResponse(BaseModel):
    id: int
    day: str
    isActive: bool
    timeSlots: list[TimeSlotResponse] = []


class LocationResponse(BaseModel):
    id: int
    locationName: str
    address: Optional[str] = None
    locationType: Optional[str] = None
    roomNumber: Optional[str] = None
    consultationFee: Optional[int] = None
    isPublished: bool
    activeDays: list[ActiveDayResponse] = []
