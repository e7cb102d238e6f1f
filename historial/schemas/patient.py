# FILE: historial/schemas/patient.py
from __future__ import annotations

from datetime import date, datetime
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, field_validator

from historial.schemas.attachment import AttachmentOut


class ParentBase(BaseModel):
    name: str
    middle_name: Optional[str] = None
    last_name: str


class ParentIn(ParentBase):
    pass


class ParentOut(ParentBase):
    model_config = ConfigDict(from_attributes=True)


class PatientBase(BaseModel):
    name: str
    diagnosis: Optional[str] = None
    birth_date: Optional[date] = None
    age: Optional[str] = None
    sex: Optional[str] = None
    referred_by: Optional[str] = None
    consultation_date: Optional[date] = None
    medical_insurance: Optional[str] = None

    gestation: Optional[str] = None
    delivery: Optional[str] = None
    birth_weight: Optional[str] = None


class PatientIn(PatientBase):
    """Body for create and full update; record_number is never accepted."""

    mother: Optional[ParentIn] = None
    father: Optional[ParentIn] = None

    @field_validator("name")
    @classmethod
    def _name_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("name is required")
        return v


class HistoryIn(BaseModel):
    note: Optional[str] = None


class HistoryOut(BaseModel):
    id: str
    patient_id: str
    note: str
    logged_at: datetime
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PatientSummaryOut(PatientBase):
    id: str
    record_number: str
    mother: Optional[ParentOut] = None
    father: Optional[ParentOut] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PatientOut(PatientSummaryOut):
    history: List[HistoryOut] = []
    attachments: List[AttachmentOut] = []


class PatientPage(BaseModel):
    items: List[PatientSummaryOut]
    total_records: int
    total_pages: int
    current_page: int
    page_size: int
