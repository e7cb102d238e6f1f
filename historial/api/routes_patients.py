# FILE: historial/api/routes_patients.py
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from historial.api.deps import get_db, current_user
from historial.models.user import User
from historial.schemas.patient import (
    HistoryIn,
    PatientIn,
    PatientOut,
    PatientPage,
    PatientSummaryOut,
)
from historial.services import patients as patient_service

router = APIRouter()


def serialize_patient(p) -> PatientOut:
    return PatientOut.model_validate(p, from_attributes=True)


@router.get("/patients", response_model=PatientPage)
def list_patients(
        page_number: int = Query(1, alias="pageNumber"),
        page_size: int = Query(10, alias="pageSize"),
        max_pages: int = Query(5, alias="maxPages"),
        db: Session = Depends(get_db),
        user: User = Depends(current_user),
):
    """
    Paginated patient list.
    - totalPages is capped at maxPages; total_records is the real count
    - pageNumber / pageSize <= 0 fall back to 1 / 10
    """
    page = patient_service.list_patients(db, page_number, page_size, max_pages)
    return PatientPage(
        items=[
            PatientSummaryOut.model_validate(p, from_attributes=True)
            for p in page.items
        ],
        total_records=page.total_records,
        total_pages=page.total_pages,
        current_page=page.current_page,
        page_size=page.page_size,
    )


@router.get("/patient", response_model=PatientOut)
def get_patient(
        id: uuid.UUID,
        db: Session = Depends(get_db),
        user: User = Depends(current_user),
):
    return serialize_patient(patient_service.get_patient(db, str(id)))


@router.post("/patients", response_model=PatientOut, status_code=201)
def create_patient(
        payload: PatientIn,
        db: Session = Depends(get_db),
        user: User = Depends(current_user),
):
    p = patient_service.create_patient(db, payload)
    return serialize_patient(p)


@router.put("/patients", response_model=PatientOut)
def update_patient(
        id: uuid.UUID,
        payload: PatientIn,
        db: Session = Depends(get_db),
        user: User = Depends(current_user),
):
    p = patient_service.update_patient(db, payload, str(id))
    return serialize_patient(p)


@router.delete("/patient", status_code=204)
def delete_patient(
        id: uuid.UUID,
        db: Session = Depends(get_db),
        user: User = Depends(current_user),
):
    patient_service.delete_patient(db, str(id))
    return Response(status_code=204)


@router.post("/patient/{patient_id}/history", response_model=PatientOut)
def add_history(
        patient_id: uuid.UUID,
        payload: HistoryIn,
        db: Session = Depends(get_db),
        user: User = Depends(current_user),
):
    patient_service.add_history_note(db, payload.note, str(patient_id))
    return serialize_patient(patient_service.get_patient(db, str(patient_id)))
