# FILE: historial/services/patients.py
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from historial.core.errors import InvalidArgument, NotFound
from historial.models.patient import MedicalHistory, Parent, Patient
from historial.schemas.patient import ParentIn, PatientIn
from historial.services.record_number import assign_record_number
from historial.utils.files import remove_quietly
from historial.utils.timezone import utcnow_db

logger = logging.getLogger(__name__)

DEFAULT_PAGE_NUMBER = 1
DEFAULT_PAGE_SIZE = 10
DEFAULT_MAX_PAGES = 5

_PARENT_FIELDS = {"mother", "father"}


@dataclass
class PatientPageResult:
    items: List[Patient] = field(default_factory=list)
    total_records: int = 0
    total_pages: int = 0
    current_page: int = DEFAULT_PAGE_NUMBER
    page_size: int = DEFAULT_PAGE_SIZE


def _not_found(patient_id: str) -> NotFound:
    return NotFound(f"No patient found with id: {patient_id}")


def _parent(data: Optional[ParentIn]) -> Optional[Parent]:
    if data is None:
        return None
    return Parent(**data.model_dump())


def _apply(p: Patient, payload: PatientIn) -> None:
    """Overwrite every mutable field; record_number and id stay untouched."""
    for k, v in payload.model_dump(exclude=_PARENT_FIELDS).items():
        setattr(p, k, v)
    p.mother = _parent(payload.mother)
    p.father = _parent(payload.father)


def list_patients(
    db: Session,
    page_number: int = DEFAULT_PAGE_NUMBER,
    page_size: int = DEFAULT_PAGE_SIZE,
    max_pages: int = DEFAULT_MAX_PAGES,
) -> PatientPageResult:
    """
    One page of patients. total_pages is capped at max_pages (what the UI
    paginator shows); total_records is always the real count.
    """
    page_number = page_number if page_number and page_number > 0 else DEFAULT_PAGE_NUMBER
    page_size = page_size if page_size and page_size > 0 else DEFAULT_PAGE_SIZE
    max_pages = max_pages if max_pages and max_pages > 0 else DEFAULT_MAX_PAGES

    total_records = db.query(func.count(Patient.id)).scalar() or 0
    items = (db.query(Patient).options(
        selectinload(Patient.mother),
        selectinload(Patient.father)).order_by(
            Patient.created_at.desc(), Patient.record_number.desc()).offset(
                (page_number - 1) * page_size).limit(page_size).all())

    total_pages = math.ceil(total_records / page_size)
    return PatientPageResult(
        items=items,
        total_records=total_records,
        total_pages=min(total_pages, max_pages),
        current_page=page_number,
        page_size=page_size,
    )


def get_patient(db: Session, patient_id: str) -> Patient:
    p = (db.query(Patient).options(
        selectinload(Patient.history),
        selectinload(Patient.attachments),
        selectinload(Patient.mother),
        selectinload(Patient.father),
    ).filter(Patient.id == str(patient_id)).first())
    if not p:
        raise _not_found(patient_id)
    return p


def create_patient(db: Session, payload: PatientIn) -> Patient:
    p = Patient()
    _apply(p, payload)
    assign_record_number(db, p)
    db.refresh(p)
    logger.info("Created patient %s with record number %s", p.id,
                p.record_number)
    return p


def update_patient(db: Session, payload: PatientIn, patient_id: str) -> Patient:
    p = db.get(Patient, str(patient_id))
    if not p:
        raise _not_found(patient_id)

    _apply(p, payload)
    db.commit()
    db.refresh(p)
    return p


def delete_patient(db: Session, patient_id: str) -> bool:
    """
    Remove the patient; history, attachment rows and parents go with it in the
    same transaction. Attachment files are unlinked once that commit succeeded.
    """
    p = db.get(Patient, str(patient_id))
    if not p:
        raise _not_found(patient_id)

    paths = [a.path for a in p.attachments]
    db.delete(p)
    db.commit()

    for path in paths:
        if not remove_quietly(path):
            logger.warning("Attachment file already missing: %s", path)

    logger.info("Deleted patient %s (%s attachment files)", patient_id,
                len(paths))
    return True


def add_history_note(db: Session, note: Optional[str],
                     patient_id: str) -> MedicalHistory:
    if not (note or "").strip():
        raise InvalidArgument("Note content is required")

    if db.get(Patient, str(patient_id)) is None:
        raise _not_found(patient_id)

    now = utcnow_db()
    entry = MedicalHistory(
        patient_id=str(patient_id),
        note=note,
        logged_at=now,
        created_at=now,
        updated_at=now,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry
