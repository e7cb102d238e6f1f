# FILE: historial/services/attachments.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from historial.core.config import settings
from historial.core.errors import InvalidArgument, NotFound
from historial.models.patient import Attachment, Patient
from historial.utils.files import (
    content_type_for,
    format_file_size,
    remove_quietly,
    unique_filename,
    write_stream,
)
from historial.utils.timezone import utcnow_db

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = frozenset({
    "application/pdf",
    "image/jpeg",
    "image/png",
    "image/gif",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "text/plain",
})


@dataclass(frozen=True)
class AttachmentFile:
    data: bytes
    content_type: str
    file_name: str


def patient_dir(patient_id: str, base_dir: Optional[str] = None) -> Path:
    root = Path(base_dir or settings.STORAGE_DIR).resolve()
    return root / "patients" / str(patient_id)


def _require_patient(db: Session, patient_id: str) -> Patient:
    p = db.get(Patient, str(patient_id))
    if not p:
        raise NotFound(f"Patient with ID {patient_id} not found")
    return p


def add_attachment(
    db: Session,
    patient_id: str,
    *,
    stream: Optional[BinaryIO],
    filename: Optional[str],
    content_type: Optional[str],
    length: Optional[int],
    base_dir: Optional[str] = None,
) -> Attachment:
    """
    Validate and store an uploaded file for a patient.

    Checks run in this order, each with its own error:
      - patient exists                  -> NotFound
      - file present and non-empty      -> InvalidArgument
      - size within MAX_UPLOAD_BYTES    -> InvalidArgument
      - content type in the allow-list  -> InvalidArgument

    The file lands in {base}/patients/{patient_id}/<uuid><ext> and then the
    metadata row is committed. The size checks are repeated against the bytes
    actually written, and the stored size label uses that count. If the write,
    a repeated check or the commit fails, the file is removed again before the
    error propagates.
    """
    _require_patient(db, patient_id)

    if stream is None or not length or length <= 0:
        raise InvalidArgument("No file provided or file is empty")

    if length > settings.MAX_UPLOAD_BYTES:
        limit_mb = settings.MAX_UPLOAD_BYTES // (1024 * 1024)
        raise InvalidArgument(f"File size exceeds {limit_mb}MB limit")

    declared = (content_type or "").strip().lower()
    if declared not in ALLOWED_CONTENT_TYPES:
        raise InvalidArgument(f"File type '{content_type}' is not allowed")

    target_dir = patient_dir(patient_id, base_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    dest = target_dir / unique_filename(filename or "")

    try:
        written = write_stream(stream, dest)
    except Exception:
        remove_quietly(dest)
        logger.error("Attachment write failed; removed partial file %s", dest)
        raise

    # declared length is only a hint; the limits apply to what landed on disk
    if written <= 0:
        remove_quietly(dest)
        raise InvalidArgument("No file provided or file is empty")
    if written > settings.MAX_UPLOAD_BYTES:
        remove_quietly(dest)
        limit_mb = settings.MAX_UPLOAD_BYTES // (1024 * 1024)
        raise InvalidArgument(f"File size exceeds {limit_mb}MB limit")

    att = Attachment(
        patient_id=str(patient_id),
        name=filename or dest.name,
        path=str(dest),
        upload_date=utcnow_db(),
        size=format_file_size(written),
    )
    db.add(att)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        remove_quietly(dest)
        logger.error("Attachment metadata insert failed; removed %s", dest)
        raise
    db.refresh(att)

    logger.info("Stored attachment %s (%s) for patient %s", att.id, att.size,
                patient_id)
    return att


def list_attachments(db: Session, patient_id: str) -> List[Attachment]:
    _require_patient(db, patient_id)
    return (db.query(Attachment).filter(
        Attachment.patient_id == str(patient_id)).order_by(
            Attachment.upload_date.desc()).all())


def get_attachment(db: Session, patient_id: str,
                   attachment_id: str) -> Optional[Attachment]:
    return (db.query(Attachment).filter(
        Attachment.id == str(attachment_id),
        Attachment.patient_id == str(patient_id),
    ).first())


def get_attachment_file(db: Session, patient_id: str,
                        attachment_id: str) -> Optional[AttachmentFile]:
    att = get_attachment(db, patient_id, attachment_id)
    if att is None:
        return None

    path = Path(att.path)
    if not path.is_file():
        logger.warning("Attachment %s has no file on disk at %s", att.id,
                       path)
        return None

    return AttachmentFile(
        data=path.read_bytes(),
        content_type=content_type_for(path),
        file_name=att.name,
    )


def delete_attachment(db: Session, patient_id: str,
                      attachment_id: str) -> bool:
    att = get_attachment(db, patient_id, attachment_id)
    if att is None:
        return False

    if not remove_quietly(att.path):
        logger.warning("Attachment %s file was already gone: %s", att.id,
                       att.path)

    db.delete(att)
    db.commit()

    logger.info("Deleted attachment %s of patient %s", attachment_id,
                patient_id)
    return True
