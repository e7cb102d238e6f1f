# FILE: historial/api/routes_attachments.py
from __future__ import annotations

import os
import uuid
from typing import List, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile
from sqlalchemy.orm import Session

from historial.api.deps import get_db, current_user
from historial.models.user import User
from historial.schemas.attachment import AttachmentOut
from historial.services import attachments as attachment_service

router = APIRouter()


def _upload_length(file: Optional[UploadFile]) -> int:
    if file is None:
        return 0
    if file.size is not None:
        return int(file.size)
    # older clients: measure the spooled file
    f = file.file
    f.seek(0, os.SEEK_END)
    size = f.tell()
    f.seek(0)
    return size


@router.post("/patient/{patient_id}/attachments", response_model=AttachmentOut)
def upload_attachment(
        patient_id: uuid.UUID,
        file: Optional[UploadFile] = File(None),
        db: Session = Depends(get_db),
        user: User = Depends(current_user),
):
    """
    Multipart upload (field name: file). 404 unknown patient, 400 empty /
    too large / disallowed type.
    """
    try:
        att = attachment_service.add_attachment(
            db,
            str(patient_id),
            stream=file.file if file else None,
            filename=file.filename if file else None,
            content_type=file.content_type if file else None,
            length=_upload_length(file),
        )
    finally:
        if file is not None:
            file.file.close()
    return AttachmentOut.model_validate(att)


@router.get("/patient/{patient_id}/attachments",
            response_model=List[AttachmentOut])
def list_attachments(
        patient_id: uuid.UUID,
        db: Session = Depends(get_db),
        user: User = Depends(current_user),
):
    rows = attachment_service.list_attachments(db, str(patient_id))
    return [AttachmentOut.model_validate(a) for a in rows]


@router.get("/patient/{patient_id}/attachments/{attachment_id}",
            response_model=AttachmentOut)
def get_attachment_info(
        patient_id: uuid.UUID,
        attachment_id: uuid.UUID,
        db: Session = Depends(get_db),
        user: User = Depends(current_user),
):
    att = attachment_service.get_attachment(db, str(patient_id),
                                            str(attachment_id))
    if att is None:
        raise HTTPException(status_code=404, detail="Attachment not found")
    return AttachmentOut.model_validate(att)


@router.get("/patient/{patient_id}/attachments/{attachment_id}/download")
def download_attachment(
        patient_id: uuid.UUID,
        attachment_id: uuid.UUID,
        db: Session = Depends(get_db),
        user: User = Depends(current_user),
):
    result = attachment_service.get_attachment_file(db, str(patient_id),
                                                    str(attachment_id))
    if result is None:
        raise HTTPException(
            status_code=404,
            detail="Attachment not found or file not accessible")

    headers = {
        "Content-Disposition":
        f"attachment; filename*=UTF-8''{quote(result.file_name)}",
    }
    return Response(content=result.data,
                    media_type=result.content_type,
                    headers=headers)


@router.delete("/patient/{patient_id}/attachments/{attachment_id}",
               status_code=204)
def delete_attachment(
        patient_id: uuid.UUID,
        attachment_id: uuid.UUID,
        db: Session = Depends(get_db),
        user: User = Depends(current_user),
):
    if not attachment_service.delete_attachment(db, str(patient_id),
                                                str(attachment_id)):
        raise HTTPException(status_code=404, detail="Attachment not found")
    return Response(status_code=204)
