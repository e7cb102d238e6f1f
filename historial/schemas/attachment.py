# FILE: historial/schemas/attachment.py
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, computed_field

from historial.core.config import settings


def build_download_url(patient_id: str, attachment_id: str) -> str:
    return f"{settings.API_V1_STR}/patient/{patient_id}/attachments/{attachment_id}/download"


class AttachmentOut(BaseModel):
    id: str
    patient_id: str
    name: str
    size: str
    upload_date: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def download_url(self) -> str:
        return build_download_url(self.patient_id, self.id)
