import io
import os
import uuid
from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import SQLAlchemyError

from conftest import API
from historial.core.config import settings
from historial.core.errors import InvalidArgument, NotFound
from historial.models.patient import Attachment
from historial.schemas.patient import PatientIn
from historial.services import attachments as attachment_service
from historial.services import patients as patient_service

PDF = b"%PDF-1.4 fake scan"


def _patient(session_factory, name="Ana"):
    with session_factory() as s:
        return patient_service.create_patient(s, PatientIn(name=name)).id


def _upload(db, patient_id, data=PDF, filename="scan.pdf",
            content_type="application/pdf", length=None):
    return attachment_service.add_attachment(
        db,
        patient_id,
        stream=io.BytesIO(data),
        filename=filename,
        content_type=content_type,
        length=len(data) if length is None else length,
    )


def _files_in(storage_dir, patient_id):
    d = storage_dir / "patients" / patient_id
    return sorted(p.name for p in d.iterdir()) if d.exists() else []


# ---------- service ----------


def test_upload_stores_file_and_metadata(db, session_factory, storage_dir):
    pid = _patient(session_factory)

    att = _upload(db, pid, data=b"x" * 1536)

    stored = storage_dir / "patients" / pid
    assert att.patient_id == pid
    assert att.name == "scan.pdf"
    assert att.size == "1.5 KB"
    assert att.path.startswith(str(stored.resolve()))
    assert att.path.endswith(".pdf")
    with open(att.path, "rb") as fh:
        assert fh.read() == b"x" * 1536


def test_upload_unknown_patient(db):
    with pytest.raises(NotFound):
        _upload(db, str(uuid.uuid4()))


def test_upload_empty_file(db, session_factory, storage_dir):
    pid = _patient(session_factory)

    with pytest.raises(InvalidArgument):
        _upload(db, pid, data=b"")
    with pytest.raises(InvalidArgument):
        attachment_service.add_attachment(db, pid, stream=None,
                                          filename=None, content_type=None,
                                          length=None)
    assert _files_in(storage_dir, pid) == []


def test_upload_too_large(db, session_factory, storage_dir, monkeypatch):
    pid = _patient(session_factory)
    monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 10)

    with pytest.raises(InvalidArgument, match="exceeds"):
        _upload(db, pid, data=b"x" * 11)

    assert db.query(Attachment).count() == 0
    assert _files_in(storage_dir, pid) == []


def test_size_limit_checked_before_content_type(db, session_factory):
    pid = _patient(session_factory)

    with pytest.raises(InvalidArgument, match="exceeds"):
        _upload(db, pid, data=b"x", length=settings.MAX_UPLOAD_BYTES + 1,
                filename="movie.mp4", content_type="video/mp4")


def test_upload_disallowed_type(db, session_factory, storage_dir):
    pid = _patient(session_factory)

    with pytest.raises(InvalidArgument, match="not allowed"):
        _upload(db, pid, filename="setup.exe",
                content_type="application/x-msdownload")

    assert db.query(Attachment).count() == 0
    assert _files_in(storage_dir, pid) == []


def test_failed_metadata_commit_removes_file(db, session_factory, storage_dir,
                                             monkeypatch):
    pid = _patient(session_factory)

    def broken_commit():
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(db, "commit", broken_commit)

    with pytest.raises(SQLAlchemyError):
        _upload(db, pid)

    assert _files_in(storage_dir, pid) == []


def test_list_is_newest_first(db, session_factory, monkeypatch):
    pid = _patient(session_factory)
    base = datetime(2025, 3, 1, 9, 0)
    stamps = iter([base, base + timedelta(minutes=5), base + timedelta(minutes=10)])
    monkeypatch.setattr(attachment_service, "utcnow_db", lambda: next(stamps))

    for name in ("a.pdf", "b.pdf", "c.pdf"):
        _upload(db, pid, filename=name)

    names = [a.name for a in attachment_service.list_attachments(db, pid)]
    assert names == ["c.pdf", "b.pdf", "a.pdf"]


def test_list_unknown_patient(db):
    with pytest.raises(NotFound):
        attachment_service.list_attachments(db, str(uuid.uuid4()))


def test_get_file_returns_bytes_and_type(db, session_factory):
    pid = _patient(session_factory)
    att = _upload(db, pid, data=b"lab result", filename="result.txt",
                  content_type="text/plain")

    result = attachment_service.get_attachment_file(db, pid, att.id)

    assert result.data == b"lab result"
    assert result.content_type == "text/plain"
    assert result.file_name == "result.txt"


def test_get_file_missing_on_disk(db, session_factory):
    pid = _patient(session_factory)
    att = _upload(db, pid)
    os.remove(att.path)

    assert attachment_service.get_attachment_file(db, pid, att.id) is None
    # metadata row is still there
    assert attachment_service.get_attachment(db, pid, att.id) is not None


def test_attachment_scoped_to_its_patient(db, session_factory):
    owner = _patient(session_factory, "Owner")
    other = _patient(session_factory, "Other")
    att = _upload(db, owner)

    assert attachment_service.get_attachment(db, other, att.id) is None
    assert attachment_service.get_attachment_file(db, other, att.id) is None
    assert attachment_service.delete_attachment(db, other, att.id) is False
    assert attachment_service.get_attachment(db, owner, att.id) is not None


def test_delete_removes_row_and_file(db, session_factory, storage_dir):
    pid = _patient(session_factory)
    att = _upload(db, pid)
    path = att.path

    assert attachment_service.delete_attachment(db, pid, att.id) is True
    assert attachment_service.get_attachment(db, pid, att.id) is None
    assert _files_in(storage_dir, pid) == []
    assert not os.path.exists(path)

    assert attachment_service.delete_attachment(db, pid, att.id) is False


def test_delete_when_file_already_gone(db, session_factory):
    pid = _patient(session_factory)
    att = _upload(db, pid)
    os.remove(att.path)

    assert attachment_service.delete_attachment(db, pid, att.id) is True


def test_limit_applies_to_bytes_written(db, session_factory, storage_dir,
                                        monkeypatch):
    pid = _patient(session_factory)
    monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 10)

    with pytest.raises(InvalidArgument, match="exceeds"):
        _upload(db, pid, data=b"x" * 5000, length=4)

    assert db.query(Attachment).count() == 0
    assert _files_in(storage_dir, pid) == []


def test_size_label_uses_bytes_written(db, session_factory):
    pid = _patient(session_factory)

    att = _upload(db, pid, data=b"x" * 2048, length=7)

    assert att.size == "2 KB"
    assert os.path.getsize(att.path) == 2048


def test_stream_with_no_bytes_is_rejected(db, session_factory, storage_dir):
    pid = _patient(session_factory)

    with pytest.raises(InvalidArgument, match="empty"):
        _upload(db, pid, data=b"", length=100)

    assert _files_in(storage_dir, pid) == []


class _DroppingStream(io.RawIOBase):
    """Hands out a few bytes, then fails like a dropped client."""

    def __init__(self):
        self._sent = False

    def readable(self):
        return True

    def readinto(self, buf):
        if self._sent:
            raise OSError("client disconnected")
        self._sent = True
        buf[:4] = b"%PDF"
        return 4


def test_interrupted_write_leaves_no_file(db, session_factory, storage_dir):
    pid = _patient(session_factory)

    with pytest.raises(OSError, match="client disconnected"):
        attachment_service.add_attachment(
            db, pid, stream=_DroppingStream(), filename="scan.pdf",
            content_type="application/pdf", length=1024)

    assert db.query(Attachment).count() == 0
    assert _files_in(storage_dir, pid) == []


# ---------- HTTP ----------


def test_http_upload_list_download_delete(client, staff_headers,
                                          session_factory):
    pid = _patient(session_factory)
    base = f"{API}/patient/{pid}/attachments"

    resp = client.post(base,
                       files={"file": ("informe medico.pdf", PDF, "application/pdf")},
                       headers=staff_headers)
    assert resp.status_code == 200, resp.text
    body = resp.json()
    aid = body["id"]
    assert body["patient_id"] == pid
    assert body["size"] == f"{len(PDF)} B"
    assert body["download_url"] == f"{base}/{aid}/download"
    assert "path" not in body

    listed = client.get(base, headers=staff_headers)
    assert listed.status_code == 200
    assert [a["id"] for a in listed.json()] == [aid]

    info = client.get(f"{base}/{aid}", headers=staff_headers)
    assert info.status_code == 200
    assert info.json()["name"] == "informe medico.pdf"

    dl = client.get(f"{base}/{aid}/download", headers=staff_headers)
    assert dl.status_code == 200
    assert dl.content == PDF
    assert dl.headers["content-type"] == "application/pdf"
    assert dl.headers["content-disposition"] == (
        "attachment; filename*=UTF-8''informe%20medico.pdf")

    gone = client.delete(f"{base}/{aid}", headers=staff_headers)
    assert gone.status_code == 204
    assert client.get(f"{base}/{aid}", headers=staff_headers).status_code == 404
    assert client.delete(f"{base}/{aid}",
                         headers=staff_headers).status_code == 404


def test_http_upload_errors(client, staff_headers, session_factory):
    pid = _patient(session_factory)
    base = f"{API}/patient/{pid}/attachments"

    missing = client.post(base, headers=staff_headers)
    assert missing.status_code == 400
    assert missing.json()["error"]["code"] == "invalid_argument"

    empty = client.post(base, files={"file": ("a.pdf", b"", "application/pdf")},
                        headers=staff_headers)
    assert empty.status_code == 400

    bad_type = client.post(base,
                           files={"file": ("run.sh", b"echo", "application/x-sh")},
                           headers=staff_headers)
    assert bad_type.status_code == 400

    unknown = client.post(f"{API}/patient/{uuid.uuid4()}/attachments",
                          files={"file": ("a.pdf", PDF, "application/pdf")},
                          headers=staff_headers)
    assert unknown.status_code == 404
    assert unknown.json()["error"]["code"] == "not_found"


def test_http_download_unknown_attachment(client, staff_headers,
                                          session_factory):
    pid = _patient(session_factory)

    resp = client.get(f"{API}/patient/{pid}/attachments/{uuid.uuid4()}/download",
                      headers=staff_headers)
    assert resp.status_code == 404
    assert resp.json()["ok"] is False


def test_http_attachments_require_login(client, session_factory):
    pid = _patient(session_factory)

    resp = client.get(f"{API}/patient/{pid}/attachments")
    assert resp.status_code == 401
