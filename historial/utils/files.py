from __future__ import annotations

import shutil
from pathlib import Path
from typing import BinaryIO
from uuid import uuid4

_SIZE_UNITS = ("B", "KB", "MB", "GB")

_CONTENT_TYPES = {
    ".pdf": "application/pdf",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".doc": "application/msword",
    ".docx":
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".txt": "text/plain",
}

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def format_file_size(num_bytes: int) -> str:
    """
    Human readable size in binary units, at most two decimals:
      1536       -> "1.5 KB"
      1073741824 -> "1 GB"
    """
    value = float(num_bytes)
    order = 0
    while value >= 1024 and order < len(_SIZE_UNITS) - 1:
        order += 1
        value /= 1024
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[order]}"


def content_type_for(path: str | Path) -> str:
    return _CONTENT_TYPES.get(Path(path).suffix.lower(), DEFAULT_CONTENT_TYPE)


def unique_filename(original_name: str) -> str:
    # keep extension
    return f"{uuid4().hex}{Path(original_name or '').suffix.lower()}"


def write_stream(stream: BinaryIO, dest: Path) -> int:
    """Copy the whole stream into dest; returns bytes written."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    with dest.open("wb") as out:
        shutil.copyfileobj(stream, out)
    return dest.stat().st_size


def remove_quietly(path: str | Path) -> bool:
    """Unlink path; a file that is already gone is not an error."""
    p = Path(path)
    try:
        p.unlink()
        return True
    except FileNotFoundError:
        return False
