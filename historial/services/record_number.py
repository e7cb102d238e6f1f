# FILE: historial/services/record_number.py
from __future__ import annotations

import logging
import random
import time
from datetime import datetime
from typing import Callable, Optional, Tuple

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from historial.core.config import settings
from historial.core.errors import RecordNumberExhausted
from historial.models.patient import Patient
from historial.models.record_counter import RecordNumberCounter

logger = logging.getLogger(__name__)

BACKOFF_SECONDS: Tuple[float, float] = (0.010, 0.050)

# MySQL: lock wait timeout, deadlock
_MYSQL_CONFLICT_CODES = frozenset({1205, 1213})
_CONFLICT_MESSAGES = ("database is locked", "deadlock", "lock wait timeout")


class RecordNumberCollision(Exception):
    """The candidate was taken even after advancing past the year's maximum."""


def is_write_conflict(exc: OperationalError) -> bool:
    """True for lock timeouts and deadlocks; False for lost connections etc."""
    orig = getattr(exc, "orig", None)
    args = getattr(orig, "args", ())
    if args and isinstance(args[0], int):
        return args[0] in _MYSQL_CONFLICT_CODES
    text = str(orig if orig is not None else exc).lower()
    return any(m in text for m in _CONFLICT_MESSAGES)


def format_record_number(year: int, n: int) -> str:
    return f"{year}-{n}"


def _lock_counter(db: Session, year: int) -> RecordNumberCounter:
    row = (
        db.query(RecordNumberCounter)
        .filter(RecordNumberCounter.year == year)
        .with_for_update()
        .first()
    )
    if not row:
        # first number of the year. If two requests create it at the same
        # time, one hits IntegrityError and the whole attempt is retried.
        row = RecordNumberCounter(year=year, counter=0)
        db.add(row)
        db.flush()
    return row


def _number_taken(db: Session, number: str) -> bool:
    return (db.query(Patient.id).filter(
        Patient.record_number == number).first() is not None)


def max_suffix_for_year(db: Session, year: int) -> int:
    rows = (db.query(Patient.record_number).filter(
        Patient.record_number.like(f"{year}-%")).all())
    highest = 0
    for (number, ) in rows:
        suffix = (number or "").split("-", 1)[-1]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return highest


def next_record_number(db: Session, *, year: int) -> str:
    """
    Lock the year's counter row, bump it and return a number no patient has.
    The transaction is left open; the caller commits it together with the
    patient row so the lock is held until the number is actually used.
    """
    row = _lock_counter(db, year)
    row.counter = int(row.counter or 0) + 1
    number = format_record_number(year, row.counter)

    if _number_taken(db, number):
        highest = max_suffix_for_year(db, year)
        logger.warning(
            "Record number %s already in use; counter for %s advanced past %s",
            number, year, highest)
        row.counter = max(row.counter, highest) + 1
        number = format_record_number(year, row.counter)
        if _number_taken(db, number):
            raise RecordNumberCollision(number)

    db.flush()
    return number


def assign_record_number(
    db: Session,
    patient: Patient,
    *,
    now: Optional[Callable[[], datetime]] = None,
    max_attempts: Optional[int] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Patient:
    """
    Give `patient` a fresh "{year}-{n}" number and commit both in one unit of
    work. Write conflicts (lock timeouts, deadlocks, duplicate keys) roll back
    and retry with a 10-50 ms jitter. Any other database error is re-raised
    after the rollback. Raises RecordNumberExhausted when every
    attempt failed; nothing is committed in that case.
    """
    clock = now or datetime.now
    attempts = max_attempts or settings.RECORD_NUMBER_MAX_ATTEMPTS
    last_exc: Optional[Exception] = None

    for attempt in range(1, attempts + 1):
        year = clock().year
        try:
            patient.record_number = next_record_number(db, year=year)
            db.add(patient)
            db.commit()
            return patient
        except (IntegrityError, OperationalError,
                RecordNumberCollision) as exc:
            db.rollback()
            if isinstance(exc, OperationalError) and not is_write_conflict(exc):
                logger.error("Record number attempt %s failed: %s", attempt, exc)
                patient.record_number = None
                raise
            last_exc = exc
            logger.warning("Record number attempt %s/%s failed: %s", attempt,
                           attempts, exc.__class__.__name__)
            if attempt < attempts:
                sleep(random.uniform(*BACKOFF_SECONDS))

    patient.record_number = None
    logger.error("Could not issue a unique record number after %s attempts",
                 attempts)
    raise RecordNumberExhausted(
        "Could not generate a unique record number") from last_exc
