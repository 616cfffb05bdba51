"""
Sequential human-readable numbers (RES000001, BK000001)

The number is derived from the row count at insert time. The column is unique,
so a concurrent insert or a number re-issued after a delete fails the flush;
the caller then asks for the next free number and retries.
"""
import logging
from typing import Callable, TypeVar
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

RESERVATION_PREFIX = "RES"
BOOKING_PREFIX = "BK"
NUMBER_WIDTH = 6
MAX_ATTEMPTS = 5

T = TypeVar("T")


def format_number(prefix: str, sequence: int) -> str:
    return f"{prefix}{str(sequence).zfill(NUMBER_WIDTH)}"


def parse_sequence(prefix: str, number: str) -> int:
    """Numeric part of an issued number, 0 if it is not one of ours"""
    if not number or not number.startswith(prefix):
        return 0
    digits = number[len(prefix):]
    return int(digits) if digits.isdigit() else 0


def next_number(db: Session, column, prefix: str, after_highest: bool = False) -> str:
    """
    Next number for `column`

    count + 1 by default; with after_highest the highest issued number + 1,
    used after a collision.
    """
    count = db.query(func.count(column)).scalar() or 0
    sequence = count + 1
    if after_highest:
        highest = db.query(func.max(column)).filter(column.like(f"{prefix}%")).scalar()
        sequence = max(sequence, parse_sequence(prefix, highest) + 1)
    return format_number(prefix, sequence)


def insert_with_number(db: Session, entity: T, column, prefix: str, attr: str,
                       before_commit: Callable[[T], None] = None) -> T:
    """
    Add `entity` with a fresh number in `attr` and commit

    before_commit runs after the flush (the row has an id) and may raise to
    abort the insert; the transaction is rolled back in that case.
    """
    after_highest = False
    for attempt in range(1, MAX_ATTEMPTS + 1):
        setattr(entity, attr, next_number(db, column, prefix, after_highest))
        db.add(entity)
        try:
            db.flush()
        except IntegrityError as e:
            db.rollback()
            if attr not in str(e.orig):
                raise
            logger.warning(
                f"{prefix} number {getattr(entity, attr)} already taken "
                f"(attempt {attempt}/{MAX_ATTEMPTS}), retrying"
            )
            after_highest = True
            continue

        try:
            if before_commit:
                before_commit(entity)
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(entity)
        return entity

    raise RuntimeError(f"Could not allocate a unique {prefix} number after {MAX_ATTEMPTS} attempts")
