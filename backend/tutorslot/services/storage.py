from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tutorslot.core.exceptions import StorageError

logger = logging.getLogger(__name__)


@contextmanager
def storage_guard(db: Session, operation: str) -> Iterator[None]:
    """Roll back and surface any store failure inside the block as a StorageError."""
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Storage failure during %s", operation)
        raise StorageError(f"Storage failure during {operation}", details={"operation": operation}) from exc
