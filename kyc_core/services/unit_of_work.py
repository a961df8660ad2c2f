"""
Unit of work.

A state transition and its audit entry commit together or not at all.
"""

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from kyc_core.errors import ConflictError, StorageUnavailable
from kyc_core.logging import get_logger

logger = get_logger(__name__)


@contextmanager
def unit_of_work(db: Session, entity: str, entity_id=None) -> Iterator[None]:
    """
    Commit the session on success; roll back on any failure.

    Translates persistence failures:
    - StaleDataError (optimistic version mismatch) -> ConflictError
    - IntegrityError (unique current-row constraint) -> ConflictError
    - any other DBAPIError -> StorageUnavailable

    Usage:
        with unit_of_work(self.db, "consent", consent_id):
            consent.approve(...)
            self.audit.append(...)
    """
    try:
        yield
        db.commit()
    except (StaleDataError, IntegrityError) as e:
        db.rollback()
        logger.concurrency_conflict(entity, entity_id)
        raise ConflictError(entity, entity_id) from e
    except DBAPIError as e:
        db.rollback()
        logger.storage_failed(f"{entity} update", str(e.orig) if e.orig else str(e))
        raise StorageUnavailable(f"Storage unavailable during {entity} update") from e
    except BaseException:
        db.rollback()
        raise
