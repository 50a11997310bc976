"""
Database transaction helpers.
"""
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from app.core.exceptions import ClaimsIntakeError
from app.core.logging import get_logger

logger = get_logger(__name__)


class DatabaseOperationError(ClaimsIntakeError):
    """Raised when the database itself is unavailable mid-operation."""

    error_code = "database_error"

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(message)


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """
    Commit everything staged inside the block, or nothing.

    Any exception, including task cancellation, rolls the session back
    before propagating, so an interrupted operation leaves no partial
    domain state behind.
    """
    try:
        yield db
        db.commit()
    except OperationalError as e:
        db.rollback()
        logger.error(f"Database operation failed: {e}")
        raise DatabaseOperationError("Database operation failed", original_error=e) from e
    except BaseException:
        db.rollback()
        raise
