from typing import Generic, Iterable, List, Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.core.exceptions import ConcurrencyConflictError, DuplicateRecordError
from app.core.logging import get_logger

# Define a generic type for SQLAlchemy models
ModelType = TypeVar("ModelType")

LOGGER = get_logger(__name__)


class BaseRepository(Generic[ModelType]):
    """Base repository implementing the reads and writes every store shares.

    Repositories stage changes and flush them; committing is left to the
    calling service's unit of work so one operation persists atomically.
    """

    def __init__(self, session: Session, model: Type[ModelType]):
        """Initialize the repository.

        Args:
            session: SQLAlchemy session
            model: The SQLAlchemy model class this repository manages
        """
        self.session = session
        self.model = model
        self.logger = LOGGER

    def get_by_id(self, id: UUID) -> Optional[ModelType]:
        """Get a record by its primary key, or None."""
        return self.session.get(self.model, id)

    def add(self, instance: ModelType) -> ModelType:
        """Stage a new record and flush it so constraints are checked now."""
        self.session.add(instance)
        self.flush()
        return instance

    def add_all(self, instances: Iterable[ModelType]) -> List[ModelType]:
        instances = list(instances)
        self.session.add_all(instances)
        self.flush()
        return instances

    def flush(self) -> None:
        """Flush pending changes, translating persistence conflicts.

        Raises:
            ConcurrencyConflictError: a versioned row changed underneath us
            DuplicateRecordError: a uniqueness constraint rejected the write
        """
        try:
            self.session.flush()
        except StaleDataError as e:
            self.logger.warning(f"Stale {self.model.__name__} write rejected: {e}")
            raise ConcurrencyConflictError(
                f"{self.model.__name__} was modified by another request. Re-read and retry."
            ) from e
        except IntegrityError as e:
            self.logger.warning(f"Duplicate {self.model.__name__} rejected: {e.orig}")
            raise DuplicateRecordError(
                f"{self.model.__name__} conflicts with an existing record"
            ) from e
