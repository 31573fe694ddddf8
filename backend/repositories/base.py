"""
Base repository class providing common database operations.

Repositories never commit on their own except through the explicit
``create``/``commit`` helpers; services decide transaction boundaries.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy.orm import Session

from repositories.database import Base

T = TypeVar("T", bound=Base)  # type: ignore[type-arg]


class BaseRepository(Generic[T]):
    """
    Base repository providing common CRUD operations.

    Type parameter T should be a SQLAlchemy model class with an ``id`` column.
    """

    def __init__(self, model: type[T], db: Session):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db

    def get_by_id(self, id: Any) -> T | None:
        """
        Get entity by ID.

        Args:
            id: Entity ID

        Returns:
            Entity if found, None otherwise
        """
        return self.db.query(self.model).filter(self.model.id == id).first()

    def get_by_id_for_update(self, id: Any) -> T | None:
        """
        Get entity by ID and lock its row until the transaction ends.

        The lock is taken with SELECT ... FOR UPDATE, and the row is refreshed
        even if it is already in the identity map, so read-modify-write
        sequences see the latest committed state.

        Args:
            id: Entity ID

        Returns:
            Entity if found, None otherwise
        """
        return (
            self.db.query(self.model)
            .filter(self.model.id == id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def add(self, entity: T) -> None:
        """
        Add entity to session without committing.

        Args:
            entity: Entity to add
        """
        self.db.add(entity)

    def create(self, entity: T) -> T:
        """
        Add, commit and refresh a new entity.

        Args:
            entity: Entity to create

        Returns:
            Created entity
        """
        self.db.add(entity)
        self.db.commit()
        self.db.refresh(entity)
        return entity

    def delete(self, entity: T) -> None:
        """
        Mark entity for deletion without committing.

        Args:
            entity: Entity to delete
        """
        self.db.delete(entity)

    def commit(self) -> None:
        """Commit the current transaction."""
        self.db.commit()

    def flush(self) -> None:
        """Flush pending changes without committing."""
        self.db.flush()

