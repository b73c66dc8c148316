"""
Base repository class providing common database operations.
"""

from typing import Generic, TypeVar

from sqlalchemy.orm import Query, Session

from repositories.database import Base

T = TypeVar("T", bound=Base)  # type: ignore[type-arg]

LIKE_ESCAPE = "\\"


def contains_pattern(text: str) -> str:
    """
    Build a substring LIKE pattern with the user's wildcards escaped.

    Use with ``escape=LIKE_ESCAPE`` so ``%`` and ``_`` match literally.
    """
    escaped = (
        text.strip()
        .replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


class BaseRepository(Generic[T]):
    """
    Base repository providing common CRUD operations.

    Type parameter T should be a SQLAlchemy model class.
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

    def get_by_id(self, id: int) -> T | None:
        return self.db.query(self.model).filter(self.model.id == id).first()

    def get_active_by_id(self, id: int) -> T | None:
        """Get a soft-deletable entity only while it is active."""
        return (
            self.db.query(self.model)
            .filter(self.model.id == id, self.model.is_active.is_(True))
            .first()
        )

    def get_many(self, ids: list[int]) -> list[T]:
        if not ids:
            return []
        return self.db.query(self.model).filter(self.model.id.in_(ids)).all()

    def add(self, entity: T) -> None:
        """
        Add entity to session without committing.

        Use this when several changes must land in one commit.
        """
        self.db.add(entity)

    def create(self, entity: T) -> T:
        """
        Create new entity.

        Args:
            entity: Entity to create

        Returns:
            Created entity
        """
        self.db.add(entity)
        self.db.commit()
        self.db.refresh(entity)
        return entity

    def count(self) -> int:
        return self.db.query(self.model).count()

    def count_active(self) -> int:
        return self.db.query(self.model).filter(self.model.is_active.is_(True)).count()

    def commit(self) -> None:
        """Commit the current transaction."""
        self.db.commit()

    def flush(self) -> None:
        """Flush pending changes without committing."""
        self.db.flush()

    def rollback(self) -> None:
        """Rollback the current transaction."""
        self.db.rollback()

    def refresh(self, entity: T) -> None:
        self.db.refresh(entity)

    @staticmethod
    def paginate(query: Query, skip: int, limit: int) -> tuple[list, int]:
        """
        Run ``query`` for one page.

        Returns:
            Tuple of (items on the page, total matching rows)
        """
        total = query.order_by(None).count()
        return query.offset(skip).limit(limit).all(), total
