"""
Base repository with common CRUD operations.
All repositories should extend this class for database access.
"""
from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with common CRUD operations.

    Reads use ``populate_existing`` so objects already in the session are
    refreshed after targeted ``UPDATE`` statements (counter increments).
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Async database session
        """
        self.model = model
        self.db = db

    def _apply_filters(self, query, filters: dict):
        for key, value in filters.items():
            if hasattr(self.model, key):
                query = query.where(getattr(self.model, key) == value)
        return query

    async def create(self, **kwargs) -> ModelType:
        """
        Create a new record.

        Args:
            **kwargs: Model field values

        Returns:
            Created model instance

        Example:
            ```python
            user = await user_repo.create(username="alice", display_name="Alice")
            ```
        """
        instance = self.model(**kwargs)
        self.db.add(instance)
        await self.db.flush()
        await self.db.refresh(instance)
        return instance

    async def get(self, id: str) -> Optional[ModelType]:
        """
        Get a record by ID.

        Args:
            id: Record ID

        Returns:
            Model instance or None if not found
        """
        result = await self.db.execute(
            select(self.model)
            .where(self.model.id == id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_many(
        self,
        ids: List[str],
        order_by: Optional[Any] = None
    ) -> List[ModelType]:
        """
        Get multiple records by IDs.

        Args:
            ids: List of record IDs
            order_by: Optional SQLAlchemy order_by clause

        Returns:
            List of model instances
        """
        if not ids:
            return []

        query = select(self.model).where(self.model.id.in_(ids))

        if order_by is not None:
            query = query.order_by(order_by)

        result = await self.db.execute(query.execution_options(populate_existing=True))
        return list(result.scalars().all())

    async def find_one(self, **filters) -> Optional[ModelType]:
        """
        Get the first record matching equality filters.

        Example:
            ```python
            user = await user_repo.find_one(username="alice")
            ```
        """
        query = self._apply_filters(select(self.model), filters).limit(1)
        result = await self.db.execute(query.execution_options(populate_existing=True))
        return result.scalars().first()

    async def update(self, id: str, **kwargs) -> Optional[ModelType]:
        """
        Update a record by ID with a single targeted UPDATE.

        Args:
            id: Record ID
            **kwargs: Fields to update (values may be SQL expressions,
                e.g. ``likes_count=Tweet.likes_count + 1``)

        Returns:
            Updated model instance or None if not found
        """
        await self.db.execute(
            update(self.model)
            .where(self.model.id == id)
            .values(**kwargs)
        )
        await self.db.flush()
        return await self.get(id)

    async def update_where(self, *criteria, **values) -> int:
        """
        Update every record matching ``criteria``.

        Returns:
            Number of rows updated

        Example:
            ```python
            updated = await notification_repo.update_where(
                Notification.recipient_id == user_id,
                Notification.is_read.is_(False),
                is_read=True,
            )
            ```
        """
        result = await self.db.execute(
            update(self.model)
            .where(*criteria)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await self.db.flush()
        return result.rowcount or 0

    async def delete(self, id: str) -> bool:
        """
        Delete a record by ID (hard delete).

        Returns:
            True if deleted, False if not found
        """
        result = await self.db.execute(
            delete(self.model).where(self.model.id == id)
        )
        await self.db.flush()
        return result.rowcount > 0

    async def count(self, **filters) -> int:
        """
        Count records matching filters.

        Example:
            ```python
            count = await notification_repo.count(recipient_id=user_id, is_read=False)
            ```
        """
        query = self._apply_filters(select(func.count()).select_from(self.model), filters)
        result = await self.db.execute(query)
        return result.scalar() or 0

    async def filter_by(
        self,
        limit: int = 100,
        offset: int = 0,
        order_by: Optional[Any] = None,
        **filters
    ) -> List[ModelType]:
        """
        Filter records by equality conditions with ordering and pagination.

        Example:
            ```python
            tweets = await tweet_repo.filter_by(
                author_id=user_id,
                is_deleted=False,
                order_by=Tweet.created_at.desc(),
                limit=20
            )
            ```
        """
        query = self._apply_filters(select(self.model), filters)

        if order_by is not None:
            query = query.order_by(order_by)

        query = query.limit(limit).offset(offset)

        result = await self.db.execute(query.execution_options(populate_existing=True))
        return list(result.scalars().all())
