"""
Base Data Access Object (DAO) class.

WHY: The DAO pattern separates database operations from business logic.
Services decide *who* may see a row; DAOs only know *how* to fetch it.
"""

from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from propman.models.base import Base, EntityMixin, OrganizationOwnedMixin

ModelType = TypeVar("ModelType", bound=Base)


class BaseDAO(Generic[ModelType]):
    """
    Base Data Access Object providing CRUD operations for all models.

    WHY: Using generics allows type-safe reuse across different models.
    Soft-delete filtering is applied here with the model's typed
    `active_clause()` so every caller gets the same definition of "active".

    Type Parameters:
        ModelType: The SQLAlchemy model class this DAO manages
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        """
        Initialize DAO with model class and database session.

        Args:
            model: The SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    @property
    def is_soft_deletable(self) -> bool:
        return issubclass(self.model, EntityMixin)

    @property
    def is_organization_owned(self) -> bool:
        return issubclass(self.model, OrganizationOwnedMixin)

    def _select(self, include_deleted: bool = False) -> Select:
        query = select(self.model)
        if self.is_soft_deletable and not include_deleted:
            query = query.where(self.model.active_clause())
        return query

    async def add(self, instance: ModelType) -> ModelType:
        """
        Persist an already-built instance.

        Raises:
            IntegrityError: If unique or foreign key constraints are violated
        """
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def get_by_id(self, id: Any, include_deleted: bool = False) -> Optional[ModelType]:
        """
        Retrieve a single record by primary key.

        Args:
            id: Primary key value
            include_deleted: Also return soft-deleted rows

        Returns:
            The model instance if found, None otherwise
        """
        result = await self.session.execute(
            self._select(include_deleted).where(self.model.id == id)
        )
        return result.scalar_one_or_none()

    async def get_all(
        self,
        *criteria: Any,
        skip: int = 0,
        limit: Optional[int] = None,
        include_deleted: bool = False,
    ) -> List[ModelType]:
        """
        Retrieve multiple records matching typed criteria.

        Args:
            *criteria: SQLAlchemy boolean expressions (e.g. Property.city == "Austin")
            skip: Number of records to skip
            limit: Maximum number of records to return (None = no limit)
            include_deleted: Also return soft-deleted rows

        Returns:
            List of model instances matching the criteria
        """
        query = self._select(include_deleted).where(*criteria).offset(skip)
        if limit is not None:
            query = query.limit(limit)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def save(self, instance: ModelType) -> ModelType:
        """Flush pending changes on an instance already in the session."""
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def remove(self, instance: ModelType) -> None:
        """Physically delete a loaded instance."""
        await self.session.delete(instance)
        await self.session.flush()

    async def count(self, *criteria: Any, include_deleted: bool = False) -> int:
        """Count records matching typed criteria."""
        query = select(func.count()).select_from(self.model).where(*criteria)
        if self.is_soft_deletable and not include_deleted:
            query = query.where(self.model.active_clause())
        result = await self.session.execute(query)
        return int(result.scalar_one())

    async def exists(self, *criteria: Any) -> bool:
        """Check if any active record matches the criteria."""
        result = await self.session.execute(self._select().where(*criteria).limit(1))
        return result.scalar_one_or_none() is not None

    async def get_by_org(
        self, org_id: Any, skip: int = 0, limit: Optional[int] = None
    ) -> List[ModelType]:
        """
        Retrieve active records for a specific organization.

        Raises:
            TypeError: If the model is not organization-owned
        """
        self._require_organization_owned()
        return await self.get_all(self.model.organization_id == org_id, skip=skip, limit=limit)

    async def get_by_id_and_org(
        self, id: Any, org_id: Any, include_deleted: bool = False
    ) -> Optional[ModelType]:
        """
        Retrieve a record by ID only if it belongs to the given organization.

        Raises:
            TypeError: If the model is not organization-owned
        """
        self._require_organization_owned()
        result = await self.session.execute(
            self._select(include_deleted).where(
                self.model.id == id,
                self.model.organization_id == org_id,
            )
        )
        return result.scalar_one_or_none()

    def _require_organization_owned(self) -> None:
        if not self.is_organization_owned:
            raise TypeError(f"{self.model.__name__} is not organization-owned")
