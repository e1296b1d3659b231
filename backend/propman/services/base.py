"""
Base service for tenant-owned entities.

WHAT: Uniform create/read/update/delete for any model, scoped to the
caller's active organization.

WHY: Tenant isolation is enforced in exactly one place. Concrete services
only add validation and entity-specific queries; they never build their
own organization filters.

HOW: Whether a model is tenant-scoped is decided by the explicit
OrganizationOwnedMixin capability (issubclass), and soft-delete filtering
uses the model's typed active_clause(). Reads of another tenant's record
look exactly like "not found"; writes against another tenant's record
raise OrganizationAccessDenied so the caller can tell the difference.
"""

import logging
from typing import Any, ClassVar, Generic, List, Optional, Tuple, Type
from uuid import UUID, uuid4

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.ext.asyncio import AsyncSession

from propman.core.config import Settings, settings as default_settings
from propman.core.exceptions import OrganizationAccessDenied, ValidationError
from propman.dao.base import BaseDAO, ModelType
from propman.models.base import OrganizationOwnedMixin, utcnow
from propman.services.user_context import UserContextService

logger = logging.getLogger(__name__)

# Never copied from the incoming entity on a full-replace update
_PRESERVED_ON_UPDATE = frozenset({"id", "organization_id", "created_by", "created_on"})


class BaseService(Generic[ModelType]):
    """
    Generic entity access layer.

    Subclasses set `model` and override the hooks they need:
    - validate_entity: raise ValidationError to reject a create/update
    - set_create_defaults: fill derived fields before validation
    - after_create: side effects once the row is persisted
    - handle_exception: logging before every re-raise
    """

    model: ClassVar[Type[Any]]

    def __init__(
        self,
        session: AsyncSession,
        user_context: UserContextService,
        settings: Optional[Settings] = None,
    ):
        self.session = session
        self.user_context = user_context
        self.settings = settings or default_settings
        self.dao: BaseDAO[ModelType] = BaseDAO(self.model, session)

    @property
    def entity_name(self) -> str:
        return self.model.__name__

    @property
    def is_organization_owned(self) -> bool:
        return issubclass(self.model, OrganizationOwnedMixin)

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_by_id(self, id: UUID) -> Optional[ModelType]:
        """
        Return the entity if it exists, is active, and belongs to the
        active organization. Any other case returns None.

        Raises:
            UnauthenticatedAccessError: If no user is authenticated
        """
        organization_id = None
        try:
            self.user_context.require_user_id()
            organization_id = await self.user_context.get_active_organization_id()
            return await self._get_scoped(id, organization_id)
        except Exception as exc:
            self.handle_exception(exc, "get_by_id", organization_id)
            raise

    async def get_by_id_including_deleted(self, id: UUID) -> Optional[ModelType]:
        """Same scoping as get_by_id, but soft-deleted rows are returned too."""
        organization_id = None
        try:
            self.user_context.require_user_id()
            organization_id = await self.user_context.get_active_organization_id()
            return await self._get_scoped(id, organization_id, include_deleted=True)
        except Exception as exc:
            self.handle_exception(exc, "get_by_id_including_deleted", organization_id)
            raise

    async def get_all(self) -> List[ModelType]:
        """
        Return every active entity in the active organization.

        Organization-owned types with no active organization yield an
        empty list; global types are unscoped.
        """
        organization_id = None
        try:
            self.user_context.require_user_id()
            organization_id = await self.user_context.get_active_organization_id()
            if not self.is_organization_owned:
                return await self.dao.get_all()
            if organization_id is None:
                return []
            return await self.dao.get_by_org(organization_id)
        except Exception as exc:
            self.handle_exception(exc, "get_all", organization_id)
            raise

    async def find(self, *criteria: Any) -> List[ModelType]:
        """get_all narrowed by extra typed criteria (used by concrete services)."""
        organization_id = None
        try:
            self.user_context.require_user_id()
            organization_id = await self.user_context.get_active_organization_id()
            if not self.is_organization_owned:
                return await self.dao.get_all(*criteria)
            if organization_id is None:
                return []
            return await self.dao.get_all(self.model.organization_id == organization_id, *criteria)
        except Exception as exc:
            self.handle_exception(exc, "find", organization_id)
            raise

    # =========================================================================
    # Writes
    # =========================================================================

    async def create(self, entity: ModelType) -> ModelType:
        """
        Persist a new entity.

        The organization is always the caller's active organization,
        whatever the caller put on the entity. id is assigned when absent
        and the creation audit pair is stamped server-side.

        Raises:
            UnauthenticatedAccessError: If no user is authenticated
            OrganizationAccessDenied: If the type is tenant-scoped and the
                user has no active organization
            ValidationError: From validate_entity
        """
        organization_id = None
        try:
            user_id = self.user_context.require_user_id()
            organization_id = await self._require_write_scope()

            if self.is_organization_owned:
                entity.set_organization_id(organization_id)

            await self.set_create_defaults(entity)
            await self.validate_entity(entity)

            if entity.id is None:
                entity.id = uuid4()
            entity.created_by = user_id
            entity.created_on = utcnow()

            created = await self.dao.add(entity)
            logger.info(f"Created {self.entity_name} {created.id} in organization {organization_id}")

            await self.after_create(created)
            return created
        except Exception as exc:
            self.handle_exception(exc, "create", organization_id)
            raise

    async def update(self, entity: ModelType) -> ModelType:
        """
        Replace every field of a persisted entity with the incoming values.

        The incoming organization is reset to the active organization
        before copying, so an update can never move a record to another
        tenant. id and the creation audit pair are preserved.

        Raises:
            UnauthenticatedAccessError: If no user is authenticated
            OrganizationAccessDenied: If the record doesn't exist, is
                deleted, or belongs to another organization
            ValidationError: From validate_entity
        """
        organization_id = None
        try:
            user_id = self.user_context.require_user_id()
            organization_id = await self._require_write_scope()

            await self.validate_entity(entity)

            # Compare against stored values, not unflushed edits on a loaded instance
            with self.session.no_autoflush:
                existing = await self.dao.get_by_id(entity.id)
            if existing is None:
                raise OrganizationAccessDenied(
                    f"{self.entity_name} not found", entity_id=str(entity.id)
                )
            if self.is_organization_owned:
                if _persisted_organization_id(existing) != organization_id:
                    logger.warning(
                        f"Blocked cross-organization update of {self.entity_name} {entity.id} "
                        f"from organization {organization_id}"
                    )
                    raise OrganizationAccessDenied(
                        f"{self.entity_name} not found", entity_id=str(entity.id)
                    )
                entity.set_organization_id(organization_id)

            entity.last_modified_by = user_id
            entity.last_modified_on = utcnow()

            if existing is not entity:
                _replace_values(existing, entity)
            if self.is_organization_owned:
                existing.set_organization_id(organization_id)

            updated = await self.dao.save(existing)
            logger.info(f"Updated {self.entity_name} {updated.id} in organization {organization_id}")
            return updated
        except Exception as exc:
            self.handle_exception(exc, "update", organization_id)
            raise

    async def delete(self, id: UUID) -> bool:
        """
        Delete an entity, softly or physically depending on SOFT_DELETE_ENABLED.

        Returns:
            False if there is no active record with this id

        Raises:
            UnauthenticatedAccessError: If no user is authenticated
            OrganizationAccessDenied: If the record belongs to another organization
        """
        organization_id = None
        try:
            user_id = self.user_context.require_user_id()
            organization_id = await self._require_write_scope()

            existing = await self.dao.get_by_id(id)
            if existing is None:
                return False
            if self.is_organization_owned and existing.get_organization_id() != organization_id:
                logger.warning(
                    f"Blocked cross-organization delete of {self.entity_name} {id} "
                    f"from organization {organization_id}"
                )
                raise OrganizationAccessDenied(f"{self.entity_name} not found", entity_id=str(id))

            if self.settings.SOFT_DELETE_ENABLED:
                existing.is_deleted = True
                existing.last_modified_by = user_id
                existing.last_modified_on = utcnow()
                await self.dao.save(existing)
                logger.info(f"Soft deleted {self.entity_name} {id}")
            else:
                await self.dao.remove(existing)
                logger.info(f"Hard deleted {self.entity_name} {id}")
            return True
        except Exception as exc:
            self.handle_exception(exc, "delete", organization_id)
            raise

    # =========================================================================
    # Hooks
    # =========================================================================

    async def validate_entity(self, entity: ModelType) -> None:
        """Override to reject invalid entities with ValidationError."""
        return None

    async def set_create_defaults(self, entity: ModelType) -> None:
        """
        Inherit the sample-data marker from declared parents.

        WHY: Sample data is removed as a unit. A lease created against a
        sample property must go with it, or deleting the sample set would
        leave orphans pointing at removed rows.
        """
        if entity.is_sample_data:
            return
        entity.is_sample_data = False
        parents: Tuple[Tuple[str, Any], ...] = getattr(self.model, "__sample_data_parents__", ())
        for attribute, parent_model in parents:
            parent_id = getattr(entity, attribute, None)
            if parent_id is None:
                continue
            parent = await BaseDAO(parent_model, self.session).get_by_id(
                parent_id, include_deleted=True
            )
            if parent is not None and parent.is_sample_data:
                entity.is_sample_data = True
                return

    async def after_create(self, entity: ModelType) -> None:
        """Override for side effects after a successful create."""
        return None

    def handle_exception(
        self, exc: Exception, operation: str, organization_id: Optional[UUID] = None
    ) -> None:
        """
        Log an operation failure with its context. The caller re-raises.
        """
        if isinstance(exc, ValidationError):
            logger.info(f"Validation failed in {operation} for {self.entity_name}: {exc}")
            return
        logger.error(
            f"Error in {operation} for {self.entity_name} "
            f"(organization {organization_id}): {exc.__class__.__name__}: {exc}"
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _get_scoped(
        self, id: UUID, organization_id: Optional[UUID], include_deleted: bool = False
    ) -> Optional[ModelType]:
        if not self.is_organization_owned:
            return await self.dao.get_by_id(id, include_deleted=include_deleted)
        if organization_id is None:
            return None
        return await self.dao.get_by_id_and_org(id, organization_id, include_deleted=include_deleted)

    async def _require_write_scope(self) -> Optional[UUID]:
        organization_id = await self.user_context.get_active_organization_id()
        if self.is_organization_owned and organization_id is None:
            raise OrganizationAccessDenied(
                f"No active organization for {self.entity_name} write",
                status_code=403,
            )
        return organization_id

    async def require_related(self, model: Type[Any], id: Optional[UUID], label: str) -> Any:
        """
        Load a referenced record in the active organization or fail validation.

        WHY: A lease must not point at another tenant's property. Using the
        same scoped lookup as get_by_id means a foreign id is reported as
        missing, never as "belongs to someone else".
        """
        if id is None:
            raise ValidationError(f"{label} is required")
        organization_id = await self.user_context.get_active_organization_id()
        related = None
        if organization_id is not None:
            related = await BaseDAO(model, self.session).get_by_id_and_org(id, organization_id)
        if related is None:
            raise ValidationError(f"{label} not found", field=label)
        return related


def _persisted_organization_id(instance: Any) -> Optional[UUID]:
    """Organization id as loaded from the store, ignoring unflushed edits."""
    history = sa_inspect(instance).attrs.organization_id.history
    if history.deleted:
        return history.deleted[0]
    return instance.organization_id


def _replace_values(target: Any, source: Any) -> None:
    """
    Copy every mapped column from source to target (full replace).

    A None on a non-nullable column with a scalar default takes the
    default, which is what a freshly constructed entity would hold.
    """
    for column_attr in sa_inspect(type(target)).column_attrs:
        key = column_attr.key
        if key in _PRESERVED_ON_UPDATE:
            continue
        value = getattr(source, key)
        if value is None:
            column = column_attr.columns[0]
            if not column.nullable and column.default is not None and column.default.is_scalar:
                value = column.default.arg
        setattr(target, key, value)
