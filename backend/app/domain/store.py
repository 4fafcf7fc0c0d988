"""
Store context shared by the domain components.

Wraps the request's ``AsyncSession`` and owns the two concerns every
component needs: identifier validation and the unit-of-work boundary,
where storage failures become ``DependencyError`` and uniqueness
violations may become ``ConflictError``.
"""

import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any, Optional, Type

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import (
    AppException,
    ConflictError,
    DependencyError,
    InvalidArgumentError,
    ResourceNotFoundError,
)

logger = logging.getLogger("parcels.store")


class StoreContext:
    """Data-access handle injected into each component."""
    
    def __init__(self, db: AsyncSession):
        self.db = db
    
    @staticmethod
    def parse_id(value: Any, resource: str) -> str:
        """
        Normalise an identifier, rejecting anything that is not a UUID.
        
        Raises:
            InvalidArgumentError: if ``value`` is not a well-formed identifier
        """
        try:
            return str(uuid.UUID(str(value)))
        except (ValueError, TypeError, AttributeError):
            raise InvalidArgumentError(
                f"Invalid {resource} ID",
                details={"resource": resource, "id": str(value)}
            )
    
    async def execute(self, statement):
        try:
            return await self.db.execute(statement)
        except SQLAlchemyError as exc:
            logger.error("Store read failed: %s", type(exc).__name__)
            raise DependencyError("Document store unavailable") from exc
    
    async def scalars(self, statement) -> list:
        result = await self.execute(statement)
        return list(result.scalars().all())
    
    async def scalar_one_or_none(self, statement):
        result = await self.execute(statement)
        return result.scalar_one_or_none()
    
    async def get(self, model: Type, entity_id: Any, resource: str):
        """Fetch ``model`` by id; InvalidArgument for bad ids, NotFound when absent."""
        entity_id = self.parse_id(entity_id, resource)
        try:
            entity = await self.db.get(model, entity_id, populate_existing=True)
        except SQLAlchemyError as exc:
            logger.error("Store read failed: %s", type(exc).__name__)
            raise DependencyError("Document store unavailable") from exc
        if entity is None:
            raise ResourceNotFoundError(resource, entity_id)
        return entity
    
    async def refresh(self, entity) -> None:
        try:
            await self.db.refresh(entity)
        except SQLAlchemyError as exc:
            raise DependencyError("Document store unavailable") from exc
    
    @asynccontextmanager
    async def unit_of_work(self, operation: str, conflict_message: Optional[str] = None):
        """
        Run the body as one transaction and commit it.
        
        Any failure rolls the whole unit back, so two-document writes either
        land together or not at all. Domain errors propagate unchanged;
        integrity errors become Conflict when ``conflict_message`` is given,
        every other storage error becomes Dependency.
        """
        try:
            yield self.db
            await self.db.commit()
        except AppException:
            await self._rollback(operation)
            raise
        except IntegrityError as exc:
            await self._rollback(operation)
            if conflict_message is not None:
                logger.warning("%s rejected: %s", operation, conflict_message)
                raise ConflictError(conflict_message) from exc
            logger.error("%s failed on integrity check", operation)
            raise DependencyError(f"Could not complete {operation}") from exc
        except SQLAlchemyError as exc:
            await self._rollback(operation)
            logger.error("%s failed: %s", operation, type(exc).__name__)
            raise DependencyError(f"Could not complete {operation}") from exc
    
    async def _rollback(self, operation: str) -> None:
        try:
            await self.db.rollback()
        except SQLAlchemyError:
            logger.exception("Rollback failed after %s", operation)
