from typing import Any, Dict, Generic, List, Optional, Type, TypeVar, Union
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.codeprep.models.base import Base, utcnow

SQLModelType = TypeVar("SQLModelType", bound=Base)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)


class DatabaseOperationError(Exception):
    """Base exception for database operations."""
    pass


class NotFoundError(DatabaseOperationError):
    """Raised when a requested resource is not found."""
    pass


class ConflictError(DatabaseOperationError):
    """Raised when a database constraint is violated."""
    pass


class CRUDBase(Generic[SQLModelType, CreateSchemaType, UpdateSchemaType]):
    def __init__(self, sql_model: Type[SQLModelType]):
        """
        CRUD object with default methods to Create, Read, Update, Delete (CRUD).
        **Parameters**
        * `sql_model`: A SQLAlchemy model class
        """
        self.sql_model = sql_model

    async def count(self, db: AsyncSession) -> int:
        """Count all objects."""
        stmt = select(func.count()).select_from(self.sql_model)
        result = await db.execute(stmt)
        return result.scalar_one()

    async def get(self, db: AsyncSession, *, id: UUID) -> SQLModelType | None:
        """Get a single object by ID."""
        stmt = select(self.sql_model).where(self.sql_model.id == id)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_404(self, db: AsyncSession, *, id: UUID) -> SQLModelType:
        """Get a single object by ID.

        Raises:
            NotFoundError: If no row has this id
        """
        obj = await self.get(db, id=id)
        if obj is None:
            raise NotFoundError(f"{self.sql_model.__name__} not found")
        return obj

    async def get_multi(
        self, db: AsyncSession, *, skip: int = 0, limit: int = 100
    ) -> List[SQLModelType]:
        """Get multiple objects, oldest first.

        Args:
            db: Database session
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            List[SQLModelType]: List of model objects
        """
        stmt = (
            select(self.sql_model)
            .order_by(self.sql_model.created_at)
            .offset(skip)
            .limit(limit)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def create(self, db: AsyncSession, *, obj_in: Union[CreateSchemaType, Dict[str, Any]]) -> SQLModelType:
        """Create a new object.

        Raises:
            ConflictError: If a unique or check constraint rejects the row
        """
        obj_in_data = obj_in if isinstance(obj_in, dict) else obj_in.model_dump()
        db_obj = self.sql_model(**obj_in_data)
        db.add(db_obj)
        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            raise ConflictError(f"Could not create {self.sql_model.__name__}: constraint violated") from e
        await db.refresh(db_obj)
        return db_obj

    async def update(
        self,
        db: AsyncSession,
        *,
        db_obj: SQLModelType,
        obj_in: Union[UpdateSchemaType, Dict[str, Any]],
    ) -> SQLModelType:
        """Update an object with the fields that were sent.

        ``updated_at`` is refreshed even when no column changed.
        """
        update_data = obj_in if isinstance(obj_in, dict) else obj_in.model_dump(exclude_unset=True)
        for field in update_data:
            setattr(db_obj, field, update_data[field])
        db_obj.updated_at = utcnow()
        db.add(db_obj)
        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            raise ConflictError(f"Could not update {self.sql_model.__name__}: constraint violated") from e
        await db.refresh(db_obj)
        return db_obj

    async def remove(self, db: AsyncSession, *, id: UUID) -> Optional[SQLModelType]:
        """Remove an object."""
        obj = await self.get(db, id=id)
        if not obj:
            return None
        await db.delete(obj)
        await db.commit()
        return obj
