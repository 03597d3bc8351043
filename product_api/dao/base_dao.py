from typing import Generic, TypeVar, Type
from sqlmodel import SQLModel
from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from product_api.core.exceptions import NotFoundError, StorageError
import structlog

logger = structlog.get_logger()

ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseDAO(Generic[ModelType]):
    """Generic CRUD over one table. Each call runs in its own session."""

    def __init__(self, model: Type[ModelType], session_maker: async_sessionmaker[AsyncSession]):
        self.model = model
        self.session_maker = session_maker

    async def create(self, db_obj: ModelType) -> ModelType:
        async with self.session_maker() as db:
            try:
                db.add(db_obj)
                await db.commit()
                await db.refresh(db_obj)
                logger.debug(f"Created {self.model.__name__}", id=db_obj.id)
                return db_obj
            except SQLAlchemyError as e:
                await db.rollback()
                logger.error(f"Error creating {self.model.__name__}", error=str(e))
                raise StorageError(str(e)) from e

    async def get_by_id(self, id: int) -> ModelType:
        async with self.session_maker() as db:
            try:
                db_obj = await db.get(self.model, id)
            except SQLAlchemyError as e:
                logger.error(f"Error getting {self.model.__name__} by id", id=id, error=str(e))
                raise StorageError(str(e)) from e
        if db_obj is None:
            raise NotFoundError("record not found")
        return db_obj

    async def save(self, db_obj: ModelType) -> ModelType:
        """Overwrite every column of the row with the same primary key."""
        async with self.session_maker() as db:
            try:
                merged = await db.merge(db_obj)
                await db.commit()
                await db.refresh(merged)
                logger.debug(f"Saved {self.model.__name__}", id=merged.id)
                return merged
            except SQLAlchemyError as e:
                await db.rollback()
                logger.error(f"Error saving {self.model.__name__}", id=db_obj.id, error=str(e))
                raise StorageError(str(e)) from e

    async def delete(self, id: int) -> None:
        async with self.session_maker() as db:
            try:
                result = await db.execute(delete(self.model).where(self.model.id == id))
                await db.commit()
                logger.debug(f"Deleted {self.model.__name__}", id=id, rows=result.rowcount)
            except SQLAlchemyError as e:
                await db.rollback()
                logger.error(f"Error deleting {self.model.__name__}", id=id, error=str(e))
                raise StorageError(str(e)) from e
