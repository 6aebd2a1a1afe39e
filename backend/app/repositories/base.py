from typing import Generic, TypeVar, Type, Optional, List
from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import DeclarativeBase

from app.core.database import utcnow

T = TypeVar("T", bound=DeclarativeBase)

# Dialects with a native INSERT ... ON CONFLICT DO UPDATE
UPSERT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


class BaseRepository(Generic[T]):
    def __init__(self, session: AsyncSession, model: Type[T]):
        self.session = session
        self.model = model

    @property
    def dialect_name(self) -> str:
        return self.session.get_bind().dialect.name

    async def get_by_username(self, username: str, reload: bool = False) -> Optional[T]:
        stmt = select(self.model).where(self.model.username == username)
        if reload:
            stmt = stmt.execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_all(self) -> List[T]:
        stmt = select(self.model)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, **kwargs) -> T:
        instance = self.model(**kwargs)
        self.session.add(instance)
        await self.session.commit()
        await self.session.refresh(instance)
        return instance

    async def upsert(self, username: str, **kwargs) -> T:
        """Insert the row for ``username`` or overwrite it; the last write wins."""
        values = dict(kwargs)
        if hasattr(self.model, "updated_at"):
            values.setdefault("updated_at", utcnow())

        insert = UPSERT_INSERTS.get(self.dialect_name)
        if insert is None:
            return await self._upsert_with_retry(username, values)

        stmt = insert(self.model).values(username=username, **values)
        stmt = stmt.on_conflict_do_update(index_elements=["username"], set_=values)
        await self.session.execute(stmt)
        await self.session.commit()
        return await self.get_by_username(username, reload=True)

    async def _upsert_with_retry(self, username: str, values: dict) -> T:
        existing = await self.get_by_username(username)
        if existing is None:
            try:
                return await self.create(username=username, **values)
            except IntegrityError:
                # Inserted concurrently: fall through and overwrite it
                await self.session.rollback()
                existing = await self.get_by_username(username, reload=True)
        for key, value in values.items():
            setattr(existing, key, value)
        await self.session.commit()
        await self.session.refresh(existing)
        return existing

    async def delete(self, instance: T) -> None:
        await self.session.delete(instance)
        await self.session.commit()
