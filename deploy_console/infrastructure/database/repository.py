# deploy_console/infrastructure/database/repository.py

from datetime import datetime, timezone
from typing import Generic, Optional, Sequence, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

T = TypeVar("T")

_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; everything is stored in UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class AsyncRepository(Generic[T]):
    """Base for repositories: one session (and transaction) per operation."""

    def __init__(self, model: Type[T], session_factory: async_sessionmaker[AsyncSession]):
        self.model = model
        self._session_factory = session_factory

    async def create(self, obj: T) -> T:
        async with self._session_factory() as db:
            db.add(obj)
            await db.commit()
            await db.refresh(obj)
            return obj

    async def upsert(self, values: dict, conflict_columns: Sequence[str]) -> None:
        """Insert, or update the non-key columns of the row matching conflict_columns."""
        async with self._session_factory() as db:
            dialect = db.get_bind().dialect.name
            insert = _UPSERT_INSERTS.get(dialect)
            if insert is None:
                await self._merge(db, values, conflict_columns)
                return

            set_on_conflict = {k: v for k, v in values.items() if k not in conflict_columns}
            stmt = insert(self.model).values(**values).on_conflict_do_update(
                index_elements=list(conflict_columns),
                set_=set_on_conflict,
            )
            await db.execute(stmt)
            await db.commit()

    async def _merge(self, db: AsyncSession, values: dict, conflict_columns: Sequence[str]) -> None:
        stmt = select(self.model).where(
            *(getattr(self.model, c) == values[c] for c in conflict_columns)
        )
        existing = (await db.execute(stmt)).scalar_one_or_none()
        if existing is None:
            db.add(self.model(**values))
        else:
            for k, v in values.items():
                setattr(existing, k, v)
        await db.commit()
