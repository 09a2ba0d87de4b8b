from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import MenuItem


class MenuItemRepository:

    @staticmethod
    async def create(db: AsyncSession, item: MenuItem) -> MenuItem:
        db.add(item)
        await db.commit()
        await db.refresh(item)
        return item

    @staticmethod
    async def list_public(db: AsyncSession) -> Sequence[MenuItem]:
        # Available items surface first
        result = await db.execute(
            select(MenuItem).order_by(MenuItem.available.desc(), MenuItem.name.asc())
        )
        return result.scalars().all()

    @staticmethod
    async def list_all(db: AsyncSession) -> Sequence[MenuItem]:
        result = await db.execute(select(MenuItem).order_by(MenuItem.created_at.desc()))
        return result.scalars().all()

    @staticmethod
    async def get_by_id(db: AsyncSession, item_id: str) -> Optional[MenuItem]:
        result = await db.execute(select(MenuItem).where(MenuItem.id == item_id))
        return result.scalars().first()

    @staticmethod
    async def get_by_ids(
        db: AsyncSession, item_ids: Sequence[str], lock: bool = False
    ) -> Sequence[MenuItem]:
        """Fetch every requested item in a single query.

        With ``lock`` the rows are read FOR SHARE, so a concurrent write to
        any of them waits for the surrounding transaction to finish.
        """
        stmt = select(MenuItem).where(MenuItem.id.in_(list(item_ids)))
        if lock:
            stmt = stmt.with_for_update(read=True)
        result = await db.execute(stmt)
        return result.scalars().all()

    @staticmethod
    async def update(db: AsyncSession, item: MenuItem) -> MenuItem:
        db.add(item)
        await db.commit()
        await db.refresh(item)
        return item

    @staticmethod
    async def delete(db: AsyncSession, item: MenuItem) -> None:
        await db.delete(item)
        await db.commit()
