"""SQLAlchemy Catalog Item Repository Implementation"""

from typing import Dict, Iterable
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.catalog_item_repository import CatalogItemRepository
from src.domain.catalog_item import CatalogItem


class SqlAlchemyCatalogItemRepository(CatalogItemRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_many(self, tenant_id: str, item_ids: Iterable[str]) -> Dict[str, CatalogItem]:
        item_ids = list(item_ids)
        if not item_ids:
            return {}
        statement = (
            select(CatalogItem)
            .where(CatalogItem.tenant_id == tenant_id)
            .where(CatalogItem.id.in_(item_ids))
        )
        result = await self.session.execute(statement)
        return {item.id: item for item in result.scalars().all()}
