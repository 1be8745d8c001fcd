"""Catalog Item Repository Interface"""

from abc import ABC, abstractmethod
from typing import Iterable, Dict
from src.domain.catalog_item import CatalogItem


class CatalogItemRepository(ABC):

    @abstractmethod
    async def get_many(self, tenant_id: str, item_ids: Iterable[str]) -> Dict[str, CatalogItem]:
        """
        Look up catalog items of one tenant

        Returns:
            Mapping of item id to CatalogItem; unknown ids are absent
        """
        pass
