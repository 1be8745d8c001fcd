"""Tax Rate Repository Interface"""

from abc import ABC, abstractmethod
from typing import List
from src.domain.tax_rate import TaxRate


class TaxRateRepository(ABC):
    """Read access to tenant tax rate definitions"""

    @abstractmethod
    async def get_by_tenant_id(self, tenant_id: str) -> List[TaxRate]:
        pass

    @abstractmethod
    async def get_defaults(self, tenant_id: str) -> List[TaxRate]:
        """Rates flagged is_default, selected automatically on new invoices"""
        pass
