"""Invoice Sequence Repository Interface"""

from abc import ABC, abstractmethod


class InvoiceSequenceRepository(ABC):

    @abstractmethod
    async def reserve_next(self, tenant_id: str, year: int) -> int:
        """
        Atomically increment and return the tenant's counter for ``year``

        Two concurrent callers always receive different values.
        """
        pass
