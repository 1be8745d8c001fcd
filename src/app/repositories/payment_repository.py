"""Payment Repository Interface"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from src.domain.payment import Payment, PaymentRecordStatus


class PaymentRepository(ABC):

    @abstractmethod
    async def create(self, payment: Payment) -> Payment:
        pass

    @abstractmethod
    async def get_by_reference(self, tenant_id: str, reference: str) -> Optional[Payment]:
        pass

    @abstractmethod
    async def update_status(
        self,
        payment: Payment,
        status: PaymentRecordStatus,
        paid_at: Optional[datetime] = None,
    ) -> Payment:
        pass
