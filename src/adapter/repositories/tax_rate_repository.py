"""SQLAlchemy Tax Rate Repository Implementation"""

from typing import List
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.tax_rate_repository import TaxRateRepository
from src.domain.tax_rate import TaxRate


class SqlAlchemyTaxRateRepository(TaxRateRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_tenant_id(self, tenant_id: str) -> List[TaxRate]:
        statement = select(TaxRate).where(TaxRate.tenant_id == tenant_id).order_by(TaxRate.name)
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def get_defaults(self, tenant_id: str) -> List[TaxRate]:
        statement = (
            select(TaxRate)
            .where(TaxRate.tenant_id == tenant_id)
            .where(TaxRate.is_default == True)  # noqa: E712
            .order_by(TaxRate.name)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())
