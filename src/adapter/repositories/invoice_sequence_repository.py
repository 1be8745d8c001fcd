"""SQLAlchemy Invoice Sequence Repository Implementation

Reserves counter values with a single upsert, so the first invoice of a
tenant-year and every later one are equally race-free.
"""

from sqlalchemy.dialects import postgresql, sqlite
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.invoice_sequence_repository import InvoiceSequenceRepository
from src.domain.invoice_sequence import InvoiceSequence

_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class SqlAlchemyInvoiceSequenceRepository(InvoiceSequenceRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def reserve_next(self, tenant_id: str, year: int) -> int:
        dialect = self.session.get_bind().dialect.name
        insert = _INSERTS.get(dialect)
        if insert is None:
            raise NotImplementedError(f"Invoice sequences are not supported on {dialect}")

        statement = (
            insert(InvoiceSequence)
            .values(tenant_id=tenant_id, year=year, last_value=1)
            .on_conflict_do_update(
                index_elements=["tenant_id", "year"],
                set_={"last_value": InvoiceSequence.last_value + 1},
            )
            .returning(InvoiceSequence.last_value)
        )
        result = await self.session.execute(statement)
        return int(result.scalar_one())
