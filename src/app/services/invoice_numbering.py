"""Invoice Numbering Service

Produces a per-tenant invoice number before the invoice is persisted.
Numbering never blocks invoice creation: if the sequence cannot be used, a
timestamp-derived number with a random suffix is returned instead and a
NumberingFallbackWarning is emitted.
"""

import logging
import warnings
from datetime import datetime
from typing import Callable, NamedTuple, Optional
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.invoice_sequence_repository import InvoiceSequenceRepository
from src.app.services.unit_of_work import UnitOfWork
from src.domain.errors import NumberingFallbackWarning
from src.domain.invoice_number import DEFAULT_PREFIX, fallback_invoice_number, format_invoice_number

logger = logging.getLogger(__name__)


class GeneratedInvoiceNumber(NamedTuple):
    invoice_number: str
    is_fallback: bool


class InvoiceNumberGenerator:
    """
    Sequence-backed invoice number generator

    Flow:
    1. Reserve the next value of the tenant's counter for the current year
    2. Skip values already taken (e.g., numbers typed in by hand)
    3. On any failure, fall back to a timestamp-derived number

    With a unit of work, steps 1-2 run inside a savepoint so a failed
    statement does not abort the transaction the invoice is written in.
    """

    def __init__(
        self,
        sequence_repo: InvoiceSequenceRepository,
        invoice_repo: InvoiceRepository,
        prefix: str = DEFAULT_PREFIX,
        max_attempts: int = 5,
        clock: Callable[[], datetime] = datetime.utcnow,
        uow: Optional[UnitOfWork] = None,
    ):
        self.sequence_repo = sequence_repo
        self.invoice_repo = invoice_repo
        self.prefix = prefix
        self.max_attempts = max_attempts
        self.clock = clock
        self.uow = uow

    async def generate(self, tenant_id: str) -> GeneratedInvoiceNumber:
        now = self.clock()
        try:
            if self.uow is None:
                candidate = await self._next_free_number(tenant_id, now)
            else:
                async with self.uow.savepoint():
                    candidate = await self._next_free_number(tenant_id, now)
            if candidate is not None:
                return GeneratedInvoiceNumber(candidate, False)
            reason = f"no free sequence value after {self.max_attempts} attempts"
        except Exception as e:
            reason = str(e)

        number = fallback_invoice_number(self.prefix, now)
        logger.warning(
            f"Invoice numbering failed for tenant {tenant_id} ({reason}); using fallback {number}"
        )
        warnings.warn(
            f"Invoice numbering fell back to {number}: {reason}",
            NumberingFallbackWarning,
            stacklevel=2,
        )
        return GeneratedInvoiceNumber(number, True)

    async def _next_free_number(self, tenant_id: str, now: datetime) -> Optional[str]:
        for _ in range(self.max_attempts):
            sequence = await self.sequence_repo.reserve_next(tenant_id, now.year)
            candidate = format_invoice_number(now.year, sequence, self.prefix)
            if not await self.invoice_repo.number_exists(tenant_id, candidate):
                return candidate
            logger.info(f"Invoice number {candidate} already used by tenant {tenant_id}, skipping")
        return None
