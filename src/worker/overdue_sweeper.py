"""Overdue Invoice Sweeper Background Worker

Marks delivered, unpaid invoices whose due date has passed as OVERDUE.
The engine never decides overdueness on its own; this worker is the
scheduler that does, and it goes through the same compare-and-set operation
as the API so that a concurrent payment or cancel always wins cleanly.
Can be run as a standalone script or integrated with a scheduler.
"""

import asyncio
import logging
import time
from datetime import date, datetime
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories.invoice_line_repository import SqlAlchemyInvoiceLineRepository
from src.adapter.repositories.invoice_repository import SqlAlchemyInvoiceRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.invoicing import MarkInvoiceOverdue
from src.app.use_cases.invoicing.dtos import InvoiceActionCommandDTO, OverdueSweepResultDTO

logger = logging.getLogger(__name__)


class OverdueSweepWorker:
    """
    Background worker for overdue detection

    Features:
    - Finds SENT/VIEWED invoices that are not PAID and past their due date
    - Marks each one OVERDUE in its own transaction
    - Passes the version it read, so an invoice changed in between is
      counted as a conflict and picked up again by the next sweep
    - Can run once or continuously

    Usage:
        # Run once as of today
        worker = OverdueSweepWorker()
        result = await worker.run_once()

        # Run continuously
        worker = OverdueSweepWorker()
        await worker.run_forever()
    """

    def __init__(
        self,
        db_uri: Optional[str] = None,
        batch_size: Optional[int] = None,
        session_factory=None,
    ):
        """
        Initialize the worker

        Args:
            db_uri: Database URI (defaults to ApplicationConfig.DB_URI)
            batch_size: Maximum invoices per sweep (defaults to OVERDUE_SWEEP_BATCH_SIZE)
            session_factory: Existing session factory; when given no engine is created
        """
        self.batch_size = batch_size or ApplicationConfig.OVERDUE_SWEEP_BATCH_SIZE
        self.engine = None

        if session_factory is not None:
            self.async_session_factory = session_factory
        else:
            self.db_uri = db_uri or ApplicationConfig.DB_URI
            self.engine = create_async_engine(self.db_uri, echo=False, future=True)
            self.async_session_factory = sessionmaker(
                self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
            )

        logger.info("OverdueSweepWorker initialized")

    async def run_once(self, as_of: Optional[date] = None) -> OverdueSweepResultDTO:
        """
        Run one sweep

        Args:
            as_of: Reference date (defaults to today, UTC); invoices due
                strictly before it are overdue

        Returns:
            OverdueSweepResultDTO with summary
        """
        start_time = time.time()
        as_of = as_of or datetime.utcnow().date()

        logger.info(f"Starting overdue sweep as of {as_of.isoformat()}")

        marked_overdue = 0
        conflicts = 0
        failed = 0

        async with self.async_session_factory() as session:
            invoice_repo = SqlAlchemyInvoiceRepository(session)
            candidates = await invoice_repo.find_overdue_candidates(as_of, limit=self.batch_size)

        logger.info(f"Found {len(candidates)} overdue candidates")

        for invoice in candidates:
            try:
                # One session per invoice to isolate transactions
                async with self.async_session_factory() as invoice_session:
                    use_case = MarkInvoiceOverdue(
                        uow=SqlAlchemyUnitOfWork(invoice_session),
                        invoice_repo=SqlAlchemyInvoiceRepository(invoice_session),
                        invoice_line_repo=SqlAlchemyInvoiceLineRepository(invoice_session),
                    )
                    result = await use_case.execute(
                        InvoiceActionCommandDTO(
                            tenant_id=invoice.tenant_id,
                            invoice_id=invoice.id,
                            expected_version=invoice.version,
                        )
                    )

                if result.is_ok():
                    marked_overdue += 1
                elif result.error.code in ("CONFLICT", "ILLEGAL_TRANSITION"):
                    conflicts += 1
                    logger.info(
                        f"Skipped invoice {invoice.invoice_number} ({invoice.tenant_id}): "
                        f"{result.error.message}"
                    )
                else:
                    failed += 1
                    logger.error(
                        f"Failed to mark invoice {invoice.invoice_number} ({invoice.tenant_id}) overdue: "
                        f"{result.error.message}"
                    )

            except Exception as e:
                logger.error(f"Unexpected error processing invoice {invoice.id}: {e}")
                failed += 1

        execution_time_ms = int((time.time() - start_time) * 1000)

        result = OverdueSweepResultDTO(
            as_of=as_of,
            candidates=len(candidates),
            marked_overdue=marked_overdue,
            conflicts=conflicts,
            failed=failed,
            execution_time_ms=execution_time_ms,
        )

        logger.info(
            f"Overdue sweep complete: "
            f"{marked_overdue}/{len(candidates)} marked overdue, "
            f"{conflicts} conflicts, {failed} failed, "
            f"{execution_time_ms}ms"
        )

        return result

    async def run_forever(self, interval_seconds: Optional[int] = None):
        """
        Sweep repeatedly

        Args:
            interval_seconds: Seconds between sweeps (defaults to OVERDUE_SWEEP_INTERVAL_SECONDS)
        """
        interval_seconds = interval_seconds or ApplicationConfig.OVERDUE_SWEEP_INTERVAL_SECONDS
        logger.info(f"Starting continuous overdue sweep with {interval_seconds}s interval")

        while True:
            try:
                await self.run_once()
            except Exception as e:
                logger.error(f"Overdue sweep cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        """Cleanup resources"""
        if self.engine is not None:
            await self.engine.dispose()
        logger.info("OverdueSweepWorker shutdown complete")


async def main():
    """
    Entry point for running the worker as a standalone script

    Usage:
        # Sweep once as of today
        python -m src.worker.overdue_sweeper

        # Sweep as of a given date
        python -m src.worker.overdue_sweeper --as-of 2024-02-01

        # Run continuously
        python -m src.worker.overdue_sweeper --continuous
    """
    import argparse

    logging.basicConfig(
        level=ApplicationConfig.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Overdue Invoice Sweeper")
    parser.add_argument("--as-of", type=date.fromisoformat, help="Reference date (YYYY-MM-DD)")
    parser.add_argument("--continuous", action="store_true", help="Run continuously")
    args = parser.parse_args()

    if not ApplicationConfig.OVERDUE_SWEEP_ENABLED:
        logger.info("Overdue sweep is disabled (OVERDUE_SWEEP_ENABLED=0)")
        return

    worker = OverdueSweepWorker()

    try:
        if args.continuous:
            await worker.run_forever()
        else:
            result = await worker.run_once(as_of=args.as_of)
            print(f"Overdue sweep complete:")
            print(f"  As of: {result.as_of.isoformat()}")
            print(f"  Candidates: {result.candidates}")
            print(f"  Marked overdue: {result.marked_overdue}")
            print(f"  Conflicts: {result.conflicts}")
            print(f"  Failed: {result.failed}")
            print(f"  Execution time: {result.execution_time_ms}ms")
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
