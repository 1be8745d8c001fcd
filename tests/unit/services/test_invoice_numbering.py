"""Unit tests for InvoiceNumberGenerator

Tests cover:
- Sequential numbers per tenant and year
- Skipping numbers that are already taken
- Uniqueness under concurrent generation
- Fallback numbering with NumberingFallbackWarning
"""

import asyncio
import re
import pytest
from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

from src.app.repositories.invoice_sequence_repository import InvoiceSequenceRepository
from src.app.services.invoice_numbering import InvoiceNumberGenerator
from src.app.services.unit_of_work import UnitOfWork
from src.domain.errors import NumberingFallbackWarning

NOW = datetime(2024, 3, 15, 10, 0, 0)


class InMemorySequenceRepository(InvoiceSequenceRepository):
    """Counter guarded by a lock, yielding between read and write to invite races"""

    def __init__(self):
        self.values = defaultdict(int)
        self.lock = asyncio.Lock()

    async def reserve_next(self, tenant_id, year):
        async with self.lock:
            current = self.values[(tenant_id, year)]
            await asyncio.sleep(0)
            self.values[(tenant_id, year)] = current + 1
            return current + 1


class RecordingUnitOfWork(UnitOfWork):
    """Records how each savepoint ended"""

    def __init__(self):
        self.savepoints = []

    async def commit(self):
        pass

    async def rollback(self):
        pass

    @asynccontextmanager
    async def savepoint(self):
        try:
            yield
        except Exception:
            self.savepoints.append("rolled back")
            raise
        self.savepoints.append("released")


@pytest.fixture
def mock_invoice_repo():
    repo = MagicMock()
    repo.number_exists = AsyncMock(return_value=False)
    return repo


@pytest.mark.asyncio
class TestGenerate:

    async def test_sequential_numbers(self, mock_invoice_repo):
        generator = InvoiceNumberGenerator(InMemorySequenceRepository(), mock_invoice_repo, clock=lambda: NOW)

        first = await generator.generate("tenant_123")
        second = await generator.generate("tenant_123")

        assert first.invoice_number == "INV-2024-0001"
        assert second.invoice_number == "INV-2024-0002"
        assert not first.is_fallback

    async def test_counters_are_per_tenant(self, mock_invoice_repo):
        generator = InvoiceNumberGenerator(InMemorySequenceRepository(), mock_invoice_repo, clock=lambda: NOW)

        await generator.generate("tenant_a")
        other = await generator.generate("tenant_b")

        assert other.invoice_number == "INV-2024-0001"

    async def test_taken_numbers_are_skipped(self, mock_invoice_repo):
        """
        Given: INV-2024-0001 was entered by hand
        When: a number is generated
        Then: the next free value is used
        """
        mock_invoice_repo.number_exists = AsyncMock(side_effect=[True, False])
        generator = InvoiceNumberGenerator(InMemorySequenceRepository(), mock_invoice_repo, clock=lambda: NOW)

        generated = await generator.generate("tenant_123")

        assert generated.invoice_number == "INV-2024-0002"

    async def test_concurrent_generation_is_unique(self, mock_invoice_repo):
        generator = InvoiceNumberGenerator(InMemorySequenceRepository(), mock_invoice_repo, clock=lambda: NOW)

        results = await asyncio.gather(*(generator.generate("tenant_123") for _ in range(25)))

        numbers = [result.invoice_number for result in results]
        assert len(set(numbers)) == 25
        assert sorted(numbers) == [f"INV-2024-{n:04d}" for n in range(1, 26)]


@pytest.mark.asyncio
class TestFallback:

    async def test_sequence_failure_falls_back(self, mock_invoice_repo):
        """
        Given: the sequence store is unavailable
        When: a number is generated
        Then: a timestamp-derived number is returned with a warning
        """
        sequence_repo = MagicMock()
        sequence_repo.reserve_next = AsyncMock(side_effect=RuntimeError("database is locked"))
        generator = InvoiceNumberGenerator(sequence_repo, mock_invoice_repo, clock=lambda: NOW)

        with pytest.warns(NumberingFallbackWarning):
            generated = await generator.generate("tenant_123")

        assert generated.is_fallback
        assert re.fullmatch(r"INV-\d+-[0-9A-F]{6}", generated.invoice_number)

    async def test_exhausted_attempts_fall_back(self, mock_invoice_repo):
        mock_invoice_repo.number_exists = AsyncMock(return_value=True)
        sequence_repo = InMemorySequenceRepository()
        generator = InvoiceNumberGenerator(sequence_repo, mock_invoice_repo, max_attempts=3, clock=lambda: NOW)

        with pytest.warns(NumberingFallbackWarning):
            generated = await generator.generate("tenant_123")

        assert generated.is_fallback
        assert sequence_repo.values[("tenant_123", 2024)] == 3

    async def test_concurrent_fallbacks_are_unique(self, mock_invoice_repo):
        sequence_repo = MagicMock()
        sequence_repo.reserve_next = AsyncMock(side_effect=RuntimeError("unavailable"))
        generator = InvoiceNumberGenerator(sequence_repo, mock_invoice_repo, clock=lambda: NOW)

        with pytest.warns(NumberingFallbackWarning):
            results = await asyncio.gather(*(generator.generate("tenant_123") for _ in range(20)))

        assert len({result.invoice_number for result in results}) == 20


@pytest.mark.asyncio
class TestSavepoint:

    async def test_reservation_runs_in_a_savepoint(self, mock_invoice_repo):
        uow = RecordingUnitOfWork()
        generator = InvoiceNumberGenerator(InMemorySequenceRepository(), mock_invoice_repo, clock=lambda: NOW, uow=uow)

        generated = await generator.generate("tenant_123")

        assert generated.invoice_number == "INV-2024-0001"
        assert uow.savepoints == ["released"]

    async def test_failure_rolls_back_only_the_savepoint(self, mock_invoice_repo):
        """
        Given: the sequence statement fails inside the caller's transaction
        When: a number is generated
        Then: the savepoint is rolled back and a fallback number is returned
        """
        uow = RecordingUnitOfWork()
        sequence_repo = MagicMock()
        sequence_repo.reserve_next = AsyncMock(side_effect=RuntimeError("current transaction is aborted"))
        generator = InvoiceNumberGenerator(sequence_repo, mock_invoice_repo, clock=lambda: NOW, uow=uow)

        with pytest.warns(NumberingFallbackWarning):
            generated = await generator.generate("tenant_123")

        assert generated.is_fallback
        assert uow.savepoints == ["rolled back"]
