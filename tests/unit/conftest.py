import pytest
from datetime import date, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.domain.invoice import Invoice
from src.domain.invoice_line import InvoiceLine
from src.domain.invoice_lifecycle import DocumentStatus, PaymentStatus


@pytest.fixture
def mock_uow():
    """Mock unit of work"""
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock()
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    return uow


@pytest.fixture
def make_invoice():
    """Factory for persisted-looking invoices"""

    def _make(**overrides):
        fields = dict(
            id=1,
            tenant_id="tenant_123",
            invoice_number="INV-2024-0001",
            customer_id="cust_42",
            issue_date=date(2024, 1, 1),
            due_date=date(2024, 1, 31),
            status=DocumentStatus.DRAFT,
            payment_status=PaymentStatus.UNPAID,
            subtotal=Decimal("3500"),
            tax_amount=Decimal("225"),
            total=Decimal("3725"),
            amount_paid=Decimal("0"),
            effective_tax_rate=Decimal("7.5"),
            tax_rates=[
                {"id": "vat", "name": "VAT", "percentage": "5"},
                {"id": "levy", "name": "Levy", "percentage": "2.5"},
            ],
            currency="USD",
            version=1,
            created_at=datetime(2024, 1, 1, 9, 0, 0),
            updated_at=datetime(2024, 1, 1, 9, 0, 0),
        )
        fields.update(overrides)
        return Invoice(**fields)

    return _make


@pytest.fixture
def sample_lines():
    return [
        InvoiceLine(
            id=1,
            invoice_id=1,
            position=0,
            description="Consulting",
            quantity=3,
            unit_price=Decimal("1000"),
            tax_rate=Decimal("7.5"),
            tax_override=False,
            tax_amount=Decimal("225"),
            total=Decimal("3225"),
        ),
        InvoiceLine(
            id=2,
            invoice_id=1,
            position=1,
            description="Setup",
            quantity=1,
            unit_price=Decimal("500"),
            tax_rate=Decimal("0"),
            tax_override=True,
            tax_amount=Decimal("0"),
            total=Decimal("500"),
        ),
    ]


@pytest.fixture
def mock_invoice_repo(make_invoice):
    """
    Invoice repository whose compare_and_set applies the changes in memory
    and bumps the version, like the SQL implementation does
    """
    repo = MagicMock()

    async def compare_and_set(invoice, expected_version, changes):
        if invoice.version != expected_version:
            return None
        for name, value in changes.items():
            setattr(invoice, name, value)
        invoice.version = expected_version + 1
        return invoice

    repo.compare_and_set = AsyncMock(side_effect=compare_and_set)
    repo.number_exists = AsyncMock(return_value=False)
    return repo


@pytest.fixture
def mock_invoice_line_repo(sample_lines):
    repo = MagicMock()
    repo.get_by_invoice_id = AsyncMock(return_value=sample_lines)
    repo.create_many = AsyncMock(side_effect=lambda lines: lines)
    repo.delete_by_invoice_id = AsyncMock()
    return repo
