"""Unit tests for CreateInvoice use case

Tests cover:
- Draft creation with computed lines and totals
- Finalizing as SENT in one step
- Tenant default tax rates
- Catalog item defaults and non-taxable items
- Validation errors reported together
- Explicit and generated invoice numbers
"""

import pytest
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from src.app.services.invoice_numbering import GeneratedInvoiceNumber
from src.app.use_cases.invoicing.create_invoice import CreateInvoice
from src.app.use_cases.invoicing.dtos import CreateInvoiceCommandDTO, LineItemInputDTO
from src.domain.invoice_lifecycle import DocumentStatus

TENANT_RATES = [
    SimpleNamespace(id="vat", name="VAT", percentage=Decimal("5"), is_default=True),
    SimpleNamespace(id="levy", name="Levy", percentage=Decimal("2.5"), is_default=False),
]


@pytest.fixture
def mock_tax_rate_repo():
    repo = MagicMock()
    repo.get_by_tenant_id = AsyncMock(return_value=TENANT_RATES)
    repo.get_defaults = AsyncMock(return_value=[TENANT_RATES[0]])
    return repo


@pytest.fixture
def mock_catalog_repo():
    repo = MagicMock()
    repo.get_many = AsyncMock(
        return_value={
            "item_7": SimpleNamespace(id="item_7", name="Hosting", price=Decimal("40"), taxable=False),
        }
    )
    return repo


@pytest.fixture
def mock_number_generator():
    generator = MagicMock()
    generator.generate = AsyncMock(return_value=GeneratedInvoiceNumber("INV-2024-0001", False))
    return generator


@pytest.fixture
def mock_invoice_repo(mock_invoice_repo):
    async def create(invoice):
        invoice.id = 1
        return invoice

    mock_invoice_repo.create = AsyncMock(side_effect=create)
    return mock_invoice_repo


@pytest.fixture
def use_case(mock_uow, mock_invoice_repo, mock_invoice_line_repo, mock_tax_rate_repo, mock_catalog_repo,
             mock_number_generator):
    return CreateInvoice(
        uow=mock_uow,
        invoice_repo=mock_invoice_repo,
        invoice_line_repo=mock_invoice_line_repo,
        tax_rate_repo=mock_tax_rate_repo,
        catalog_repo=mock_catalog_repo,
        number_generator=mock_number_generator,
    )


def _command(**overrides):
    fields = dict(
        tenant_id="tenant_123",
        customer_id="cust_42",
        items=[
            LineItemInputDTO(description="Consulting", quantity=3, unit_price="1000"),
            LineItemInputDTO(description="Setup", quantity=1, unit_price="500", tax_rate="0"),
        ],
        tax_rate_ids=["vat", "levy"],
    )
    fields.update(overrides)
    return CreateInvoiceCommandDTO(**fields)


@pytest.mark.asyncio
class TestCreateInvoiceSuccess:

    async def test_create_draft(self, use_case, mock_invoice_repo, mock_invoice_line_repo, mock_uow):
        """
        Given: one 3 x 1000 line at 7.5% and one 1 x 500 line at 0%
        When: the invoice is created
        Then: subtotal 3500, tax 225, total 3725 and a DRAFT is stored
        """
        # Act
        result = await use_case.execute(_command())

        # Assert
        assert result.is_ok()
        response = result.value
        assert response.invoice_number == "INV-2024-0001"
        assert response.status == "DRAFT"
        assert response.payment_status == "UNPAID"
        assert response.subtotal == Decimal("3500")
        assert response.tax_amount == Decimal("225")
        assert response.total == Decimal("3725")
        assert response.effective_tax_rate == Decimal("7.5")
        assert [line.total for line in response.line_items] == [Decimal("3225"), Decimal("500")]
        assert response.numbering_fallback is False

        mock_invoice_repo.create.assert_called_once()
        mock_invoice_line_repo.create_many.assert_called_once()
        mock_uow.commit.assert_called_once()

    async def test_create_as_sent(self, use_case):
        result = await use_case.execute(_command(status=DocumentStatus.SENT))

        assert result.is_ok()
        assert result.value.status == "SENT"
        assert result.value.sent_at is not None

    async def test_default_tax_rates_are_applied(self, use_case, mock_tax_rate_repo):
        result = await use_case.execute(_command(tax_rate_ids=None))

        assert result.is_ok()
        assert result.value.effective_tax_rate == Decimal("5")
        assert [rate.id for rate in result.value.tax_rates] == ["vat"]
        mock_tax_rate_repo.get_defaults.assert_called_once_with("tenant_123")

    async def test_catalog_defaults_and_non_taxable_items(self, use_case):
        result = await use_case.execute(_command(items=[LineItemInputDTO(item_id="item_7", quantity=2)]))

        assert result.is_ok()
        line = result.value.line_items[0]
        assert line.description == "Hosting"
        assert line.unit_price == Decimal("40")
        assert line.tax_amount == Decimal("0")
        assert result.value.total == Decimal("80")

    async def test_explicit_invoice_number(self, use_case, mock_number_generator):
        result = await use_case.execute(_command(invoice_number="CUSTOM-1"))

        assert result.is_ok()
        assert result.value.invoice_number == "CUSTOM-1"
        mock_number_generator.generate.assert_not_called()

    async def test_fallback_number_is_flagged(self, use_case, mock_number_generator):
        mock_number_generator.generate = AsyncMock(
            return_value=GeneratedInvoiceNumber("INV-1718000000000-3FA9C1", True)
        )

        result = await use_case.execute(_command())

        assert result.is_ok()
        assert result.value.numbering_fallback is True


@pytest.mark.asyncio
class TestCreateInvoiceErrors:

    async def test_all_problems_reported_together(self, use_case, mock_invoice_repo, mock_uow):
        """
        Given: no customer and two invalid lines
        When: the invoice is created
        Then: one VALIDATION_ERROR lists every problem and nothing is stored
        """
        command = _command(
            customer_id=None,
            items=[
                LineItemInputDTO(description="", quantity=1, unit_price="10"),
                LineItemInputDTO(description="Bad", quantity=0, unit_price="-1"),
            ],
        )

        result = await use_case.execute(command)

        assert result.is_err()
        assert result.error.code == "VALIDATION_ERROR"
        found = {(detail["index"], detail["field"]) for detail in result.error.details}
        assert found == {(None, "customer_id"), (0, "description"), (1, "quantity"), (1, "unit_price")}
        mock_invoice_repo.create.assert_not_called()
        mock_uow.rollback.assert_called_once()

    async def test_unknown_catalog_item(self, use_case):
        result = await use_case.execute(_command(items=[LineItemInputDTO(item_id="nope", description="X")]))

        assert result.is_err()
        assert result.error.details[0]["field"] == "item_id"

    async def test_unknown_tax_rate(self, use_case):
        result = await use_case.execute(_command(tax_rate_ids=["gst"]))

        assert result.is_err()
        assert result.error.code == "VALIDATION_ERROR"

    async def test_sent_requires_lines(self, use_case, mock_invoice_repo):
        result = await use_case.execute(_command(items=[], status=DocumentStatus.SENT))

        assert result.is_err()
        assert result.error.code == "VALIDATION_ERROR"
        mock_invoice_repo.create.assert_not_called()

    async def test_explicit_number_already_used(self, use_case, mock_invoice_repo):
        mock_invoice_repo.number_exists = AsyncMock(return_value=True)

        result = await use_case.execute(_command(invoice_number="INV-2024-0001"))

        assert result.is_err()
        assert result.error.code == "INVOICE_NUMBER_EXISTS"

    async def test_repository_failure_rolls_back(self, use_case, mock_invoice_repo, mock_uow):
        mock_invoice_repo.create = AsyncMock(side_effect=Exception("Database error"))

        result = await use_case.execute(_command())

        assert result.is_err()
        assert result.error.code == "CREATE_INVOICE_FAILED"
        assert "Database error" in result.error.reason
        mock_uow.rollback.assert_called_once()
        mock_uow.commit.assert_not_called()
