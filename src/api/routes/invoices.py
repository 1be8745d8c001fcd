"""Invoice API Routes

FastAPI routes for invoice computation, numbering and status tracking.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from libs.result import Result
from src.api.error import ClientError
from src.api.schemas.invoice_request import (
    AttachPaymentLinkRequestSchema,
    ConfirmLinkPaymentRequestSchema,
    CreateInvoiceRequestSchema,
    InvoiceActionRequestSchema,
    MarkPaidRequestSchema,
    PreviewInvoiceRequestSchema,
    RecordPaymentRequestSchema,
    UpdateInvoiceRequestSchema,
)
from src.adapter.repositories import (
    SqlAlchemyCatalogItemRepository,
    SqlAlchemyInvoiceLineRepository,
    SqlAlchemyInvoiceRepository,
    SqlAlchemyInvoiceSequenceRepository,
    SqlAlchemyPaymentRepository,
    SqlAlchemyTaxRateRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.invoice_numbering import InvoiceNumberGenerator
from src.app.use_cases.invoicing import (
    AttachPaymentLink,
    CancelInvoice,
    ConfirmLinkPayment,
    CreateInvoice,
    GenerateInvoiceNumber,
    GetInvoice,
    ListInvoices,
    MarkInvoiceOverdue,
    MarkInvoicePaid,
    PreviewInvoice,
    RecordInvoiceView,
    RecordPayment,
    SendInvoice,
    UpdateInvoice,
)
from src.app.use_cases.invoicing.dtos import (
    AttachPaymentLinkCommandDTO,
    ConfirmLinkPaymentCommandDTO,
    CreateInvoiceCommandDTO,
    InvoiceActionCommandDTO,
    InvoiceNumberResponseDTO,
    InvoicePreviewResponseDTO,
    InvoiceResponseDTO,
    ListInvoicesQueryDTO,
    ListInvoicesResponseDTO,
    MarkInvoicePaidCommandDTO,
    PreviewInvoiceCommandDTO,
    RecordPaymentCommandDTO,
    UpdateInvoiceCommandDTO,
)
from src.depends import get_session, get_tenant_id
from src.domain.invoice_lifecycle import DocumentStatus, PaymentStatus

router = APIRouter(prefix="/invoices", tags=["Invoices"])

ERROR_STATUS = {
    "INVOICE_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "PAYMENT_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "CONFLICT": status.HTTP_409_CONFLICT,
    "INVOICE_NUMBER_EXISTS": status.HTTP_409_CONFLICT,
}

ERROR_RESPONSES = {
    400: {
        "description": "Validation error or illegal status transition",
        "content": {
            "application/json": {
                "example": {
                    "error": {
                        "code": "ILLEGAL_TRANSITION",
                        "message": "Cannot cancel an invoice in state PAID: invoice is paid",
                    }
                }
            }
        },
    },
    404: {
        "description": "Invoice not found",
        "content": {
            "application/json": {
                "example": {"error": {"code": "INVOICE_NOT_FOUND", "message": "Invoice 123 not found"}}
            }
        },
    },
    409: {
        "description": "Invoice was modified concurrently",
        "content": {
            "application/json": {
                "example": {
                    "error": {
                        "code": "CONFLICT",
                        "message": "Invoice INV-2024-0001 was modified concurrently",
                        "reason": "expected version 2, found 3",
                    }
                }
            }
        },
    },
}


def unwrap(result: Result):
    """Return the value of a successful result or raise the matching ClientError"""
    if result.is_err():
        raise ClientError(
            result.error,
            status_code=ERROR_STATUS.get(result.error.code, status.HTTP_400_BAD_REQUEST),
        )
    return result.value


def _number_generator(session: AsyncSession) -> InvoiceNumberGenerator:
    return InvoiceNumberGenerator(
        SqlAlchemyInvoiceSequenceRepository(session),
        SqlAlchemyInvoiceRepository(session),
        prefix=ApplicationConfig.INVOICE_NUMBER_PREFIX,
        max_attempts=ApplicationConfig.INVOICE_NUMBER_MAX_ATTEMPTS,
        uow=SqlAlchemyUnitOfWork(session),
    )


def _action_command(tenant_id: str, invoice_id: int, request: Optional[InvoiceActionRequestSchema]):
    request = request or InvoiceActionRequestSchema()
    return InvoiceActionCommandDTO(
        tenant_id=tenant_id,
        invoice_id=invoice_id,
        expected_version=request.expected_version,
        occurred_at=request.occurred_at,
    )


async def _run_transition(operation_cls, session: AsyncSession, command):
    use_case = operation_cls(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyInvoiceLineRepository(session),
    )
    return unwrap(await use_case.execute(command))


@router.post(
    "",
    response_model=InvoiceResponseDTO,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def create_invoice(
    request: CreateInvoiceRequestSchema,
    tenant_id: str = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_session),
):
    """
    Create an invoice as DRAFT, or finalize it as SENT in one step.

    Lines are validated all at once; every problem is listed in
    `error.details` with its line index and field.

    **Example request:**
    ```json
    {
      "customer_id": "cust_42",
      "items": [
        {"description": "Consulting", "quantity": 3, "unit_price": "1000"},
        {"description": "Setup", "quantity": 1, "unit_price": "500", "tax_rate": 0}
      ],
      "tax_rate_ids": ["vat", "levy"],
      "status": "SENT"
    }
    ```

    **Returns:**
    - 201: Invoice created
    - 400: Invalid lines, missing customer, or unknown tax rate
    - 409: Explicit invoice number already used
    """
    use_case = CreateInvoice(
        uow=SqlAlchemyUnitOfWork(session),
        invoice_repo=SqlAlchemyInvoiceRepository(session),
        invoice_line_repo=SqlAlchemyInvoiceLineRepository(session),
        tax_rate_repo=SqlAlchemyTaxRateRepository(session),
        catalog_repo=SqlAlchemyCatalogItemRepository(session),
        number_generator=_number_generator(session),
        default_due_days=ApplicationConfig.DEFAULT_DUE_DAYS,
        default_currency=ApplicationConfig.DEFAULT_CURRENCY,
    )
    command = CreateInvoiceCommandDTO(tenant_id=tenant_id, **request.model_dump())
    return unwrap(await use_case.execute(command))


@router.get("", response_model=ListInvoicesResponseDTO)
async def list_invoices(
    status_filter: Optional[DocumentStatus] = Query(default=None, alias="status"),
    payment_status: Optional[PaymentStatus] = Query(default=None),
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    tenant_id: str = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_session),
):
    """List the tenant's invoices, newest first, with page totals"""
    use_case = ListInvoices(SqlAlchemyInvoiceRepository(session))
    query = ListInvoicesQueryDTO(
        tenant_id=tenant_id,
        status=status_filter,
        payment_status=payment_status,
        limit=limit,
        offset=offset,
    )
    return unwrap(await use_case.execute(query))


@router.post("/preview", response_model=InvoicePreviewResponseDTO, responses=ERROR_RESPONSES)
async def preview_invoice(
    request: PreviewInvoiceRequestSchema,
    tenant_id: str = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_session),
):
    """Compute lines and totals without saving anything"""
    use_case = PreviewInvoice(
        SqlAlchemyTaxRateRepository(session),
        SqlAlchemyCatalogItemRepository(session),
    )
    command = PreviewInvoiceCommandDTO(tenant_id=tenant_id, **request.model_dump())
    return unwrap(await use_case.execute(command))


@router.post("/numbers", response_model=InvoiceNumberResponseDTO)
async def generate_invoice_number(
    tenant_id: str = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_session),
):
    """
    Reserve the next invoice number for display in the editor.

    `is_fallback` is true when sequencing failed and a timestamp-derived
    number was issued instead.
    """
    use_case = GenerateInvoiceNumber(SqlAlchemyUnitOfWork(session), _number_generator(session))
    return unwrap(await use_case.execute(tenant_id))


@router.get("/{invoice_id}", response_model=InvoiceResponseDTO, responses=ERROR_RESPONSES)
async def get_invoice(
    invoice_id: int,
    tenant_id: str = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_session),
):
    use_case = GetInvoice(SqlAlchemyInvoiceRepository(session), SqlAlchemyInvoiceLineRepository(session))
    return unwrap(await use_case.execute(tenant_id, invoice_id))


@router.patch("/{invoice_id}", response_model=InvoiceResponseDTO, responses=ERROR_RESPONSES)
async def update_invoice(
    invoice_id: int,
    request: UpdateInvoiceRequestSchema,
    tenant_id: str = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_session),
):
    """
    Edit lines, tax selection or header fields.

    Rejected once the invoice is PAID or CANCELED. Pass `expected_version`
    to fail with 409 instead of overwriting someone else's edit.
    """
    use_case = UpdateInvoice(
        uow=SqlAlchemyUnitOfWork(session),
        invoice_repo=SqlAlchemyInvoiceRepository(session),
        invoice_line_repo=SqlAlchemyInvoiceLineRepository(session),
        tax_rate_repo=SqlAlchemyTaxRateRepository(session),
        catalog_repo=SqlAlchemyCatalogItemRepository(session),
    )
    command = UpdateInvoiceCommandDTO(tenant_id=tenant_id, invoice_id=invoice_id, **request.model_dump())
    return unwrap(await use_case.execute(command))


@router.post("/{invoice_id}/send", response_model=InvoiceResponseDTO, responses=ERROR_RESPONSES)
async def send_invoice(
    invoice_id: int,
    request: Optional[InvoiceActionRequestSchema] = None,
    tenant_id: str = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_session),
):
    """Finalize a DRAFT (DRAFT -> SENT), or re-deliver a sent invoice"""
    return await _run_transition(SendInvoice, session, _action_command(tenant_id, invoice_id, request))


@router.post("/{invoice_id}/view", response_model=InvoiceResponseDTO, responses=ERROR_RESPONSES)
async def record_invoice_view(
    invoice_id: int,
    request: Optional[InvoiceActionRequestSchema] = None,
    tenant_id: str = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_session),
):
    """Called when the recipient opens the public invoice page"""
    return await _run_transition(RecordInvoiceView, session, _action_command(tenant_id, invoice_id, request))


@router.post("/{invoice_id}/overdue", response_model=InvoiceResponseDTO, responses=ERROR_RESPONSES)
async def mark_invoice_overdue(
    invoice_id: int,
    request: Optional[InvoiceActionRequestSchema] = None,
    tenant_id: str = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_session),
):
    """Scheduler hook: the due date passed while the invoice is unpaid"""
    return await _run_transition(MarkInvoiceOverdue, session, _action_command(tenant_id, invoice_id, request))


@router.post("/{invoice_id}/cancel", response_model=InvoiceResponseDTO, responses=ERROR_RESPONSES)
async def cancel_invoice(
    invoice_id: int,
    request: Optional[InvoiceActionRequestSchema] = None,
    tenant_id: str = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_session),
):
    return await _run_transition(CancelInvoice, session, _action_command(tenant_id, invoice_id, request))


@router.post("/{invoice_id}/mark-paid", response_model=InvoiceResponseDTO, responses=ERROR_RESPONSES)
async def mark_invoice_paid(
    invoice_id: int,
    request: Optional[MarkPaidRequestSchema] = None,
    tenant_id: str = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_session),
):
    """
    Manual settlement regardless of recorded payments.

    The outstanding balance is stored as one manual payment.

    **Example request:**
    ```json
    {"payment_method": "bank_transfer", "reference": "bank-8812", "notes": "Paid in full"}
    ```
    """
    request = request or MarkPaidRequestSchema()
    use_case = MarkInvoicePaid(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyInvoiceLineRepository(session),
        SqlAlchemyPaymentRepository(session),
    )
    command = MarkInvoicePaidCommandDTO(tenant_id=tenant_id, invoice_id=invoice_id, **request.model_dump())
    return unwrap(await use_case.execute(command))


@router.post("/{invoice_id}/payments", response_model=InvoiceResponseDTO, responses=ERROR_RESPONSES)
async def record_payment(
    invoice_id: int,
    request: RecordPaymentRequestSchema,
    tenant_id: str = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_session),
):
    """
    Record money received against the invoice.

    **Example request:**
    ```json
    {"amount": "1000.00", "reference": "bank-transfer-8812"}
    ```

    **Returns:**
    - 200: Payment recorded; payment status is PARTIALLY_PAID or PAID
    - 400: Amount not positive, or invoice already PAID
    """
    use_case = RecordPayment(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyInvoiceLineRepository(session),
        SqlAlchemyPaymentRepository(session),
    )
    command = RecordPaymentCommandDTO(tenant_id=tenant_id, invoice_id=invoice_id, **request.model_dump())
    return unwrap(await use_case.execute(command))


@router.post("/{invoice_id}/payment-link", response_model=InvoiceResponseDTO, responses=ERROR_RESPONSES)
async def attach_payment_link(
    invoice_id: int,
    request: AttachPaymentLinkRequestSchema,
    tenant_id: str = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_session),
):
    """Store a processor-issued checkout link with a pending payment"""
    use_case = AttachPaymentLink(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyInvoiceLineRepository(session),
        SqlAlchemyPaymentRepository(session),
    )
    command = AttachPaymentLinkCommandDTO(tenant_id=tenant_id, invoice_id=invoice_id, **request.model_dump())
    return unwrap(await use_case.execute(command))


@router.post(
    "/{invoice_id}/payment-link/confirm",
    response_model=InvoiceResponseDTO,
    responses=ERROR_RESPONSES,
)
async def confirm_link_payment(
    invoice_id: int,
    request: ConfirmLinkPaymentRequestSchema,
    tenant_id: str = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_session),
):
    """Processor callback for a payment-link checkout; safe to repeat"""
    use_case = ConfirmLinkPayment(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyInvoiceLineRepository(session),
        SqlAlchemyPaymentRepository(session),
    )
    command = ConfirmLinkPaymentCommandDTO(tenant_id=tenant_id, invoice_id=invoice_id, **request.model_dump())
    return unwrap(await use_case.execute(command))
