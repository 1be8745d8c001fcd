"""Invoice Repository Interface

Defines the contract for invoice persistence operations.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Dict, List, Optional
from src.domain.invoice import Invoice
from src.domain.invoice_lifecycle import DocumentStatus, PaymentStatus


class InvoiceRepository(ABC):
    """
    Repository interface for Invoice persistence

    Every lookup is scoped by tenant_id. Writes to an existing invoice go
    through ``compare_and_set`` so that two concurrent writers can never both
    succeed against the same version.
    """

    @abstractmethod
    async def create(self, invoice: Invoice) -> Invoice:
        """
        Create a new invoice

        Args:
            invoice: Invoice entity to persist

        Returns:
            Created Invoice with generated ID
        """
        pass

    @abstractmethod
    async def get_by_id(self, tenant_id: str, invoice_id: int) -> Optional[Invoice]:
        """
        Retrieve invoice by ID within a tenant

        Args:
            tenant_id: Tenant identifier
            invoice_id: Invoice ID

        Returns:
            Invoice if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_tenant_id(
        self,
        tenant_id: str,
        status: Optional[DocumentStatus] = None,
        payment_status: Optional[PaymentStatus] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[Invoice]:
        """
        Retrieve invoices by tenant ID, newest first

        Args:
            tenant_id: Tenant identifier
            status: Optional filter by document status
            payment_status: Optional filter by payment status
            limit: Maximum number of invoices to return
            offset: Offset for pagination

        Returns:
            List of invoices
        """
        pass

    @abstractmethod
    async def number_exists(self, tenant_id: str, invoice_number: str) -> bool:
        """
        Check whether an invoice number is already used within the tenant
        """
        pass

    @abstractmethod
    async def compare_and_set(
        self,
        invoice: Invoice,
        expected_version: int,
        changes: Dict[str, Any],
    ) -> Optional[Invoice]:
        """
        Apply ``changes`` only if the stored version still equals
        ``expected_version``; the version is incremented on success.

        Args:
            invoice: Invoice that was read (identifies tenant and row)
            expected_version: Version observed when the invoice was read
            changes: Column values to write

        Returns:
            The refreshed invoice, or None when another writer got there first
        """
        pass

    @abstractmethod
    async def find_overdue_candidates(self, as_of: date, limit: int = 100) -> List[Invoice]:
        """
        Invoices across all tenants that are SENT or VIEWED, not PAID, and
        whose due date is before ``as_of``
        """
        pass
