"""Turns line item inputs and a tax selection into a computed draft"""

from typing import List, Optional
from src.app.repositories.catalog_item_repository import CatalogItemRepository
from src.app.repositories.tax_rate_repository import TaxRateRepository
from src.domain.errors import LineItemIssue, ValidationError
from src.domain.invoice_draft import InvoiceDraft, LineItemAdded, build_draft
from src.domain.line_item import collect_line_item_issues
from src.domain.tax_selection import TaxSelection, resolve_tax_selection
from .dtos import LineItemInputDTO


async def resolve_selection(
    tax_rate_repo: TaxRateRepository,
    tenant_id: str,
    tax_rate_ids: Optional[List[str]],
) -> TaxSelection:
    """None selects the tenant's default rates; an explicit list is resolved as given"""
    if tax_rate_ids is None:
        defaults = await tax_rate_repo.get_defaults(tenant_id)
        return resolve_tax_selection(defaults, [rate.id for rate in defaults])
    rates = await tax_rate_repo.get_by_tenant_id(tenant_id)
    return resolve_tax_selection(rates, tax_rate_ids)


async def line_events(
    catalog_repo: CatalogItemRepository,
    tenant_id: str,
    items: List[LineItemInputDTO],
) -> List[LineItemAdded]:
    """
    Fill catalog defaults, validate every line, and emit one event per line

    Raises:
        ValidationError: listing every problem across all lines
    """
    item_ids = {item.item_id for item in items if item.item_id}
    catalog = await catalog_repo.get_many(tenant_id, item_ids) if item_ids else {}

    resolved = []
    taxable = []
    issues = []
    for index, item in enumerate(items):
        catalog_item = catalog.get(item.item_id) if item.item_id else None
        if item.item_id and catalog_item is None:
            issues.append(LineItemIssue(index, "item_id", f"Unknown catalog item {item.item_id}"))
        updates = {}
        if catalog_item is not None:
            if not item.description:
                updates["description"] = catalog_item.name
            if item.unit_price is None:
                updates["unit_price"] = catalog_item.price
        resolved.append(item.model_copy(update=updates))
        taxable.append(catalog_item.taxable if catalog_item is not None else True)

    issues.extend(collect_line_item_issues(resolved))
    if issues:
        raise ValidationError(f"{len(issues)} line item problem(s) found", issues=issues)

    return [
        LineItemAdded(
            item_id=item.item_id,
            description=item.description,
            quantity=item.quantity,
            unit_price=item.unit_price,
            tax_rate=item.tax_rate,
            taxable=is_taxable,
        )
        for item, is_taxable in zip(resolved, taxable)
    ]


async def draft_from_inputs(
    tax_rate_repo: TaxRateRepository,
    catalog_repo: CatalogItemRepository,
    tenant_id: str,
    items: List[LineItemInputDTO],
    tax_rate_ids: Optional[List[str]],
) -> InvoiceDraft:
    selection = await resolve_selection(tax_rate_repo, tenant_id, tax_rate_ids)
    events = await line_events(catalog_repo, tenant_id, items)
    return build_draft(selection, events)
