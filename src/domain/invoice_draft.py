"""Invoice Draft Reducer

Editing an invoice is modelled as ``reduce(draft, event) -> draft``. Every
reduction returns a new immutable draft whose lines and totals are fully
recomputed, so the result is a deterministic function of state and event.
"""

from decimal import Decimal
from typing import Any, Optional, Tuple, Union
from pydantic import BaseModel, ConfigDict
from src.domain.errors import LineItemIssue, ValidationError
from src.domain.invoice_totals import InvoiceTotals, aggregate_line_items
from src.domain.line_item import LineItem
from src.domain.tax_selection import TaxSelection


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True)


class LineItemAdded(_Event):
    """
    A new row. ``tax_rate`` set means the row carries its own rate;
    ``taxable=False`` pins the row at 0% regardless of the selection.
    """

    description: str = ""
    quantity: Any = 1
    unit_price: Any = Decimal("0")
    item_id: Optional[str] = None
    tax_rate: Optional[Any] = None
    taxable: bool = True


class LineItemChanged(_Event):
    local_id: int
    description: Optional[str] = None
    quantity: Optional[Any] = None
    unit_price: Optional[Any] = None


class LineItemTaxOverridden(_Event):
    local_id: int
    tax_rate: Any


class LineItemTaxReset(_Event):
    """Drop a row's override and fall back to the selection's rate"""

    local_id: int


class LineItemRemoved(_Event):
    local_id: int


class TaxSelectionChanged(_Event):
    selection: TaxSelection


DraftEvent = Union[
    LineItemAdded,
    LineItemChanged,
    LineItemTaxOverridden,
    LineItemTaxReset,
    LineItemRemoved,
    TaxSelectionChanged,
]


class InvoiceDraft(BaseModel):
    model_config = ConfigDict(frozen=True)

    lines: Tuple[LineItem, ...] = ()
    tax_selection: TaxSelection = TaxSelection()
    totals: InvoiceTotals = InvoiceTotals()
    next_local_id: int = 1

    def line(self, local_id: int) -> LineItem:
        for line in self.lines:
            if line.local_id == local_id:
                return line
        raise ValidationError(
            f"Line item {local_id} not found",
            issues=[LineItemIssue(None, "local_id", f"Unknown line item {local_id}")],
        )


def _with_lines(draft: InvoiceDraft, lines, **changes) -> InvoiceDraft:
    lines = tuple(lines)
    return draft.model_copy(
        update={"lines": lines, "totals": aggregate_line_items(lines), **changes}
    )


def _replace(draft: InvoiceDraft, updated: LineItem) -> InvoiceDraft:
    return _with_lines(
        draft,
        (updated if line.local_id == updated.local_id else line for line in draft.lines),
    )


def _add(draft: InvoiceDraft, event: LineItemAdded) -> InvoiceDraft:
    if not event.taxable:
        rate, override = Decimal("0"), True
    elif event.tax_rate is not None:
        rate, override = event.tax_rate, True
    else:
        rate, override = draft.tax_selection.effective_rate, False

    line = LineItem.build(
        local_id=draft.next_local_id,
        item_id=event.item_id,
        description=event.description,
        quantity=event.quantity,
        unit_price=event.unit_price,
        tax_rate=rate,
        tax_override=override,
    )
    return _with_lines(draft, draft.lines + (line,), next_local_id=draft.next_local_id + 1)


def _change(draft: InvoiceDraft, event: LineItemChanged) -> InvoiceDraft:
    changes = {
        name: value
        for name, value in (
            ("description", event.description),
            ("quantity", event.quantity),
            ("unit_price", event.unit_price),
        )
        if value is not None
    }
    return _replace(draft, draft.line(event.local_id).with_changes(**changes))


def _select(draft: InvoiceDraft, event: TaxSelectionChanged) -> InvoiceDraft:
    rate = event.selection.effective_rate
    lines = (
        line if line.tax_override else line.with_changes(tax_rate=rate)
        for line in draft.lines
    )
    return _with_lines(draft, lines, tax_selection=event.selection)


def reduce(draft: InvoiceDraft, event: DraftEvent) -> InvoiceDraft:
    """
    Apply one editing event

    Raises:
        ValidationError: the event names a line that does not exist
    """
    if isinstance(event, LineItemAdded):
        return _add(draft, event)
    if isinstance(event, LineItemChanged):
        return _change(draft, event)
    if isinstance(event, LineItemTaxOverridden):
        line = draft.line(event.local_id)
        return _replace(draft, line.with_changes(tax_rate=event.tax_rate, tax_override=True))
    if isinstance(event, LineItemTaxReset):
        line = draft.line(event.local_id)
        return _replace(
            draft,
            line.with_changes(tax_rate=draft.tax_selection.effective_rate, tax_override=False),
        )
    if isinstance(event, LineItemRemoved):
        draft.line(event.local_id)
        return _with_lines(draft, (line for line in draft.lines if line.local_id != event.local_id))
    if isinstance(event, TaxSelectionChanged):
        return _select(draft, event)
    raise TypeError(f"Unsupported draft event: {type(event).__name__}")


def build_draft(selection: TaxSelection, events) -> InvoiceDraft:
    """Fold a selection followed by a sequence of events into a draft"""
    draft = reduce(InvoiceDraft(), TaxSelectionChanged(selection=selection))
    for event in events:
        draft = reduce(draft, event)
    return draft
