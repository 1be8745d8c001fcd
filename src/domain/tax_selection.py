"""Tax Rate Resolver

Turns a selection of named tax rates into a single effective percentage.
Rates are summed, never compounded.
"""

from decimal import Decimal, InvalidOperation
from typing import Iterable, Tuple
from pydantic import BaseModel, ConfigDict
from src.domain.errors import LineItemIssue, ValidationError


class AppliedTaxRate(BaseModel):
    """Snapshot of one selected rate as it was when applied"""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    percentage: Decimal


class TaxSelection(BaseModel):
    """
    Ordered, de-duplicated set of selected rates

    Stored on the invoice together with ``effective_rate`` so that a later
    edit of a rate definition never changes a historical invoice.
    """

    model_config = ConfigDict(frozen=True)

    rates: Tuple[AppliedTaxRate, ...] = ()
    effective_rate: Decimal = Decimal("0")

    @property
    def rate_ids(self) -> Tuple[str, ...]:
        return tuple(rate.id for rate in self.rates)

    @classmethod
    def empty(cls) -> "TaxSelection":
        return cls()

    @classmethod
    def from_applied(cls, rates: Iterable[AppliedTaxRate]) -> "TaxSelection":
        unique = []
        seen = set()
        for rate in rates:
            if rate.id in seen:
                continue
            seen.add(rate.id)
            unique.append(rate)
        effective = sum((rate.percentage for rate in unique), Decimal("0"))
        return cls(rates=tuple(unique), effective_rate=effective)

    def to_snapshot(self) -> list:
        """JSON-safe form persisted on the invoice"""
        return [
            {"id": rate.id, "name": rate.name, "percentage": str(rate.percentage)}
            for rate in self.rates
        ]

    @classmethod
    def from_snapshot(cls, snapshot: Iterable[dict]) -> "TaxSelection":
        return cls.from_applied(
            AppliedTaxRate(
                id=str(entry["id"]),
                name=entry.get("name", ""),
                percentage=Decimal(str(entry["percentage"])),
            )
            for entry in snapshot or []
        )


def _to_percentage(value) -> Decimal:
    try:
        percentage = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValueError(f"not a number: {value!r}")
    if not percentage.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    return percentage


def resolve_tax_selection(rates: Iterable, selected_ids: Iterable[str]) -> TaxSelection:
    """
    Resolve selected tax-rate ids against the tenant's rate definitions

    Args:
        rates: Rate definitions exposing ``id``, ``name`` and ``percentage``
        selected_ids: Ids the user toggled on, in selection order

    Returns:
        TaxSelection whose ``effective_rate`` is the plain sum of percentages

    Raises:
        ValidationError: unknown rate id or a negative / non-numeric percentage
    """
    by_id = {str(rate.id): rate for rate in rates}
    applied = []
    issues = []

    for position, rate_id in enumerate(selected_ids or []):
        rate_id = str(rate_id)
        definition = by_id.get(rate_id)
        if definition is None:
            issues.append(LineItemIssue(position, "tax_rate_ids", f"Unknown tax rate {rate_id}"))
            continue
        try:
            percentage = _to_percentage(definition.percentage)
        except ValueError as e:
            issues.append(LineItemIssue(position, "tax_rate_ids", f"Tax rate {rate_id} is {e}"))
            continue
        if percentage < 0:
            issues.append(
                LineItemIssue(position, "tax_rate_ids", f"Tax rate {rate_id} has a negative percentage")
            )
            continue
        applied.append(AppliedTaxRate(id=rate_id, name=definition.name, percentage=percentage))

    if issues:
        raise ValidationError("Invalid tax selection", issues=issues)

    return TaxSelection.from_applied(applied)
