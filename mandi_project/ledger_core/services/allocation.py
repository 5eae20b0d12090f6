from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, NamedTuple, Sequence, Tuple

ZERO = Decimal("0.00")


class Allocation(NamedTuple):
    invoice: Any
    amount: Decimal


@dataclass(frozen=True)
class AllocationResult:
    allocations: Tuple[Allocation, ...] = field(default_factory=tuple)
    remainder: Decimal = ZERO

    @property
    def allocated_total(self) -> Decimal:
        return sum((a.amount for a in self.allocations), ZERO)


def _require_decimal(value, what):
    # floats would let binary rounding drift into the ledger
    if not isinstance(value, Decimal):
        raise TypeError(f"{what} must be a Decimal, got {type(value).__name__}")
    if not value.is_finite():
        raise ValueError(f"{what} must be a finite amount")


def _identity(invoice):
    pk = getattr(invoice, "pk", None)
    if pk is None:
        return id(invoice)
    return (type(invoice), pk)


def allocate(amount: Decimal, invoices: Sequence) -> AllocationResult:
    """
    Spread ``amount`` over ``invoices`` in the order given (oldest first).

    Each invoice receives min(remaining, invoice.balance_amount). The walk
    stops as soon as nothing remains; anything left after the last invoice
    is returned as the remainder and is never assigned to an invoice.
    The function reads only its arguments, so identical inputs always give
    identical output.
    """
    _require_decimal(amount, "Payment amount")
    if amount <= 0:
        raise ValueError("Payment amount must be greater than zero")

    seen = set()
    allocations = []
    remaining = amount

    for invoice in invoices:
        key = _identity(invoice)
        if key in seen:
            raise ValueError(f"Invoice {invoice} appears more than once")
        seen.add(key)

        balance = invoice.balance_amount
        _require_decimal(balance, "Invoice balance")
        if balance < 0:
            raise ValueError(f"Invoice {invoice} has a negative balance")

        if remaining == 0:
            continue  # keep checking duplicates, allocate nothing

        portion = min(remaining, balance)
        if portion > 0:
            allocations.append(Allocation(invoice, portion))
            remaining -= portion

    return AllocationResult(allocations=tuple(allocations), remainder=remaining)
