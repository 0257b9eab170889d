# Overview: Service-layer operations for customer ledgers; read-only projection over sales.

"""
Customer Ledger Invariants (authoritative)

- Ledger transactions are computed on every read from Sale rows; nothing is persisted.
- Sales are taken in ascending date order (ties by id).
- Every sale emits a `sale` transaction with amount = +total.
- A sale at an even zero-based index with no payment_type recorded is followed
  by a synthesized `payment` dated PAYMENT_DELAY after the sale, for
  -PAYMENT_SHARE of its total (half-up to the cent).
- Balances accumulate in emission order; each transaction carries the balance
  after itself.
- A customer that does not exist (e.g. deleted) has an empty ledger.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP

from ..models import Sale
from stockbook.time_utils import to_utc_z
from .customer_service import find_customer
from .sales_service import list_customer_sales

PAYMENT_DELAY = timedelta(days=5)
PAYMENT_SHARE = Decimal("0.5")

TX_SALE = "sale"
TX_PAYMENT = "payment"


@dataclass(frozen=True)
class LedgerTransaction:
    id: str
    date: datetime
    type: str
    amount_cents: int
    description: str
    balance_cents: int

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": to_utc_z(self.date),
            "type": self.type,
            "amount_cents": self.amount_cents,
            "description": self.description,
            "balance_cents": self.balance_cents,
        }


@dataclass(frozen=True)
class CustomerLedger:
    customer_id: int
    customer_name: str | None
    transactions: list[LedgerTransaction] = field(default_factory=list)

    @property
    def current_balance_cents(self) -> int:
        if not self.transactions:
            return 0
        return self.transactions[-1].balance_cents

    def to_dict(self) -> dict:
        return {
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "transactions": [tx.to_dict() for tx in self.transactions],
            "current_balance_cents": self.current_balance_cents,
        }


def synthesized_payment_cents(total_cents: int) -> int:
    share = (Decimal(total_cents) * PAYMENT_SHARE).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(share)


def build_transactions(sales: list[Sale]) -> list[LedgerTransaction]:
    """Project chronologically sorted sales into ledger rows with running balances."""
    entries: list[tuple[str, datetime, str, int, str]] = []

    for index, sale in enumerate(sales):
        names = ", ".join(line.name for line in sale.lines)
        entries.append((str(sale.id), sale.date, TX_SALE, sale.total_cents, f"Purchase of {names}"))

        if sale.payment_type is None and index % 2 == 0:
            entries.append((
                f"payment-{sale.id}",
                sale.date + PAYMENT_DELAY,
                TX_PAYMENT,
                -synthesized_payment_cents(sale.total_cents),
                "Payment received",
            ))

    transactions = []
    balance = 0
    for tx_id, date, tx_type, amount, description in entries:
        balance += amount
        transactions.append(LedgerTransaction(
            id=tx_id,
            date=date,
            type=tx_type,
            amount_cents=amount,
            description=description,
            balance_cents=balance,
        ))
    return transactions


def get_customer_ledger(customer_id: int) -> CustomerLedger:
    customer = find_customer(customer_id)
    if customer is None:
        return CustomerLedger(customer_id=customer_id, customer_name=None)

    sales = list_customer_sales(customer_id)
    return CustomerLedger(
        customer_id=customer_id,
        customer_name=customer.name,
        transactions=build_transactions(sales),
    )
