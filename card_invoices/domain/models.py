"""Domain models - pure Python dataclasses representing credit card invoicing"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Tuple

from card_invoices.utils.date_utils import validate_day_of_month


class InvoiceStatus(str, Enum):
    """Invoice state; open/closed/overdue derive from dates, paid/partial from payment records"""

    OPEN = "open"
    CLOSED = "closed"
    OVERDUE = "overdue"
    PAID = "paid"
    PARTIAL = "partial"


@dataclass(frozen=True)
class CardCycleConfig:
    """Billing cycle of one credit card"""

    closing_day: int
    due_day: int
    best_purchase_day: Optional[int] = None
    card_id: Optional[str] = None

    def __post_init__(self) -> None:
        validate_day_of_month(self.closing_day, "closing_day")
        validate_day_of_month(self.due_day, "due_day")
        if self.best_purchase_day is not None:
            validate_day_of_month(self.best_purchase_day, "best_purchase_day")


@dataclass(frozen=True)
class Purchase:
    """Card transaction to be placed on an invoice"""

    date: date
    amount: Decimal  # signed; only the magnitude counts towards invoice totals
    description: str = ""
    transaction_id: Optional[str] = None
    card_id: Optional[str] = None


@dataclass(frozen=True)
class InvoicePeriod:
    """Monthly invoice a purchase lands on, named after the month it closes in"""

    month: int  # 1-based, January == 1
    year: int
    closing_date: date
    due_date: date
    is_open: bool
    is_current: bool

    @property
    def key(self) -> Tuple[int, int]:
        return (self.year, self.month)


@dataclass
class InvoiceBucket:
    """Purchases sharing one invoice period"""

    period: InvoicePeriod
    status: InvoiceStatus
    purchases: List[Purchase] = field(default_factory=list)
    total: Decimal = Decimal("0")

    @property
    def key(self) -> Tuple[int, int]:
        return self.period.key


@dataclass(frozen=True)
class PurchaseInvoiceInfo:
    """Where a purchase will be billed and how long until that invoice is due"""

    invoice: InvoicePeriod
    days_until_due: int  # negative once the due date has passed


@dataclass(frozen=True)
class InvoiceRecord:
    """Payment state of an invoice, kept by the caller's own storage"""

    year: int
    month: int
    paid_amount: Decimal = Decimal("0")
    status: Optional[InvoiceStatus] = None

    @property
    def key(self) -> Tuple[int, int]:
        return (self.year, self.month)
