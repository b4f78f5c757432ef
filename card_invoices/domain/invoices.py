"""Invoice cycle engine - maps card purchases to monthly invoices"""

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional, Tuple

from card_invoices.domain.exceptions import InvalidArgumentError
from card_invoices.domain.models import (
    CardCycleConfig,
    InvoiceBucket,
    InvoicePeriod,
    InvoiceRecord,
    InvoiceStatus,
    Purchase,
    PurchaseInvoiceInfo,
)
from card_invoices.utils.date_utils import (
    clamp_day,
    local_today,
    next_month,
    parse_local_date,
    validate_day_of_month,
)

logger = logging.getLogger(__name__)

# Closing days from here on fall back to day 1 as best purchase day
LATE_CLOSING_DAY = 28


def _invoice_key(day: date, closing_day: int) -> Tuple[int, int]:
    """
    Rollover rule shared by every resolution path.

    A purchase up to and including the closing day belongs to the invoice of
    its own month; anything after the closing day goes to next month's.
    """
    if day.day <= closing_day:
        return day.year, day.month
    return next_month(day.year, day.month)


def _build_period(
    key: Tuple[int, int],
    closing_day: int,
    due_day: int,
    today: date,
    current_key: Tuple[int, int],
) -> InvoicePeriod:
    year, month = key
    closing_date = clamp_day(year, month, closing_day)
    return InvoicePeriod(
        month=month,
        year=year,
        closing_date=closing_date,
        due_date=clamp_day(year, month, due_day),
        is_open=today < closing_date,
        is_current=key == current_key,
    )


def _reference_date(today: Optional[date]) -> date:
    if today is None:
        return local_today()
    return parse_local_date(today)


def _as_amount(value: object) -> Decimal:
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value))
        except InvalidOperation as e:
            raise InvalidArgumentError(f"Malformed amount: {value!r}") from e
    if not amount.is_finite():
        raise InvalidArgumentError(f"Malformed amount: {value!r}")
    return amount


def derive_status(period: InvoicePeriod, today: date) -> InvoiceStatus:
    """
    Date-derived invoice status.

    overdue once today is past the due date, closed once past the closing
    date, open otherwise. Monotonic as today advances.
    """
    if today > period.due_date:
        return InvoiceStatus.OVERDUE
    if today > period.closing_date:
        return InvoiceStatus.CLOSED
    return InvoiceStatus.OPEN


def best_purchase_day(closing_day: int) -> int:
    """
    Best day to buy: the day after closing, for the longest float until due.

    Closing days of 28 or later fall back to day 1, since day 29-31 does not
    exist in every month.
    """
    closing_day = validate_day_of_month(closing_day, "closing_day")
    if closing_day >= LATE_CLOSING_DAY:
        return 1
    return closing_day + 1


def effective_best_purchase_day(card: CardCycleConfig) -> int:
    """Card's configured best purchase day, or the one derived from its closing day"""
    if card.best_purchase_day is not None:
        return card.best_purchase_day
    return best_purchase_day(card.closing_day)


def resolve_current_invoice_period(
    closing_day: int,
    due_day: int,
    today: Optional[date] = None,
) -> InvoicePeriod:
    """
    Invoice currently accumulating purchases as of today.

    Up to the closing day this is the current month's invoice, after it the
    next month's. Always open and current by definition.
    """
    closing_day = validate_day_of_month(closing_day, "closing_day")
    due_day = validate_day_of_month(due_day, "due_day")
    today = _reference_date(today)

    key = _invoice_key(today, closing_day)
    period = _build_period(key, closing_day, due_day, today, current_key=key)
    return replace(period, is_open=True)


def resolve_invoice_period(
    purchase_date: date,
    closing_day: int,
    due_day: int,
    today: Optional[date] = None,
) -> InvoicePeriod:
    """
    Invoice a purchase made on purchase_date is billed on.

    Args:
        purchase_date: Local calendar day of the purchase (date or YYYY-MM-DD)
        closing_day: Day of month the statement closes (1-31)
        due_day: Day of month payment is due (1-31)
        today: Reference date for is_open/is_current (default: local today)

    Raises:
        InvalidArgumentError: day values outside 1-31 or a malformed date

    Example:
        closing_day=8: a purchase on Jan 8 lands on January's invoice,
        a purchase on Jan 9 on February's.
    """
    closing_day = validate_day_of_month(closing_day, "closing_day")
    due_day = validate_day_of_month(due_day, "due_day")
    purchase_date = parse_local_date(purchase_date)
    today = _reference_date(today)

    current_key = _invoice_key(today, closing_day)
    return _build_period(
        _invoice_key(purchase_date, closing_day), closing_day, due_day, today, current_key
    )


def purchase_invoice_info(
    purchase_date: date,
    closing_day: int,
    due_day: int,
    today: Optional[date] = None,
) -> PurchaseInvoiceInfo:
    """Resolve the purchase's invoice and count days from today until it is due"""
    today = _reference_date(today)
    invoice = resolve_invoice_period(purchase_date, closing_day, due_day, today=today)
    return PurchaseInvoiceInfo(
        invoice=invoice,
        days_until_due=(invoice.due_date - today).days,
    )


def group_purchases_by_invoice(
    purchases: Iterable[Purchase],
    closing_day: int,
    due_day: int,
    today: Optional[date] = None,
) -> List[InvoiceBucket]:
    """
    Group purchases into invoice buckets, most recent invoice first.

    Requirements:
    - Every purchase lands in exactly one bucket, keyed by (year, month)
    - Bucket total is the sum of |amount| (statement balance, not net)
    - Status derived once per bucket against a single reference date
    - No filtering by card; callers pass one card's purchases

    Raises:
        InvalidArgumentError: day values outside 1-31, or a purchase with a
        malformed date or amount
    """
    closing_day = validate_day_of_month(closing_day, "closing_day")
    due_day = validate_day_of_month(due_day, "due_day")
    today = _reference_date(today)
    current_key = _invoice_key(today, closing_day)

    buckets: Dict[Tuple[int, int], InvoiceBucket] = {}
    count = 0
    for index, purchase in enumerate(purchases):
        try:
            purchase_date = parse_local_date(purchase.date)
            amount = _as_amount(purchase.amount)
        except InvalidArgumentError as e:
            raise InvalidArgumentError(f"Purchase #{index}: {e}") from e

        key = _invoice_key(purchase_date, closing_day)
        bucket = buckets.get(key)
        if bucket is None:
            period = _build_period(key, closing_day, due_day, today, current_key)
            bucket = InvoiceBucket(period=period, status=derive_status(period, today))
            buckets[key] = bucket

        bucket.purchases.append(purchase)
        bucket.total += abs(amount)
        count += 1

    logger.debug("Grouped %d purchases into %d invoices", count, len(buckets))
    return sorted(buckets.values(), key=lambda b: b.key, reverse=True)


def current_invoice_bucket(
    buckets: Iterable[InvoiceBucket],
    closing_day: int,
    due_day: int,
    today: Optional[date] = None,
) -> InvoiceBucket:
    """Bucket of the current invoice, or an empty open one if nothing was bought in it yet"""
    current = resolve_current_invoice_period(closing_day, due_day, today=today)
    for bucket in buckets:
        if bucket.key == current.key:
            return bucket
    return InvoiceBucket(period=current, status=InvoiceStatus.OPEN)


def filter_card_purchases(
    purchases: Iterable[Purchase],
    card_id: str,
    keep_untagged: bool = False,
) -> List[Purchase]:
    """Purchases made with the given card, optionally keeping those with no card_id"""
    return [
        p for p in purchases
        if p.card_id == card_id or (keep_untagged and p.card_id is None)
    ]


def payment_status(total: Decimal, paid_amount: Decimal) -> InvoiceStatus:
    """
    Status implied by how much of an invoice was paid.

    Nothing paid keeps the invoice open, paying the total marks it paid,
    anything in between is partial.
    """
    total = _as_amount(total)
    paid_amount = _as_amount(paid_amount)
    if paid_amount < 0:
        raise InvalidArgumentError(f"paid_amount cannot be negative, got {paid_amount}")
    if paid_amount > total:
        raise InvalidArgumentError(f"paid_amount {paid_amount} exceeds invoice total {total}")

    if paid_amount == 0:
        return InvoiceStatus.OPEN
    if paid_amount >= total:
        return InvoiceStatus.PAID
    return InvoiceStatus.PARTIAL


def apply_invoice_records(
    buckets: Iterable[InvoiceBucket],
    records: Iterable[InvoiceRecord],
) -> List[InvoiceBucket]:
    """
    Overlay stored payment records on date-derived buckets.

    An explicit record status wins. Without one, a non-zero paid_amount sets
    paid/partial from the bucket total (negative or excess payments raise).
    Buckets without a record, or with nothing paid, keep their derived
    status. Input buckets are not mutated.
    """
    by_key = {record.key: record for record in records}

    result = []
    for bucket in buckets:
        record = by_key.get(bucket.key)
        if record is None:
            result.append(bucket)
        elif record.status is not None:
            result.append(replace(bucket, status=InvoiceStatus(record.status)))
        elif _as_amount(record.paid_amount) != 0:
            result.append(replace(bucket, status=payment_status(bucket.total, record.paid_amount)))
        else:
            result.append(bucket)
    return result
