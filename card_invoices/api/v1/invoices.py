"""Invoice cycle endpoints - resolve, current, group, best purchase day"""

import time
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request

from card_invoices.api.v1.schemas import (
    BestPurchaseDayResponse,
    CurrentRequest,
    GroupRequest,
    GroupResponse,
    InvoiceBucketSchema,
    InvoicePeriodSchema,
    ResolveRequest,
    ResolveResponse,
)
from card_invoices.api.dependencies import get_request_id, resolve_reference_date, to_card_config
from card_invoices.config import settings
from card_invoices.domain.exceptions import InvalidArgumentError
from card_invoices.domain.invoices import (
    apply_invoice_records,
    best_purchase_day,
    current_invoice_bucket,
    filter_card_purchases,
    group_purchases_by_invoice,
    purchase_invoice_info,
    resolve_current_invoice_period,
)
from card_invoices.domain.models import InvoiceRecord, Purchase
from card_invoices.infrastructure.observability.logging import log_grouping
from card_invoices.infrastructure.observability.metrics import (
    invalid_argument_counter,
    invoice_resolution_counter,
    purchases_per_request_histogram,
    record_buckets,
)
from card_invoices.utils.date_utils import parse_local_date, validate_day_of_month

router = APIRouter()


def _reject(e: InvalidArgumentError, request_id: str) -> HTTPException:
    invalid_argument_counter.inc()
    logging.warning(f"Invalid argument: {e}", extra={"request_id": request_id})
    return HTTPException(status_code=400, detail=str(e))


@router.get("/cards/best-purchase-day", response_model=BestPurchaseDayResponse)
def get_best_purchase_day(
    request: Request,
    closing_day: int = Query(..., description="Day of month the statement closes"),
    best_purchase_day_override: Optional[int] = Query(
        None, alias="best_purchase_day", description="Day configured on the card, if any"
    ),
):
    """
    Best day to buy with the card.

    Returns the card's configured day when given, else the day after closing
    (day 1 for closings on the 28th or later).
    """
    request_id = get_request_id(request)
    try:
        day = best_purchase_day(closing_day)
        if best_purchase_day_override is not None:
            day = validate_day_of_month(best_purchase_day_override, "best_purchase_day")
    except InvalidArgumentError as e:
        raise _reject(e, request_id)

    invoice_resolution_counter.labels(operation="best_purchase_day").inc()
    return BestPurchaseDayResponse(closing_day=closing_day, best_purchase_day=day)


@router.post("/invoices/resolve", response_model=ResolveResponse)
def resolve_invoice(request_body: ResolveRequest, request: Request):
    """
    Which invoice a purchase lands on, and days left until it is due.
    """
    request_id = get_request_id(request)
    try:
        card = to_card_config(request_body.card)
        today = resolve_reference_date(request_body.today)
        info = purchase_invoice_info(
            request_body.purchase_date, card.closing_day, card.due_day, today=today
        )
    except InvalidArgumentError as e:
        raise _reject(e, request_id)

    invoice_resolution_counter.labels(operation="resolve").inc()
    return ResolveResponse(
        invoice=InvoicePeriodSchema.from_domain(info.invoice),
        days_until_due=info.days_until_due,
    )


@router.post("/invoices/current", response_model=InvoicePeriodSchema)
def current_invoice(request_body: CurrentRequest, request: Request):
    """
    Invoice currently accumulating purchases for the card.
    """
    request_id = get_request_id(request)
    try:
        card = to_card_config(request_body.card)
        today = resolve_reference_date(request_body.today)
        period = resolve_current_invoice_period(card.closing_day, card.due_day, today=today)
    except InvalidArgumentError as e:
        raise _reject(e, request_id)

    invoice_resolution_counter.labels(operation="current").inc()
    return InvoicePeriodSchema.from_domain(period)


@router.post("/invoices/group", response_model=GroupResponse)
def group_invoices(request_body: GroupRequest, request: Request):
    """
    Group a card's purchases into invoices, most recent first.

    Flow:
    1. Drop purchases tagged with another card
    2. Group by invoice and derive date-based status
    3. Overlay stored payment records (paid/partial)
    4. Pick the current invoice (empty if nothing was bought in it)
    """
    start_time = time.time()
    request_id = get_request_id(request)

    purchase_count = len(request_body.purchases)
    if purchase_count > settings.max_purchases_per_request:
        invalid_argument_counter.inc()
        raise HTTPException(
            status_code=400,
            detail=f"At most {settings.max_purchases_per_request} purchases per request",
        )
    purchases_per_request_histogram.observe(purchase_count)

    try:
        card = to_card_config(request_body.card)
        today = resolve_reference_date(request_body.today)

        purchases = []
        for index, p in enumerate(request_body.purchases):
            try:
                purchase_date = parse_local_date(p.date)
            except InvalidArgumentError as e:
                raise InvalidArgumentError(f"Purchase #{index}: {e}") from e
            purchases.append(
                Purchase(
                    date=purchase_date,
                    amount=p.amount,
                    description=p.description,
                    transaction_id=p.transaction_id,
                    card_id=p.card_id,
                )
            )
        if card.card_id is not None:
            purchases = filter_card_purchases(purchases, card.card_id, keep_untagged=True)

        buckets = group_purchases_by_invoice(purchases, card.closing_day, card.due_day, today=today)

        records = [
            InvoiceRecord(year=r.year, month=r.month, paid_amount=r.paid_amount, status=r.status)
            for r in request_body.invoice_records
        ]
        buckets = apply_invoice_records(buckets, records)
        current = current_invoice_bucket(buckets, card.closing_day, card.due_day, today=today)
    except InvalidArgumentError as e:
        raise _reject(e, request_id)

    invoice_resolution_counter.labels(operation="group").inc()
    record_buckets(buckets)
    duration_ms = (time.time() - start_time) * 1000
    log_grouping(request_id, len(purchases), len(buckets), duration_ms)

    return GroupResponse(
        invoices=[InvoiceBucketSchema.from_domain(b) for b in buckets],
        current_invoice=InvoiceBucketSchema.from_domain(current),
    )
