"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field, StrictInt
from datetime import date
from decimal import Decimal
from typing import List, Optional

from card_invoices.domain.models import InvoiceBucket, InvoicePeriod, InvoiceStatus


class CardSchema(BaseModel):
    """Card billing cycle; day ranges are checked by the domain layer"""

    card_id: Optional[str] = Field(None, description="Card identifier used to filter purchases")
    closing_day: StrictInt = Field(..., description="Day of month the statement closes (1-31)")
    due_day: StrictInt = Field(..., description="Day of month payment is due (1-31)")
    best_purchase_day: Optional[StrictInt] = None


class PurchaseSchema(BaseModel):
    """Card transaction; date kept as a string so it is read as a local calendar day"""

    date: str = Field(..., description="Purchase date, YYYY-MM-DD")
    amount: Decimal
    description: str = ""
    transaction_id: Optional[str] = None
    card_id: Optional[str] = None


class InvoiceRecordSchema(BaseModel):
    """Stored payment state of one invoice"""

    year: int
    month: int = Field(..., ge=1, le=12)
    paid_amount: Decimal = Field(Decimal("0"), ge=0)
    status: Optional[InvoiceStatus] = None


class ResolveRequest(BaseModel):
    """Request body for POST /v1/invoices/resolve"""

    card: CardSchema
    purchase_date: str
    today: Optional[str] = None


class CurrentRequest(BaseModel):
    """Request body for POST /v1/invoices/current"""

    card: CardSchema
    today: Optional[str] = None


class GroupRequest(BaseModel):
    """Request body for POST /v1/invoices/group"""

    card: CardSchema
    purchases: List[PurchaseSchema]
    invoice_records: List[InvoiceRecordSchema] = []
    today: Optional[str] = None


class InvoicePeriodSchema(BaseModel):
    """Monthly invoice; month is 1-based"""

    month: int
    year: int
    closing_date: date
    due_date: date
    is_open: bool
    is_current: bool

    @classmethod
    def from_domain(cls, period: InvoicePeriod) -> "InvoicePeriodSchema":
        return cls(
            month=period.month,
            year=period.year,
            closing_date=period.closing_date,
            due_date=period.due_date,
            is_open=period.is_open,
            is_current=period.is_current,
        )


class ResolveResponse(BaseModel):
    """Response for POST /v1/invoices/resolve"""

    invoice: InvoicePeriodSchema
    days_until_due: int


class InvoiceBucketSchema(BaseModel):
    """Invoice with its purchases and statement total"""

    invoice: InvoicePeriodSchema
    status: InvoiceStatus
    total: Decimal
    purchases: List[PurchaseSchema]

    @classmethod
    def from_domain(cls, bucket: InvoiceBucket) -> "InvoiceBucketSchema":
        return cls(
            invoice=InvoicePeriodSchema.from_domain(bucket.period),
            status=bucket.status,
            total=bucket.total,
            purchases=[
                PurchaseSchema(
                    date=p.date.isoformat(),
                    amount=p.amount,
                    description=p.description,
                    transaction_id=p.transaction_id,
                    card_id=p.card_id,
                )
                for p in bucket.purchases
            ],
        )


class GroupResponse(BaseModel):
    """Response for POST /v1/invoices/group"""

    invoices: List[InvoiceBucketSchema]
    current_invoice: InvoiceBucketSchema


class BestPurchaseDayResponse(BaseModel):
    """Response for GET /v1/cards/best-purchase-day"""

    closing_day: int
    best_purchase_day: int
