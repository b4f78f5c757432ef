"""Dependency injection for FastAPI endpoints"""

from datetime import date
from typing import Optional

from fastapi import Request

from card_invoices.domain.models import CardCycleConfig
from card_invoices.api.v1.schemas import CardSchema
from card_invoices.utils.date_utils import local_today, parse_local_date


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def resolve_reference_date(today: Optional[str]) -> date:
    """Reference date for a request: the caller's value, or the local clock"""
    if today is None:
        return local_today()
    return parse_local_date(today)


def to_card_config(card: CardSchema) -> CardCycleConfig:
    """Build a validated domain card from the request body"""
    return CardCycleConfig(
        closing_day=card.closing_day,
        due_day=card.due_day,
        best_purchase_day=card.best_purchase_day,
        card_id=card.card_id,
    )
