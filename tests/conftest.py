"""Pytest fixtures for testing"""

import pytest
from datetime import date
from decimal import Decimal
from fastapi.testclient import TestClient
from card_invoices.api.main import create_app
from card_invoices.domain.models import CardCycleConfig, Purchase


@pytest.fixture
def client() -> TestClient:
    """Create FastAPI test client"""
    return TestClient(create_app())


@pytest.fixture
def nubank_card() -> CardCycleConfig:
    """Card closing on the 8th, due on the 15th"""
    return CardCycleConfig(closing_day=8, due_day=15, card_id="card_nubank")


@pytest.fixture
def sample_purchases() -> list[Purchase]:
    """Three months of purchases on the card, including a refund"""
    return [
        Purchase(date=date(2024, 1, 5), amount=Decimal("-100.00"), description="Mercado", transaction_id="t1"),
        Purchase(date=date(2024, 1, 10), amount=Decimal("-50.00"), description="Farmacia", transaction_id="t2"),
        Purchase(date=date(2024, 2, 8), amount=Decimal("-30.25"), description="Posto", transaction_id="t3"),
        Purchase(date=date(2024, 2, 20), amount=Decimal("19.90"), description="Estorno", transaction_id="t4"),
        Purchase(date=date(2024, 3, 1), amount=Decimal("-200.00"), description="Aluguel carro", transaction_id="t5"),
    ]
