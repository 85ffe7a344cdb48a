"""Pytest configuration and fixtures."""

from collections.abc import Generator
from datetime import date

import pytest

from src.application.services import reset_services
from src.core.entities.inventory import StockItem
from src.core.entities.job_card import JobCard, JobCardLineItem
from src.core.services.batch_ledger import add_batch


@pytest.fixture(autouse=True)
def _reset_service_singletons() -> Generator[None, None, None]:
    """Drop cached services so settings patches take effect per test."""
    reset_services()
    yield
    reset_services()


def make_stock_item(
    name: str = "Brake Pad",
    batches: list[tuple[date, float, float]] | None = None,
    stock_id: str | None = None,
) -> StockItem:
    """Build a stock item from (purchase_date, quantity, unit_cost) tuples."""
    item = StockItem(name=name) if stock_id is None else StockItem(id=stock_id, name=name)
    for purchase_date, quantity, unit_cost in batches or []:
        add_batch(item, purchase_date, quantity, unit_cost)
    return item


@pytest.fixture
def two_batch_item() -> StockItem:
    """5 units @ 10 (January) and 5 units @ 20 (February)."""
    return make_stock_item(
        "Oil Filter",
        [
            (date(2024, 1, 10), 5, 10.0),
            (date(2024, 2, 10), 5, 20.0),
        ],
        stock_id="STK-oilfilter01",
    )


@pytest.fixture
def draft_card(two_batch_item: StockItem) -> JobCard:
    """Draft card using 7 oil filters plus a sundry line and labour."""
    return JobCard(
        id="JC-test000001",
        title="Service truck 12",
        asset_id="AST-truck12",
        job_date=date(2024, 3, 1),
        items=[
            JobCardLineItem(stock_id=two_batch_item.id, quantity=7, description="Filters"),
            JobCardLineItem(description="Rags", quantity=1, actual_cost=4.5),
        ],
        labor_cost=50.0,
    )


@pytest.fixture
def make_item():
    """Factory fixture for stock items with batches."""
    return make_stock_item
