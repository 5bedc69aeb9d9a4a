"""
Shared fixtures for the kitchen engine test suite.

Provides:
- A line item factory with sensible defaults
- A small day of production across two products and two units
- A tracker over that day
"""

from decimal import Decimal

import pytest

from kitchen_engines.tracking import ProductionTracker
from kitchen_kernel.domain.line_items import ProductionLineItem
from kitchen_kernel.domain.status import ProductGroup, ProductionStatus, ProductionUnit
from kitchen_kernel.logging_config import LogContext, reset_logging


@pytest.fixture(autouse=True)
def _isolate_logging():
    yield
    LogContext.clear()
    reset_logging()


@pytest.fixture
def make_item():
    """Factory for ProductionLineItem with overridable fields."""

    def _make(
        item_id: str = "item-1",
        product_name: str = "Baklava",
        options=("Pistachio", "Big Tray"),
        unit=ProductionUnit.TRAY,
        quantity_ordered="5",
        quantity_produced="0",
        production_status=ProductionStatus.PENDING,
        product_group=ProductGroup.SWEETS,
        **extra,
    ) -> ProductionLineItem:
        return ProductionLineItem(
            id=item_id,
            product_name=product_name,
            options=tuple(options),
            unit=unit,
            quantity_ordered=Decimal(str(quantity_ordered)),
            quantity_produced=Decimal(str(quantity_produced)),
            production_status=production_status,
            product_group=product_group,
            **extra,
        )

    return _make


@pytest.fixture
def day_items(make_item):
    """
    Baklava / pistachio, big tray: 5 + 3 trays (two orders)
    Baklava / walnut, small tray: 4 trays
    Simit / sesame: 20 pieces (bakery)
    """
    return [
        make_item("b-1", quantity_ordered="5", order_id="order-1"),
        make_item("b-2", options=("big tray", "pistachio"), quantity_ordered="3", order_id="order-2"),
        make_item("b-3", options=("Walnut", "Small Tray"), quantity_ordered="4", order_id="order-2"),
        make_item(
            "s-1",
            product_name="Simit",
            options=("Sesame",),
            unit=ProductionUnit.PIECE,
            quantity_ordered="20",
            product_group=ProductGroup.BAKERY,
            order_id="order-3",
        ),
    ]


@pytest.fixture
def tracker(day_items):
    return ProductionTracker(day_items)
