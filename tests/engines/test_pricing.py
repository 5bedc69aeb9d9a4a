"""
Tests for the Price Resolution Engine.

Covers:
- Unit price precedence and the derived fallback
- Initial and final total precedence chains
- Failed/cancelled lines and the stale backend zero
- Price-changed threshold
- Order summaries and role-specific display amounts
"""

from decimal import Decimal

import pytest

from kitchen_config import get_active_config
from kitchen_engines.pricing import (
    FinalTotalSource,
    PriceResolver,
    display_amounts,
    is_stale_backend_zero,
    order_display_totals,
    price_changed,
    resolve_initial_total,
    resolve_unit_price,
)
from kitchen_kernel.domain.line_items import OrderLineItem, OrderTotalsSnapshot
from kitchen_kernel.domain.status import DeliveryStatus, PriceView, ProductionStatus


@pytest.fixture
def resolver():
    return PriceResolver()


def _line(**fields) -> OrderLineItem:
    fields.setdefault("id", "line-1")
    return OrderLineItem(**fields)


class TestUnitPrice:
    """Unit price precedence."""

    def test_final_retail_unit_price_wins(self):
        item = _line(
            quantity_ordered=2,
            final_retail_unit_price="12",
            retail_unit_price="11",
            unit_price="9",
        )

        assert resolve_unit_price(item) == Decimal("12")

    def test_falls_back_through_chain(self):
        assert resolve_unit_price(_line(initial_retail_unit_price="7", unit_price="9")) == Decimal("7")
        assert resolve_unit_price(_line(unit_price="9")) == Decimal("9")

    def test_derived_from_total(self):
        item = _line(quantity_ordered=3, initial_retail_total="30")

        assert resolve_unit_price(item) == Decimal("10")

    def test_zero_quantity_divides_by_one(self):
        item = _line(quantity_ordered=0, total_price="15")

        assert resolve_unit_price(item) == Decimal("15")

    def test_no_price_data(self):
        assert resolve_unit_price(_line(quantity_ordered=4)) == Decimal("0")


class TestInitialTotal:
    """Initial total precedence."""

    def test_initial_retail_total_first(self):
        item = _line(quantity_ordered=2, initial_retail_total="20", retail_total="22")

        assert resolve_initial_total(item, Decimal("5")) == Decimal("20")

    def test_explicit_zero_is_kept(self):
        item = _line(quantity_ordered=2, initial_retail_total="0")

        assert resolve_initial_total(item, Decimal("5")) == Decimal("0")

    def test_computed_from_unit_price(self):
        item = _line(quantity_ordered=4)

        assert resolve_initial_total(item, Decimal("2.5")) == Decimal("10")


class TestFinalTotal:
    """Final total rules through PriceResolver.resolve."""

    def test_backend_final_used(self, resolver):
        item = _line(quantity_ordered=2, initial_retail_total="20", final_retail_total="18")

        result = resolver.resolve(item)

        assert result.final_total == Decimal("18")
        assert result.final_source is FinalTotalSource.BACKEND_FINAL
        assert result.price_changed

    def test_stale_zero_on_completed_line_discarded(self, resolver):
        item = _line(
            quantity_ordered=2,
            retail_unit_price="10",
            initial_retail_total="20",
            final_retail_total="0",
            production_status="COMPLETED",
        )

        result = resolver.resolve(item)

        assert result.final_total == Decimal("20")
        assert result.final_source is FinalTotalSource.COMPLETED_FALLBACK
        assert not result.price_changed

    def test_stale_zero_kept_when_discarding_disabled(self):
        item = _line(
            quantity_ordered=2,
            retail_unit_price="10",
            final_retail_total="0",
            production_status="COMPLETED",
        )

        result = PriceResolver(discard_stale_zero=False).resolve(item)

        assert result.final_total == Decimal("0")
        assert result.price_changed

    def test_zero_on_untouched_line_is_real(self, resolver):
        item = _line(quantity_ordered=2, initial_retail_total="20", final_retail_total="0")

        result = resolver.resolve(item)

        assert result.final_total == Decimal("0")
        assert result.final_source is FinalTotalSource.BACKEND_FINAL

    def test_failed_delivery_is_zero(self, resolver):
        item = _line(quantity_ordered=5, initial_retail_total="50", delivery_status="FAILED")

        result = resolver.resolve(item)

        assert result.initial_total == Decimal("50")
        assert result.final_total == Decimal("0")
        assert result.final_source is FinalTotalSource.FAILED_OR_CANCELLED
        assert result.price_changed

    def test_failed_delivery_ignores_fallback_totals(self, resolver):
        item = _line(
            quantity_ordered=5,
            retail_total="50",
            total_price="55",
            quantity_produced="5",
            delivery_status="FAILED",
        )

        result = resolver.resolve(item)

        assert result.final_total == Decimal("0")
        assert result.final_source is FinalTotalSource.FAILED_OR_CANCELLED

    def test_failed_delivery_keeps_usable_backend_final(self, resolver):
        item = _line(
            quantity_ordered=5,
            final_retail_total="40",
            retail_total="50",
            delivery_status="FAILED",
        )

        result = resolver.resolve(item)

        assert result.final_total == Decimal("40")
        assert result.final_source is FinalTotalSource.BACKEND_FINAL

    def test_failed_delivery_with_stale_zero(self, resolver):
        item = _line(
            quantity_ordered=5,
            retail_total="50",
            final_retail_total="0",
            quantity_delivered="2",
            delivery_status="FAILED",
        )

        result = resolver.resolve(item)

        assert result.final_total == Decimal("0")
        assert result.final_source is FinalTotalSource.FAILED_OR_CANCELLED

    def test_cancelled_production_is_zero(self, resolver):
        item = _line(quantity_ordered=5, unit_price="4", production_status="cancelled")

        assert resolver.resolve(item).final_total == Decimal("0")

    def test_produced_quantity_drives_final(self, resolver):
        item = _line(quantity_ordered=5, retail_unit_price="4", quantity_produced="3")

        result = resolver.resolve(item)

        assert result.initial_total == Decimal("20")
        assert result.final_total == Decimal("12")
        assert result.final_source is FinalTotalSource.EFFECTIVE_QUANTITY

    def test_delivered_quantity_when_nothing_produced(self, resolver):
        item = _line(
            quantity_ordered=5,
            retail_unit_price="4",
            quantity_produced="0",
            quantity_delivered="2",
            delivery_status="PARTIALLY_DELIVERED",
        )

        assert resolver.resolve(item).final_total == Decimal("8")

    def test_pending_line_final_equals_initial(self, resolver):
        item = _line(quantity_ordered=3, initial_retail_total="30")

        result = resolver.resolve(item)

        assert result.unit_price == Decimal("10")
        assert result.final_total == result.initial_total == Decimal("30")
        assert result.final_source is FinalTotalSource.PENDING_FALLBACK
        assert not result.price_changed

    def test_no_data_resolves_to_zeros(self, resolver):
        result = resolver.resolve(_line(quantity_ordered=1))

        assert (result.unit_price, result.initial_total, result.final_total) == (
            Decimal("0"),
            Decimal("0"),
            Decimal("0"),
        )

    def test_is_stale_backend_zero(self):
        assert is_stale_backend_zero(_line(final_retail_total=0, quantity_delivered=1))
        assert is_stale_backend_zero(
            _line(final_retail_total=0, production_status="PARTIALLY_COMPLETED")
        )
        assert not is_stale_backend_zero(_line(final_retail_total=0))
        assert not is_stale_backend_zero(
            _line(final_retail_total=5, production_status="COMPLETED")
        )


class TestPriceChanged:
    """Half-cent change threshold."""

    @pytest.mark.parametrize(
        "final, expected",
        [("10.004", False), ("10.005", True), ("9.995", True), ("10", False)],
    )
    def test_threshold(self, final, expected):
        assert price_changed(Decimal("10"), Decimal(final)) is expected

    def test_negative_threshold_rejected(self):
        with pytest.raises(ValueError):
            PriceResolver(Decimal("-0.01"))

    def test_from_config(self):
        resolver = PriceResolver.from_config(get_active_config())

        assert resolver.change_threshold == Decimal("0.005")
        assert resolver.discard_stale_zero is True
        assert resolver.format(Decimal("1234.50")) == "1,234.5 AED"


class TestFormat:
    """Display formatting driven by the pricing config."""

    def test_non_default_config_changes_output(self, tmp_path):
        path = tmp_path / "usd.yaml"
        path.write_text(
            "config_id: USD-SHOP\n"
            "pricing:\n"
            "  currency: usd\n"
            "  min_fraction_digits: 2\n"
            "  max_fraction_digits: 3\n"
        )

        resolver = PriceResolver.from_config(get_active_config(path))

        assert resolver.format(Decimal("1234.5")) == "1,234.50 USD"
        assert resolver.format(Decimal("0.1235")) == "0.124 USD"
        assert resolver.format(None) == "-"

    def test_formats_resolved_total(self):
        resolver = PriceResolver(currency="EUR", min_fraction_digits=2)
        result = resolver.resolve(_line(quantity_ordered=3, initial_retail_total="30"))

        assert resolver.format(result.final_total) == "30.00 EUR"

    def test_invalid_fraction_digits(self):
        with pytest.raises(ValueError):
            PriceResolver(min_fraction_digits=3, max_fraction_digits=2)


class TestResolveOrder:
    """Order-level sums."""

    def test_sums_lines(self, resolver):
        lines = [
            _line(id="a", quantity_ordered=2, initial_retail_total="20"),
            _line(id="b", quantity_ordered=1, initial_retail_total="15", delivery_status="FAILED"),
        ]

        summary = resolver.resolve_order(lines)

        assert [line.item_id for line in summary.lines] == ["a", "b"]
        assert summary.initial_total == Decimal("35")
        assert summary.final_total == Decimal("20")
        assert summary.price_changed

    def test_empty_order(self, resolver):
        summary = resolver.resolve_order([])

        assert summary.lines == ()
        assert summary.final_total == Decimal("0")
        assert not summary.price_changed


class TestDisplayAmounts:
    """Role-aware list amounts."""

    def test_wholesale_view(self):
        item = _line(
            quantity_ordered=3,
            wholesale_unit_price="6",
            wholesale_total="18",
            retail_unit_price="8",
            retail_total="24",
        )

        assert display_amounts(item, PriceView.WHOLESALE).total == Decimal("18")
        assert display_amounts(item, PriceView.RETAIL).unit == Decimal("8")

    def test_total_computed_when_missing(self):
        item = _line(quantity_ordered=3, unit_price="5")

        amounts = display_amounts(item, PriceView.WHOLESALE)

        assert amounts.unit == Decimal("5")
        assert amounts.total == Decimal("15")

    def test_order_totals_final_falls_back_to_initial(self):
        snapshot = OrderTotalsSnapshot.from_payload({
            "initialRetailTotalAmount": 120,
            "initialWholesaleTotalAmount": "90",
            "finalWholesaleTotalAmount": "80.5",
        })

        retail = order_display_totals(snapshot, PriceView.RETAIL)
        wholesale = order_display_totals(snapshot, PriceView.WHOLESALE)

        assert (retail.initial, retail.final) == (Decimal("120"), Decimal("120"))
        assert (wholesale.initial, wholesale.final) == (Decimal("90"), Decimal("80.5"))

    def test_order_totals_missing(self):
        totals = order_display_totals(OrderTotalsSnapshot(), PriceView.RETAIL)

        assert (totals.initial, totals.final) == (Decimal("0"), Decimal("0"))


class TestPayloadIntegration:
    """End-to-end from backend payloads."""

    def test_payload_with_string_numbers(self, resolver):
        item = OrderLineItem.from_payload({
            "id": 17,
            "quantity": "4",
            "retailUnitPrice": "12.5",
            "initialRetailTotalPrice": "50",
            "finalRetailTotalPrice": 0,
            "producedQuantity": "4",
            "productionStatus": "COMPLETED",
            "deliveryStatus": "unknown-status",
        })

        result = resolver.resolve(item)

        assert item.id == "17"
        assert item.delivery_status is None
        assert result.final_total == Decimal("50")
        assert result.final_source is FinalTotalSource.EFFECTIVE_QUANTITY
        assert item.production_status is ProductionStatus.COMPLETED
        assert not result.price_changed

    def test_delivery_status_enum_preserved(self):
        item = OrderLineItem.from_payload({"id": "x", "deliveryStatus": "partial"})

        assert item.delivery_status is DeliveryStatus.PARTIAL
