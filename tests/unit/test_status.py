"""Tests for status enums and parsing."""

import pytest

from kitchen_kernel.domain.status import (
    DeliveryStatus,
    ProductionStatus,
    ProductionUnit,
    parse_enum,
    parse_enum_or_none,
)
from kitchen_kernel.exceptions import InvalidStatusValueError, ValidationError


class TestProductionStatus:
    @pytest.mark.parametrize(
        "status, terminal",
        [
            (ProductionStatus.PENDING, False),
            (ProductionStatus.PARTIALLY_COMPLETED, False),
            (ProductionStatus.COMPLETED, True),
            (ProductionStatus.CANCELLED, True),
        ],
    )
    def test_terminal_states(self, status, terminal):
        assert status.is_terminal is terminal

    def test_labels(self):
        assert ProductionStatus.PARTIALLY_COMPLETED.label == "Partially Completed"
        assert DeliveryStatus.READY_FOR_DELIVERY.label == "Ready for Delivery"
        assert DeliveryStatus.PARTIAL.label == "Partial Delivery"

    def test_every_member_has_label(self):
        for member in list(ProductionStatus) + list(DeliveryStatus):
            assert member.label


class TestParseEnum:
    def test_case_and_whitespace(self):
        assert parse_enum(ProductionStatus, " partially_completed ") is (
            ProductionStatus.PARTIALLY_COMPLETED
        )
        assert parse_enum(ProductionUnit, "kg") is ProductionUnit.KG

    def test_member_passthrough(self):
        assert parse_enum(DeliveryStatus, DeliveryStatus.FAILED) is DeliveryStatus.FAILED

    @pytest.mark.parametrize("value", ["DONE", "", None, 3])
    def test_unknown_raises(self, value):
        with pytest.raises(InvalidStatusValueError) as exc_info:
            parse_enum(ProductionStatus, value)

        assert exc_info.value.kind == "ProductionStatus"
        assert isinstance(exc_info.value, ValidationError)

    @pytest.mark.parametrize("value", ["DONE", "", "   ", None])
    def test_lenient_returns_none(self, value):
        assert parse_enum_or_none(DeliveryStatus, value) is None

    def test_lenient_parses_known(self):
        assert parse_enum_or_none(DeliveryStatus, "delivered") is DeliveryStatus.DELIVERED
