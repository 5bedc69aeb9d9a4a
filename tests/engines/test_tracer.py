"""Tests for the engine tracer decorator."""

import json
import logging
from decimal import Decimal
from io import StringIO

import pytest

from kitchen_engines.tracer import compute_input_fingerprint, traced_engine
from kitchen_kernel.domain.status import ProductionStatus
from kitchen_kernel.logging_config import StructuredFormatter, configure_logging


@pytest.fixture
def trace_stream():
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    configure_logging(handler=handler)
    return stream


def _traces(stream: StringIO) -> list[dict]:
    records = [json.loads(line) for line in stream.getvalue().splitlines() if line]
    return [r for r in records if r.get("trace_type") == "KITCHEN_ENGINE_TRACE"]


@traced_engine("sample", "2.1", fingerprint_fields=("amount", "status"))
def _sample(amount, status=None):
    if amount < 0:
        raise ValueError("negative")
    return amount * 2


class TestFingerprint:
    def test_deterministic(self):
        args = {"amount": Decimal("2.50"), "status": ProductionStatus.PENDING}

        assert compute_input_fingerprint(("amount", "status"), args) == compute_input_fingerprint(
            ("amount", "status"), dict(reversed(list(args.items())))
        )

    def test_decimal_scale_insensitive(self):
        a = compute_input_fingerprint(("amount",), {"amount": Decimal("2.50")})
        b = compute_input_fingerprint(("amount",), {"amount": Decimal("2.5")})

        assert a == b
        assert len(a) == 16

    def test_missing_field_recorded_as_null(self):
        assert compute_input_fingerprint(("x",), {}) == compute_input_fingerprint(
            ("x",), {"x": None}
        )


class TestTracedEngine:
    def test_success_trace(self, trace_stream):
        assert _sample(Decimal("3"), status=ProductionStatus.PENDING) == Decimal("6")

        (trace,) = _traces(trace_stream)
        assert trace["engine_name"] == "sample"
        assert trace["engine_version"] == "2.1"
        assert trace["outcome"] == "ok"
        assert trace["input_fingerprint"] == compute_input_fingerprint(
            ("amount", "status"),
            {"amount": Decimal("3"), "status": ProductionStatus.PENDING},
        )

    def test_error_trace_and_propagation(self, trace_stream):
        with pytest.raises(ValueError, match="negative"):
            _sample(Decimal("-1"))

        (trace,) = _traces(trace_stream)
        assert trace["outcome"] == "error"

    def test_preserves_metadata(self):
        assert _sample.__name__ == "_sample"
