"""JSONFormatter tests — domain extras surfaced, absent ones omitted."""

import json
import logging
from decimal import Decimal

from tramites.infrastructure.observability import JSONFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "tramites.services.payment_processor", logging.WARNING, __file__, 1,
        "Payment declined", None, None,
    )
    record.__dict__.update(extra)
    return record


def test_extras_included():
    line = JSONFormatter().format(_record(procedure_id=3, attempt=1, error_code="DECLINED"))
    log = json.loads(line)

    assert log["level"] == "WARNING"
    assert log["message"] == "Payment declined"
    assert log["procedure_id"] == 3
    assert log["error_code"] == "DECLINED"
    assert "debt_id" not in log


def test_non_json_values_stringified():
    log = json.loads(JSONFormatter().format(_record(receipt_id=Decimal("1"))))
    assert log["receipt_id"] == "1"
