import json
import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from payments_log.core.exceptions import EventValidationError
from payments_log.core.models import EventTypeEnum

REQUIRED_FIELDS = (
    "user_id",
    "order_id",
    "event_type",
    "currency",
    "payment_amount",
    "payment_gateway",
    "payment_method",
)
INTEGER_FIELDS = ("user_id", "order_id")
NUMERIC_FIELDS = ("payment_amount",)
STRING_FIELDS = (
    "event_type",
    "currency",
    "gateway_transaction_id",
    "payment_gateway",
    "payment_method",
    "payment_metadata",
)

_INTEGER_RE = re.compile(r"^-?\d+$")


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


def _is_integer_like(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, str) and _INTEGER_RE.match(value.strip()) is not None


def _to_decimal(value: Any) -> Decimal | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal, str)):
        try:
            number = Decimal(str(value).strip())
        except InvalidOperation:
            return None
        return number if number.is_finite() else None
    return None


def find_problems(row: dict[str, Any]) -> list[str]:
    problems = []

    for field in REQUIRED_FIELDS:
        if _is_missing(row.get(field)):
            problems.append(f"Missing required field: {field}")

    for field in INTEGER_FIELDS:
        value = row.get(field)
        if not _is_missing(value) and not _is_integer_like(value):
            problems.append(f"Field {field} must be an integer, got {value!r}")

    for field in NUMERIC_FIELDS:
        value = row.get(field)
        if not _is_missing(value) and _to_decimal(value) is None:
            problems.append(f"Field {field} must be numeric, got {value!r}")

    for field in STRING_FIELDS:
        value = row.get(field)
        if value is not None and not isinstance(value, str):
            problems.append(f"Field {field} must be a string, got {type(value).__name__}")

    event_type = row.get("event_type")
    if isinstance(event_type, str) and event_type:
        if event_type not in {e.value for e in EventTypeEnum}:
            problems.append(f"Invalid event_type: {event_type!r}")

    currency = row.get("currency")
    if isinstance(currency, str) and currency:
        if len(currency) != 3 or not currency.isalpha():
            problems.append(f"Invalid currency code: {currency!r}")

    event_ts = row.get("event_ts")
    if event_ts is not None and not isinstance(event_ts, datetime):
        problems.append("Field event_ts must be a datetime")

    metadata = row.get("payment_metadata")
    if isinstance(metadata, str) and metadata:
        try:
            json.loads(metadata)
        except ValueError:
            problems.append("Field payment_metadata is not valid JSON")

    amount = _to_decimal(row.get("payment_amount"))
    if amount is not None and event_type == EventTypeEnum.PAYMENT and amount < 0:
        problems.append("Payment amount must not be negative")
    if amount is not None and event_type == EventTypeEnum.REFUND and amount > 0:
        problems.append("Refund amount must not be positive")

    return problems


def validate_event_row(row: dict[str, Any]) -> None:
    problems = find_problems(row)
    if problems:
        raise EventValidationError(problems)
