"""Wire formats shared by the BIND endpoints: query strings, amounts, dates."""
from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping, Optional, Union
from urllib.parse import urlencode

QueryValue = Union[str, int, float, bool]

_CENTS = Decimal("0.01")


def _query_value(value: QueryValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_query(params: Optional[Mapping[str, QueryValue]]) -> str:
    """Encode ``params`` in insertion order; empty string when there is nothing to send."""
    if not params:
        return ""
    return urlencode([(key, _query_value(value)) for key, value in params.items()])


def format_amount(amount: Union[Decimal, int, float, str]) -> str:
    """Two-decimal string, rounding half away from zero (``1000`` -> ``"1000.00"``)."""
    value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    return str(value.quantize(_CENTS, rounding=ROUND_HALF_UP))


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""
    return _as_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_date(value: Union[date, datetime]) -> str:
    """Calendar date (``YYYY-MM-DD``); datetimes are converted to UTC first."""
    if isinstance(value, datetime):
        return _as_utc(value).date().isoformat()
    return value.isoformat()
