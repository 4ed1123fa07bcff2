"""Parsing helpers shared by the group and event adapters."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from split_kernel.config import KernelConfig
from split_kernel.domain.values import Money
from split_kernel.exceptions import UnsupportedRecordError


def parse_amount(record_id: str, value: Any, decimal_places: int) -> Money:
    """
    Decimal strings and ints are parsed exactly. Floats (JSON numbers from
    legacy records) are rounded half-up to ``decimal_places`` first; this is
    the one place a float is ever looked at.
    """
    if value is None:
        raise UnsupportedRecordError(record_id, "amount is missing")
    if isinstance(value, float):
        value = Decimal(repr(value)).quantize(Decimal(1).scaleb(-decimal_places), rounding=ROUND_HALF_UP)
    try:
        return Money.parse(value, decimal_places)
    except (TypeError, ValueError) as e:
        raise UnsupportedRecordError(record_id, f"bad amount {value!r}: {e}") from e


def parse_timestamp(record_id: str, value: Any) -> datetime:
    """ISO date or datetime; naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as e:
            raise UnsupportedRecordError(record_id, f"bad date {value!r}") from e
    else:
        raise UnsupportedRecordError(record_id, "date is missing")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def require(record: Mapping[str, Any], key: str) -> Any:
    if record.get(key) in (None, ""):
        raise UnsupportedRecordError(str(record.get("id", "?")), f"{key} is missing")
    return record[key]


class MemberResolver:
    """
    Maps the hosting app's "current user" alias onto a real member id.

    The alias is resolved here, once, so no identity is special inside the
    kernel.
    """

    def __init__(self, local_member_id: str | None, alias: str = "me"):
        self.local_member_id = local_member_id
        self.alias = alias

    @classmethod
    def from_config(cls, config: KernelConfig, local_member_id: str | None = None) -> MemberResolver:
        return cls(local_member_id, config.local_member_alias)

    def __call__(self, record_id: str, member_id: str | None) -> str:
        if not member_id:
            raise UnsupportedRecordError(record_id, "member reference is missing")
        if member_id == self.alias:
            if self.local_member_id is None:
                raise UnsupportedRecordError(
                    record_id, f"refers to the current user ({self.alias!r}) but none is configured"
                )
            return self.local_member_id
        return member_id
