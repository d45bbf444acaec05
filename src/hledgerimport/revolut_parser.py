"""
Adapter for Revolut CSV account statements.

Comma separated, UTF-8, one header row::

    Type,Product,Started Date,Completed Date,Description,Amount,Fee,Currency,State,Balance

Dates are ``YYYY-MM-DD HH:MM:SS``, amounts use ``.`` as decimal separator and
are signed from the account holder's point of view.
"""

import logging
from collections.abc import Iterator
from typing import Any

from .base_parser import (
    BankParser,
    FormatProfile,
    optional,
    parse_decimal,
    register_parser,
)
from .csv_parser import read_csv_records
from .models import FormatTag, RawTransaction

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = (
    "Type",
    "Started Date",
    "Completed Date",
    "Description",
    "Amount",
    "Fee",
    "Currency",
    "State",
)


@register_parser
class RevolutCsvParser(BankParser):
    """Parser for Revolut CSV exports."""

    profile = FormatProfile(
        tag=FormatTag.REVOLUT,
        title="Revolut import",
        date_layout="%Y-%m-%d %H:%M:%S",
        cleared_states=frozenset({"COMPLETED"}),
    )

    def _records(self, text: str, source: str | None) -> Iterator[tuple[int, Any]]:
        return read_csv_records(text, source, ",", REQUIRED_COLUMNS)

    def _convert(self, position: int, record: dict[str, str]) -> RawTransaction:
        currency = record["Currency"].strip()
        amount = parse_decimal(record["Amount"])
        fee = parse_decimal(record["Fee"]) if record["Fee"].strip() else None

        # pending transactions have no completion date yet
        booking = optional(record["Completed Date"]) or optional(record["Started Date"])
        if booking is None:
            raise ValueError("Neither completion nor start date is set")

        tags = [("revolut_type", record["Type"].strip())]
        if fee:
            tags.append(("fee", f"{fee} {currency}"))
        else:
            fee = None

        return RawTransaction(
            position=position,
            date=booking,
            amount=amount,
            currency=currency,
            description=record["Description"].strip(),
            valuation_date=optional(record["Started Date"]),
            status=record["State"],
            kind=optional(record["Type"]),
            fee=fee,
            tags=tuple(tags),
        )
