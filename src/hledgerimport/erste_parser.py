"""
Adapter for Erste Bank (George) JSON exports.

The file holds a JSON array with one object per transaction. Fields used::

    booking, valuation            "2024-06-03T00:00:00.000+0200"
    partnerName, reference, referenceNumber, receiverReference, note
    partnerAccount.iban
    amount.value, amount.precision, amount.currency   (-1500, 2, "EUR")
    cardNumber, sepaMandateId, sepaCreditorId

Amounts are integer minor units, already signed from the holder's view.
"""

import json
import logging
from collections.abc import Iterator
from decimal import Decimal
from typing import Any

from .base_parser import (
    BankParser,
    FormatProfile,
    MalformedRecordError,
    UnsupportedVersionError,
    optional,
    register_parser,
)
from .models import FormatTag, RawTransaction

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("booking", "amount", "referenceNumber")


@register_parser
class ErsteJsonParser(BankParser):
    """Parser for Erste Bank JSON exports."""

    profile = FormatProfile(
        tag=FormatTag.ERSTE,
        title="Erste Bank import",
        date_layout="%Y-%m-%dT%H:%M:%S.%f%z",
    )
    encoding = "utf-8-sig"

    def _records(self, text: str, source: str | None) -> Iterator[tuple[int, Any]]:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise UnsupportedVersionError(f"File is not valid JSON: {e}", source) from e

        if not isinstance(data, list):
            raise UnsupportedVersionError(
                "Expected a JSON array of transactions at the top level",
                source,
            )

        for position, item in enumerate(data, start=1):
            if not isinstance(item, dict):
                yield position, MalformedRecordError(
                    "Transaction entry is not a JSON object",
                    source,
                    position,
                )
                continue
            missing = [name for name in REQUIRED_FIELDS if item.get(name) is None]
            if missing:
                yield position, MalformedRecordError(
                    f"Missing fields: {', '.join(missing)}",
                    source,
                    position,
                )
                continue
            yield position, item

    def _convert(self, position: int, record: dict[str, Any]) -> RawTransaction:
        amount_data = record["amount"]
        value = amount_data["value"]
        precision = amount_data["precision"]
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"Amount value '{value}' is not an integer")
        if isinstance(precision, bool) or not isinstance(precision, int) or precision < 0:
            raise ValueError(f"Amount precision '{precision}' is not a non-negative integer")
        amount = Decimal(value).scaleb(-precision)

        partner_account = record.get("partnerAccount") or {}
        partner_iban = optional(partner_account.get("iban"))
        reference = optional(record.get("reference"))

        tags = []
        if reference:
            tags.append(("reference", reference))
        if partner_iban:
            tags.append(("partner_iban", partner_iban))
        for key in ("receiverReference", "sepaCreditorId", "sepaMandateId", "note"):
            value = optional(record.get(key))
            if value:
                tags.append((key, value))

        return RawTransaction(
            position=position,
            date=record["booking"],
            amount=amount,
            currency=str(amount_data["currency"]),
            description=optional(record.get("partnerName")) or reference or "",
            memo=reference or "",
            iban=partner_iban,
            card_label=optional(record.get("cardNumber")),
            creditor_id=optional(record.get("sepaCreditorId")),
            mandate_id=optional(record.get("sepaMandateId")),
            code=str(record["referenceNumber"]),
            valuation_date=optional(record.get("valuation")),
            tags=tuple(tags),
        )
