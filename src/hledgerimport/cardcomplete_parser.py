"""
Adapter for Cardcomplete credit card XML exports.

One ``TRANSACTION`` element per card transaction below the document root,
with bilingual child element names, e.g. ``BETRAG-AMOUNT`` (``-3,70``),
``DATUM-DATE`` and ``BUCHUNGSDATUM-POSTING_DATE`` (``25.12.2023``).
"""

import logging
import xml.etree.ElementTree as ET
from collections.abc import Iterator
from typing import Any

from .base_parser import (
    BankParser,
    FormatProfile,
    UnsupportedVersionError,
    optional,
    parse_decimal,
    register_parser,
)
from .models import FormatTag, RawTransaction

logger = logging.getLogger(__name__)

TRANSACTION_TAG = "TRANSACTION"


@register_parser
class CardcompleteXmlParser(BankParser):
    """Parser for Cardcomplete XML exports."""

    profile = FormatProfile(
        tag=FormatTag.CARDCOMPLETE,
        title="cardcomplete import",
        date_layout="%d.%m.%Y",
        cleared_states=frozenset({"VERBUCHT"}),
    )

    def _decode(self, raw: bytes, source: str | None) -> bytes:
        # the XML declaration names the encoding
        return raw

    def _records(self, text: str | bytes, source: str | None) -> Iterator[tuple[int, Any]]:
        try:
            root = ET.fromstring(text)
        except ET.ParseError as e:
            raise UnsupportedVersionError(f"File is not valid XML: {e}", source) from e

        elements = list(root)
        transactions = [element for element in elements if element.tag == TRANSACTION_TAG]
        if elements and not transactions:
            raise UnsupportedVersionError(
                f"No {TRANSACTION_TAG} elements below <{root.tag}>",
                source,
            )

        for position, element in enumerate(transactions, start=1):
            yield position, {child.tag: (child.text or "").strip() for child in element}

    def _convert(self, position: int, record: dict[str, str]) -> RawTransaction:
        currency = record["WAEHRUNG-CURRENCY"]
        amount = parse_decimal(record["BETRAG-AMOUNT"], ",", ".")
        merchant = record["HAENLDERNAME-MERCHANT_NAME"]
        if not record["BUCHUNGSDATUM-POSTING_DATE"]:
            raise ValueError("Posting date is empty")

        tags = []
        category = optional(record.get("BRANCHE-CATEGORY"))
        if category:
            tags.append(("category", category))
        place = optional(record.get("ORT-PLACE"))
        if place:
            tags.append(("location", place))
        time = optional(record.get("ZEIT-TIME"))
        if time:
            tags.append(("time", time))

        return RawTransaction(
            position=position,
            date=record["BUCHUNGSDATUM-POSTING_DATE"],
            amount=amount,
            currency=currency,
            description=merchant,
            card_label=optional(record.get("KARTENNUMMER-CARD_NUMBER")),
            valuation_date=optional(record.get("DATUM-DATE")),
            status=record.get("STATUS-STATUS", ""),
            category=category,
            tags=tuple(tags),
        )
