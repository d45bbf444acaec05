"""
Adapters for flatex exports: settlement account CSV and PDF invoice text.

Settlement account CSV (ISO-8859-1, ``;`` separated, one header row)::

    Buchungstag;Valuta;Empfänger;Zahlungspfl.;TA.Nr.;Buchungsinformationen;Betrag;

The unnamed last column holds the currency. Dates are ``DD.MM.YYYY``, amounts
use ``,`` as decimal and ``.`` as thousands separator, signed from the
holder's view.

PDF invoices are read as text (see ``pdf_text.extract_text``). Each order
starts with a line like::

    Nr.123456789/1  Kauf  iSh.Core MSCI World (IE00B4L5Y983/A0RPWH)

followed somewhere below by::

    Valuta   04.01.2024        Endbetrag zu Ihren Lasten     1.234,56 EUR

The invoice states the settlement from the bank's side: "zu Ihren Lasten"
(charged to the holder) and "zu Ihren Gunsten" (credited to the holder).
"""

import logging
import re
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
from .csv_parser import read_csv_records
from .models import FormatTag, RawTransaction

logger = logging.getLogger(__name__)

CSV_COLUMNS = (
    "Buchungstag",
    "Valuta",
    "Empfänger",
    "Zahlungspfl.",
    "TA.Nr.",
    "Buchungsinformationen",
    "Betrag",
)

IBAN_RE = re.compile(r"^[A-Z]{2}\d{2}[A-Z0-9]{10,30}$")

INVOICE_MARKER_RE = re.compile(r"Sammelabrechnung|Wertpapierabrechnung")
ORDER_RE = re.compile(
    r"^\s*Nr\.\s*(?P<code>\d+/\d+)\s+(?P<side>Kauf|Verkauf)\s+(?P<name>.+?)"
    r"\s*\((?P<isin>[A-Z]{2}[A-Z0-9]{9}\d)(?:/(?P<wkn>\w+))?\)\s*$",
)
VALUTA_RE = re.compile(r"Valuta\s+(?P<date>\d{2}\.\d{2}\.\d{4})")
EXECUTION_RE = re.compile(r"Ausführungstag\s*/\s*-zeit\s+(?P<date>\d{2}\.\d{2}\.\d{4})")
TOTAL_RE = re.compile(
    r"Endbetrag\s+zu\s+Ihren\s+(?P<direction>Lasten|Gunsten)\s+"
    r"(?P<amount>-?[\d.]+,\d+)\s+(?P<currency>[A-Z]{3})",
)


def partner_iban(value: str) -> str | None:
    """First IBAN in a ``IBAN/BIC`` style account column."""
    for part in value.split("/"):
        candidate = part.replace(" ", "").upper()
        if IBAN_RE.match(candidate):
            return candidate
    return None


@register_parser
class FlatexCsvParser(BankParser):
    """Parser for flatex settlement account CSV exports."""

    profile = FormatProfile(
        tag=FormatTag.FLATEX_CSV,
        title="flatex import",
        date_layout="%d.%m.%Y",
    )
    encoding = "iso-8859-1"

    def _records(self, text: str, source: str | None) -> Iterator[tuple[int, Any]]:
        return read_csv_records(text, source, ";", CSV_COLUMNS)

    def _convert(self, position: int, record: dict[str, str]) -> RawTransaction:
        columns = list(record)
        currency_index = columns.index("Betrag") + 1
        if currency_index >= len(columns):
            raise ValueError("Currency column after 'Betrag' is missing")
        currency = record[columns[currency_index]].strip()

        account_column = record["Zahlungspfl."].strip()
        tags = [("partner_iban", account_column)] if account_column else []

        return RawTransaction(
            position=position,
            date=record["Buchungstag"].strip(),
            amount=parse_decimal(record["Betrag"], ",", "."),
            currency=currency,
            description=record["Empfänger"].strip(),
            memo=record["Buchungsinformationen"].strip(),
            iban=partner_iban(account_column),
            code=optional(record["TA.Nr."]),
            valuation_date=optional(record["Valuta"]),
            tags=tuple(tags),
        )


@register_parser
class FlatexPdfParser(BankParser):
    """Parser for text extracted from flatex PDF invoices."""

    profile = FormatProfile(
        tag=FormatTag.FLATEX_PDF,
        title="flatex invoice import",
        date_layout="%d.%m.%Y",
        invert_sign=True,
    )

    def _records(self, text: str, source: str | None) -> Iterator[tuple[int, Any]]:
        if not INVOICE_MARKER_RE.search(text):
            raise UnsupportedVersionError(
                "Text does not look like a flatex invoice (no 'Sammelabrechnung' "
                "or 'Wertpapierabrechnung' heading)",
                source,
            )

        block: list[str] = []
        start = None
        for line_no, line in enumerate(text.splitlines(), start=1):
            if ORDER_RE.match(line):
                if start is not None:
                    yield start, block
                start, block = line_no, [line]
            elif start is not None:
                block.append(line)
        if start is None:
            raise UnsupportedVersionError("Invoice contains no order line", source)
        yield start, block

    def _convert(self, position: int, record: list[str]) -> RawTransaction:
        order = ORDER_RE.match(record[0])
        body = "\n".join(record[1:])

        valuta = VALUTA_RE.search(body)
        if not valuta:
            raise ValueError(f"No 'Valuta' date for order {order['code']}")
        total = TOTAL_RE.search(body)
        if not total:
            raise ValueError(f"No 'Endbetrag' line for order {order['code']}")

        amount = parse_decimal(total["amount"], ",", ".")
        if total["direction"] == "Gunsten":
            amount = -amount

        tags = [("isin", order["isin"])]
        if order["wkn"]:
            tags.append(("wkn", order["wkn"]))
        execution = EXECUTION_RE.search(body)
        if execution:
            tags.append(("execution", execution["date"]))

        name = order["name"].strip()
        return RawTransaction(
            position=position,
            date=valuta["date"],
            amount=amount,
            currency=total["currency"],
            description=name,
            memo=f"{order['side']} {name}",
            code=order["code"],
            kind=order["side"].upper(),
            tags=tuple(tags),
        )
