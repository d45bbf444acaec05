"""
Conversion of raw export records into canonical transactions.
"""

import logging
import re
from datetime import date, datetime

from .base_parser import get_profile
from .models import CanonicalTransaction, FormatTag, RawTransaction, TransactionState

logger = logging.getLogger(__name__)

# ISO 4217 active codes, including funds and precious metals
ISO_CURRENCIES = frozenset(
    """
    AED AFN ALL AMD ANG AOA ARS AUD AWG AZN BAM BBD BDT BGN BHD BIF BMD BND BOB
    BOV BRL BSD BTN BWP BYN BZD CAD CDF CHE CHF CHW CLF CLP CNY COP COU CRC CUP
    CVE CZK DJF DKK DOP DZD EGP ERN ETB EUR FJD FKP GBP GEL GHS GIP GMD GNF GTQ
    GYD HKD HNL HTG HUF IDR ILS INR IQD IRR ISK JMD JOD JPY KES KGS KHR KMF KPW
    KRW KWD KYD KZT LAK LBP LKR LRD LSL LYD MAD MDL MGA MKD MMK MNT MOP MRU MUR
    MVR MWK MXN MXV MYR MZN NAD NGN NIO NOK NPR NZD OMR PAB PEN PGK PHP PKR PLN
    PYG QAR RON RSD RUB RWF SAR SBD SCR SDG SEK SGD SHP SLE SLL SOS SRD SSP STN
    SVC SYP SZL THB TJS TMT TND TOP TRY TTD TWD TZS UAH UGX USD USN UYI UYU UYW
    UZS VED VES VND VUV WST XAF XAG XAU XBA XBB XBC XBD XCD XCG XDR XOF XPD XPF
    XPT XSU XTS XUA XXX YER ZAR ZMW ZWG ZWL
    """.split(),
)

WHITESPACE_RE = re.compile(r"\s+")


class NormalizationError(Exception):
    """Exception raised when a raw record cannot be normalized."""

    def __init__(
        self,
        detail: str,
        source: str | None = None,
        position: int | None = None,
    ):
        self.detail = detail
        self.source = source
        self.position = position
        where = source or "<input>"
        if position is not None:
            where = f"{where}, record {position}"
        super().__init__(f"{where}: {detail}")


class InvalidDateError(NormalizationError):
    """Exception raised when a date does not match the format's date layout."""


class UnknownCurrencyError(NormalizationError):
    """Exception raised when a currency is not an ISO 4217 code."""


def clean_iban(value: str | None) -> str | None:
    """IBAN without whitespace, upper case."""
    if value is None:
        return None
    cleaned = WHITESPACE_RE.sub("", value).upper()
    return cleaned or None


def clean_identifier(value: str | None) -> str | None:
    """Card label or SEPA identifier trimmed and upper case."""
    if value is None:
        return None
    cleaned = WHITESPACE_RE.sub(" ", value).strip().upper()
    return cleaned or None


def _clean_text(value: str | None) -> str:
    if not value:
        return ""
    return WHITESPACE_RE.sub(" ", value).strip()


def _parse_date(
    value: str,
    layout: str,
    source: str | None,
    position: int | None,
) -> date:
    try:
        return datetime.strptime(value.strip(), layout).date()
    except ValueError as e:
        raise InvalidDateError(
            f"Date '{value}' does not match layout '{layout}'",
            source,
            position,
        ) from e


def normalize(
    raw: RawTransaction,
    format_tag: FormatTag,
    source: str | None = None,
) -> CanonicalTransaction:
    """
    Convert a raw record into the canonical transaction shape.

    Args:
        raw: Record produced by the parser for ``format_tag``
        format_tag: Export format the record came from
        source: File name used in error messages

    Returns:
        CanonicalTransaction with a negative amount for money leaving the own account

    Raises:
        InvalidDateError: If a date does not match the format's layout
        UnknownCurrencyError: If the currency is not an ISO 4217 code
    """
    profile = get_profile(format_tag)

    currency = raw.currency.strip().upper()
    if currency not in ISO_CURRENCIES:
        raise UnknownCurrencyError(
            f"Unknown currency code '{raw.currency}'",
            source,
            raw.position,
        )

    booking_date = _parse_date(raw.date, profile.date_layout, source, raw.position)
    valuation_date = None
    if raw.valuation_date:
        valuation_date = _parse_date(
            raw.valuation_date,
            profile.date_layout,
            source,
            raw.position,
        )

    amount = -raw.amount if profile.invert_sign else raw.amount

    state = TransactionState.CLEARED
    if profile.cleared_states is not None:
        status = (raw.status or "").strip().upper()
        if status not in profile.cleared_states:
            state = TransactionState.PENDING

    return CanonicalTransaction(
        booking_date=booking_date,
        amount=amount,
        currency=currency,
        counterparty=_clean_text(raw.description),
        memo=_clean_text(raw.memo),
        iban=clean_iban(raw.iban),
        card_label=clean_identifier(raw.card_label),
        creditor_id=clean_identifier(raw.creditor_id),
        mandate_id=clean_identifier(raw.mandate_id),
        code=raw.code,
        valuation_date=valuation_date,
        state=state,
        kind=raw.kind.strip().upper() if raw.kind else None,
        category=_clean_text(raw.category) or None,
        fee=raw.fee,
        tags=raw.tags,
    )
