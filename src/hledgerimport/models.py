"""
Data models for the hledger import pipeline.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum


class FormatTag(Enum):
    """Supported bank export formats."""

    REVOLUT = "revolut"
    ERSTE = "erste"
    CARDCOMPLETE = "cardcomplete"
    FLATEX_CSV = "flatex_csv"
    FLATEX_PDF = "flatex_pdf"


class TransactionState(Enum):
    """Transaction state marker in the journal header."""

    CLEARED = "*"
    PENDING = "!"


class RuleKind(Enum):
    """Rule tiers in evaluation order, and the fee entries split off a transaction."""

    IBAN = "iban"
    CARD = "card"
    MANDATE = "mandate"
    CREDITOR = "creditor"
    TEXT = "text"
    FEE = "fee"


@dataclass(frozen=True)
class RawTransaction:
    """A transaction as extracted from a bank export, before normalization."""

    position: int
    date: str
    amount: Decimal
    currency: str
    description: str
    memo: str = ""
    iban: str | None = None
    card_label: str | None = None
    creditor_id: str | None = None
    mandate_id: str | None = None
    code: str | None = None
    valuation_date: str | None = None
    status: str | None = None
    kind: str | None = None
    category: str | None = None
    fee: Decimal | None = None
    tags: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class CanonicalTransaction:
    """Format independent transaction. Negative amounts leave the own account."""

    booking_date: date
    amount: Decimal
    currency: str
    counterparty: str
    memo: str = ""
    iban: str | None = None
    card_label: str | None = None
    creditor_id: str | None = None
    mandate_id: str | None = None
    code: str | None = None
    valuation_date: date | None = None
    state: TransactionState = TransactionState.CLEARED
    kind: str | None = None
    category: str | None = None
    # charged on top of the amount, positive
    fee: Decimal | None = None
    tags: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class ResolvedTransaction:
    """A canonical transaction with both posting accounts assigned."""

    transaction: CanonicalTransaction
    own_account: str
    counterparty_account: str
    description: str
    note: str | None = None
    matched_rule: RuleKind | None = None

    @property
    def unmatched(self) -> bool:
        """True if the counterparty account came from the transfer fallback."""
        return self.matched_rule is None


@dataclass(frozen=True)
class Posting:
    """One side of a journal entry."""

    account: str
    amount: Decimal
    currency: str


@dataclass(frozen=True)
class JournalEntry:
    """A balanced two-posting journal entry."""

    date: date
    description: str
    postings: tuple[Posting, Posting]
    state: TransactionState = TransactionState.CLEARED
    code: str | None = None
    comments: tuple[str, ...] = ()


@dataclass
class ImportReport:
    """Result of converting one input file."""

    source: str | None
    resolved: list[ResolvedTransaction] = field(default_factory=list)
    errors: list[Exception] = field(default_factory=list)
    journal: str = ""

    @property
    def unmatched(self) -> list[ResolvedTransaction]:
        return [r for r in self.resolved if r.unmatched]
