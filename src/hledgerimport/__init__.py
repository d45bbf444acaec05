"""
hledger import - converts bank exports into hledger journal entries.

This package parses Revolut, Erste Bank, Cardcomplete and flatex exports,
resolves counterparty accounts through configurable matching rules and
renders balanced double-entry transactions.
"""

from .account_resolver import AccountResolver
from .base_parser import (
    BankParser,
    MalformedRecordError,
    ParseError,
    ParseResult,
    UnsupportedVersionError,
    get_parser,
)
from .cardcomplete_parser import CardcompleteXmlParser
from .config import ConfigError, ImporterConfig, load_config
from .erste_parser import ErsteJsonParser
from .flatex_parser import FlatexCsvParser, FlatexPdfParser
from .importer import Importer
from .journal_emitter import JournalEmitter, SummaryFormatter
from .models import (
    CanonicalTransaction,
    FormatTag,
    ImportReport,
    JournalEntry,
    RawTransaction,
    ResolvedTransaction,
)
from .normalizer import (
    InvalidDateError,
    NormalizationError,
    UnknownCurrencyError,
    normalize,
)
from .revolut_parser import RevolutCsvParser

__version__ = "0.1.0"
__all__ = [
    "AccountResolver",
    "BankParser",
    "CanonicalTransaction",
    "CardcompleteXmlParser",
    "ConfigError",
    "ErsteJsonParser",
    "FlatexCsvParser",
    "FlatexPdfParser",
    "FormatTag",
    "ImportReport",
    "Importer",
    "ImporterConfig",
    "InvalidDateError",
    "JournalEmitter",
    "JournalEntry",
    "MalformedRecordError",
    "NormalizationError",
    "ParseError",
    "ParseResult",
    "RawTransaction",
    "ResolvedTransaction",
    "RevolutCsvParser",
    "SummaryFormatter",
    "UnknownCurrencyError",
    "UnsupportedVersionError",
    "get_parser",
    "load_config",
    "normalize",
]
