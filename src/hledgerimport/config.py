"""
Importer configuration: account tables and matching rules.
"""

import json
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .models import FormatTag, RuleKind
from .normalizer import clean_iban, clean_identifier

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "HLEDGER_IMPORT_CONFIG"
DEFAULT_CONFIG_PATH = Path("~/.config/hledger-import/config.json")


class ConfigError(Exception):
    """Exception raised when configuration data is structurally invalid."""


class InvalidRuleError(ConfigError):
    """Exception raised when a text-search pattern is not a valid regex."""


class FileLoadingError(Exception):
    """Exception raised when a configuration file cannot be loaded."""


@dataclass(frozen=True)
class IbanRule:
    """Maps an IBAN to a ledger account."""

    iban: str
    account: str
    note: str | None = None
    position: int = 0
    kind = RuleKind.IBAN

    def __post_init__(self):
        object.__setattr__(self, "iban", clean_iban(self.iban))

    def matches(self, transaction) -> bool:
        return transaction.iban is not None and transaction.iban == self.iban


@dataclass(frozen=True)
class CardRule:
    """Maps a card label to a ledger account."""

    card: str
    account: str
    note: str | None = None
    position: int = 0
    kind = RuleKind.CARD

    def __post_init__(self):
        object.__setattr__(self, "card", clean_identifier(self.card))

    def matches(self, transaction) -> bool:
        return transaction.card_label is not None and transaction.card_label == self.card


@dataclass(frozen=True)
class MandateRule:
    """Maps a SEPA mandate id to a ledger account."""

    mandate_id: str
    account: str
    note: str | None = None
    position: int = 0
    kind = RuleKind.MANDATE

    def __post_init__(self):
        object.__setattr__(self, "mandate_id", clean_identifier(self.mandate_id))

    def matches(self, transaction) -> bool:
        return (
            transaction.mandate_id is not None
            and transaction.mandate_id == self.mandate_id
        )


@dataclass(frozen=True)
class CreditorRule:
    """Maps a SEPA creditor id to a ledger account."""

    creditor_id: str
    account: str
    note: str | None = None
    position: int = 0
    kind = RuleKind.CREDITOR

    def __post_init__(self):
        object.__setattr__(self, "creditor_id", clean_identifier(self.creditor_id))

    def matches(self, transaction) -> bool:
        return (
            transaction.creditor_id is not None
            and transaction.creditor_id == self.creditor_id
        )


@dataclass(frozen=True)
class TextRule:
    """
    Searches transaction text fields and maps hits to a ledger account.

    With ``regex`` set the pattern is a case-insensitive regular expression,
    otherwise a case-insensitive substring.
    """

    pattern: str
    account: str
    note: str | None = None
    position: int = 0
    fields: tuple[str, ...] = ("counterparty", "memo")
    regex: bool = True
    compiled: re.Pattern | None = field(default=None, compare=False, repr=False)
    kind = RuleKind.TEXT

    def __post_init__(self):
        source = self.pattern if self.regex else re.escape(self.pattern)
        try:
            compiled = re.compile(source, re.IGNORECASE)
        except re.error as e:
            raise InvalidRuleError(
                f"Invalid search pattern '{self.pattern}' for account '{self.account}': {e}",
            ) from e
        object.__setattr__(self, "compiled", compiled)

    def matches(self, transaction) -> bool:
        for name in self.fields:
            value = getattr(transaction, name, None)
            if value and self.compiled.search(value):
                return True
        return False


MappingRule = IbanRule | CardRule | MandateRule | CreditorRule | TextRule


@dataclass(frozen=True)
class TransferAccounts:
    """Fallback accounts for transactions no rule matches."""

    bank: str
    cash: str


@dataclass(frozen=True)
class PayeeFilter:
    """Replaces a fragment of the counterparty name."""

    pattern: str
    replacement: str

    def apply(self, payee: str) -> str:
        return payee.replace(self.pattern, self.replacement)


@dataclass(frozen=True)
class ImporterConfig:
    """Immutable importer configuration."""

    transfer_accounts: TransferAccounts
    ibans: tuple[IbanRule, ...] = ()
    cards: tuple[CardRule, ...] = ()
    mandates: tuple[MandateRule, ...] = ()
    creditors: tuple[CreditorRule, ...] = ()
    mapping: tuple[TextRule, ...] = ()
    creditor_and_debitor_mapping: tuple[TextRule, ...] = ()
    categories: tuple[TextRule, ...] = ()
    payee_filters: tuple[PayeeFilter, ...] = ()
    format_accounts: tuple[tuple[FormatTag, str], ...] = ()
    fee_accounts: tuple[tuple[FormatTag, str], ...] = ()

    @property
    def text_rules(self) -> tuple[TextRule, ...]:
        return self.mapping + self.creditor_and_debitor_mapping + self.categories

    def rule_tiers(self) -> list[tuple[MappingRule, ...]]:
        """Rule sequences in fixed evaluation priority."""
        return [self.ibans, self.cards, self.mandates, self.creditors, self.text_rules]

    def account_for_iban(self, iban: str | None) -> str | None:
        if not iban:
            return None
        iban = clean_iban(iban)
        for rule in self.ibans:
            if rule.iban == iban:
                return rule.account
        return None

    def account_for_card(self, card: str | None) -> str | None:
        if not card:
            return None
        card = clean_identifier(card)
        for rule in self.cards:
            if rule.card == card:
                return rule.account
        return None

    def account_for_format(self, format_tag: FormatTag) -> str | None:
        for tag, account in self.format_accounts:
            if tag is format_tag:
                return account
        return None

    def account_for_fee(self, format_tag: FormatTag) -> str | None:
        """Account charged with the fees a format reports next to the amount."""
        for tag, account in self.fee_accounts:
            if tag is format_tag:
                return account
        return None

    def filter_payee(self, payee: str) -> str:
        for payee_filter in self.payee_filters:
            payee = payee_filter.apply(payee)
        return payee

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ImporterConfig":
        """Build the configuration from already-parsed data."""
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a mapping")

        transfer = data.get("transfer_accounts")
        if not isinstance(transfer, dict) or not {"bank", "cash"} <= transfer.keys():
            raise ConfigError(
                "transfer_accounts with 'bank' and 'cash' accounts is required",
            )

        sepa = data.get("sepa") or {}
        filters = (data.get("filter") or {}).get("payee", [])

        try:
            ibans = tuple(
                IbanRule(
                    iban=item["iban"],
                    account=item["account"],
                    note=item.get("note"),
                    position=i,
                )
                for i, item in enumerate(data.get("ibans", []))
            )
            cards = tuple(
                CardRule(
                    card=item["card"],
                    account=item["account"],
                    note=item.get("note"),
                    position=i,
                )
                for i, item in enumerate(data.get("cards", []))
            )
            mandates = tuple(
                MandateRule(
                    mandate_id=item["mandate_id"],
                    account=item["account"],
                    note=item.get("note"),
                    position=i,
                )
                for i, item in enumerate(sepa.get("mandates", []))
            )
            creditors = tuple(
                CreditorRule(
                    creditor_id=item["creditor_id"],
                    account=item["account"],
                    note=item.get("note"),
                    position=i,
                )
                for i, item in enumerate(sepa.get("creditors", []))
            )
            mapping = tuple(
                TextRule(
                    pattern=item["search"],
                    account=item["account"],
                    note=item.get("note"),
                    position=i,
                )
                for i, item in enumerate(data.get("mapping", []))
            )
            payees = tuple(
                TextRule(
                    pattern=item["payee"],
                    account=item["account"],
                    position=i,
                    fields=("counterparty",),
                    regex=False,
                )
                for i, item in enumerate(data.get("creditor_and_debitor_mapping", []))
            )
            categories = tuple(
                TextRule(
                    pattern=item["pattern"],
                    account=item["account"],
                    note=item.get("note"),
                    position=i,
                    fields=("category",),
                    regex=False,
                )
                for i, item in enumerate(data.get("categories", []))
            )
            payee_filters = tuple(
                PayeeFilter(pattern=item["pattern"], replacement=item["replacement"])
                for item in filters
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise ConfigError(f"Invalid rule entry in configuration: {e}") from e

        format_accounts = []
        fee_accounts = []
        for tag in FormatTag:
            section = data.get(tag.value)
            if not isinstance(section, dict):
                continue
            if section.get("account"):
                format_accounts.append((tag, section["account"]))
            if section.get("fee_account"):
                fee_accounts.append((tag, section["fee_account"]))

        config = cls(
            transfer_accounts=TransferAccounts(
                bank=transfer["bank"],
                cash=transfer["cash"],
            ),
            ibans=ibans,
            cards=cards,
            mandates=mandates,
            creditors=creditors,
            mapping=mapping,
            creditor_and_debitor_mapping=payees,
            categories=categories,
            payee_filters=payee_filters,
            format_accounts=tuple(format_accounts),
            fee_accounts=tuple(fee_accounts),
        )
        logger.debug(
            f"Built configuration with {len(ibans)} IBAN, {len(cards)} card, "
            f"{len(mandates)} mandate, {len(creditors)} creditor and "
            f"{len(config.text_rules)} text rules",
        )
        return config


def default_config_path() -> Path:
    """Config file path from the environment, or the per-user default."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_PATH.expanduser()


def load_config(config_file: str | Path | None = None) -> ImporterConfig:
    """Load the importer configuration from a JSON file."""
    config_path = Path(config_file) if config_file else default_config_path()

    try:
        with open(config_path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in config file {config_path}: {e}")
        raise ConfigError(f"Invalid JSON in config file {config_path}: {e}") from e
    except OSError as e:
        logger.error(f"Failed to load config from {config_path}: {e}")
        raise FileLoadingError(
            f"Failed to load config from {config_path}: {e}",
        ) from e

    logger.info(f"Loaded configuration from {config_path}")
    return ImporterConfig.from_dict(data)
