"""Unit tests for config.py."""

import json
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from hledgerimport.config import (
    ConfigError,
    FileLoadingError,
    ImporterConfig,
    InvalidRuleError,
    TextRule,
    default_config_path,
    load_config,
)
from hledgerimport.models import FormatTag, RuleKind


class TestImporterConfigFromDict:
    """Tests for ImporterConfig.from_dict."""

    def test_minimal_config(self):
        """Test that transfer accounts alone make a valid configuration."""
        config = ImporterConfig.from_dict(
            {"transfer_accounts": {"bank": "Assets:Bank", "cash": "Assets:Cash"}},
        )

        assert config.transfer_accounts.bank == "Assets:Bank"
        assert config.transfer_accounts.cash == "Assets:Cash"
        assert config.ibans == ()
        assert config.text_rules == ()

    def test_missing_transfer_accounts(self):
        """Test that transfer accounts are required."""
        with pytest.raises(ConfigError, match="transfer_accounts"):
            ImporterConfig.from_dict({"ibans": []})

    def test_incomplete_transfer_accounts(self):
        """Test that both transfer accounts are required."""
        with pytest.raises(ConfigError, match="transfer_accounts"):
            ImporterConfig.from_dict({"transfer_accounts": {"bank": "Assets:Bank"}})

    def test_not_a_mapping(self):
        """Test that non-dict data is rejected."""
        with pytest.raises(ConfigError):
            ImporterConfig.from_dict(["transfer_accounts"])

    def test_rule_missing_account(self):
        """Test that a rule without account is rejected."""
        with pytest.raises(ConfigError, match="Invalid rule entry"):
            ImporterConfig.from_dict(
                {
                    "transfer_accounts": {"bank": "B", "cash": "C"},
                    "mapping": [{"search": "Store"}],
                },
            )

    def test_full_config(self, config):
        """Test that every section is read in configuration order."""
        assert [rule.account for rule in config.ibans] == [
            "Assets:Erste:Giro",
            "Assets:Erste:Savings",
        ]
        assert [rule.position for rule in config.ibans] == [0, 1]
        assert config.cards[0].card == "1234XXXXXXXX5678"
        assert config.mandates[0].mandate_id == "MANDATE-42"
        assert config.mandates[0].note == "Car insurance"
        assert config.creditors[0].creditor_id == "AT12ZZZ00000000001"
        assert [rule.pattern for rule in config.mapping] == [
            "Grocery Store",
            "^netflix",
            "store",
        ]
        assert config.creditor_and_debitor_mapping[0].fields == ("counterparty",)
        assert config.categories[0].fields == ("category",)

    def test_iban_keys_are_normalized(self, config):
        """Test that configured IBANs lose whitespace and are upper-cased."""
        assert config.ibans[0].iban == "AT611904300234573201"

    def test_card_keys_are_normalized(self, config):
        """Test that card labels are upper-cased."""
        assert config.cards[1].card == "REVOLUT"

    def test_rule_tiers_order(self, config):
        """Test the fixed tier order IBAN, card, mandate, creditor, text."""
        tiers = config.rule_tiers()

        assert [tier[0].kind for tier in tiers] == [
            RuleKind.IBAN,
            RuleKind.CARD,
            RuleKind.MANDATE,
            RuleKind.CREDITOR,
            RuleKind.TEXT,
        ]

    def test_text_rules_order(self, config):
        """Test text rules: mapping, then payee rules, then categories."""
        accounts = [rule.account for rule in config.text_rules]

        assert accounts == [
            "Expenses:Groceries",
            "Expenses:Streaming",
            "Expenses:Shopping",
            "Liabilities:AP:Landlord",
            "Expenses:Dining",
        ]

    def test_invalid_regex(self):
        """Test that an invalid search pattern fails when building the config."""
        with pytest.raises(InvalidRuleError, match="Invalid search pattern"):
            ImporterConfig.from_dict(
                {
                    "transfer_accounts": {"bank": "B", "cash": "C"},
                    "mapping": [{"search": "([unclosed", "account": "Expenses:X"}],
                },
            )


class TestAccountLookups:
    """Tests for own-account lookups."""

    def test_account_for_iban(self, config):
        """Test lookup ignores whitespace and case."""
        assert config.account_for_iban("at61 1904 3002 3457 3201") == "Assets:Erste:Giro"

    def test_account_for_unknown_iban(self, config):
        """Test lookup of an unknown IBAN."""
        assert config.account_for_iban("DE89370400440532013000") is None
        assert config.account_for_iban(None) is None

    def test_account_for_card(self, config):
        """Test card lookup."""
        assert config.account_for_card("1234xxxxxxxx5678") == "Liabilities:Cardcomplete"
        assert config.account_for_card("0000") is None

    def test_account_for_format(self, config):
        """Test per-format account sections."""
        assert config.account_for_format(FormatTag.REVOLUT) == "Assets:Revolut"
        assert config.account_for_format(FormatTag.FLATEX_CSV) == "Assets:Flatex:Settlement"
        assert config.account_for_format(FormatTag.ERSTE) is None

    def test_account_for_fee(self):
        """Test the fee account of a format section."""
        config = ImporterConfig.from_dict(
            {
                "transfer_accounts": {"bank": "B", "cash": "C"},
                "revolut": {"account": "Assets:Revolut", "fee_account": "Expenses:Fees"},
                "erste": {"account": "Assets:Erste"},
            },
        )

        assert config.account_for_fee(FormatTag.REVOLUT) == "Expenses:Fees"
        assert config.account_for_fee(FormatTag.ERSTE) is None
        assert config.account_for_format(FormatTag.REVOLUT) == "Assets:Revolut"

    def test_filter_payee(self, config):
        """Test payee filters replace fragments."""
        assert config.filter_payee("BILLA SAGT DANKE").strip() == "BILLA"


class TestTextRule:
    """Tests for TextRule matching."""

    def test_regex_case_insensitive(self, make_transaction):
        """Test regex rules ignore case."""
        rule = TextRule(pattern="^netflix", account="Expenses:Streaming")

        assert rule.matches(make_transaction(counterparty="NETFLIX.COM"))
        assert not rule.matches(make_transaction(counterparty="Pay NETFLIX"))

    def test_matches_memo(self, make_transaction):
        """Test text rules also search the memo."""
        rule = TextRule(pattern="rent", account="Expenses:Rent")

        assert rule.matches(make_transaction(counterparty="John", memo="Rent January"))

    def test_substring_rule_escapes_pattern(self, make_transaction):
        """Test plain substring rules treat regex characters literally."""
        rule = TextRule(
            pattern="A+B",
            account="Expenses:X",
            fields=("counterparty",),
            regex=False,
        )

        assert rule.matches(make_transaction(counterparty="shop a+b gmbh"))
        assert not rule.matches(make_transaction(counterparty="AAB"))

    def test_field_scope(self, make_transaction):
        """Test that rules only look at their configured fields."""
        rule = TextRule(
            pattern="Restaurants",
            account="Expenses:Dining",
            fields=("category",),
            regex=False,
        )

        assert rule.matches(make_transaction(category="Restaurants, Bars"))
        assert not rule.matches(make_transaction(counterparty="Restaurants"))


class TestLoadConfig:
    """Tests for load_config."""

    def test_load_existing_file(self, config_data):
        """Test loading a JSON configuration file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_file = Path(tmpdir) / "config.json"
            with open(config_file, "w", encoding="utf-8") as f:
                json.dump(config_data, f)

            config = load_config(config_file)

            assert config.transfer_accounts.bank == "Assets:Transfer:Bank"
            assert len(config.mapping) == 3

    def test_load_missing_file(self):
        """Test that a missing file raises FileLoadingError."""
        with pytest.raises(FileLoadingError):
            load_config("/nonexistent/path/config.json")

    def test_load_invalid_json(self):
        """Test that invalid JSON raises ConfigError."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_file = Path(tmpdir) / "config.json"
            with open(config_file, "w", encoding="utf-8") as f:
                f.write("invalid json {")

            with pytest.raises(ConfigError, match="Invalid JSON"):
                load_config(config_file)

    def test_default_path_from_environment(self):
        """Test that the environment variable selects the config file."""
        with patch.dict("os.environ", {"HLEDGER_IMPORT_CONFIG": "/tmp/importer.json"}):
            assert default_config_path() == Path("/tmp/importer.json")

    def test_default_path_in_home(self):
        """Test the per-user default location."""
        with patch.dict("os.environ", {}, clear=True), patch(
            "pathlib.Path.expanduser",
            return_value=Path("/home/user/.config/hledger-import/config.json"),
        ):
            assert default_config_path() == Path(
                "/home/user/.config/hledger-import/config.json",
            )
