"""Unit tests for models.py."""

import dataclasses
from datetime import date
from decimal import Decimal

import pytest

from hledgerimport.models import (
    FormatTag,
    ImportReport,
    RawTransaction,
    ResolvedTransaction,
    RuleKind,
    TransactionState,
)


class TestRawTransaction:
    """Tests for RawTransaction."""

    def test_defaults(self):
        """Test optional fields default to empty values."""
        raw = RawTransaction(
            position=1,
            date="2024-01-05 10:11:12",
            amount=Decimal("-1.00"),
            currency="EUR",
            description="Shop",
        )

        assert raw.memo == ""
        assert raw.iban is None
        assert raw.card_label is None
        assert raw.creditor_id is None
        assert raw.mandate_id is None
        assert raw.tags == ()

    def test_immutable(self):
        """Test that raw records cannot be changed once produced."""
        raw = RawTransaction(
            position=1,
            date="2024-01-05",
            amount=Decimal("1"),
            currency="EUR",
            description="Shop",
        )

        with pytest.raises(dataclasses.FrozenInstanceError):
            raw.amount = Decimal("2")


class TestResolvedTransaction:
    """Tests for ResolvedTransaction."""

    def test_unmatched_without_rule(self, make_transaction):
        """Test that a fallback resolution is flagged as unmatched."""
        resolved = ResolvedTransaction(
            transaction=make_transaction(),
            own_account="Assets:Bank",
            counterparty_account="Assets:Transfer:Cash",
            description="Someone",
        )

        assert resolved.unmatched is True

    def test_matched_with_rule(self, make_transaction):
        """Test that a rule resolution is not flagged."""
        resolved = ResolvedTransaction(
            transaction=make_transaction(),
            own_account="Assets:Bank",
            counterparty_account="Expenses:Food",
            description="Someone",
            matched_rule=RuleKind.TEXT,
        )

        assert resolved.unmatched is False


class TestImportReport:
    """Tests for ImportReport."""

    def test_unmatched_lists_fallback_resolutions(self, make_transaction):
        """Test that the report lists only transactions without a rule."""
        matched = ResolvedTransaction(
            transaction=make_transaction(counterparty="A"),
            own_account="Assets:Bank",
            counterparty_account="Expenses:A",
            description="A",
            matched_rule=RuleKind.IBAN,
        )
        unmatched = ResolvedTransaction(
            transaction=make_transaction(counterparty="B"),
            own_account="Assets:Bank",
            counterparty_account="Assets:Transfer:Cash",
            description="B",
        )
        report = ImportReport(source="file.csv", resolved=[matched, unmatched])

        assert report.unmatched == [unmatched]

    def test_empty_report(self):
        """Test defaults of an empty report."""
        report = ImportReport(source=None)

        assert report.resolved == []
        assert report.errors == []
        assert report.journal == ""
        assert report.unmatched == []


class TestEnums:
    """Tests for enumerations."""

    def test_format_tags_by_value(self):
        """Test format tags can be looked up by their CLI names."""
        assert FormatTag("revolut") is FormatTag.REVOLUT
        assert FormatTag("flatex_pdf") is FormatTag.FLATEX_PDF

    def test_state_markers(self):
        """Test journal state markers."""
        assert TransactionState.CLEARED.value == "*"
        assert TransactionState.PENDING.value == "!"

    def test_canonical_transaction_defaults(self, make_transaction):
        """Test canonical transactions are cleared by default."""
        transaction = make_transaction()

        assert transaction.state == TransactionState.CLEARED
        assert transaction.booking_date == date(2024, 1, 15)
