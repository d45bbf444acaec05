"""Shared fixtures for the hledger import tests."""

from datetime import date
from decimal import Decimal

import pytest

from hledgerimport.config import ImporterConfig
from hledgerimport.models import CanonicalTransaction


@pytest.fixture
def config_data():
    """Configuration data covering every rule type."""
    return {
        "ibans": [
            {"iban": "AT61 1904 3002 3457 3201", "account": "Assets:Erste:Giro"},
            {"iban": "AT483200000012345864", "account": "Assets:Erste:Savings"},
        ],
        "cards": [
            {"card": "1234XXXXXXXX5678", "account": "Liabilities:Cardcomplete"},
            {"card": "Revolut", "account": "Assets:Revolut"},
        ],
        "mapping": [
            {"search": "Grocery Store", "account": "Expenses:Groceries"},
            {"search": "^netflix", "account": "Expenses:Streaming", "note": "Netflix subscription"},
            {"search": "store", "account": "Expenses:Shopping"},
        ],
        "creditor_and_debitor_mapping": [
            {"payee": "Landlord", "account": "Liabilities:AP:Landlord"},
        ],
        "categories": [
            {"pattern": "Restaurants", "account": "Expenses:Dining"},
        ],
        "sepa": {
            "creditors": [
                {"creditor_id": "AT12ZZZ00000000001", "account": "Expenses:Utilities", "note": "Electricity"},
            ],
            "mandates": [
                {"mandate_id": "MANDATE-42", "account": "Expenses:Insurance", "note": "Car insurance"},
            ],
        },
        "transfer_accounts": {"bank": "Assets:Transfer:Bank", "cash": "Assets:Transfer:Cash"},
        "filter": {"payee": [{"pattern": "SAGT DANKE", "replacement": ""}]},
        "revolut": {"account": "Assets:Revolut", "fee_account": "Expenses:Fees:Revolut"},
        "flatex_csv": {"account": "Assets:Flatex:Settlement"},
    }


@pytest.fixture
def config(config_data):
    return ImporterConfig.from_dict(config_data)


@pytest.fixture
def make_transaction():
    """Factory for canonical transactions with sensible defaults."""

    def _make(**overrides):
        values = {
            "booking_date": date(2024, 1, 15),
            "amount": Decimal("-12.34"),
            "currency": "EUR",
            "counterparty": "Someone",
        }
        values.update(overrides)
        return CanonicalTransaction(**values)

    return _make
