"""
Resolution of posting accounts through the configured matching rules.
"""

import logging
from dataclasses import replace

from .config import ImporterConfig, MappingRule
from .models import CanonicalTransaction, ResolvedTransaction, RuleKind

logger = logging.getLogger(__name__)

BANK_TRANSFER_KINDS = frozenset({"TOPUP", "TRANSFER"})


class AccountResolver:
    """Assigns own-side and counterparty accounts to canonical transactions."""

    def __init__(self, config: ImporterConfig):
        self.config = config

    def find_rule(
        self,
        transaction: CanonicalTransaction,
        own_account: str,
    ) -> MappingRule | None:
        """
        Find the first matching rule.

        Tiers are evaluated IBAN, card, mandate, creditor, text search; within a
        tier the configuration order decides. Rules pointing at the own account
        are skipped.
        """
        for tier in self.config.rule_tiers():
            for rule in tier:
                if rule.account == own_account:
                    continue
                if rule.matches(transaction):
                    logger.debug(
                        f"{transaction.booking_date} {transaction.counterparty}: "
                        f"matched {rule.kind.value} rule #{rule.position} -> {rule.account}",
                    )
                    return rule
        return None

    def fallback_account(self, transaction: CanonicalTransaction) -> str:
        """Bank transfer account for bank-like movements, cash account otherwise."""
        if transaction.iban or transaction.kind in BANK_TRANSFER_KINDS:
            return self.config.transfer_accounts.bank
        return self.config.transfer_accounts.cash

    def resolve(
        self,
        transaction: CanonicalTransaction,
        own_account: str,
    ) -> ResolvedTransaction:
        """
        Resolve a transaction. Never fails; without a matching rule the transfer
        fallback is used and the result is flagged as unmatched.
        """
        rule = self.find_rule(transaction, own_account)

        if rule is not None:
            counterparty_account = rule.account
            note = rule.note
            matched = rule.kind
        else:
            counterparty_account = self.fallback_account(transaction)
            note = None
            matched = None
            logger.info(
                f"No rule matched {transaction.booking_date} "
                f"'{transaction.counterparty}' ({transaction.amount} {transaction.currency}), "
                f"using {counterparty_account}",
            )

        description = self.config.filter_payee(transaction.counterparty).strip()

        return ResolvedTransaction(
            transaction=transaction,
            own_account=own_account,
            counterparty_account=counterparty_account,
            description=description,
            note=note,
            matched_rule=matched,
        )

    def fee_entry(self, resolved: ResolvedTransaction, fee_account: str) -> ResolvedTransaction:
        """Entry moving the fee of a resolved transaction from the own account to the fee account."""
        transaction = resolved.transaction
        fee_transaction = replace(
            transaction,
            amount=-transaction.fee,
            memo="",
            fee=None,
            tags=(),
        )
        description = f"{resolved.description} (fee)" if resolved.description else "fee"
        return ResolvedTransaction(
            transaction=fee_transaction,
            own_account=resolved.own_account,
            counterparty_account=fee_account,
            description=description,
            matched_rule=RuleKind.FEE,
        )

    def resolve_all(
        self,
        transactions: list[CanonicalTransaction],
        own_account: str,
        fee_account: str | None = None,
    ) -> list[ResolvedTransaction]:
        """
        Resolve transactions in order.

        A transaction carrying a fee is followed by a fee entry when a fee
        account is given.
        """
        resolved = []
        for transaction in transactions:
            result = self.resolve(transaction, own_account)
            resolved.append(result)
            if not transaction.fee:
                continue
            if fee_account:
                resolved.append(self.fee_entry(result, fee_account))
            else:
                logger.warning(
                    f"Fee of {transaction.fee} {transaction.currency} on "
                    f"{transaction.booking_date} '{transaction.counterparty}' is not booked, "
                    f"no fee account configured",
                )
        return resolved
