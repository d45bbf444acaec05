"""
Rendering of resolved transactions as hledger journal entries.
"""

import logging
from decimal import Decimal

from .models import ImportReport, JournalEntry, Posting, ResolvedTransaction

logger = logging.getLogger(__name__)

LINE_WIDTH = 80
INDENT = "  "


def format_amount(amount: Decimal, currency: str) -> str:
    """Amount with the precision it was given in, e.g. ``-12.30 EUR``."""
    if amount == 0:
        amount = abs(amount)
    return f"{amount:f} {currency}"


class JournalEmitter:
    """Formats resolved transactions as double-entry journal text."""

    def __init__(self, line_width: int = LINE_WIDTH):
        self.line_width = line_width

    def build_entry(self, resolved: ResolvedTransaction) -> JournalEntry:
        """Build the two-posting entry; the own side is the exact negation."""
        transaction = resolved.transaction
        amount = transaction.amount

        comments = []
        description = resolved.description
        if resolved.note:
            if resolved.description:
                comments.append(f"payee: {resolved.description}")
            description = resolved.note
        if transaction.memo and transaction.memo != resolved.description:
            comments.append(transaction.memo)
        if transaction.valuation_date:
            comments.append(f"valuation: {transaction.valuation_date.isoformat()}")
        comments.extend(f"{name}: {value}" for name, value in transaction.tags)

        return JournalEntry(
            date=transaction.booking_date,
            description=description,
            postings=(
                Posting(resolved.counterparty_account, -amount, transaction.currency),
                Posting(resolved.own_account, amount, transaction.currency),
            ),
            state=transaction.state,
            code=transaction.code,
            comments=tuple(comments),
        )

    def render(self, entry: JournalEntry) -> str:
        header = f"{entry.date.isoformat()} {entry.state.value}"
        if entry.code:
            header = f"{header} ({entry.code})"
        if entry.description:
            header = f"{header} {entry.description}"

        lines = [header]
        lines.extend(f"{INDENT}; {comment}" for comment in entry.comments)
        lines.extend(self._render_posting(posting) for posting in entry.postings)
        return "\n".join(lines)

    def _render_posting(self, posting: Posting) -> str:
        amount = format_amount(posting.amount, posting.currency)
        # right-align the amount at the line width
        width = max(self.line_width - len(INDENT) - len(amount) - 1, len(posting.account))
        return f"{INDENT}{posting.account:<{width}} {amount}"

    def emit(self, resolved: ResolvedTransaction) -> str:
        """Journal text of a single transaction."""
        return self.render(self.build_entry(resolved))

    def emit_all(
        self,
        resolved: list[ResolvedTransaction],
        title: str | None = None,
    ) -> str:
        """
        Journal text of all transactions, ordered by booking date.

        Transactions on the same date keep their input order.

        Args:
            resolved: Resolved transactions in file order
            title: Optional header comment

        Returns:
            Journal text ending with a newline, or an empty string
        """
        ordered = sorted(resolved, key=lambda r: r.transaction.booking_date)
        blocks = [self.emit(r) for r in ordered]
        if title:
            rule = "*" * (self.line_width - 2)
            blocks.insert(0, f"; {rule}\n; {title}\n; {rule}")
        if not blocks:
            return ""
        return "\n\n".join(blocks) + "\n"


class SummaryFormatter:
    """Formats summary information."""

    @staticmethod
    def format_summary(reports: list[ImportReport]) -> str:
        """Format a summary of one or more import reports."""
        lines = []
        lines.append("=== hledger import summary ===")
        for report in reports:
            matched = [r for r in report.resolved if not r.unmatched]
            lines.append(f"{report.source or '<input>'}:")
            lines.append(f"  Transactions converted: {len(report.resolved)}")
            lines.append(f"  Resolved by rule: {len(matched)}")
            lines.append(f"  Resolved by fallback: {len(report.unmatched)}")
            lines.append(f"  Skipped records: {len(report.errors)}")

            if report.unmatched:
                lines.append("  Transactions for manual review:")
                for resolved in report.unmatched:
                    transaction = resolved.transaction
                    amount = format_amount(transaction.amount, transaction.currency)
                    lines.append(
                        f"    {transaction.booking_date.isoformat()} | "
                        f"{transaction.counterparty} | {amount} -> {resolved.counterparty_account}",
                    )

            if report.errors:
                lines.append("  Skipped records:")
                for error in report.errors:
                    lines.append(f"    {error}")

        return "\n".join(lines)
