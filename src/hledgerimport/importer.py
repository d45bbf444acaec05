"""
Main importer class that orchestrates the conversion of one export file.
"""

import logging
from pathlib import Path

from .account_resolver import AccountResolver
from .base_parser import get_parser, get_profile
from .config import ConfigError, ImporterConfig
from .journal_emitter import JournalEmitter, SummaryFormatter
from .models import FormatTag, ImportReport
from .normalizer import NormalizationError, normalize
from .pdf_text import extract_text

logger = logging.getLogger(__name__)


class Importer:
    """Runs parse, normalize, resolve and emit for bank export files."""

    def __init__(self, config: ImporterConfig):
        self.config = config
        self.resolver = AccountResolver(config)
        self.emitter = JournalEmitter()
        self.summary_formatter = SummaryFormatter()

    def own_account(
        self,
        format_tag: FormatTag,
        account: str | None = None,
        iban: str | None = None,
        card: str | None = None,
    ) -> str:
        """
        Determine the account the file is imported under.

        An explicit account wins, then the IBAN or card lookup, then the
        format's own config section.
        """
        if account:
            return account
        if iban:
            found = self.config.account_for_iban(iban)
            if found is None:
                raise ConfigError(f"IBAN {iban} is not configured in 'ibans'")
            return found
        if card:
            found = self.config.account_for_card(card)
            if found is None:
                raise ConfigError(f"Card {card} is not configured in 'cards'")
            return found
        found = self.config.account_for_format(format_tag)
        if found is None:
            raise ConfigError(
                f"No own account for format '{format_tag.value}'; pass an account, "
                f"IBAN or card, or set '{format_tag.value}.account' in the config",
            )
        return found

    def convert(
        self,
        raw: bytes,
        format_tag: FormatTag,
        own_account: str,
        source: str | None = None,
        skip_malformed: bool = False,
    ) -> ImportReport:
        """
        Convert the contents of one export file.

        Args:
            raw: File contents
            format_tag: Export format of the file
            own_account: Account the file is imported under
            source: File name used in messages
            skip_malformed: Skip invalid records instead of raising

        Returns:
            ImportReport with the journal text, resolved transactions and
            skipped record errors
        """
        report = ImportReport(source=source)

        parsed = get_parser(format_tag).parse(raw, source, skip_malformed)
        report.errors.extend(parsed.errors)

        canonical = []
        for raw_transaction in parsed.transactions:
            try:
                canonical.append(normalize(raw_transaction, format_tag, source))
            except NormalizationError as e:
                if not skip_malformed:
                    raise
                logger.warning(f"Skipping record: {e}")
                report.errors.append(e)

        report.resolved = self.resolver.resolve_all(
            canonical,
            own_account,
            fee_account=self.config.account_for_fee(format_tag),
        )
        report.journal = self.emitter.emit_all(
            report.resolved,
            title=get_profile(format_tag).title,
        )

        if report.unmatched:
            logger.info(
                f"{len(report.unmatched)} of {len(report.resolved)} transactions in "
                f"{source or '<input>'} resolved without a matching rule",
            )
        return report

    def convert_file(
        self,
        file_path: str | Path,
        format_tag: FormatTag,
        own_account: str,
        skip_malformed: bool = False,
    ) -> ImportReport:
        """Read and convert an export file; PDF invoices are converted to text first."""
        path = Path(file_path)
        if format_tag is FormatTag.FLATEX_PDF and path.suffix.lower() == ".pdf":
            raw = extract_text(path)
        else:
            raw = path.read_bytes()
        return self.convert(raw, format_tag, own_account, path.name, skip_malformed)

    def format_summary(self, reports: list[ImportReport]) -> str:
        return self.summary_formatter.format_summary(reports)
