"""
Command-line interface for hledger import.
"""

import argparse
import logging
import sys
from pathlib import Path

from .base_parser import ParseError
from .config import ConfigError, FileLoadingError, load_config
from .importer import Importer
from .models import FormatTag
from .normalizer import NormalizationError
from .pdf_text import PdfExtractionError

logger = logging.getLogger(__name__)


class FileSavingError(Exception):
    """Exception raised when the journal output cannot be saved."""


def save_output(output_file: str, journal: str) -> None:
    """Write journal text to a file."""
    try:
        output_path = Path(output_file)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(journal)
        logger.info(f"Journal written to {output_file}")
    except OSError as e:
        logger.error(f"Failed to write journal to {output_file}: {e}")
        raise FileSavingError(
            f"Failed to write journal to {output_file}: {e}",
        ) from e


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Convert bank exports into hledger journal entries",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging (DEBUG level)",
    )

    parser.add_argument(
        "--config",
        help="Path to the importer configuration (JSON). Defaults to "
        "$HLEDGER_IMPORT_CONFIG or ~/.config/hledger-import/config.json",
    )

    parser.add_argument(
        "--format",
        "-f",
        required=True,
        choices=[tag.value for tag in FormatTag],
        help="Format of the input files",
    )

    own = parser.add_mutually_exclusive_group()
    own.add_argument("--account", help="Own account the files are imported under")
    own.add_argument("--iban", help="Own IBAN, looked up in the 'ibans' table")
    own.add_argument("--card", help="Own card, looked up in the 'cards' table")

    parser.add_argument(
        "--skip-malformed",
        action="store_true",
        help="Skip invalid records with a warning instead of failing the file",
    )

    parser.add_argument(
        "--output",
        "-o",
        help="Write the journal to this file instead of stdout",
    )

    parser.add_argument(
        "input_files",
        nargs="+",
        help="Bank export files to convert",
    )
    return parser


def main(argv: list[str] | None = None):
    """Main CLI entry point."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    # Configure logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s: %(message)s",
    )

    format_tag = FormatTag(args.format)

    try:
        config = load_config(args.config)
        importer = Importer(config)
        own_account = importer.own_account(
            format_tag,
            account=args.account,
            iban=args.iban,
            card=args.card,
        )
    except (ConfigError, FileLoadingError) as e:
        logger.error(f"Error: {e}")
        sys.exit(1)

    reports = []
    failed = False
    for input_file in args.input_files:
        try:
            report = importer.convert_file(
                input_file,
                format_tag,
                own_account,
                skip_malformed=args.skip_malformed,
            )
        except (ParseError, NormalizationError, PdfExtractionError, OSError) as e:
            logger.error(f"Error converting {input_file}: {e}")
            failed = True
            continue
        reports.append(report)

    journal = "\n".join(report.journal for report in reports if report.journal)

    if args.output:
        try:
            save_output(args.output, journal)
        except FileSavingError:
            sys.exit(1)
    else:
        sys.stdout.write(journal)

    if reports:
        logger.info(importer.format_summary(reports))

    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
