"""
Common parsing capability shared by all bank export adapters.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, ClassVar

from .models import FormatTag, RawTransaction

logger = logging.getLogger(__name__)


class ParseError(Exception):
    """Exception raised when an export file cannot be parsed."""

    def __init__(
        self,
        detail: str,
        source: str | None = None,
        position: int | None = None,
    ):
        self.detail = detail
        self.source = source
        self.position = position
        super().__init__(self._message())

    def _message(self) -> str:
        where = self.source or "<input>"
        if self.position is not None:
            where = f"{where}, record {self.position}"
        return f"{where}: {self.detail}"


class MalformedRecordError(ParseError):
    """Exception raised when a single row or element is structurally invalid."""


class UnsupportedVersionError(ParseError):
    """Exception raised when the file header or schema is not the expected one."""


@dataclass(frozen=True)
class FormatProfile:
    """Conventions of a bank export that normalization depends on."""

    tag: FormatTag
    title: str
    date_layout: str
    invert_sign: bool = False
    cleared_states: frozenset[str] | None = None


@dataclass
class ParseResult:
    """Records parsed from one file, in file order, and skipped record errors."""

    transactions: list[RawTransaction] = field(default_factory=list)
    errors: list[ParseError] = field(default_factory=list)


_PARSERS: dict[FormatTag, type["BankParser"]] = {}


def register_parser(cls: type["BankParser"]) -> type["BankParser"]:
    """Class decorator adding a parser to the format registry."""
    tag = cls.profile.tag
    if tag in _PARSERS:
        raise ValueError(f"A parser for format '{tag.value}' is already registered")
    _PARSERS[tag] = cls
    return cls


def get_parser(format_tag: FormatTag) -> "BankParser":
    """Return a parser instance for the given export format."""
    try:
        return _PARSERS[format_tag]()
    except KeyError:
        raise ValueError(f"No parser registered for format '{format_tag.value}'") from None


def get_profile(format_tag: FormatTag) -> FormatProfile:
    try:
        return _PARSERS[format_tag].profile
    except KeyError:
        raise ValueError(f"No parser registered for format '{format_tag.value}'") from None


def parse_decimal(value: str, decimal_separator: str = ".", thousands_separator: str = "") -> Decimal:
    """Parse an amount string keeping the precision given in the source."""
    text = value.strip().replace("\u00a0", "").replace(" ", "")
    if thousands_separator:
        text = text.replace(thousands_separator, "")
    if decimal_separator != ".":
        text = text.replace(decimal_separator, ".")
    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"Invalid amount '{value}'") from None
    if not amount.is_finite():
        raise ValueError(f"Invalid amount '{value}'")
    return amount


def optional(value: Any) -> str | None:
    """Strip a text field, mapping empty values to None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class BankParser(ABC):
    """
    Turns the raw bytes of one bank export into raw transaction records.

    Subclasses declare their ``profile`` and implement ``_records`` (split the
    file into native records, checking the schema) and ``_convert`` (turn one
    native record into a RawTransaction).
    """

    profile: ClassVar[FormatProfile]
    encoding: ClassVar[str] = "utf-8"

    def parse(
        self,
        raw: bytes,
        source: str | None = None,
        skip_malformed: bool = False,
    ) -> ParseResult:
        """
        Parse an export file.

        Args:
            raw: File contents
            source: File name used in error messages
            skip_malformed: Collect malformed records instead of raising

        Returns:
            ParseResult with the records in file order

        Raises:
            UnsupportedVersionError: If the file does not have the expected schema
            MalformedRecordError: On the first invalid record, unless skipping
        """
        text = self._decode(raw, source)
        result = ParseResult()

        for position, record in self._records(text, source):
            try:
                if isinstance(record, MalformedRecordError):
                    raise record
                try:
                    transaction = self._convert(position, record)
                except (ValueError, KeyError, TypeError, AttributeError) as e:
                    raise MalformedRecordError(str(e), source, position) from e
            except MalformedRecordError as e:
                if not skip_malformed:
                    raise
                logger.warning(f"Skipping malformed record: {e}")
                result.errors.append(e)
                continue
            result.transactions.append(transaction)

        logger.debug(
            f"Parsed {len(result.transactions)} {self.profile.title} records "
            f"from {source or '<input>'}",
        )
        return result

    def _decode(self, raw: bytes, source: str | None) -> str | bytes:
        """Decode the file; formats that name their own encoding return the bytes."""
        try:
            return raw.decode(self.encoding)
        except UnicodeDecodeError as e:
            raise UnsupportedVersionError(
                f"File is not {self.encoding} encoded: {e}",
                source,
            ) from e

    @abstractmethod
    def _records(self, text: str | bytes, source: str | None) -> Iterator[tuple[int, Any]]:
        """Yield (position, native record) pairs in file order."""

    @abstractmethod
    def _convert(self, position: int, record: Any) -> RawTransaction:
        """Convert one native record."""
