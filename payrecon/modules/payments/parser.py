"""Extract candidate incoming transfers from SMS, e-mail and statement text.

The parser is stateless and knows nothing about open payment requests. It
turns every line (or e-mail paragraph) carrying a monetary token into a
:class:`ParsedEntry` and leaves verification-code matching to the matcher.

Supported shapes::

    VCB: +500,000VND tu 0123456789. So du: 5,000,000VND. ND: DH0012345678. 01/01/2024 10:30

    Giao dich: +500,000 VND
    Noi dung: DH0012345678
    Thoi gian: 01/01/2024 10:30

    01/01/2024 10:30  150.000 VND  CK DH42 thanh toan
    01/01/2024 10:41  -20.000 VND  phi dich vu
"""

from __future__ import annotations

import re
from datetime import datetime, timezone, tzinfo
from typing import Iterable, Optional

from .models import MAX_AMOUNT_MINOR_UNITS, ParsedEntry

DEFAULT_CURRENCY_MARKERS = ("VNĐ", "VND", "đ", "₫")
MAX_AMOUNT_DIGITS = 18

_BLOCK_SEPARATOR = re.compile(r"\n[ \t\r]*\n")
_GROUPING = re.compile(r"[.,]")
_STATEMENT_ROW = re.compile(r"^(?:\d{1,2}/\d{1,2}/\d{4}|\d{4}-\d{2}-\d{2})")
_TIMESTAMP_PATTERNS = (
    re.compile(
        r"(?<!\d)(?P<day>\d{1,2})/(?P<month>\d{1,2})/(?P<year>\d{4})"
        r"(?:[ T,]+(?P<hour>\d{1,2}):(?P<minute>\d{2})(?::(?P<second>\d{2}))?)?"
    ),
    re.compile(
        r"(?<!\d)(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})"
        r"(?:[ T](?P<hour>\d{2}):(?P<minute>\d{2})(?::(?P<second>\d{2}))?)?"
    ),
)


def _amount_pattern(markers: Iterable[str]) -> re.Pattern[str]:
    alternatives = "|".join(re.escape(marker) for marker in sorted(markers, key=len, reverse=True))
    return re.compile(
        r"(?<![\w.,])"
        r"(?P<sign>[+-])?\s?"
        r"(?P<number>\d{1,3}(?:[.,]\d{3}){1,5}(?:[.,]\d{1,2})?"
        rf"|\d{{1,{MAX_AMOUNT_DIGITS}}}(?:[.,]\d{{1,2}})?)"
        rf"\s?(?P<currency>{alternatives})(?!\w)",
        re.IGNORECASE,
    )


class StatementParser:
    def __init__(
        self,
        *,
        currency_markers: Iterable[str] = DEFAULT_CURRENCY_MARKERS,
        minor_unit_exponent: int = 0,
        tz: tzinfo = timezone.utc,
    ) -> None:
        self._amount_re = _amount_pattern(currency_markers)
        self._exponent = minor_unit_exponent
        self._tz = tz

    def parse(self, text: str) -> list[ParsedEntry]:
        if not text or not text.strip():
            return []

        entries: list[ParsedEntry] = []
        for block in _BLOCK_SEPARATOR.split(text):
            lines = [line.strip() for line in block.splitlines() if line.strip()]
            hits = [(index, match) for index, line in enumerate(lines) if (match := self._amount_re.search(line))]
            if len(hits) == 1 and len(lines) > 1 and not self._has_statement_rows(lines, hits[0][0]):
                entry = self._block_entry(lines, *hits[0])
                if entry is not None:
                    entries.append(entry)
                continue
            for index, match in hits:
                entry = self._build_entry(match, lines[index])
                if entry is not None:
                    entries.append(entry)
        return entries

    @staticmethod
    def _has_statement_rows(lines: list[str], amount_index: int) -> bool:
        # Dated neighbours are separate statement rows, not part of one notification.
        return any(_STATEMENT_ROW.match(line) for index, line in enumerate(lines) if index != amount_index)

    def _block_entry(self, lines: list[str], amount_index: int, match: re.Match[str]) -> Optional[ParsedEntry]:
        # The memo sits on another line of the paragraph, keep every line as reference text.
        reference_lines = [
            _strip_span(line, match.start(), match.end()) if index == amount_index else line
            for index, line in enumerate(lines)
        ]
        return self._build_entry(
            match,
            raw_text="\n".join(lines),
            reference=" ".join(part for part in reference_lines if part),
        )

    def _build_entry(self, match: re.Match[str], raw_text: str, reference: str | None = None) -> Optional[ParsedEntry]:
        if match.group("sign") == "-":
            return None
        amount = self.to_minor_units(match.group("number"))
        if not amount:
            return None
        if reference is None:
            reference = _strip_span(raw_text, match.start(), match.end())
        return ParsedEntry(
            amount=amount,
            reference_token=reference,
            raw_text=raw_text,
            source_timestamp=self._find_timestamp(raw_text),
        )

    def to_minor_units(self, number: str) -> Optional[int]:
        """Normalize ``1.234.567``, ``500,000`` or ``12.50`` to integer minor units.

        A trailing separator followed by one or two digits is a decimal mark,
        every other separator groups thousands. Returns ``None`` when the
        fraction cannot be represented with the configured exponent or the
        amount does not fit a BIGINT column.
        """
        whole, fraction = number, ""
        last = max(number.rfind(","), number.rfind("."))
        if last != -1 and len(number) - last - 1 in (1, 2):
            whole, fraction = number[:last], number[last + 1:]

        digits = _GROUPING.sub("", whole)
        if not digits or len(digits) > MAX_AMOUNT_DIGITS:
            return None
        if fraction[self._exponent:].strip("0"):
            return None
        fraction = fraction[: self._exponent].ljust(self._exponent, "0")
        amount = int(digits) * 10 ** self._exponent + int(fraction or "0")
        return amount if amount <= MAX_AMOUNT_MINOR_UNITS else None

    def _find_timestamp(self, text: str) -> Optional[datetime]:
        for pattern in _TIMESTAMP_PATTERNS:
            match = pattern.search(text)
            if match is None:
                continue
            parts = match.groupdict()
            try:
                return datetime(
                    int(parts["year"]),
                    int(parts["month"]),
                    int(parts["day"]),
                    int(parts["hour"] or 0),
                    int(parts["minute"] or 0),
                    int(parts["second"] or 0),
                    tzinfo=self._tz,
                )
            except ValueError:
                continue
        return None


def _strip_span(text: str, start: int, end: int) -> str:
    return " ".join(f"{text[:start]} {text[end:]}".split())


__all__ = ["DEFAULT_CURRENCY_MARKERS", "StatementParser"]
