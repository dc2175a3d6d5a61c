"""Divider timestamps in the fixed ``HH:MM:SS YYYY/MM/DD`` format."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .sections import ENHANCED_DIVIDER_PATTERN

logger = logging.getLogger(__name__)

TIMESTAMP_PATTERN = re.compile(r"(\d{2}):(\d{2}):(\d{2})\s+(\d{4})/(\d{2})/(\d{2})")


@dataclass(frozen=True)
class DividerInfo:
    """Parsed ``---: <HASH> <timestamp>`` line."""

    hash: str
    timestamp: datetime
    timestamp_str: str


class TimestampCodec:
    """Format and parse the timestamps embedded in written dividers.

    Args:
        timezone_name: ``"local"``, ``"utc"`` or an IANA zone name such as
            ``"America/New_York"``. Unknown zone names fall back to local time.
    """

    def __init__(self, timezone_name: str = "local"):
        self.timezone_name = timezone_name or "local"

    def generate(self, date: datetime | None = None) -> str:
        """Return the timestamp for ``date`` (default: now) in the configured zone."""
        now = date or datetime.now()
        name = self.timezone_name.lower()
        if name == "utc":
            return self.format(now, use_utc=True)
        if name == "local":
            return self.format(now)
        return self.generate_for_timezone(self.timezone_name, now)

    def format(self, date: datetime, use_utc: bool = False) -> str:
        if use_utc:
            date = date.astimezone(timezone.utc)
        elif date.tzinfo is not None:
            date = date.astimezone()
        return date.strftime("%H:%M:%S %Y/%m/%d")

    def parse(self, text: str) -> datetime | None:
        """Parse a timestamp back into a naive datetime, or None if malformed."""
        if not isinstance(text, str):
            return None
        match = TIMESTAMP_PATTERN.fullmatch(text)
        if not match:
            return None
        hours, minutes, seconds, year, month, day = (int(g) for g in match.groups())
        try:
            return datetime(year, month, day, hours, minutes, seconds)
        except ValueError:
            return None

    def is_valid(self, text: str) -> bool:
        return self.parse(text) is not None

    def generate_for_timezone(
        self, timezone_name: str, date: datetime | None = None
    ) -> str:
        """Return the timestamp rendered in ``timezone_name``.

        Falls back to local time when the zone is not recognised.
        """
        now = date or datetime.now()
        try:
            zone = ZoneInfo(timezone_name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.debug("Unknown timezone %r, using local time", timezone_name)
            return self.format(now)
        return now.astimezone(zone).strftime("%H:%M:%S %Y/%m/%d")

    def create_divider_line(
        self, hash_value: str, date: datetime | None = None
    ) -> str:
        return f"---: {hash_value} {self.generate(date)}"

    def parse_divider_line(self, line: str) -> DividerInfo | None:
        """Parse an enhanced divider line; bare or hash-only dividers give None."""
        if not isinstance(line, str):
            return None
        match = ENHANCED_DIVIDER_PATTERN.fullmatch(line)
        if not match:
            return None
        hash_value, timestamp_str = match.groups()
        parsed = self.parse(timestamp_str)
        if parsed is None:
            return None
        return DividerInfo(
            hash=hash_value.upper(), timestamp=parsed, timestamp_str=timestamp_str
        )
