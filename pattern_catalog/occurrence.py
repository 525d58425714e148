"""
Occurrence statistics parsed from a document's closing notes.

Only two phrasings are recognized:

    "<occurrences> out of <total>"   e.g. "161 out of 213 times"
    "<occurrences> times"            total stays unknown

The first match wins. Text that matches neither is treated as absent data;
nothing is guessed.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from .models import OccurrenceStat

logger = logging.getLogger(__name__)

NUMBER = r"(\d{1,3}(?:,\d{3})+|\d+)"
OUT_OF_PATTERN = re.compile(NUMBER + r"\s+out\s+of\s+" + NUMBER, re.IGNORECASE)
TIMES_PATTERN = re.compile(NUMBER + r"\s+times\b", re.IGNORECASE)


def _to_int(text: str) -> int:
    return int(text.replace(",", ""))


def parse_occurrence(text: Optional[str], entity_id: str = "") -> Optional[OccurrenceStat]:
    """Parse an OccurrenceStat from free text.

    Args:
        text: Closing notes of a document
        entity_id: Pattern id, for log messages

    Returns:
        OccurrenceStat, or None if no count is declared. A count above its
        total is returned as-is (is_consistent is False) and logged

    Example:
        >>> stat = parse_occurrence("incorrectly implemented 161 out of 213 times")
        >>> stat.occurrences, stat.total_opportunities, round(stat.percentage, 3)
        (161, 213, 0.756)
    """
    if not text:
        return None

    match = OUT_OF_PATTERN.search(text)
    if match:
        stat = OccurrenceStat(_to_int(match.group(1)), _to_int(match.group(2)))
    else:
        match = TIMES_PATTERN.search(text)
        if not match:
            return None
        stat = OccurrenceStat(_to_int(match.group(1)))

    if not stat.is_consistent:
        # Kept for the validator to report
        logger.warning(
            f"{entity_id}: occurrence count '{match.group(0)}' exceeds its total"
        )
    return stat
