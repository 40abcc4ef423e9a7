"""
Label service for parsing line-check label cells.

This module provides utilities for extracting temperature ranges, clean
labels and free-text descriptions from the single label cell of a
line-check worksheet row.
"""

import re
from typing import Optional, Tuple


class LabelParser:
    """Parse and analyze line-check label text."""

    # Bracketed temperature range, e.g. "[33*-38*]" or "[135-165]"
    RANGE_PATTERN = re.compile(r'\[(\d+)\*?-(\d+)\*?\]')

    # Leading "[LDIR][...]" reference tokens
    LDIR_PATTERN = re.compile(r'\[LDIR\][^\]]*\]\s*', re.IGNORECASE)

    BRACKET_PATTERN = re.compile(r'\[.*?\]')
    DESCRIPTION_PATTERN = re.compile(r' - (.+)', re.DOTALL)
    TRAILING_DESCRIPTION_PATTERN = re.compile(r' - .*', re.DOTALL)
    WHITESPACE_PATTERN = re.compile(r'\s+')

    DEFAULT_TEMPERATURE_MARKER = 'temp'

    @staticmethod
    def extract_range(text: str) -> Optional[Tuple[float, float]]:
        """
        Extract a bracketed numeric range from label text.

        Args:
            text: Raw label cell text

        Returns:
            (min, max) tuple for the first "[min-max]" match, None if absent
        """
        if not text:
            return None

        match = LabelParser.RANGE_PATTERN.search(text)
        if not match:
            return None

        return float(match.group(1)), float(match.group(2))

    @staticmethod
    def has_temperature_marker(text: Optional[str],
                               marker: str = DEFAULT_TEMPERATURE_MARKER) -> bool:
        """Check if an adjacent cell (e.g. "Record Temp") flags a temperature row."""
        if not text:
            return False
        return marker.lower() in str(text).lower()

    @staticmethod
    def collapse_whitespace(text: str) -> str:
        return LabelParser.WHITESPACE_PATTERN.sub(' ', text).strip()

    @staticmethod
    def clean_label(text: str) -> str:
        """
        Strip reference tokens, bracket groups and the trailing description.

        "FT Batter [33*-38*] - 4\" 1/6 pan" becomes "FT Batter". When cleaning
        leaves nothing, the text before the first bracket or dash is used.

        Args:
            text: Raw label cell text

        Returns:
            Cleaned label
        """
        label = LabelParser.LDIR_PATTERN.sub('', text)
        label = LabelParser.BRACKET_PATTERN.sub('', label)
        label = LabelParser.TRAILING_DESCRIPTION_PATTERN.sub('', label)
        label = LabelParser.collapse_whitespace(label)

        if not label:
            label = text.split('[')[0].split(' - ')[0].strip()

        return label

    @staticmethod
    def extract_description(text: str) -> str:
        """
        Extract the free-text description following the first " - ".

        Args:
            text: Raw label cell text

        Returns:
            Description without bracket groups, empty string if absent
        """
        match = LabelParser.DESCRIPTION_PATTERN.search(text)
        if not match:
            return ''

        description = LabelParser.BRACKET_PATTERN.sub('', match.group(1))
        return LabelParser.collapse_whitespace(description)
