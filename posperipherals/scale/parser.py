"""Weight frame parser for serial scales."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Optional, Tuple

from ..core.models import WeightReading


class WeightParser:
    """Parser for ASCII weight frames.

    Frame patterns, tried strictly in this order on each line:

    1. ``ST,GS,+001.250kg`` status frame (Toledo PRT2 and compatibles).
       ``ST`` marks a stable reading and ``US`` an unstable one; ``GS``/``NT``
       selects gross or net weight.
    2. ``P,+1.250kg`` single value frame, always stable.
    3. ``+1.250kg`` bare value, always stable.

    The first pattern that matches wins. Lines that match nothing are noise
    and yield ``None``.
    """

    STATUS_FRAME = re.compile(r'(ST|US),(GS|NT),([+-])(\d+(?:\.\d*)?)(kg|g)', re.IGNORECASE)
    SINGLE_FRAME = re.compile(r'P,([+-])(\d+(?:\.\d*)?)(kg|g)', re.IGNORECASE)
    BARE_FRAME = re.compile(r'([+-])?(\d+(?:\.\d*)?)(kg|g)', re.IGNORECASE)

    STABLE_STATUS = 'ST'

    @staticmethod
    def _signed(sign: Optional[str], digits: str) -> float:
        value = float(digits)
        return -value if sign == '-' else value

    @classmethod
    def match(cls, line: str) -> Optional[Tuple[re.Match, float, str, bool]]:
        """Find the first frame pattern in ``line``.

        Returns:
            ``(match, value, unit, stable)`` or None if no pattern matches.
        """
        m = cls.STATUS_FRAME.search(line)
        if m:
            status, _mode, sign, digits, unit = m.groups()
            stable = status.upper() == cls.STABLE_STATUS
            return m, cls._signed(sign, digits), unit.lower(), stable

        m = cls.SINGLE_FRAME.search(line)
        if m:
            sign, digits, unit = m.groups()
            return m, cls._signed(sign, digits), unit.lower(), True

        m = cls.BARE_FRAME.search(line)
        if m:
            sign, digits, unit = m.groups()
            return m, cls._signed(sign, digits), unit.lower(), True

        return None

    @classmethod
    def parse_line(cls, line: str, observed_at: Optional[datetime] = None) -> Optional[WeightReading]:
        """Parse one line into a reading.

        Supports:
            - Status frame: 'ST,GS,+001.250kg' / 'US,NT,-000.003kg'
            - Single value frame: 'P,+1.250kg'
            - Bare value: '1250g'
        """
        line = line.strip()
        if not line:
            return None

        found = cls.match(line)
        if found is None:
            return None
        _m, value, unit, stable = found
        return WeightReading(
            value=value,
            unit=unit,
            stable=stable,
            observed_at=observed_at or datetime.now(),
        )

    @classmethod
    def is_complete_frame(cls, fragment: str) -> bool:
        """True if ``fragment`` holds a frame that ends at its last character."""
        fragment = fragment.strip()
        if not fragment:
            return False
        found = cls.match(fragment)
        return found is not None and found[0].end() == len(fragment)
