# src/core/parsing.py
"""
Tolkning av formulärvärden (allt kommer in som strängar från multipart).

Locale-oberoende: decimalpunkt är alltid ".", inga tusentalsavskiljare,
bara ASCII-siffror. Ogiltiga värden blir None i stället för att kasta;
anroparen avgör om fältet är obligatoriskt.
"""

from __future__ import annotations

import math
import re
from decimal import Decimal
from typing import Any, Optional

TRUE_STRINGS = {"true"}

# re.ASCII: \d matchar bara 0-9, inte t.ex. arabisk-indiska siffror
_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)

# Heltal lagras som SQL INTEGER (signerat 64-bitars)
INT_MIN = -(2 ** 63)
INT_MAX = 2 ** 63 - 1


def clean_text(value: Any) -> Optional[str]:
    """Trimmar; tom sträng och None blir None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _number_text(value: Any) -> Optional[str]:
    text = clean_text(value)
    if text is None or not _NUMBER.fullmatch(text):
        return None
    return text


def parse_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = _number_text(value)
        if text is None:
            return None
        number = float(text)
    # NaN/inf ska aldrig nå lagret
    if not math.isfinite(number):
        return None
    return number


def parse_int(value: Any) -> Optional[int]:
    """
    "30" -> 30, "30.0" -> 30, "30.5" -> None, "abc" -> None, "1e20" -> None

    Tolkas exakt via Decimal, inte via float, så stora heltal behåller
    alla siffror. Utanför 64-bitarsintervallet räknas som ogiltigt.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        number = Decimal(value)
    elif isinstance(value, float):
        if not math.isfinite(value):
            return None
        number = Decimal(value)
    else:
        text = _number_text(value)
        if text is None:
            return None
        number = Decimal(text)
    if number != number.to_integral_value():
        return None
    if not INT_MIN <= number <= INT_MAX:
        return None
    return int(number)


def coerce_bool(value: Any) -> bool:
    """True endast för True eller strängen "true" (skiftlägesokänsligt)."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    return False
