"""
Utils 패키지
"""

from .normalization import normalize_description, normalize_description_strict
from .currency import (
    format_krw,
    format_krw_input,
    format_krw_short,
    is_valid_krw_amount,
    parse_krw,
)

__all__ = [
    "normalize_description",
    "normalize_description_strict",
    "format_krw",
    "format_krw_input",
    "format_krw_short",
    "is_valid_krw_amount",
    "parse_krw",
]
