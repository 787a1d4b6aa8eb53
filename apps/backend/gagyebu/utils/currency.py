"""
원화(KRW) 금액 유틸리티

모든 금액은 정수(원 단위)로 저장합니다.
"""

import math
import re
from decimal import Decimal
from numbers import Real

_KRW_STRIP_RE = re.compile(r"[₩,\s]")
_LEADING_INT_RE = re.compile(r"^[+-]?\d+")

MAN = 10_000
EOK = 100_000_000


def _is_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (Real, Decimal)):
        return False
    if isinstance(value, Decimal):
        return value.is_finite()
    return not math.isnan(value)


def _has_fraction(value) -> bool:
    if isinstance(value, float):
        return not value.is_integer()
    if isinstance(value, Decimal):
        return value != value.to_integral_value()
    return False


def format_krw_input(amount) -> str:
    """
    입력 필드용 포맷 (₩ 기호 없음)

    Example:
        >>> format_krw_input(1234567)
        "1,234,567"
    """
    if not _is_number(amount):
        return ""
    if _has_fraction(amount):
        return f"{amount:,}"
    return f"{int(amount):,}"


def format_krw(amount) -> str:
    """
    원화 표기

    Example:
        >>> format_krw(1234567)
        "₩1,234,567"
    """
    if not _is_number(amount):
        return "₩0"
    return f"₩{format_krw_input(amount)}"


def format_krw_short(amount) -> str:
    """
    큰 금액 축약 표기 (만/억)

    Example:
        >>> format_krw_short(15000)
        "₩1.5만"
        >>> format_krw_short(320000000)
        "₩3.2억"
    """
    if not _is_number(amount):
        return "₩0"
    if amount >= EOK:
        return f"₩{amount / EOK:.1f}억"
    if amount >= MAN:
        return f"₩{amount / MAN:.1f}만"
    return format_krw(amount)


def parse_krw(text: str | None) -> int:
    """
    "₩1,234,567" / "1,234,567" 형식 문자열을 정수로 변환

    앞부분 정수만 읽고, 읽을 수 없으면 0을 반환합니다.
    """
    if not text:
        return 0
    cleaned = _KRW_STRIP_RE.sub("", text)
    match = _LEADING_INT_RE.match(cleaned)
    if not match:
        return 0
    return int(match.group(0))


def is_valid_krw_amount(value) -> bool:
    """0 이상의 정수인지 확인"""
    if not _is_number(value):
        return False
    if _has_fraction(value):
        return False
    return value >= 0
