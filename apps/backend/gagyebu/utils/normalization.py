"""
정규화 유틸리티 함수

거래 설명(가맹점명 등)을 비교 가능한 형태로 정규화합니다.
"""

import re
import unicodedata

_WHITESPACE_RE = re.compile(r"\s+")
# 한글/영문/숫자/공백 외 문자 (\w는 유니코드 모드에서 한글 포함)
_PUNCTUATION_RE = re.compile(r"[^\w\s]")


def normalize_description(value: str | None) -> str:
    """
    거래 설명 기본 정규화

    - NFKC 정규화 (전각 → 반각)
    - 대소문자 통일 (casefold)
    - 연속 공백을 하나로, 앞뒤 공백 제거

    Example:
        >>> normalize_description("  Starbucks   강남점 ")
        "starbucks 강남점"
    """
    if not value:
        return ""

    normalized = unicodedata.normalize("NFKC", value).casefold()
    return _WHITESPACE_RE.sub(" ", normalized).strip()


def normalize_description_strict(value: str | None) -> str:
    """
    기본 정규화 + 특수문자 제거

    Example:
        >>> normalize_description_strict("GS25 (역삼점)!")
        "gs25 역삼점"
    """
    normalized = normalize_description(value)
    if not normalized:
        return ""

    stripped = _PUNCTUATION_RE.sub("", normalized)
    return _WHITESPACE_RE.sub(" ", stripped).strip()
