"""
중복 거래 감지

책임:
- 금액/날짜/설명 유사도 계산
- 결제 수단/사용자 일치 보너스
- 가중 합산 점수와 사유 목록으로 후보 정렬

저장소 접근 없이 호출자가 넘긴 거래 목록만으로 계산하는 순수 함수들입니다.
거래 레코드는 속성(ORM 객체, pydantic 모델) 또는 키(dict)로 필드를 읽습니다.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from numbers import Real
from typing import Any

from gagyebu.schemas import DetectionOptions
from gagyebu.utils.currency import format_krw_input
from gagyebu.utils.normalization import normalize_description, normalize_description_strict


AMOUNT_WEIGHT = 0.4
DATE_WEIGHT = 0.3
DESCRIPTION_WEIGHT = 0.3
PAYMENT_METHOD_BONUS = 0.1
PERSON_BONUS = 0.1
CATEGORY_PATTERN_BONUS = 0.2

# 이 값보다 크면 "동일한 금액"
EXACT_AMOUNT_SIMILARITY = 0.9
# 이 값보다 크면 "동일한 설명"
IDENTICAL_DESCRIPTION_SIMILARITY = 0.95

LIKELY_DUPLICATE_THRESHOLD = 0.8

DEFAULT_DETECTION_OPTIONS = DetectionOptions()
STRICT_DETECTION_OPTIONS = DetectionOptions(
    amount_tolerance=0.01,
    date_tolerance=1,
    description_threshold=0.8,
)

# 가맹점 업종 패턴 (순서대로 평가, 양쪽 설명이 같은 패턴에 걸리면 보너스)
MERCHANT_CATEGORY_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("grocery", re.compile(r"마트|슈퍼|편의점")),
    ("cafe", re.compile(r"카페|커피|스타벅스|이디야")),
    ("restaurant", re.compile(r"식당|음식점|치킨|피자|한식|중식|일식|양식")),
    ("fuel", re.compile(r"주유소|기름|연료")),
    ("medical", re.compile(r"병원|의원|약국|의료")),
    ("transit", re.compile(r"교통|버스|지하철|택시|기차")),
    ("shopping", re.compile(r"쇼핑|온라인|배송|택배")),
)

_SECONDS_PER_DAY = 86400
# Python 3.10 fromisoformat은 "Z" 접미사를 읽지 못함
_ZULU_SUFFIX_RE = re.compile(r"[zZ]$")


@dataclass
class DuplicateMatch:
    """An existing transaction scored as a likely duplicate of the candidate."""

    transaction: Any
    similarity: float
    reasons: list[str] = field(default_factory=list)


@dataclass
class DuplicateWarning:
    confidence: int  # 0-100 (반올림)
    level: str  # high / medium / low
    message: str
    top_match: DuplicateMatch
    additional_count: int


# ==================== Field access ====================


def _field(record: Any, name: str, default: Any = None) -> Any:
    if isinstance(record, Mapping):
        return record.get(name, default)
    return getattr(record, name, default)


def _as_amount(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (Real, Decimal)):
        return None
    number = float(value)
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _as_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(_ZULU_SUFFIX_RE.sub("+00:00", value.strip()))
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _round_percent(value: float) -> int:
    # 0.5 올림 (화면 표기와 일치)
    return int(math.floor(value * 100 + 0.5))


# ==================== Similarity primitives ====================


def levenshtein_distance(s1: str, s2: str) -> int:
    """편집 거리 (삽입/삭제/치환 비용 1)"""
    if s1 == s2:
        return 0
    if not s1:
        return len(s2)
    if not s2:
        return len(s1)

    previous = list(range(len(s1) + 1))
    for j, ch2 in enumerate(s2, start=1):
        current = [j]
        for i, ch1 in enumerate(s1, start=1):
            cost = 0 if ch1 == ch2 else 1
            current.append(min(
                previous[i] + 1,
                current[i - 1] + 1,
                previous[i - 1] + cost,
            ))
        previous = current
    return previous[-1]


def string_similarity(s1: str, s2: str) -> float:
    """
    정규화된 두 문자열의 유사도 (0~1)

    ``1 - distance / max(len1, len2)``. 한쪽이라도 비어 있으면 0.
    """
    if not s1 or not s2:
        return 0.0
    if s1 == s2:
        return 1.0
    return 1 - levenshtein_distance(s1, s2) / max(len(s1), len(s2))


def amount_similarity(amount1: Any, amount2: Any, tolerance: float) -> float:
    """
    금액 유사도

    같으면 1, 평균 대비 차이 비율이 tolerance 이내면 선형 감소, 초과하면 0.
    읽을 수 없는 금액이나 평균 0 이하는 0.
    """
    a = _as_amount(amount1)
    b = _as_amount(amount2)
    if a is None or b is None:
        return 0.0
    if a == b:
        return 1.0

    avg_amount = (a + b) / 2
    if avg_amount <= 0 or tolerance <= 0:
        return 0.0

    percent_diff = abs(a - b) / avg_amount
    if percent_diff > tolerance:
        return 0.0
    return 1 - percent_diff / tolerance


def day_difference(date1: Any, date2: Any) -> int | None:
    """두 날짜의 일 차이 (부분 일은 올림). 파싱 실패 시 None."""
    d1 = _as_datetime(date1)
    d2 = _as_datetime(date2)
    if d1 is None or d2 is None:
        return None
    seconds = abs((d1 - d2).total_seconds())
    return math.ceil(seconds / _SECONDS_PER_DAY)


def date_similarity(day_diff: int | None, tolerance: int) -> float:
    if day_diff is None or day_diff > tolerance:
        return 0.0
    if tolerance <= 0:
        return 1.0
    return 1 - day_diff / tolerance


def merchant_categories(normalized: str) -> frozenset[str]:
    """설명이 걸리는 업종 패턴 이름 집합"""
    if not normalized:
        return frozenset()
    return frozenset(name for name, pattern in MERCHANT_CATEGORY_PATTERNS if pattern.search(normalized))


class _DescriptionMatcher:
    """후보 설명을 한 번만 정규화해 두고 기존 거래 설명과 비교"""

    def __init__(self, description: Any, smart: bool):
        self.smart = smart
        self.normalized = self._normalize(description)
        self.categories = merchant_categories(self.normalized) if smart else frozenset()

    def _normalize(self, description: Any) -> str:
        text = description if isinstance(description, str) else ""
        if self.smart:
            return normalize_description_strict(text)
        return normalize_description(text)

    def similarity(self, other_description: Any) -> float:
        other = self._normalize(other_description)
        if not self.normalized or not other:
            return 0.0
        if self.normalized == other:
            return 1.0

        basic = string_similarity(self.normalized, other)
        if self.smart and self.categories and self.categories & merchant_categories(other):
            return min(1.0, basic + CATEGORY_PATTERN_BONUS)
        return basic


def description_similarity(desc1: Any, desc2: Any, smart: bool = True) -> float:
    """설명 유사도 (smart면 특수문자 제거 + 업종 패턴 보너스)"""
    return _DescriptionMatcher(desc1, smart).similarity(desc2)


# ==================== Detection ====================


def _score(
    candidate: Any,
    existing: Any,
    matcher: _DescriptionMatcher,
    options: DetectionOptions,
) -> tuple[float, list[str]]:
    reasons: list[str] = []
    total = 0.0

    existing_amount = _field(existing, "amount")
    amount_sim = amount_similarity(existing_amount, _field(candidate, "amount"), options.amount_tolerance)
    if amount_sim > 0:
        total += amount_sim * AMOUNT_WEIGHT
        if amount_sim > EXACT_AMOUNT_SIMILARITY:
            reasons.append(f"동일한 금액 ({format_krw_input(existing_amount)}원)")
        else:
            diff = abs(_as_amount(existing_amount) - _as_amount(_field(candidate, "amount")))
            reasons.append(f"유사한 금액 (차이: {format_krw_input(diff)}원)")

    day_diff = day_difference(_field(existing, "date"), _field(candidate, "date"))
    if day_diff is not None and day_diff <= options.date_tolerance:
        total += date_similarity(day_diff, options.date_tolerance) * DATE_WEIGHT
        reasons.append("같은 날짜" if day_diff == 0 else f"{day_diff}일 차이")

    desc_sim = matcher.similarity(_field(existing, "description"))
    if desc_sim > 0 and desc_sim >= options.description_threshold:
        total += desc_sim * DESCRIPTION_WEIGHT
        if desc_sim > IDENTICAL_DESCRIPTION_SIMILARITY:
            reasons.append("동일한 설명")
        else:
            reasons.append(f"유사한 설명 ({_round_percent(desc_sim)}% 일치)")

    if options.enable_smart_detection:
        payment_method = _field(existing, "payment_method")
        if payment_method == _field(candidate, "payment_method"):
            total += PAYMENT_METHOD_BONUS
            reasons.append(f"동일한 결제 방법 ({payment_method})")

        if (
            _field(existing, "person_type") == _field(candidate, "person_type")
            and _field(existing, "person_id") == _field(candidate, "person_id")
        ):
            total += PERSON_BONUS
            reasons.append("동일한 사용자")

    return total, reasons


def detect_duplicates(
    candidate: Any,
    existing: Iterable[Any],
    options: DetectionOptions | None = None,
) -> list[DuplicateMatch]:
    """
    기존 거래 중 후보 거래의 중복으로 보이는 항목을 찾는다

    점수는 금액(0.4) + 날짜(0.3) + 설명(0.3) 가중 합에 결제 수단/사용자
    보너스(각 0.1)를 더한 값이며 재정규화하지 않으므로 1을 넘을 수 있다.

    Args:
        candidate: 새로 입력 중인 거래 (저장 전이어도 됨)
        existing: 같은 가구의 기존 거래들 (순서 무관)
        options: 감지 옵션. None이면 기본값

    Returns:
        점수 내림차순으로 정렬된 DuplicateMatch 목록 (동점은 입력 순서 유지)
    """
    if options is None:
        options = DEFAULT_DETECTION_OPTIONS

    candidate_type = _field(candidate, "type")
    matcher = _DescriptionMatcher(_field(candidate, "description"), options.enable_smart_detection)
    matches: list[DuplicateMatch] = []

    for record in existing:
        if _field(record, "type") != candidate_type:
            continue

        score, reasons = _score(candidate, record, matcher, options)
        if score > options.match_threshold and len(reasons) >= options.min_reasons:
            matches.append(DuplicateMatch(transaction=record, similarity=score, reasons=reasons))

    matches.sort(key=lambda m: m.similarity, reverse=True)
    return matches


def has_likely_duplicate(
    candidate: Any,
    existing: Iterable[Any],
    options: DetectionOptions | None = None,
) -> bool:
    """
    제출 전 가벼운 경고용 빠른 검사

    금액 1%, 날짜 1일, 설명 80% 기준으로 더 엄격하게 감지하고
    최상위 점수가 0.8을 넘을 때만 True.
    """
    strict = STRICT_DETECTION_OPTIONS
    if options is not None:
        strict = options.model_copy(update={
            "amount_tolerance": STRICT_DETECTION_OPTIONS.amount_tolerance,
            "date_tolerance": STRICT_DETECTION_OPTIONS.date_tolerance,
            "description_threshold": STRICT_DETECTION_OPTIONS.description_threshold,
        })

    matches = detect_duplicates(candidate, existing, strict)
    return bool(matches) and matches[0].similarity > LIKELY_DUPLICATE_THRESHOLD


def get_duplicate_warning(matches: Sequence[DuplicateMatch]) -> str:
    """최상위 후보의 확률과 사유를 한 문장으로"""
    if not matches:
        return ""

    top = matches[0]
    confidence = _round_percent(top.similarity)
    return f"{confidence}% 확률로 중복 거래일 수 있습니다. {', '.join(top.reasons)}"


def warning_level(confidence: int) -> str:
    if confidence >= 90:
        return "high"
    if confidence >= 70:
        return "medium"
    return "low"


def build_duplicate_warning(matches: Sequence[DuplicateMatch]) -> DuplicateWarning | None:
    """경고 배너용 요약. 후보가 없으면 None."""
    if not matches:
        return None

    top = matches[0]
    confidence = _round_percent(top.similarity)
    return DuplicateWarning(
        confidence=confidence,
        level=warning_level(confidence),
        message=get_duplicate_warning(matches),
        top_match=top,
        additional_count=len(matches) - 1,
    )
