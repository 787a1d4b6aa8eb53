"""
Services 패키지

중복 거래 감지와 거래 조회 서비스를 제공합니다.
"""

from .duplicate_detection import (
    DEFAULT_DETECTION_OPTIONS,
    DuplicateMatch,
    DuplicateWarning,
    build_duplicate_warning,
    detect_duplicates,
    get_duplicate_warning,
    has_likely_duplicate,
)
from .transaction_service import DuplicateDetectionService, load_household_transactions

__all__ = [
    "DEFAULT_DETECTION_OPTIONS",
    "DuplicateMatch",
    "DuplicateWarning",
    "build_duplicate_warning",
    "detect_duplicates",
    "get_duplicate_warning",
    "has_likely_duplicate",
    "DuplicateDetectionService",
    "load_household_transactions",
]
