from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from gagyebu import models, schemas
from gagyebu.core.config import Settings, settings as default_settings
from gagyebu.core.logging import get_logger
from gagyebu.services.duplicate_detection import (
    DuplicateMatch,
    detect_duplicates,
    has_likely_duplicate,
)

logger = get_logger(__name__)


def load_household_transactions(
    db: Session,
    household_id: int,
    since: Optional[date] = None,
    exclude_id: Optional[int] = None,
) -> list[models.Transaction]:
    """Snapshot of a household's transactions, newest first (date desc, id desc)."""
    query = db.query(models.Transaction).filter(models.Transaction.household_id == household_id)
    if since is not None:
        query = query.filter(models.Transaction.date >= since)
    if exclude_id is not None:
        query = query.filter(models.Transaction.id != exclude_id)
    return query.order_by(models.Transaction.date.desc(), models.Transaction.id.desc()).all()


def options_from_settings(config: Settings) -> schemas.DetectionOptions:
    return schemas.DetectionOptions(
        amount_tolerance=config.DUPLICATE_AMOUNT_TOLERANCE,
        date_tolerance=config.DUPLICATE_DATE_TOLERANCE,
        description_threshold=config.DUPLICATE_DESCRIPTION_THRESHOLD,
        enable_smart_detection=config.DUPLICATE_SMART_DETECTION,
    )


class DuplicateDetectionService:
    """Run duplicate detection for a candidate against a household's stored history."""

    def __init__(self, db: Session, config: Settings | None = None) -> None:
        self.db = db
        self.config = config or default_settings
        self.base_options = options_from_settings(self.config)

    def resolve_options(
        self, override: Optional[schemas.DetectionOptionsOverride] = None
    ) -> schemas.DetectionOptions:
        if override is None:
            return self.base_options
        return override.apply_to(self.base_options)

    def snapshot(
        self,
        household_id: int,
        reference_date: Optional[date] = None,
        exclude_id: Optional[int] = None,
    ) -> list[models.Transaction]:
        """기존 거래 스냅샷 (DUPLICATE_LOOKBACK_DAYS > 0이면 기준일 이전 기간만)"""
        since = None
        lookback = self.config.DUPLICATE_LOOKBACK_DAYS
        if lookback > 0 and reference_date is not None:
            since = reference_date - timedelta(days=lookback)
        return load_household_transactions(self.db, household_id, since=since, exclude_id=exclude_id)

    def find_duplicates(
        self,
        household_id: int,
        candidate: schemas.TransactionCreate,
        override: Optional[schemas.DetectionOptionsOverride] = None,
        exclude_id: Optional[int] = None,
    ) -> list[DuplicateMatch]:
        options = self.resolve_options(override)
        existing = self.snapshot(household_id, candidate.date, exclude_id)
        matches = detect_duplicates(candidate, existing, options)

        if matches:
            logger.info(
                "household=%s: %d duplicate candidate(s) for %s %s on %s (top=%.2f)",
                household_id,
                len(matches),
                candidate.type.value,
                candidate.amount,
                candidate.date.isoformat(),
                matches[0].similarity,
            )
        else:
            logger.debug("household=%s: no duplicates among %d transaction(s)", household_id, len(existing))
        return matches

    def is_likely_duplicate(
        self,
        household_id: int,
        candidate: schemas.TransactionCreate,
        override: Optional[schemas.DetectionOptionsOverride] = None,
        exclude_id: Optional[int] = None,
    ) -> bool:
        existing = self.snapshot(household_id, candidate.date, exclude_id)
        return has_likely_duplicate(candidate, existing, self.resolve_options(override))
