"""Household transaction endpoints and duplicate checks.

Creation never blocks on duplicates: the number of likely duplicates found
against the existing history is reported in the ``X-Duplicate-Candidates``
header so the client can show its warning banner.
"""

from __future__ import annotations

import datetime as dt
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from gagyebu import models
from gagyebu.core.database import get_db
from gagyebu.core.logging import get_logger
from gagyebu.routers.common import (
    custom_payment_methods,
    get_household_or_404,
    get_transaction_or_404,
    is_household_member,
)
from gagyebu.schemas import (
    DuplicateCheckRequest,
    DuplicateCheckResult,
    DuplicateMatchOut,
    DuplicateWarningOut,
    QuickCheckResult,
    TransactionCreate,
    TransactionOut,
    TransactionUpdate,
)
from gagyebu.services.duplicate_detection import DuplicateMatch, build_duplicate_warning
from gagyebu.services.transaction_service import DuplicateDetectionService

logger = get_logger(__name__)

router = APIRouter(tags=["transactions"])

DUPLICATE_HEADER = "X-Duplicate-Candidates"

# PATCH에서 null로 비울 수 없는 컬럼
_REQUIRED_COLUMNS = ("type", "amount", "description", "date", "payment_method", "person_type")


def _validate_person(db: Session, household_id: int, person_type: models.PersonType, person_id: Optional[int]) -> None:
    if person_type != models.PersonType.MEMBER:
        return
    if person_id is None:
        raise HTTPException(status_code=400, detail="person_id is required for member transactions")
    if not is_household_member(db, household_id, person_id):
        raise HTTPException(status_code=400, detail="person_id is not a member of this household")


def _validate_payment_method(db: Session, household_id: int, payment_method: str) -> None:
    if payment_method in models.BUILT_IN_PAYMENT_METHODS:
        return
    if payment_method not in custom_payment_methods(db, household_id):
        raise HTTPException(status_code=400, detail=f"Unknown payment method: {payment_method}")


def _apply_tags(txn: models.Transaction, names: list[str]) -> None:
    # 남는 태그는 기존 행을 재사용 (transaction_id, tag_name 유니크)
    existing = {tag.tag_name: tag for tag in txn.tags}
    txn.tags = [existing.get(name) or models.TransactionTag(tag_name=name) for name in names]


def _match_out(match: DuplicateMatch) -> DuplicateMatchOut:
    return DuplicateMatchOut(
        transaction=TransactionOut.model_validate(match.transaction),
        similarity=match.similarity,
        reasons=list(match.reasons),
    )


@router.get("/households/{household_id}/transactions", response_model=list[TransactionOut])
def list_transactions(
    household_id: int,
    type: Optional[models.TxnType] = Query(default=None),
    start: Optional[dt.date] = Query(default=None),
    end: Optional[dt.date] = Query(default=None),
    tag: Optional[str] = Query(default=None, max_length=50),
    limit: int = Query(default=200, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    get_household_or_404(db, household_id)
    query = db.query(models.Transaction).filter(models.Transaction.household_id == household_id)
    if type is not None:
        query = query.filter(models.Transaction.type == type)
    if start is not None:
        query = query.filter(models.Transaction.date >= start)
    if end is not None:
        query = query.filter(models.Transaction.date <= end)
    if tag:
        query = query.filter(models.Transaction.tags.any(models.TransactionTag.tag_name == tag.strip()))
    return (
        query.order_by(models.Transaction.date.desc(), models.Transaction.id.desc())
        .limit(limit)
        .all()
    )


@router.post("/households/{household_id}/transactions", response_model=TransactionOut, status_code=201)
def create_transaction(
    household_id: int,
    payload: TransactionCreate,
    response: Response,
    db: Session = Depends(get_db),
):
    get_household_or_404(db, household_id)
    _validate_person(db, household_id, payload.person_type, payload.person_id)
    _validate_payment_method(db, household_id, payload.payment_method)

    # 저장 전 스냅샷 기준으로 중복 후보 수 계산
    matches = DuplicateDetectionService(db).find_duplicates(household_id, payload)

    txn = models.Transaction(household_id=household_id, **payload.model_dump(exclude={"tags"}))
    _apply_tags(txn, payload.tags)
    db.add(txn)
    db.commit()
    db.refresh(txn)

    response.headers[DUPLICATE_HEADER] = str(len(matches))
    if matches:
        logger.warning(
            "transaction id=%s saved with %d possible duplicate(s), top id=%s",
            txn.id,
            len(matches),
            matches[0].transaction.id,
        )
    return txn


@router.patch("/transactions/{txn_id}", response_model=TransactionOut)
def update_transaction(txn_id: int, payload: TransactionUpdate, db: Session = Depends(get_db)):
    txn = get_transaction_or_404(db, txn_id)
    data = payload.model_dump(exclude_unset=True)
    tags = data.pop("tags", None)
    for key in _REQUIRED_COLUMNS:
        if key in data and data[key] is None:
            data.pop(key)

    person_type = data.get("person_type", txn.person_type)
    person_id = data.get("person_id", txn.person_id)
    if person_type == models.PersonType.HOUSEHOLD:
        person_id = None
        data["person_id"] = None
    _validate_person(db, txn.household_id, person_type, person_id)
    if "payment_method" in data:
        _validate_payment_method(db, txn.household_id, data["payment_method"])

    for key, value in data.items():
        setattr(txn, key, value)
    if tags is not None:
        _apply_tags(txn, tags)
    db.commit()
    db.refresh(txn)
    return txn


@router.delete("/transactions/{txn_id}", status_code=204)
def delete_transaction(txn_id: int, db: Session = Depends(get_db)):
    txn = get_transaction_or_404(db, txn_id)
    db.delete(txn)
    db.commit()
    return Response(status_code=204)


@router.post(
    "/households/{household_id}/transactions/duplicates/check",
    response_model=DuplicateCheckResult,
)
def check_duplicates(household_id: int, payload: DuplicateCheckRequest, db: Session = Depends(get_db)):
    get_household_or_404(db, household_id)
    matches = DuplicateDetectionService(db).find_duplicates(
        household_id,
        payload.transaction,
        override=payload.options,
        exclude_id=payload.exclude_id,
    )

    warning = build_duplicate_warning(matches)
    match_outs = [_match_out(m) for m in matches]
    warning_out = None
    if warning is not None:
        warning_out = DuplicateWarningOut(
            confidence=warning.confidence,
            level=warning.level,
            message=warning.message,
            top_match=match_outs[0],
            additional_count=warning.additional_count,
        )
    return DuplicateCheckResult(matches=match_outs, warning=warning_out)


@router.post(
    "/households/{household_id}/transactions/duplicates/quick-check",
    response_model=QuickCheckResult,
)
def quick_check_duplicates(household_id: int, payload: DuplicateCheckRequest, db: Session = Depends(get_db)):
    get_household_or_404(db, household_id)
    likely = DuplicateDetectionService(db).is_likely_duplicate(
        household_id,
        payload.transaction,
        override=payload.options,
        exclude_id=payload.exclude_id,
    )
    return QuickCheckResult(has_likely_duplicate=likely)
