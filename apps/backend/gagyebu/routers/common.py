from __future__ import annotations

from fastapi import HTTPException
from sqlalchemy.orm import Session

from gagyebu import models


def get_household_or_404(db: Session, household_id: int) -> models.Household:
    household = db.get(models.Household, household_id)
    if household is None:
        raise HTTPException(status_code=404, detail="Household not found")
    return household


def get_transaction_or_404(db: Session, txn_id: int) -> models.Transaction:
    txn = db.get(models.Transaction, txn_id)
    if txn is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return txn


def is_household_member(db: Session, household_id: int, user_id: int) -> bool:
    return (
        db.query(models.HouseholdMember.id)
        .filter(
            models.HouseholdMember.household_id == household_id,
            models.HouseholdMember.user_id == user_id,
        )
        .first()
        is not None
    )


def custom_payment_methods(db: Session, household_id: int) -> list[str]:
    """가구 사용자 정의 결제 수단 이름 (등록 순)"""
    return [
        name
        for (name,) in db.query(models.PaymentMethod.name)
        .filter(models.PaymentMethod.household_id == household_id)
        .order_by(models.PaymentMethod.id)
        .all()
    ]
