from __future__ import annotations

import secrets
import string

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from gagyebu import models
from gagyebu.core.database import get_db
from gagyebu.core.logging import get_logger
from gagyebu.routers.common import custom_payment_methods, get_household_or_404, is_household_member
from gagyebu.schemas import (
    HouseholdCreate,
    HouseholdJoin,
    HouseholdOut,
    MemberCreate,
    MemberOut,
    PaymentMethodCreate,
    PaymentMethodsOut,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/households", tags=["households"])

_INVITE_ALPHABET = string.ascii_uppercase + string.digits
_INVITE_CODE_LENGTH = 8


def _new_invite_code(db: Session) -> str:
    while True:
        code = "".join(secrets.choice(_INVITE_ALPHABET) for _ in range(_INVITE_CODE_LENGTH))
        taken = db.query(models.Household.id).filter(models.Household.invite_code == code).first()
        if not taken:
            return code


def _get_or_create_user(db: Session, email: str, name: str | None) -> models.User:
    user = db.query(models.User).filter(models.User.email == email).first()
    if user is None:
        user = models.User(email=email, name=name)
        db.add(user)
        db.flush()
    elif name and not user.name:
        user.name = name
    return user


def _ensure_capacity(db: Session, household_id: int) -> None:
    count = db.query(models.HouseholdMember).filter(models.HouseholdMember.household_id == household_id).count()
    if count >= models.MAX_HOUSEHOLD_MEMBERS:
        raise HTTPException(
            status_code=409,
            detail=f"Household already has the maximum of {models.MAX_HOUSEHOLD_MEMBERS} members",
        )


def _member_out(member: models.HouseholdMember) -> MemberOut:
    return MemberOut(
        user_id=member.user_id,
        email=member.user.email,
        name=member.user.name,
        role=member.role,
    )


def _household_out(household: models.Household) -> HouseholdOut:
    return HouseholdOut(
        id=household.id,
        name=household.name,
        invite_code=household.invite_code,
        created_at=household.created_at,
        members=[_member_out(m) for m in sorted(household.members, key=lambda m: m.id)],
    )


@router.post("", response_model=HouseholdOut, status_code=201)
def create_household(payload: HouseholdCreate, db: Session = Depends(get_db)):
    household = models.Household(name=payload.name, invite_code=_new_invite_code(db))
    db.add(household)
    db.flush()

    if payload.owner_email:
        owner = _get_or_create_user(db, payload.owner_email, payload.owner_name)
        db.add(models.HouseholdMember(household_id=household.id, user_id=owner.id, role=models.MemberRole.OWNER))

    db.commit()
    db.refresh(household)
    logger.info("created household id=%s", household.id)
    return _household_out(household)


@router.post("/join", response_model=HouseholdOut)
def join_household(payload: HouseholdJoin, db: Session = Depends(get_db)):
    household = db.query(models.Household).filter(models.Household.invite_code == payload.invite_code).first()
    if household is None:
        raise HTTPException(status_code=404, detail="Invalid invite code")

    _ensure_capacity(db, household.id)
    user = _get_or_create_user(db, payload.email, payload.name)
    if is_household_member(db, household.id, user.id):
        raise HTTPException(status_code=409, detail="User is already a member of this household")

    db.add(models.HouseholdMember(household_id=household.id, user_id=user.id, role=models.MemberRole.MEMBER))
    db.commit()
    db.refresh(household)
    logger.info("user id=%s joined household id=%s", user.id, household.id)
    return _household_out(household)


@router.get("/{household_id}", response_model=HouseholdOut)
def get_household(household_id: int, db: Session = Depends(get_db)):
    return _household_out(get_household_or_404(db, household_id))


@router.post("/{household_id}/members", response_model=MemberOut, status_code=201)
def add_member(household_id: int, payload: MemberCreate, db: Session = Depends(get_db)):
    get_household_or_404(db, household_id)
    _ensure_capacity(db, household_id)
    user = _get_or_create_user(db, payload.email, payload.name)
    if is_household_member(db, household_id, user.id):
        raise HTTPException(status_code=409, detail="User is already a member of this household")

    member = models.HouseholdMember(household_id=household_id, user_id=user.id, role=payload.role)
    db.add(member)
    db.commit()
    db.refresh(member)
    return _member_out(member)


@router.delete("/{household_id}/members/{user_id}", status_code=204)
def remove_member(household_id: int, user_id: int, db: Session = Depends(get_db)):
    """구성원 제거 (탈퇴 포함). 마지막 소유자는 제거할 수 없음."""
    get_household_or_404(db, household_id)
    member = (
        db.query(models.HouseholdMember)
        .filter(models.HouseholdMember.household_id == household_id, models.HouseholdMember.user_id == user_id)
        .first()
    )
    if member is None:
        raise HTTPException(status_code=404, detail="Member not found")

    if member.role == models.MemberRole.OWNER:
        owners = (
            db.query(models.HouseholdMember)
            .filter(
                models.HouseholdMember.household_id == household_id,
                models.HouseholdMember.role == models.MemberRole.OWNER,
            )
            .count()
        )
        if owners <= 1:
            raise HTTPException(status_code=400, detail="Cannot remove the last owner of a household")

    db.delete(member)
    db.commit()
    logger.info("user id=%s removed from household id=%s", user_id, household_id)
    return Response(status_code=204)


@router.get("/{household_id}/payment-methods", response_model=PaymentMethodsOut)
def list_payment_methods(household_id: int, db: Session = Depends(get_db)):
    get_household_or_404(db, household_id)
    return PaymentMethodsOut(
        built_in=list(models.BUILT_IN_PAYMENT_METHODS),
        custom=custom_payment_methods(db, household_id),
    )


@router.post("/{household_id}/payment-methods", response_model=PaymentMethodsOut, status_code=201)
def add_payment_method(household_id: int, payload: PaymentMethodCreate, db: Session = Depends(get_db)):
    get_household_or_404(db, household_id)
    if payload.name in models.BUILT_IN_PAYMENT_METHODS or payload.name in custom_payment_methods(db, household_id):
        raise HTTPException(status_code=409, detail="Payment method already exists")

    db.add(models.PaymentMethod(household_id=household_id, name=payload.name))
    db.commit()
    return list_payment_methods(household_id, db)
