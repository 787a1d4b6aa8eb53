from __future__ import annotations

import datetime as dt
from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from enum import Enum

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .core.config import settings
from .core.database import Base


try:
    LOCAL_ZONE = ZoneInfo(getattr(settings, "TIMEZONE", "Asia/Seoul"))
except ZoneInfoNotFoundError:
    LOCAL_ZONE = ZoneInfo("Asia/Seoul")


def now_local_naive() -> datetime:
    """Return naive datetime normalized to configured local timezone."""
    return datetime.now(LOCAL_ZONE).replace(tzinfo=None)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime, default=now_local_naive, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=now_local_naive, onupdate=now_local_naive, nullable=False)


class TxnType(str, Enum):
    EXPENSE = "expense"
    INCOME = "income"


class PersonType(str, Enum):
    """Who a transaction is attributed to: one member or the whole household."""

    MEMBER = "member"
    HOUSEHOLD = "household"


class MemberRole(str, Enum):
    OWNER = "owner"
    MEMBER = "member"


# 기본 제공 결제 수단 (가구별 사용자 정의 수단과 함께 노출)
BUILT_IN_PAYMENT_METHODS: tuple[str, ...] = (
    "현금",
    "신용카드",
    "체크카드",
    "계좌이체",
    "기타",
)

# 가구당 최대 구성원 수
MAX_HOUSEHOLD_MEMBERS = 7


class User(Base, TimestampMixin):
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String(100))

    memberships: Mapped[list["HouseholdMember"]] = relationship(back_populates="user")


class Household(Base, TimestampMixin):
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    invite_code: Mapped[str] = mapped_column(String(16), unique=True, nullable=False)

    members: Mapped[list["HouseholdMember"]] = relationship(
        back_populates="household", cascade="all, delete-orphan"
    )
    transactions: Mapped[list["Transaction"]] = relationship(
        back_populates="household", cascade="all, delete-orphan"
    )
    payment_methods: Mapped[list["PaymentMethod"]] = relationship(
        back_populates="household", cascade="all, delete-orphan"
    )


class HouseholdMember(Base, TimestampMixin):
    __table_args__ = (UniqueConstraint("household_id", "user_id", name="uq_household_member"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    household_id: Mapped[int] = mapped_column(ForeignKey("household.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    role: Mapped[MemberRole] = mapped_column(
        SAEnum(MemberRole, name="member_role"), nullable=False, default=MemberRole.MEMBER
    )

    household: Mapped[Household] = relationship(back_populates="members")
    user: Mapped[User] = relationship(back_populates="memberships")


class PaymentMethod(Base, TimestampMixin):
    __table_args__ = (UniqueConstraint("household_id", "name", name="uq_payment_method_name"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    household_id: Mapped[int] = mapped_column(ForeignKey("household.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(50), nullable=False)

    household: Mapped[Household] = relationship(back_populates="payment_methods")


class Transaction(Base, TimestampMixin):
    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_transaction_amount_non_negative"),
        Index("ix_transaction_household_date", "household_id", "date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    household_id: Mapped[int] = mapped_column(ForeignKey("household.id", ondelete="CASCADE"), nullable=False)
    type: Mapped[TxnType] = mapped_column(SAEnum(TxnType, name="txn_type"), nullable=False)
    # 원화 정수 금액 (소수 단위 없음)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    payment_method: Mapped[str] = mapped_column(String(50), nullable=False)
    person_type: Mapped[PersonType] = mapped_column(
        SAEnum(PersonType, name="person_type"), nullable=False, default=PersonType.HOUSEHOLD
    )
    person_id: Mapped[int | None] = mapped_column(ForeignKey("user.id", ondelete="SET NULL"))
    memo: Mapped[str | None] = mapped_column(Text)
    created_by: Mapped[int | None] = mapped_column(ForeignKey("user.id", ondelete="SET NULL"))

    household: Mapped[Household] = relationship(back_populates="transactions")
    tags: Mapped[list["TransactionTag"]] = relationship(
        back_populates="transaction", cascade="all, delete-orphan", order_by="TransactionTag.id"
    )


class TransactionTag(Base, TimestampMixin):
    __table_args__ = (UniqueConstraint("transaction_id", "tag_name", name="uq_transaction_tag"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    transaction_id: Mapped[int] = mapped_column(ForeignKey("transaction.id", ondelete="CASCADE"), nullable=False)
    tag_name: Mapped[str] = mapped_column(String(50), nullable=False)

    transaction: Mapped[Transaction] = relationship(back_populates="tags")
