from __future__ import annotations

import datetime as dt
from datetime import datetime
from typing import Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

from .models import MemberRole, PersonType, TxnType
from .utils.currency import format_krw, parse_krw


INVALID_AMOUNT_MESSAGE = "올바른 금액을 입력하세요"


def _coerce_amount(value):
    # "₩15,000" 같은 표기 입력 허용
    if isinstance(value, str):
        return parse_krw(value)
    return value


def _require_positive_amount(value: int | None) -> int | None:
    if value is not None and value <= 0:
        raise ValueError(INVALID_AMOUNT_MESSAGE)
    return value


# ---------------------------------------------------------------------------
# Duplicate detection options
# ---------------------------------------------------------------------------


class DetectionOptions(BaseModel):
    """Tunable knobs for duplicate scoring; immutable, copy with ``model_copy(update=...)``."""

    model_config = ConfigDict(frozen=True)

    amount_tolerance: float = Field(default=0.02, ge=0)
    date_tolerance: int = Field(default=3, ge=0)
    description_threshold: float = Field(default=0.7, ge=0, le=1)
    enable_smart_detection: bool = True
    match_threshold: float = Field(default=0.6, ge=0)
    min_reasons: int = Field(default=2, ge=0)


class DetectionOptionsOverride(BaseModel):
    amount_tolerance: float | None = Field(default=None, ge=0)
    date_tolerance: int | None = Field(default=None, ge=0)
    description_threshold: float | None = Field(default=None, ge=0, le=1)
    enable_smart_detection: bool | None = None
    match_threshold: float | None = Field(default=None, ge=0)
    min_reasons: int | None = Field(default=None, ge=0)

    def apply_to(self, base: DetectionOptions) -> DetectionOptions:
        updates = self.model_dump(exclude_none=True)
        if not updates:
            return base
        return DetectionOptions.model_validate({**base.model_dump(), **updates})


# ---------------------------------------------------------------------------
# Households / members / payment methods
# ---------------------------------------------------------------------------


class HouseholdCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    owner_email: EmailStr | None = None
    owner_name: str | None = Field(default=None, max_length=100)

    @field_validator("name")
    def household_name(cls, v: str):
        stripped = v.strip()
        if not stripped:
            raise ValueError("가구 이름을 입력하세요")
        return stripped


class MemberCreate(BaseModel):
    email: EmailStr
    name: str | None = Field(default=None, max_length=100)
    role: MemberRole = MemberRole.MEMBER


class HouseholdJoin(BaseModel):
    invite_code: str = Field(min_length=1, max_length=16)
    email: EmailStr
    name: str | None = Field(default=None, max_length=100)

    @field_validator("invite_code")
    def normalize_invite_code(cls, v: str):
        # 초대 코드는 대소문자 구분 없음
        return v.strip().upper()


class MemberOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    email: str
    name: str | None = None
    role: MemberRole


class HouseholdOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    invite_code: str
    created_at: datetime
    members: list[MemberOut] = Field(default_factory=list)


class PaymentMethodCreate(BaseModel):
    name: str = Field(min_length=1, max_length=50)

    @field_validator("name")
    def method_name(cls, v: str):
        stripped = v.strip()
        if not stripped:
            raise ValueError("결제 수단 이름을 입력하세요")
        return stripped


class PaymentMethodsOut(BaseModel):
    built_in: list[str]
    custom: list[str]

    @computed_field(return_type=list[str])
    def all(self) -> list[str]:
        return [*self.built_in, *self.custom]


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------

MAX_TAG_LENGTH = 50


def _clean_tags(values: list[str] | None) -> list[str] | None:
    """앞뒤 공백 제거, 빈 태그와 중복 제거 (입력 순서 유지)"""
    if values is None:
        return None
    cleaned: list[str] = []
    for value in values:
        tag = value.strip()
        if not tag or tag in cleaned:
            continue
        if len(tag) > MAX_TAG_LENGTH:
            raise ValueError(f"태그는 {MAX_TAG_LENGTH}자 이하로 입력하세요")
        cleaned.append(tag)
    return cleaned


class TransactionCreate(BaseModel):
    type: TxnType
    amount: int
    description: str = Field(default="", max_length=500)
    date: dt.date
    payment_method: str = Field(min_length=1, max_length=50)
    person_type: PersonType = PersonType.HOUSEHOLD
    person_id: int | None = None
    memo: str | None = Field(default=None, max_length=1000)
    created_by: int | None = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("amount", mode="before")
    def parse_amount_text(cls, v):
        return _coerce_amount(v)

    @field_validator("amount")
    def positive_amount(cls, v: int):
        return _require_positive_amount(v)

    @field_validator("tags")
    def clean_tags(cls, v: list[str]):
        return _clean_tags(v)

    @model_validator(mode="after")
    def check_person(self) -> "TransactionCreate":
        if self.person_type == PersonType.HOUSEHOLD:
            self.person_id = None
        elif self.person_id is None:
            raise ValueError("person_id is required when person_type is 'member'")
        return self


class TransactionUpdate(BaseModel):
    type: TxnType | None = None
    amount: int | None = None
    description: str | None = Field(default=None, max_length=500)
    date: dt.date | None = None
    payment_method: str | None = Field(default=None, min_length=1, max_length=50)
    person_type: PersonType | None = None
    person_id: int | None = None
    memo: str | None = Field(default=None, max_length=1000)
    tags: list[str] | None = None

    @field_validator("amount", mode="before")
    def parse_amount_text(cls, v):
        return _coerce_amount(v)

    @field_validator("amount")
    def positive_amount(cls, v: int | None):
        return _require_positive_amount(v)

    @field_validator("tags")
    def clean_tags(cls, v: list[str] | None):
        return _clean_tags(v)


class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    household_id: int
    type: TxnType
    amount: int
    description: str
    date: dt.date
    payment_method: str
    person_type: PersonType
    person_id: int | None = None
    memo: str | None = None
    created_by: int | None = None
    created_at: datetime
    updated_at: datetime
    tags: list[str] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    def tag_names(cls, v):
        return [getattr(t, "tag_name", t) for t in v or []]

    @computed_field(return_type=str)
    def amount_display(self) -> str:
        return format_krw(self.amount)


# ---------------------------------------------------------------------------
# Duplicate checks
# ---------------------------------------------------------------------------


class DuplicateCheckRequest(BaseModel):
    transaction: TransactionCreate
    options: DetectionOptionsOverride | None = None
    # 수정 중인 거래 자신은 비교 대상에서 제외
    exclude_id: int | None = None


class DuplicateMatchOut(BaseModel):
    transaction: TransactionOut
    similarity: float
    reasons: list[str]


class DuplicateWarningOut(BaseModel):
    confidence: int
    level: Literal["high", "medium", "low"]
    message: str
    top_match: DuplicateMatchOut
    additional_count: int


class DuplicateCheckResult(BaseModel):
    matches: list[DuplicateMatchOut]
    warning: DuplicateWarningOut | None = None


class QuickCheckResult(BaseModel):
    has_likely_duplicate: bool
