"""
initial household ledger schema

Revision ID: 3f9a1c2e7b10
Revises:
Create Date: 2026-10-18 10:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3f9a1c2e7b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("(CURRENT_TIMESTAMP)")),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("(CURRENT_TIMESTAMP)")),
    ]


def upgrade() -> None:
    # SQLite에서는 CHECK 없는 TEXT로 저장됨
    txn_type = sa.Enum("EXPENSE", "INCOME", name="txn_type")
    person_type = sa.Enum("MEMBER", "HOUSEHOLD", name="person_type")
    member_role = sa.Enum("OWNER", "MEMBER", name="member_role")

    op.create_table(
        "user",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("name", sa.String(length=100), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "household",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("invite_code", sa.String(length=16), nullable=False, unique=True),
        *_timestamps(),
    )

    op.create_table(
        "householdmember",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("household_id", sa.Integer(), sa.ForeignKey("household.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", member_role, nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("household_id", "user_id", name="uq_household_member"),
    )

    op.create_table(
        "paymentmethod",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("household_id", sa.Integer(), sa.ForeignKey("household.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("household_id", "name", name="uq_payment_method_name"),
    )

    op.create_table(
        "transaction",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("household_id", sa.Integer(), sa.ForeignKey("household.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", txn_type, nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("payment_method", sa.String(length=50), nullable=False),
        sa.Column("person_type", person_type, nullable=False),
        sa.Column("person_id", sa.Integer(), sa.ForeignKey("user.id", ondelete="SET NULL"), nullable=True),
        sa.Column("memo", sa.Text(), nullable=True),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("user.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("amount >= 0", name="ck_transaction_amount_non_negative"),
    )
    op.create_index("ix_transaction_household_date", "transaction", ["household_id", "date"])

    op.create_table(
        "transactiontag",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            "transaction_id",
            sa.Integer(),
            sa.ForeignKey("transaction.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("tag_name", sa.String(length=50), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("transaction_id", "tag_name", name="uq_transaction_tag"),
    )


def downgrade() -> None:
    op.drop_table("transactiontag")
    op.drop_index("ix_transaction_household_date", table_name="transaction")
    op.drop_table("transaction")
    op.drop_table("paymentmethod")
    op.drop_table("householdmember")
    op.drop_table("household")
    op.drop_table("user")

    bind = op.get_bind()
    for enum_name in ("txn_type", "person_type", "member_role"):
        sa.Enum(name=enum_name).drop(bind, checkfirst=True)
