"""Enforce total_earnings = pending_earnings + paid_earnings on affiliates.

Every earnings update moves two columns in a single UPDATE, so the check
holds after each statement.

Revision ID: 002_affiliate_earnings_check
Revises: 001_initial
Create Date: 2026-03-09
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "002_affiliate_earnings_check"
down_revision: Union[str, None] = "001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    conn = op.get_bind()
    if conn.dialect.name != "postgresql":
        return
    conn.execute(
        sa.text(
            """
            DO $$
            BEGIN
                ALTER TABLE affiliates
                ADD CONSTRAINT ck_affiliates_earnings_balance
                CHECK (total_earnings = pending_earnings + paid_earnings);
            EXCEPTION
                WHEN duplicate_object THEN NULL;
            END $$;
            """
        )
    )


def downgrade() -> None:
    conn = op.get_bind()
    if conn.dialect.name != "postgresql":
        return
    conn.execute(sa.text("ALTER TABLE affiliates DROP CONSTRAINT IF EXISTS ck_affiliates_earnings_balance"))
