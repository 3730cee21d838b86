"""Initial schema: users, subscriptions, usage periods, affiliate program,
support tickets and newsletter subscribers.

Tables may already exist because app startup runs Base.metadata.create_all
first, so every table is only created when missing.

Revision ID: 001_initial
Revises:
Create Date: 2026-03-02

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _has_table(name: str) -> bool:
    return sa.inspect(op.get_bind()).has_table(name)


def upgrade() -> None:
    if not _has_table("users"):
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("email", sa.String(), nullable=False),
            sa.Column("name", sa.String(), nullable=True),
            sa.Column("image", sa.String(), nullable=True),
            sa.Column("role", sa.String(), nullable=False, server_default="user"),
            sa.Column("is_deactivated", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("deactivated_at", sa.DateTime(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
        )
        op.create_index("ix_users_id", "users", ["id"])
        op.create_index("ix_users_email", "users", ["email"], unique=True)

    if not _has_table("subscriptions"):
        op.create_table(
            "subscriptions",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True),
            sa.Column("plan_tier", sa.String(), nullable=False, server_default="free"),
            sa.Column("status", sa.String(), nullable=False, server_default="inactive"),
            sa.Column("stripe_customer_id", sa.String(), nullable=True, unique=True),
            sa.Column("stripe_subscription_id", sa.String(), nullable=True, unique=True),
            sa.Column("stripe_price_id", sa.String(), nullable=True),
            sa.Column("current_period_end", sa.DateTime(), nullable=True),
            sa.Column("billing_interval", sa.String(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
        )
        op.create_index("ix_subscriptions_id", "subscriptions", ["id"])

    if not _has_table("usage_periods"):
        op.create_table(
            "usage_periods",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
            sa.Column("period", sa.String(), nullable=False),
            sa.Column("period_start", sa.Date(), nullable=False),
            sa.Column("analyses", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("optimizations", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("format_searches", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.UniqueConstraint("user_id", "period", "period_start", name="uq_usage_periods_user_period_start"),
        )
        op.create_index("ix_usage_periods_id", "usage_periods", ["id"])
        op.create_index("ix_usage_periods_user_id", "usage_periods", ["user_id"])

    if not _has_table("affiliates"):
        op.create_table(
            "affiliates",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=True, unique=True),
            sa.Column("email", sa.String(), nullable=True),
            sa.Column("affiliate_code", sa.String(), nullable=False),
            sa.Column("status", sa.String(), nullable=False, server_default="pending"),
            sa.Column("first_name", sa.String(), nullable=True),
            sa.Column("last_name", sa.String(), nullable=True),
            sa.Column("date_of_birth", sa.Date(), nullable=True),
            sa.Column("has_social_following", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("social_handle", sa.String(), nullable=True),
            sa.Column("paypal_email", sa.String(), nullable=True),
            sa.Column("total_earnings", sa.Numeric(12, 2), nullable=False, server_default="0"),
            sa.Column("pending_earnings", sa.Numeric(12, 2), nullable=False, server_default="0"),
            sa.Column("paid_earnings", sa.Numeric(12, 2), nullable=False, server_default="0"),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
        )
        op.create_index("ix_affiliates_id", "affiliates", ["id"])
        op.create_index("ix_affiliates_email", "affiliates", ["email"], unique=True)
        op.create_index("ix_affiliates_affiliate_code", "affiliates", ["affiliate_code"], unique=True)

    if not _has_table("referrals"):
        op.create_table(
            "referrals",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("affiliate_id", sa.Integer(), sa.ForeignKey("affiliates.id", ondelete="CASCADE"), nullable=False),
            sa.Column("referred_user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, unique=True),
            sa.Column("status", sa.String(), nullable=False, server_default="clicked"),
            sa.Column("clicked_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("signed_up_at", sa.DateTime(), nullable=True),
            sa.Column("converted_at", sa.DateTime(), nullable=True),
        )
        op.create_index("ix_referrals_id", "referrals", ["id"])
        op.create_index("ix_referrals_affiliate_id", "referrals", ["affiliate_id"])

    if not _has_table("commissions"):
        op.create_table(
            "commissions",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("affiliate_id", sa.Integer(), sa.ForeignKey("affiliates.id", ondelete="CASCADE"), nullable=False),
            sa.Column("referral_id", sa.Integer(), sa.ForeignKey("referrals.id", ondelete="SET NULL"), nullable=True),
            sa.Column("amount", sa.Numeric(12, 2), nullable=False),
            sa.Column("stripe_payment_id", sa.String(), nullable=True),
            sa.Column("status", sa.String(), nullable=False, server_default="pending"),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("ix_commissions_id", "commissions", ["id"])
        op.create_index("ix_commissions_affiliate_id", "commissions", ["affiliate_id"])
        op.create_index("ix_commissions_stripe_payment_id", "commissions", ["stripe_payment_id"])

    if not _has_table("payouts"):
        op.create_table(
            "payouts",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("affiliate_id", sa.Integer(), sa.ForeignKey("affiliates.id", ondelete="CASCADE"), nullable=False),
            sa.Column("amount", sa.Numeric(12, 2), nullable=False),
            sa.Column("paypal_email", sa.String(), nullable=False),
            sa.Column("status", sa.String(), nullable=False, server_default="pending"),
            sa.Column("notes", sa.String(), nullable=True),
            sa.Column("requested_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("processed_at", sa.DateTime(), nullable=True),
        )
        op.create_index("ix_payouts_id", "payouts", ["id"])
        op.create_index("ix_payouts_affiliate_id", "payouts", ["affiliate_id"])

    if not _has_table("support_tickets"):
        op.create_table(
            "support_tickets",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
            sa.Column("title", sa.String(), nullable=False),
            sa.Column("description", sa.Text(), nullable=False),
            sa.Column("status", sa.String(), nullable=False, server_default="open"),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("ix_support_tickets_id", "support_tickets", ["id"])
        op.create_index("ix_support_tickets_user_id", "support_tickets", ["user_id"])
        op.create_index("ix_support_tickets_updated_at", "support_tickets", ["updated_at"])

    if not _has_table("ticket_messages"):
        op.create_table(
            "ticket_messages",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("ticket_id", sa.Integer(), sa.ForeignKey("support_tickets.id", ondelete="CASCADE"), nullable=False),
            sa.Column("content", sa.Text(), nullable=False),
            sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("ix_ticket_messages_id", "ticket_messages", ["id"])
        op.create_index("ix_ticket_messages_ticket_id", "ticket_messages", ["ticket_id"])

    if not _has_table("newsletter_subscribers"):
        op.create_table(
            "newsletter_subscribers",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("email", sa.String(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("ix_newsletter_subscribers_id", "newsletter_subscribers", ["id"])
        op.create_index("ix_newsletter_subscribers_email", "newsletter_subscribers", ["email"], unique=True)


def downgrade() -> None:
    for table in (
        "newsletter_subscribers",
        "ticket_messages",
        "support_tickets",
        "payouts",
        "commissions",
        "referrals",
        "affiliates",
        "usage_periods",
        "subscriptions",
        "users",
    ):
        op.drop_table(table)
