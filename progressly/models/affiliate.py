"""
Affiliate program models: the affiliate record, the referrals attributed to its
code, the commissions earned on referred payments, and payout requests.
"""
from sqlalchemy import Column, Integer, String, Boolean, Date, DateTime, ForeignKey, Numeric
from sqlalchemy.orm import relationship
from datetime import datetime
from decimal import Decimal
from progressly.db.base import Base


class Affiliate(Base):
    __tablename__ = "affiliates"

    id = Column(Integer, primary_key=True, index=True)
    # Public applications may arrive before the applicant has an account
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, unique=True)
    email = Column(String, nullable=True, unique=True, index=True)
    affiliate_code = Column(String, nullable=False, unique=True, index=True)
    status = Column(String, nullable=False, default="pending")  # pending, approved, rejected, suspended
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    date_of_birth = Column(Date, nullable=True)
    has_social_following = Column(Boolean, default=False, nullable=False)
    social_handle = Column(String, nullable=True)
    paypal_email = Column(String, nullable=True)
    # total_earnings == pending_earnings + paid_earnings
    total_earnings = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    pending_earnings = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    paid_earnings = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User")
    referrals = relationship("Referral", back_populates="affiliate", cascade="all, delete-orphan")
    commissions = relationship("Commission", back_populates="affiliate", cascade="all, delete-orphan")
    payouts = relationship("Payout", back_populates="affiliate", cascade="all, delete-orphan")


class Referral(Base):
    __tablename__ = "referrals"

    id = Column(Integer, primary_key=True, index=True)
    affiliate_id = Column(Integer, ForeignKey("affiliates.id", ondelete="CASCADE"), nullable=False, index=True)
    # A user can only ever be referred once
    referred_user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, unique=True)
    status = Column(String, nullable=False, default="clicked")  # clicked, signed_up, converted
    clicked_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    signed_up_at = Column(DateTime, nullable=True)
    converted_at = Column(DateTime, nullable=True)

    affiliate = relationship("Affiliate", back_populates="referrals")
    referred_user = relationship("User")


class Commission(Base):
    __tablename__ = "commissions"

    id = Column(Integer, primary_key=True, index=True)
    affiliate_id = Column(Integer, ForeignKey("affiliates.id", ondelete="CASCADE"), nullable=False, index=True)
    referral_id = Column(Integer, ForeignKey("referrals.id", ondelete="SET NULL"), nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    stripe_payment_id = Column(String, nullable=True, index=True)
    status = Column(String, nullable=False, default="pending")  # pending, approved, paid
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    affiliate = relationship("Affiliate", back_populates="commissions")


class Payout(Base):
    __tablename__ = "payouts"

    id = Column(Integer, primary_key=True, index=True)
    affiliate_id = Column(Integer, ForeignKey("affiliates.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    paypal_email = Column(String, nullable=False)
    status = Column(String, nullable=False, default="pending")  # pending -> completed | rejected
    notes = Column(String, nullable=True)
    requested_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    processed_at = Column(DateTime, nullable=True)

    affiliate = relationship("Affiliate", back_populates="payouts")
