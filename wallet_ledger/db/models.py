"""SQLAlchemy ORM models."""
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import relationship

from wallet_ledger.infrastructure.database.base import Base

Money = Numeric(12, 2)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Wallet(Base):
    __tablename__ = "wallets"

    owner_id = Column(String(64), primary_key=True)
    balance = Column(Money, nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="USD")
    # Compare-and-swap token; bumped by every balance change.
    version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True))


class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint("sender_id <> recipient_id", name="ck_transactions_distinct_parties"),
        CheckConstraint("amount > 0", name="ck_transactions_positive_amount"),
        CheckConstraint(
            "platform_fee >= 0 AND platform_fee <= amount",
            name="ck_transactions_fee_range",
        ),
        Index("ix_transactions_sender_date", "sender_id", "transaction_date"),
        Index("ix_transactions_recipient_date", "recipient_id", "transaction_date"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    sender_id = Column(String(64), nullable=False)
    recipient_id = Column(String(64), nullable=False)
    amount = Column(Money, nullable=False)
    platform_fee = Column(Money, nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="USD")
    status = Column(String(20), nullable=False, default="Pending")
    funding_source = Column(String(20), nullable=False, default="External")
    payment_method = Column(String(50), nullable=False)
    provider_payment_id = Column(String(255))
    description = Column(String(255))
    idempotency_key = Column(String(64), unique=True)
    transaction_date = Column(DateTime(timezone=True), nullable=False, default=utc_now)


class PaymentAttempt(Base):
    __tablename__ = "payment_attempts"

    idempotency_key = Column(String(64), primary_key=True)
    kind = Column(String(20), nullable=False)
    sender_id = Column(String(64), nullable=False)
    recipient_id = Column(String(64), nullable=False)
    amount = Column(Money, nullable=False)
    platform_fee = Column(Money, nullable=False)
    currency = Column(String(3), nullable=False)
    status = Column(String(20), nullable=False, default="Initiated")
    provider_payment_id = Column(String(255))
    transaction_id = Column(Integer, ForeignKey("transactions.id"))
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), onupdate=utc_now)

    transaction = relationship("Transaction")


class UserCard(Base):
    __tablename__ = "user_cards"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(String(64), nullable=False, index=True)
    last4 = Column(String(4), nullable=False)
    exp_month = Column(Integer, nullable=False)
    exp_year = Column(Integer, nullable=False)
    brand = Column(String(30))
    purpose = Column(String(20), nullable=False)  # Paying, Receiving
    provider_token = Column(String(255), nullable=False)
    provider_customer_id = Column(String(255))
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(String(64), nullable=False, index=True)
    amount = Column(Money, nullable=False)
    payment_method = Column(String(50), nullable=False)
    payment_type = Column(String(50), nullable=False)
    billing_frequency = Column(String(20), nullable=False)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=False, unique=True)
    start_date = Column(Date, nullable=False)
    next_billing_date = Column(Date, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)

    transaction = relationship("Transaction")
