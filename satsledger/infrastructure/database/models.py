"""SQLAlchemy ORM models for the local stores"""

from sqlalchemy import Column, String, BigInteger, Boolean, Float, DateTime, Date, Integer, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class CardRow(Base):
    """Payment card"""

    __tablename__ = "card"

    id = Column(String(36), primary_key=True)
    name = Column(Text, nullable=False)
    company = Column(Text, nullable=False)
    type = Column(Text, nullable=False)
    payment_day = Column(Integer, nullable=True)
    billing_start_day = Column(Integer, nullable=True)
    billing_end_day = Column(Integer, nullable=True)
    linked_asset_id = Column(String(36), nullable=True)
    linked_account_id = Column(String(36), nullable=True)
    balance = Column(BigInteger, nullable=True)
    color = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class AssetRow(Base):
    """Fiat account whose balance deductions are applied to"""

    __tablename__ = "asset"

    id = Column(String(36), primary_key=True)
    name = Column(Text, nullable=False)
    balance = Column(BigInteger, nullable=False, default=0)
    is_overdraft = Column(Boolean, nullable=False, default=False)
    credit_limit = Column(BigInteger, nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())


class ExpenseRow(Base):
    """Ledger expense record"""

    __tablename__ = "expense"

    id = Column(String(36), primary_key=True)
    date = Column(Date, nullable=False, index=True)
    amount = Column(BigInteger, nullable=False)
    currency = Column(Text, nullable=False)
    category = Column(Text, nullable=False, default="")
    payment_method = Column(Text, nullable=False)
    card_id = Column(String(36), nullable=True, index=True)
    installment_months = Column(Integer, nullable=True)
    sats_equivalent = Column(BigInteger, nullable=True)
    btc_krw_at_time = Column(BigInteger, nullable=True)
    memo = Column(Text, nullable=True)
    linked_loan_id = Column(String(36), nullable=True)
    is_auto_generated = Column(Boolean, nullable=False, default=False)
    needs_price_sync = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class InstallmentRow(Base):
    """Card installment plan"""

    __tablename__ = "installment"

    id = Column(String(36), primary_key=True)
    card_id = Column(String(36), nullable=False, index=True)
    expense_id = Column(String(36), nullable=True)
    store_name = Column(Text, nullable=False)
    total_amount = Column(BigInteger, nullable=False)
    months = Column(Integer, nullable=False)
    is_interest_free = Column(Boolean, nullable=False, default=True)
    interest_rate = Column(Float, nullable=False, default=0.0)
    monthly_payment = Column(BigInteger, nullable=False)
    paid_months = Column(Integer, nullable=False, default=0)
    remaining_amount = Column(BigInteger, nullable=False)
    start_date = Column(Date, nullable=False)
    status = Column(Text, nullable=False, default="active")
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())


class LoanRow(Base):
    """Loan repaid from a linked account"""

    __tablename__ = "loan"

    id = Column(String(36), primary_key=True)
    name = Column(Text, nullable=False)
    institution = Column(Text, nullable=False, default="")
    principal = Column(BigInteger, nullable=False)
    interest_rate = Column(Float, nullable=False)
    repayment_type = Column(Text, nullable=False)
    term_months = Column(Integer, nullable=False)
    repayment_day = Column(Integer, nullable=True)
    start_date = Column(Date, nullable=False)
    monthly_payment = Column(BigInteger, nullable=False)
    paid_months = Column(Integer, nullable=False, default=0)
    remaining_principal = Column(BigInteger, nullable=False)
    status = Column(Text, nullable=False, default="active")
    linked_asset_id = Column(String(36), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())


class DeductionMarkerRow(Base):
    """Last month whose deduction was applied to an entity"""

    __tablename__ = "deduction_marker"
    __table_args__ = (UniqueConstraint("kind", "entity_id", name="uq_deduction_marker_kind_entity"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    kind = Column(Text, nullable=False)  # card | loan | installment
    entity_id = Column(String(36), nullable=False)
    last_processed_year_month = Column(String(7), nullable=False)  # YYYY-MM
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
