"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional


@dataclass
class Card:
    """Payment card. Only credit cards with a payment_day take part in billing"""

    id: str
    name: str
    company: str
    type: str  # "credit" | "debit" | "prepaid"
    payment_day: Optional[int] = None  # 1..28
    billing_start_day: Optional[int] = None
    billing_end_day: Optional[int] = None
    linked_asset_id: Optional[str] = None  # credit: account the statement is paid from
    linked_account_id: Optional[str] = None  # debit: backing account
    balance: Optional[int] = None  # prepaid balance (KRW)
    color: str = ""


@dataclass
class Expense:
    """Ledger expense record (append-only)"""

    id: str
    date: date
    amount: int
    currency: str  # "KRW" | "SATS"
    payment_method: str  # "card" | "bank" | "cash" | ...
    category: str = ""
    card_id: Optional[str] = None
    installment_months: Optional[int] = None
    sats_equivalent: Optional[int] = None  # valued at record time
    btc_krw_at_time: Optional[int] = None
    memo: Optional[str] = None
    linked_loan_id: Optional[str] = None
    is_auto_generated: bool = False
    needs_price_sync: bool = False


@dataclass
class Installment:
    """Card purchase split into fixed monthly payments"""

    id: str
    card_id: str
    store_name: str
    total_amount: int
    months: int
    monthly_payment: int
    paid_months: int
    remaining_amount: int
    start_date: date
    status: str = "active"  # "active" | "completed" | "cancelled"
    is_interest_free: bool = True
    interest_rate: float = 0.0  # annual %
    expense_id: Optional[str] = None


@dataclass
class Loan:
    """Loan repaid monthly from a linked account"""

    id: str
    name: str
    principal: int
    interest_rate: float  # annual %
    repayment_type: str  # "bullet" | "equalPrincipal" | "equalPrincipalAndInterest"
    term_months: int
    start_date: date
    monthly_payment: int
    paid_months: int
    remaining_principal: int
    status: str = "active"
    repayment_day: Optional[int] = None
    linked_asset_id: Optional[str] = None
    institution: str = ""


@dataclass
class BillingWindow:
    """Concrete statement period, both ends inclusive"""

    start_date: date
    end_date: date


@dataclass
class PaymentSummary:
    """Amount a card owes for one payment cycle"""

    card_id: str
    card_name: str
    payment_day: Optional[int]
    period_expenses: int = 0
    period_expenses_sats: int = 0  # sum of record-time sats
    installment_payments: int = 0
    installment_payments_sats: int = 0  # valued at the current rate
    installment_count: int = 0
    total_payment: int = 0
    total_payment_sats: int = 0
    billing_period_start: Optional[date] = None
    billing_period_end: Optional[date] = None
    days_until_payment: Optional[int] = None


@dataclass
class CardPaymentCycles:
    """This payment and the upcoming one for a single card"""

    current: PaymentSummary
    next: PaymentSummary


@dataclass
class MonthToProcess:
    """A month whose payment day has passed and is not yet applied"""

    year_month: str  # YYYY-MM
    date_str: str  # YYYY-MM-DD, payment day clamped to the month


@dataclass
class BalanceAdjustment:
    """Outcome of a balance adjustment on an asset"""

    clamped: bool
    asset_name: str
    requested: int
    actual: int


@dataclass
class BalanceWarning:
    """Deduction that could not be applied in full"""

    asset_name: str
    requested: int
    actual: int


@dataclass
class DeductionResult:
    """Outcome of one deduction phase"""

    processed: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)
    warnings: List[BalanceWarning] = field(default_factory=list)


@dataclass
class PriceSyncResult:
    """Outcome of re-valuing records saved without a BTC price"""

    synced: int = 0
    pending: int = 0


@dataclass
class AutoDeductionReport:
    """Outcome of the full launch-time run"""

    cards: DeductionResult
    loans: DeductionResult
    installments: DeductionResult


@dataclass
class RepaymentScheduleEntry:
    """Single month in a loan repayment plan"""

    month: int
    date: date
    principal: int
    interest: int
    total: int
    remaining_principal: int


@dataclass
class LoanRepaymentRecord:
    """Ledger expense data generated for an automatic loan repayment"""

    amount: int
    category: str
    date: date
    payment_method: str
    memo: str
    linked_loan_id: str
    payment_number: int
    total_payments: int
    principal: int
    interest: int
    is_auto_generated: bool = True
