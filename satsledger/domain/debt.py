"""Loan and installment repayment calculations"""

from datetime import date
from typing import List, Optional, Tuple

from satsledger.domain.models import Loan, LoanRepaymentRecord, RepaymentScheduleEntry
from satsledger.utils.date_utils import add_months
from satsledger.utils.money import round_half_up

BULLET = "bullet"
EQUAL_PRINCIPAL = "equalPrincipal"
EQUAL_PRINCIPAL_AND_INTEREST = "equalPrincipalAndInterest"
REPAYMENT_TYPES = (BULLET, EQUAL_PRINCIPAL, EQUAL_PRINCIPAL_AND_INTEREST)

LOAN_REPAYMENT_CATEGORY = "finance"


def monthly_rate(annual_rate_pct: float) -> float:
    return annual_rate_pct / 100 / 12


def _annuity_payment(principal: float, rate: float, months: int) -> float:
    if rate == 0:
        return principal / months
    factor = (1 + rate) ** months
    return principal * rate * factor / (factor - 1)


def calculate_loan_monthly_payment(
    principal: int,
    annual_rate_pct: float,
    term_months: int,
    repayment_type: str,
) -> int:
    """
    Monthly payment for a loan.

    - bullet: interest only, principal repaid at maturity
    - equalPrincipal: first month's principal share plus interest
    - equalPrincipalAndInterest: level annuity payment
    """
    rate = monthly_rate(annual_rate_pct)

    if repayment_type == BULLET:
        return round_half_up(principal * rate)
    if repayment_type == EQUAL_PRINCIPAL_AND_INTEREST:
        return round_half_up(_annuity_payment(principal, rate, term_months))
    if repayment_type == EQUAL_PRINCIPAL:
        return round_half_up(principal / term_months + principal * rate)
    raise ValueError(f"Unknown repayment type: {repayment_type}")


def calculate_installment_payment(
    total_amount: int,
    months: int,
    is_interest_free: bool,
    annual_rate_pct: float = 0.0,
) -> Tuple[int, int]:
    """Returns (monthly_payment, total_interest)"""
    if months <= 0:
        return 0, 0
    if is_interest_free or annual_rate_pct == 0:
        return round_half_up(total_amount / months), 0

    payment = round_half_up(_annuity_payment(total_amount, monthly_rate(annual_rate_pct), months))
    return payment, max(0, payment * months - total_amount)


def initial_installment_remaining(total_due: int, monthly_payment: int, paid_months: int) -> int:
    """Remaining balance derived from payments made, never negative"""
    return max(0, total_due - monthly_payment * paid_months)


def next_remaining_principal(loan: Loan, current_remaining: int, completed: bool) -> int:
    """
    Remaining principal after one more monthly payment.

    Bullet loans keep the full principal until the final month.
    """
    if loan.repayment_type == EQUAL_PRINCIPAL:
        remaining = max(0.0, current_remaining - loan.principal / loan.term_months)
    elif loan.repayment_type == EQUAL_PRINCIPAL_AND_INTEREST:
        interest = current_remaining * monthly_rate(loan.interest_rate)
        remaining = max(0.0, current_remaining - (loan.monthly_payment - interest))
    else:
        remaining = current_remaining

    if completed and loan.repayment_type == BULLET:
        remaining = 0
    return round_half_up(remaining)


def generate_repayment_schedule(
    principal: int,
    annual_rate_pct: float,
    term_months: int,
    repayment_type: str,
    start_date: date,
) -> List[RepaymentScheduleEntry]:
    """
    Month-by-month repayment plan; payment n falls n months after start_date.

    The final payment absorbs rounding so the balance ends at exactly zero.
    """
    rate = monthly_rate(annual_rate_pct)
    level_payment = calculate_loan_monthly_payment(principal, annual_rate_pct, term_months, repayment_type)
    principal_share = round_half_up(principal / term_months) if term_months else 0

    balance = principal
    schedule = []
    for month in range(1, term_months + 1):
        interest = round_half_up(balance * rate)

        if month == term_months:
            principal_part = balance
        elif repayment_type == BULLET:
            principal_part = 0
        elif repayment_type == EQUAL_PRINCIPAL:
            principal_part = principal_share
        else:
            principal_part = level_payment - interest

        principal_part = max(0, min(principal_part, balance))
        balance -= principal_part

        schedule.append(
            RepaymentScheduleEntry(
                month=month,
                date=add_months(start_date, month),
                principal=principal_part,
                interest=interest,
                total=principal_part + interest,
                remaining_principal=balance,
            )
        )

    return schedule


def create_loan_repayment_record(loan: Loan) -> Optional[LoanRepaymentRecord]:
    """
    Ledger expense data for the loan's next unpaid payment.

    Returns None for inactive loans or when every scheduled payment is made.
    """
    if loan.status != "active":
        return None

    schedule = generate_repayment_schedule(
        loan.principal,
        loan.interest_rate,
        loan.term_months,
        loan.repayment_type,
        loan.start_date,
    )
    next_payment = next((s for s in schedule if s.month == loan.paid_months + 1), None)
    if next_payment is None:
        return None

    memo = (
        f"{loan.name} repayment {next_payment.month}/{loan.term_months} "
        f"(principal {next_payment.principal:,}, interest {next_payment.interest:,})"
    )
    return LoanRepaymentRecord(
        amount=next_payment.total,
        category=LOAN_REPAYMENT_CATEGORY,
        date=next_payment.date,
        payment_method="bank",
        memo=memo,
        linked_loan_id=loan.id,
        payment_number=next_payment.month,
        total_payments=loan.term_months,
        principal=next_payment.principal,
        interest=next_payment.interest,
    )
