"""
Automatic monthly deductions, run once at app launch.

- Card payment day: deduct the statement total from the card's linked account
- Loan repayment day: deduct the monthly payment from the linked account and
  add an expense to the ledger
- Installments: advance paid months on the card's payment day (no balance
  change, no ledger record)

Each entity keeps a "last processed YYYY-MM" marker per kind. Markers are
loaded at the start of a phase and written back once at its end, so a crash
mid-phase leads to a retry on the next launch rather than a skipped month.
"""

import logging
from dataclasses import replace
from datetime import date
from typing import Callable, Dict, List, Optional, Protocol

from satsledger.domain.card_payments import calculate_all_cards_payment
from satsledger.domain.debt import create_loan_repayment_record, next_remaining_principal
from satsledger.domain.exceptions import AuthRequiredError
from satsledger.domain.models import (
    AutoDeductionReport,
    BalanceAdjustment,
    BalanceWarning,
    Card,
    DeductionResult,
    Expense,
    Installment,
    Loan,
)
from satsledger.domain.schedule import get_months_to_process, is_processed
from satsledger.infrastructure.observability.logging import log_deduction
from satsledger.infrastructure.observability.metrics import deduction_failure_counter, record_deduction

logger = logging.getLogger(__name__)

CARD = "card"
LOAN = "loan"
INSTALLMENT = "installment"
DEDUCTION_KINDS = (CARD, LOAN, INSTALLMENT)

AUTH_REQUIRED_MESSAGE = "Authentication required: no encryption key available"


class CardSource(Protocol):
    def list_cards(self) -> List[Card]: ...


class LedgerStore(Protocol):
    def list_expenses(self) -> List[Expense]: ...

    def add_expense(self, expense_data: dict) -> str: ...


class DebtStore(Protocol):
    def list_loans(self) -> List[Loan]: ...

    def list_installments(self) -> List[Installment]: ...

    def update_loan(self, loan_id: str, fields: dict) -> None: ...

    def update_installment(self, installment_id: str, fields: dict) -> None: ...


class BalanceAdjuster(Protocol):
    def adjust_asset_balance(self, asset_id: str, delta: int) -> BalanceAdjustment: ...


class DeductionMarkerStore(Protocol):
    def load(self, kind: str) -> Dict[str, str]: ...

    def save(self, kind: str, markers: Dict[str, str]) -> None: ...

    def delete(self, kind: str, entity_id: str) -> None: ...


class AutoDeductionService:
    """Applies due card, loan and installment deductions exactly once per month"""

    def __init__(
        self,
        cards: CardSource,
        ledger: LedgerStore,
        debts: DebtStore,
        assets: BalanceAdjuster,
        markers: DeductionMarkerStore,
        encryption_key: Callable[[], Optional[str]],
        today: Callable[[], date] = date.today,
        btc_krw: Optional[float] = None,
    ):
        self.cards = cards
        self.ledger = ledger
        self.debts = debts
        self.assets = assets
        self.markers = markers
        self._encryption_key = encryption_key
        self._today = today
        self.btc_krw = btc_krw

    def require_encryption_key(self) -> str:
        """
        Raises:
            AuthRequiredError: When the stores are locked
        """
        key = self._encryption_key()
        if not key:
            raise AuthRequiredError(AUTH_REQUIRED_MESSAGE)
        return key

    def _unlocked(self, result: DeductionResult) -> bool:
        try:
            self.require_encryption_key()
        except AuthRequiredError as e:
            result.errors.append(str(e))
            return False
        return True

    def _record_failure(self, result: DeductionResult, kind: str, name: str, error: Exception) -> None:
        message = f"{kind.capitalize()} {name} deduction failed: {error}"
        result.errors.append(message)
        deduction_failure_counter.labels(kind=kind).inc()
        logger.error(message)

    def _save_markers(self, result: DeductionResult, kind: str, markers: Dict[str, str]) -> None:
        try:
            self.markers.save(kind, markers)
        except Exception as e:
            message = f"Could not save {kind} markers: {e}"
            result.errors.append(message)
            deduction_failure_counter.labels(kind=kind).inc()
            logger.error(message)

    @staticmethod
    def _record_clamp(result: DeductionResult, adjustment: BalanceAdjustment) -> None:
        if adjustment.clamped:
            result.warnings.append(
                BalanceWarning(
                    asset_name=adjustment.asset_name,
                    requested=adjustment.requested,
                    actual=adjustment.actual,
                )
            )

    def process_card_payments(self) -> DeductionResult:
        """Deduct each linked credit card's pending statement total on its payment day"""
        result = DeductionResult()
        if not self._unlocked(result):
            return result

        today = self._today()
        cards = self.cards.list_cards()
        markers = self.markers.load(CARD)

        linked_cards = [c for c in cards if c.linked_asset_id and c.payment_day]
        payments = {
            cycles.current.card_id: cycles.current
            for cycles in calculate_all_cards_payment(
                cards,
                self.ledger.list_expenses(),
                self.debts.list_installments(),
                today,
                self.btc_krw,
            )
        }

        for card in linked_cards:
            try:
                for month in get_months_to_process(card.payment_day, markers.get(card.id), today):
                    if is_processed(month.year_month, markers.get(card.id)):
                        result.skipped += 1
                        logger.info(f"Card {card.name}: {month.year_month} already processed")
                        continue

                    payment = payments.get(card.id)
                    if payment is None or payment.total_payment <= 0:
                        logger.info(f"Card {card.name}: nothing due for {month.year_month}")
                        markers[card.id] = month.year_month
                        continue

                    adjustment = self.assets.adjust_asset_balance(card.linked_asset_id, -payment.total_payment)
                    self._record_clamp(result, adjustment)

                    markers[card.id] = month.year_month
                    result.processed += 1
                    record_deduction(CARD, adjustment.actual, adjustment.clamped)
                    log_deduction(CARD, card.id, card.name, month.year_month, payment.total_payment)

            except Exception as e:
                self._record_failure(result, CARD, card.name, e)

        self._save_markers(result, CARD, markers)
        return result

    def process_loan_repayments(self) -> DeductionResult:
        """Deduct each active linked loan's monthly payment and record it in the ledger"""
        result = DeductionResult()
        if not self._unlocked(result):
            return result

        today = self._today()
        markers = self.markers.load(LOAN)

        linked_loans = [ln for ln in self.debts.list_loans() if ln.linked_asset_id and ln.status == "active"]

        for loan in linked_loans:
            # Carried across months so a two-month catch-up compounds
            paid_months = loan.paid_months
            remaining_principal = loan.remaining_principal

            try:
                repayment_day = loan.repayment_day or loan.start_date.day

                for month in get_months_to_process(repayment_day, markers.get(loan.id), today):
                    if is_processed(month.year_month, markers.get(loan.id)):
                        result.skipped += 1
                        logger.info(f"Loan {loan.name}: {month.year_month} already processed")
                        continue

                    if paid_months >= loan.term_months:
                        logger.info(f"Loan {loan.name}: already paid off")
                        markers[loan.id] = month.year_month
                        continue

                    adjustment = self.assets.adjust_asset_balance(loan.linked_asset_id, -loan.monthly_payment)
                    self._record_clamp(result, adjustment)

                    snapshot = replace(loan, paid_months=paid_months, remaining_principal=remaining_principal)
                    record = create_loan_repayment_record(snapshot)
                    if record is not None:
                        self.ledger.add_expense(
                            {
                                "date": record.date,
                                "amount": record.amount,
                                "currency": "KRW",
                                "category": record.category,
                                "payment_method": record.payment_method,
                                "memo": record.memo,
                                "linked_loan_id": record.linked_loan_id,
                                "is_auto_generated": True,
                                "btc_krw_at_time": self.btc_krw,
                            }
                        )

                    new_paid_months = paid_months + 1
                    completed = new_paid_months >= loan.term_months
                    new_remaining = next_remaining_principal(loan, remaining_principal, completed)

                    self.debts.update_loan(
                        loan.id,
                        {
                            "paid_months": new_paid_months,
                            "remaining_principal": new_remaining,
                            "status": "completed" if completed else "active",
                        },
                    )

                    paid_months = new_paid_months
                    remaining_principal = new_remaining

                    markers[loan.id] = month.year_month
                    result.processed += 1
                    record_deduction(LOAN, adjustment.actual, adjustment.clamped)
                    log_deduction(LOAN, loan.id, loan.name, month.year_month, loan.monthly_payment)

            except Exception as e:
                self._record_failure(result, LOAN, loan.name, e)

        self._save_markers(result, LOAN, markers)
        return result

    def process_installment_payments(self) -> DeductionResult:
        """
        Advance active installments on their card's payment day.

        The purchase was recorded in full when it was made and the cash leaves
        the account through the card statement, so this only updates the
        installment's own counters.
        """
        result = DeductionResult()
        if not self._unlocked(result):
            return result

        today = self._today()
        cards_by_id = {c.id: c for c in self.cards.list_cards()}
        markers = self.markers.load(INSTALLMENT)

        active = [i for i in self.debts.list_installments() if i.status == "active"]

        for installment in active:
            paid_months = installment.paid_months
            remaining_amount = installment.remaining_amount

            try:
                card = cards_by_id.get(installment.card_id)
                if card is None or not card.payment_day:
                    continue

                for month in get_months_to_process(card.payment_day, markers.get(installment.id), today):
                    if is_processed(month.year_month, markers.get(installment.id)):
                        result.skipped += 1
                        logger.info(f"Installment {installment.store_name}: {month.year_month} already processed")
                        continue

                    if paid_months >= installment.months:
                        logger.info(f"Installment {installment.store_name}: already paid off")
                        markers[installment.id] = month.year_month
                        continue

                    new_paid_months = paid_months + 1
                    completed = new_paid_months >= installment.months
                    # Rounded monthly payments can leave a few won behind
                    new_remaining = 0 if completed else max(0, remaining_amount - installment.monthly_payment)

                    self.debts.update_installment(
                        installment.id,
                        {
                            "paid_months": new_paid_months,
                            "remaining_amount": new_remaining,
                            "status": "completed" if completed else "active",
                        },
                    )

                    paid_months = new_paid_months
                    remaining_amount = new_remaining

                    markers[installment.id] = month.year_month
                    result.processed += 1
                    record_deduction(INSTALLMENT, 0)
                    log_deduction(
                        INSTALLMENT, installment.id, installment.store_name, month.year_month, installment.monthly_payment
                    )

            except Exception as e:
                self._record_failure(result, INSTALLMENT, installment.store_name, e)

        self._save_markers(result, INSTALLMENT, markers)
        return result

    def process_all_auto_deductions(self) -> AutoDeductionReport:
        """
        Run the card, loan and installment phases in that order.

        Phases run one after another since cards and loans may debit the
        same account.
        """
        logger.info("Auto deduction run started")

        card_result = self.process_card_payments()
        loan_result = self.process_loan_repayments()
        installment_result = self.process_installment_payments()

        logger.info(
            "Auto deduction run finished",
            extra={
                "cards_processed": card_result.processed,
                "loans_processed": loan_result.processed,
                "installments_processed": installment_result.processed,
                "error_count": len(card_result.errors) + len(loan_result.errors) + len(installment_result.errors),
            },
        )

        return AutoDeductionReport(cards=card_result, loans=loan_result, installments=installment_result)

    def reset_deduction_record(self, kind: str, entity_id: str) -> None:
        """Forget the last processed month of one entity"""
        if kind not in DEDUCTION_KINDS:
            raise ValueError(f"Unknown deduction kind: {kind}")
        self.markers.delete(kind, entity_id)
