"""
Data access layer for cards, assets, ledger, debts and deduction markers.

Each write commits on its own so a balance change or marker survives a crash
later in the same run.
"""

import logging
import uuid
from datetime import date
from typing import Dict, List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from satsledger.domain.debt import (
    calculate_installment_payment,
    calculate_loan_monthly_payment,
    initial_installment_remaining,
)
from satsledger.domain.exceptions import EntityNotFoundError
from satsledger.domain.models import BalanceAdjustment, Card, Expense, Installment, Loan
from satsledger.infrastructure.database.models import (
    AssetRow,
    CardRow,
    DeductionMarkerRow,
    ExpenseRow,
    InstallmentRow,
    LoanRow,
)
from satsledger.utils.money import krw_to_sats, round_half_up

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


def _commit(db: Session) -> None:
    """Commit, rolling back on failure so the session stays usable for the next entity"""
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


def _to_expense(r: ExpenseRow) -> Expense:
    return Expense(
        id=r.id,
        date=r.date,
        amount=r.amount,
        currency=r.currency,
        payment_method=r.payment_method,
        category=r.category,
        card_id=r.card_id,
        installment_months=r.installment_months,
        sats_equivalent=r.sats_equivalent,
        btc_krw_at_time=r.btc_krw_at_time,
        memo=r.memo,
        linked_loan_id=r.linked_loan_id,
        is_auto_generated=r.is_auto_generated,
        needs_price_sync=r.needs_price_sync,
    )


class CardRepository:
    """Repository for payment cards"""

    def __init__(self, db: Session):
        self.db = db

    def add_card(self, card: Card) -> Card:
        self.db.add(
            CardRow(
                id=card.id,
                name=card.name,
                company=card.company,
                type=card.type,
                payment_day=card.payment_day,
                billing_start_day=card.billing_start_day,
                billing_end_day=card.billing_end_day,
                linked_asset_id=card.linked_asset_id,
                linked_account_id=card.linked_account_id,
                balance=card.balance,
                color=card.color,
            )
        )
        _commit(self.db)
        return card

    def list_cards(self) -> List[Card]:
        rows = self.db.query(CardRow).order_by(CardRow.created_at).all()
        return [
            Card(
                id=r.id,
                name=r.name,
                company=r.company,
                type=r.type,
                payment_day=r.payment_day,
                billing_start_day=r.billing_start_day,
                billing_end_day=r.billing_end_day,
                linked_asset_id=r.linked_asset_id,
                linked_account_id=r.linked_account_id,
                balance=r.balance,
                color=r.color,
            )
            for r in rows
        ]


class AssetRepository:
    """Repository for fiat account balances"""

    def __init__(self, db: Session):
        self.db = db

    def add_asset(
        self,
        name: str,
        balance: int,
        is_overdraft: bool = False,
        credit_limit: Optional[int] = None,
        asset_id: Optional[str] = None,
    ) -> str:
        row = AssetRow(
            id=asset_id or _new_id(),
            name=name,
            balance=balance,
            is_overdraft=is_overdraft,
            credit_limit=credit_limit,
        )
        self.db.add(row)
        _commit(self.db)
        return row.id

    def get_balance(self, asset_id: str) -> Optional[int]:
        row = self.db.query(AssetRow).filter(AssetRow.id == asset_id).first()
        return row.balance if row else None

    def adjust_asset_balance(self, asset_id: str, delta: int) -> BalanceAdjustment:
        """
        Apply a signed delta to an account balance.

        Regular accounts never go below zero; overdraft accounts stop at
        their credit limit. A clamped result reports the amount actually
        moved. An unknown asset is left alone and reported unclamped.
        """
        row = self.db.query(AssetRow).filter(AssetRow.id == asset_id).first()
        if row is None:
            logger.error(f"Asset not found: {asset_id}")
            return BalanceAdjustment(clamped=False, asset_name="", requested=0, actual=0)

        requested_balance = row.balance + delta
        new_balance = requested_balance

        if not row.is_overdraft and new_balance < 0:
            logger.warning(f"Insufficient balance, clamped to 0: {row.name} (requested {requested_balance})")
            new_balance = 0

        if row.is_overdraft and row.credit_limit:
            floor = -row.credit_limit
            if new_balance < floor:
                logger.warning(f"Overdraft limit reached: {row.name} (requested {requested_balance}, limit {floor})")
                new_balance = floor

        actual = new_balance - row.balance
        row.balance = new_balance
        _commit(self.db)

        return BalanceAdjustment(
            clamped=new_balance != requested_balance,
            asset_name=row.name,
            requested=abs(delta),
            actual=abs(actual),
        )


class LedgerRepository:
    """Repository for the append-only expense ledger"""

    def __init__(self, db: Session):
        self.db = db

    def add_expense(self, expense_data: dict) -> str:
        """
        Append an expense and return its id.

        KRW records are valued in sats at btc_krw_at_time; SATS records carry
        their amount as the sats value. Without a rate the record is flagged
        for a later price sync.
        """
        amount = expense_data["amount"]
        currency = expense_data["currency"]
        rate = expense_data.get("btc_krw_at_time")

        sats_equivalent = None
        if currency == "KRW" and rate:
            sats_equivalent = krw_to_sats(amount, rate)
        elif currency == "SATS":
            sats_equivalent = amount

        row = ExpenseRow(
            id=_new_id(),
            date=expense_data["date"],
            amount=amount,
            currency=currency,
            category=expense_data.get("category", ""),
            payment_method=expense_data["payment_method"],
            card_id=expense_data.get("card_id"),
            installment_months=expense_data.get("installment_months"),
            sats_equivalent=sats_equivalent,
            btc_krw_at_time=round_half_up(rate) if rate else None,
            memo=expense_data.get("memo"),
            linked_loan_id=expense_data.get("linked_loan_id"),
            is_auto_generated=expense_data.get("is_auto_generated", False),
            needs_price_sync=not rate,
        )
        self.db.add(row)
        _commit(self.db)
        return row.id

    def list_expenses(self) -> List[Expense]:
        rows = self.db.query(ExpenseRow).order_by(ExpenseRow.date, ExpenseRow.created_at).all()
        return [_to_expense(r) for r in rows]

    def list_unpriced_expenses(self) -> List[Expense]:
        """Records saved while the price API was unreachable"""
        rows = (
            self.db.query(ExpenseRow)
            .filter(ExpenseRow.needs_price_sync.is_(True))
            .order_by(ExpenseRow.date, ExpenseRow.created_at)
            .all()
        )
        return [_to_expense(r) for r in rows]

    def set_expense_price(self, expense_id: str, btc_krw: float) -> Expense:
        """
        Value a record at the given BTC/KRW rate and clear its sync flag.

        Raises:
            EntityNotFoundError: When no record has this id
        """
        row = self.db.query(ExpenseRow).filter(ExpenseRow.id == expense_id).first()
        if row is None:
            raise EntityNotFoundError(f"Expense not found: {expense_id}")

        row.btc_krw_at_time = round_half_up(btc_krw)
        row.sats_equivalent = krw_to_sats(row.amount, btc_krw) if row.currency == "KRW" else row.amount
        row.needs_price_sync = False
        _commit(self.db)
        return _to_expense(row)


class DebtRepository:
    """Repository for installments and loans"""

    def __init__(self, db: Session):
        self.db = db

    def create_installment(
        self,
        card_id: str,
        store_name: str,
        total_amount: int,
        months: int,
        start_date: date,
        is_interest_free: bool = True,
        interest_rate: float = 0.0,
        paid_months: int = 0,
        expense_id: Optional[str] = None,
    ) -> Installment:
        """Create an installment with payment and remaining balance derived from its terms"""
        monthly_payment, total_interest = calculate_installment_payment(
            total_amount, months, is_interest_free, interest_rate
        )
        total_due = total_amount if is_interest_free else total_amount + total_interest

        row = InstallmentRow(
            id=_new_id(),
            card_id=card_id,
            expense_id=expense_id,
            store_name=store_name,
            total_amount=total_amount,
            months=months,
            is_interest_free=is_interest_free,
            interest_rate=interest_rate,
            monthly_payment=monthly_payment,
            paid_months=paid_months,
            remaining_amount=initial_installment_remaining(total_due, monthly_payment, paid_months),
            start_date=start_date,
            status="completed" if paid_months >= months else "active",
        )
        self.db.add(row)
        _commit(self.db)
        return self._to_installment(row)

    def create_loan(
        self,
        name: str,
        principal: int,
        interest_rate: float,
        repayment_type: str,
        term_months: int,
        start_date: date,
        paid_months: int = 0,
        repayment_day: Optional[int] = None,
        linked_asset_id: Optional[str] = None,
        institution: str = "",
    ) -> Loan:
        """Create a loan with its monthly payment derived from the repayment type"""
        monthly_payment = calculate_loan_monthly_payment(principal, interest_rate, term_months, repayment_type)

        remaining = principal
        if repayment_type != "bullet" and paid_months > 0:
            remaining = max(0, principal - principal / term_months * paid_months)

        row = LoanRow(
            id=_new_id(),
            name=name,
            institution=institution,
            principal=principal,
            interest_rate=interest_rate,
            repayment_type=repayment_type,
            term_months=term_months,
            repayment_day=repayment_day,
            start_date=start_date,
            monthly_payment=monthly_payment,
            paid_months=paid_months,
            remaining_principal=round_half_up(remaining),
            status="completed" if paid_months >= term_months else "active",
            linked_asset_id=linked_asset_id,
        )
        self.db.add(row)
        _commit(self.db)
        return self._to_loan(row)

    def list_installments(self) -> List[Installment]:
        return [self._to_installment(r) for r in self.db.query(InstallmentRow).all()]

    def list_loans(self) -> List[Loan]:
        return [self._to_loan(r) for r in self.db.query(LoanRow).all()]

    def get_installment(self, installment_id: str) -> Optional[Installment]:
        row = self.db.query(InstallmentRow).filter(InstallmentRow.id == installment_id).first()
        return self._to_installment(row) if row else None

    def get_loan(self, loan_id: str) -> Optional[Loan]:
        row = self.db.query(LoanRow).filter(LoanRow.id == loan_id).first()
        return self._to_loan(row) if row else None

    def update_installment(self, installment_id: str, fields: dict) -> None:
        self._update(InstallmentRow, installment_id, fields)

    def update_loan(self, loan_id: str, fields: dict) -> None:
        self._update(LoanRow, loan_id, fields)

    def _update(self, model, entity_id: str, fields: dict) -> None:
        row = self.db.query(model).filter(model.id == entity_id).first()
        if row is None:
            raise EntityNotFoundError(f"{model.__tablename__} {entity_id} not found")
        for name, value in fields.items():
            setattr(row, name, value)
        _commit(self.db)

    @staticmethod
    def _to_installment(r: InstallmentRow) -> Installment:
        return Installment(
            id=r.id,
            card_id=r.card_id,
            store_name=r.store_name,
            total_amount=r.total_amount,
            months=r.months,
            monthly_payment=r.monthly_payment,
            paid_months=r.paid_months,
            remaining_amount=r.remaining_amount,
            start_date=r.start_date,
            status=r.status,
            is_interest_free=r.is_interest_free,
            interest_rate=r.interest_rate,
            expense_id=r.expense_id,
        )

    @staticmethod
    def _to_loan(r: LoanRow) -> Loan:
        return Loan(
            id=r.id,
            name=r.name,
            principal=r.principal,
            interest_rate=r.interest_rate,
            repayment_type=r.repayment_type,
            term_months=r.term_months,
            start_date=r.start_date,
            monthly_payment=r.monthly_payment,
            paid_months=r.paid_months,
            remaining_principal=r.remaining_principal,
            status=r.status,
            repayment_day=r.repayment_day,
            linked_asset_id=r.linked_asset_id,
            institution=r.institution,
        )


class DeductionMarkerRepository:
    """Repository for last-processed-month markers, one row per (kind, entity)"""

    def __init__(self, db: Session):
        self.db = db

    def load(self, kind: str) -> Dict[str, str]:
        rows = self.db.query(DeductionMarkerRow).filter(DeductionMarkerRow.kind == kind).all()
        return {r.entity_id: r.last_processed_year_month for r in rows}

    def upsert(self, kind: str, entity_id: str, year_month: str) -> None:
        """Insert or move forward one marker (flushed, not committed)"""
        row = (
            self.db.query(DeductionMarkerRow)
            .filter(DeductionMarkerRow.kind == kind, DeductionMarkerRow.entity_id == entity_id)
            .first()
        )
        if row is None:
            self.db.add(DeductionMarkerRow(kind=kind, entity_id=entity_id, last_processed_year_month=year_month))
        else:
            row.last_processed_year_month = year_month
        try:
            self.db.flush()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def save(self, kind: str, markers: Dict[str, str]) -> None:
        """Persist a whole phase's markers in one commit"""
        for entity_id, year_month in markers.items():
            self.upsert(kind, entity_id, year_month)
        _commit(self.db)

    def delete(self, kind: str, entity_id: str) -> None:
        (
            self.db.query(DeductionMarkerRow)
            .filter(DeductionMarkerRow.kind == kind, DeductionMarkerRow.entity_id == entity_id)
            .delete()
        )
        _commit(self.db)
