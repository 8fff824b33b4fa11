"""
Per-company statement rules: payment day -> billing window.

Each rule gives the window start and end as (month_offset, day) relative to
the payment month: 0 = the payment month, -1 = previous month, -2 = two months
before. An end day of 31 means "last day of that month".

Example: Samsung, payment day 14 -> previous month 2nd ~ payment month 1st.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

LAST_DAY = 31
DEFAULT_PAYMENT_DAYS = [1, 5, 10, 14, 15, 20, 25]
DEFAULT_RECOMMENDED_DAY = 14


@dataclass(frozen=True)
class BillingOffset:
    month_offset: int
    day: int


@dataclass(frozen=True)
class BillingRule:
    start: BillingOffset
    end: BillingOffset


@dataclass(frozen=True)
class CompanyBillingRules:
    company_id: str
    company_name: str
    available_payment_days: Tuple[int, ...]
    recommended_day: int  # day whose window is exactly the previous calendar month
    rules: Dict[int, BillingRule]


def _rule(start_offset: int, start_day: int, end_offset: int, end_day: int) -> BillingRule:
    return BillingRule(BillingOffset(start_offset, start_day), BillingOffset(end_offset, end_day))


SAMSUNG_RULES = {
    1: _rule(-2, 18, -1, 17),
    5: _rule(-2, 22, -1, 21),
    10: _rule(-2, 27, -1, 26),
    11: _rule(-2, 28, -1, 27),
    12: _rule(-2, 29, -1, 28),
    13: _rule(-1, 1, -1, LAST_DAY),
    14: _rule(-1, 2, 0, 1),
    15: _rule(-1, 3, 0, 2),
    18: _rule(-1, 6, 0, 5),
    21: _rule(-1, 9, 0, 8),
    22: _rule(-1, 10, 0, 9),
    23: _rule(-1, 11, 0, 10),
    24: _rule(-1, 12, 0, 11),
    25: _rule(-1, 13, 0, 12),
    26: _rule(-1, 14, 0, 13),
}

# Shinhan, KB Kookmin, Woori and NH share the same calendar:
# payment day 14 covers the previous calendar month.
_STANDARD_RULES = {
    1: _rule(-2, 18, -1, 17),
    2: _rule(-2, 19, -1, 18),
    3: _rule(-2, 20, -1, 19),
    4: _rule(-2, 21, -1, 20),
    5: _rule(-2, 22, -1, 21),
    6: _rule(-2, 23, -1, 22),
    7: _rule(-2, 24, -1, 23),
    8: _rule(-2, 25, -1, 24),
    9: _rule(-2, 26, -1, 25),
    10: _rule(-2, 27, -1, 26),
    11: _rule(-2, 28, -1, 27),
    12: _rule(-2, 29, -1, 28),
    13: _rule(-2, 30, -1, 29),
    14: _rule(-1, 1, -1, LAST_DAY),
    15: _rule(-1, 2, 0, 1),
    16: _rule(-1, 3, 0, 2),
    17: _rule(-1, 4, 0, 3),
    18: _rule(-1, 5, 0, 4),
    19: _rule(-1, 6, 0, 5),
    20: _rule(-1, 7, 0, 6),
    21: _rule(-1, 8, 0, 7),
    22: _rule(-1, 9, 0, 8),
    23: _rule(-1, 10, 0, 9),
    24: _rule(-1, 11, 0, 10),
    25: _rule(-1, 12, 0, 11),
    26: _rule(-1, 13, 0, 12),
    27: _rule(-1, 14, 0, 13),
}

SHINHAN_RULES = dict(_STANDARD_RULES)
KOOKMIN_RULES = dict(_STANDARD_RULES)
WOORI_RULES = dict(_STANDARD_RULES)
NH_RULES = dict(_STANDARD_RULES)

# Window closes three days before the payment day
HYUNDAI_RULES = {
    1: _rule(-2, 20, -1, 19),
    2: _rule(-2, 21, -1, 20),
    3: _rule(-2, 22, -1, 21),
    4: _rule(-2, 23, -1, 22),
    5: _rule(-2, 24, -1, 23),
    6: _rule(-2, 25, -1, 24),
    7: _rule(-2, 26, -1, 25),
    8: _rule(-2, 27, -1, 26),
    9: _rule(-2, 28, -1, 27),
    10: _rule(-2, 29, -1, 28),
    11: _rule(-2, 30, -1, 29),
    12: _rule(-1, 1, -1, LAST_DAY),
    13: _rule(-1, 2, 0, 1),
    14: _rule(-1, 3, 0, 2),
    15: _rule(-1, 4, 0, 3),
    16: _rule(-1, 5, 0, 4),
    17: _rule(-1, 6, 0, 5),
    18: _rule(-1, 7, 0, 6),
    19: _rule(-1, 8, 0, 7),
    20: _rule(-1, 9, 0, 8),
    21: _rule(-1, 10, 0, 9),
    22: _rule(-1, 11, 0, 10),
    23: _rule(-1, 12, 0, 11),
    24: _rule(-1, 13, 0, 12),
    25: _rule(-1, 14, 0, 13),
    26: _rule(-1, 15, 0, 14),
}

LOTTE_RULES = {
    1: _rule(-2, 18, -1, 17),
    5: _rule(-2, 22, -1, 21),
    7: _rule(-2, 24, -1, 23),
    10: _rule(-2, 27, -1, 26),
    14: _rule(-1, 1, -1, LAST_DAY),
    15: _rule(-1, 2, 0, 1),
    17: _rule(-1, 4, 0, 3),
    20: _rule(-1, 7, 0, 6),
    21: _rule(-1, 8, 0, 7),
    22: _rule(-1, 9, 0, 8),
    23: _rule(-1, 10, 0, 9),
    24: _rule(-1, 11, 0, 10),
    25: _rule(-1, 12, 0, 11),
}

HANA_RULES = {
    1: _rule(-2, 19, -1, 18),
    5: _rule(-2, 23, -1, 22),
    7: _rule(-2, 25, -1, 24),
    8: _rule(-2, 26, -1, 25),
    10: _rule(-2, 28, -1, 27),
    12: _rule(-2, 30, -1, 29),
    13: _rule(-1, 1, -1, LAST_DAY),
    14: _rule(-1, 2, 0, 1),
    15: _rule(-1, 3, 0, 2),
    17: _rule(-1, 5, 0, 4),
    18: _rule(-1, 6, 0, 5),
    20: _rule(-1, 8, 0, 7),
    21: _rule(-1, 9, 0, 8),
    23: _rule(-1, 11, 0, 10),
    25: _rule(-1, 13, 0, 12),
    27: _rule(-1, 15, 0, 14),
}

# Rules differ per BC member bank; these are the BC Baro card values
BC_RULES = {
    1: _rule(-2, 19, -1, 18),
    5: _rule(-2, 23, -1, 22),
    8: _rule(-2, 26, -1, 25),
    12: _rule(-2, 30, -1, 29),
    15: _rule(-1, 3, 0, 2),
    23: _rule(-1, 11, 0, 10),
    25: _rule(-1, 13, 0, 12),
    27: _rule(-1, 15, 0, 14),
}

# Debit-only banks settle immediately, so there is no billing window
KAKAOBANK_RULES: Dict[int, BillingRule] = {}
TOSSBANK_RULES: Dict[int, BillingRule] = {}

KBANK_RULES = {
    15: _rule(-1, 1, -1, LAST_DAY),
}

_ALL_DAYS = tuple(range(1, 28))

CARD_COMPANY_BILLING_RULES: Dict[str, CompanyBillingRules] = {
    "samsung": CompanyBillingRules(
        "samsung", "Samsung Card", (1, 5, 10, 11, 12, 13, 14, 15, 18, 21, 22, 23, 24, 25, 26), 13, SAMSUNG_RULES
    ),
    "shinhan": CompanyBillingRules("shinhan", "Shinhan Card", _ALL_DAYS, 14, SHINHAN_RULES),
    "kookmin": CompanyBillingRules("kookmin", "KB Kookmin Card", _ALL_DAYS, 14, KOOKMIN_RULES),
    "hyundai": CompanyBillingRules("hyundai", "Hyundai Card", tuple(range(1, 27)), 12, HYUNDAI_RULES),
    "lotte": CompanyBillingRules(
        "lotte", "Lotte Card", (1, 5, 7, 10, 14, 15, 17, 20, 21, 22, 23, 24, 25), 14, LOTTE_RULES
    ),
    "woori": CompanyBillingRules("woori", "Woori Card", _ALL_DAYS, 14, WOORI_RULES),
    "hana": CompanyBillingRules(
        "hana", "Hana Card", (1, 5, 7, 8, 10, 12, 13, 14, 15, 17, 18, 20, 21, 23, 25, 27), 13, HANA_RULES
    ),
    "nh": CompanyBillingRules("nh", "NH NongHyup Card", _ALL_DAYS, 14, NH_RULES),
    "bc": CompanyBillingRules("bc", "BC Card", (1, 5, 8, 12, 15, 23, 25, 27), 12, BC_RULES),
    "kakaobank": CompanyBillingRules("kakaobank", "KakaoBank", (), 0, KAKAOBANK_RULES),
    "tossbank": CompanyBillingRules("tossbank", "Toss Bank", (), 0, TOSSBANK_RULES),
    "kbank": CompanyBillingRules("kbank", "K Bank", (15,), 15, KBANK_RULES),
    # Unknown issuers use the most common (Shinhan) calendar
    "other": CompanyBillingRules(
        "other", "Other", (1, 5, 10, 12, 13, 14, 15, 20, 25, 27), 14, SHINHAN_RULES
    ),
}


def get_company_rules(company_id: str) -> Optional[CompanyBillingRules]:
    return CARD_COMPANY_BILLING_RULES.get(company_id)


def get_billing_rule(company_id: str, payment_day: int) -> Optional[BillingRule]:
    """Rule for a company/payment day pair, or None when the pair has no rule"""
    company = CARD_COMPANY_BILLING_RULES.get(company_id)
    if company is None:
        return None
    return company.rules.get(payment_day)


def get_available_payment_days(company_id: str) -> List[int]:
    company = CARD_COMPANY_BILLING_RULES.get(company_id)
    if company is None or not company.available_payment_days:
        return list(DEFAULT_PAYMENT_DAYS)
    return list(company.available_payment_days)


def get_recommended_payment_day(company_id: str) -> int:
    company = CARD_COMPANY_BILLING_RULES.get(company_id)
    return (company.recommended_day if company else 0) or DEFAULT_RECOMMENDED_DAY


def get_default_billing_days(payment_day: int) -> Tuple[int, int]:
    """Stored (start_day, end_day) for a card whose company has no rule"""
    start_day = 1 if payment_day + 1 > 28 else payment_day + 1
    return start_day, payment_day


def get_billing_days_for_card(company_id: str, payment_day: int) -> Tuple[int, int]:
    """(start_day, end_day) to store on a card when it is created or edited"""
    rule = get_billing_rule(company_id, payment_day)
    if rule is not None:
        return rule.start.day, rule.end.day
    return get_default_billing_days(payment_day)


_MONTH_LABELS = {-2: "two months ago", -1: "previous month", 0: "current month"}


def describe_billing_period(company_id: str, payment_day: int) -> Optional[str]:
    """Human readable window, e.g. 'previous month 2 ~ current month 1'"""
    rule = get_billing_rule(company_id, payment_day)
    if rule is None:
        return None

    start_month = _MONTH_LABELS[-2] if rule.start.month_offset == -2 else _MONTH_LABELS[-1]
    end_month = _MONTH_LABELS[-1] if rule.end.month_offset == -1 else _MONTH_LABELS[0]
    end_day = "last day" if rule.end.day == LAST_DAY else str(rule.end.day)
    return f"{start_month} {rule.start.day} ~ {end_month} {end_day}"
