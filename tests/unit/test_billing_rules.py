"""Unit tests for the card company billing rule table"""

from satsledger.domain.billing_rules import (
    CARD_COMPANY_BILLING_RULES,
    DEFAULT_PAYMENT_DAYS,
    LAST_DAY,
    BillingOffset,
    BillingRule,
    describe_billing_period,
    get_available_payment_days,
    get_billing_days_for_card,
    get_billing_rule,
    get_company_rules,
    get_default_billing_days,
    get_recommended_payment_day,
)


def test_shinhan_day_14_covers_previous_calendar_month():
    rule = get_billing_rule("shinhan", 14)
    assert rule == BillingRule(BillingOffset(-1, 1), BillingOffset(-1, LAST_DAY))


def test_samsung_day_14_spans_two_months():
    rule = get_billing_rule("samsung", 14)
    assert rule.start == BillingOffset(-1, 2)
    assert rule.end == BillingOffset(0, 1)


def test_missing_rules_return_none():
    """Unknown company, unsupported day and debit-only banks have no rule"""
    assert get_billing_rule("unknown", 14) is None
    assert get_billing_rule("samsung", 2) is None
    assert get_billing_rule("kakaobank", 14) is None
    assert get_billing_rule("tossbank", 1) is None


def test_other_uses_shinhan_calendar():
    assert get_billing_rule("other", 14) == get_billing_rule("shinhan", 14)
    assert get_company_rules("other").company_name == "Other"


def test_available_payment_days_default():
    assert get_available_payment_days("unknown") == DEFAULT_PAYMENT_DAYS
    assert get_available_payment_days("kakaobank") == DEFAULT_PAYMENT_DAYS
    assert get_available_payment_days("kbank") == [15]


def test_recommended_payment_day():
    assert get_recommended_payment_day("hyundai") == 12
    assert get_recommended_payment_day("samsung") == 13
    # Zero or unknown falls back to the 14th
    assert get_recommended_payment_day("kakaobank") == 14
    assert get_recommended_payment_day("unknown") == 14


def test_recommended_day_covers_previous_calendar_month():
    """The recommended day's window is exactly the previous month"""
    for company_id in ("samsung", "shinhan", "kookmin", "hyundai", "lotte", "woori", "hana", "nh", "kbank"):
        company = CARD_COMPANY_BILLING_RULES[company_id]
        rule = company.rules[company.recommended_day]
        assert rule.start == BillingOffset(-1, 1)
        assert rule.end == BillingOffset(-1, LAST_DAY)


def test_default_billing_days():
    assert get_default_billing_days(14) == (15, 14)
    assert get_default_billing_days(28) == (1, 28)


def test_billing_days_for_card():
    assert get_billing_days_for_card("samsung", 14) == (2, 1)
    assert get_billing_days_for_card("shinhan", 14) == (1, LAST_DAY)
    assert get_billing_days_for_card("kakaobank", 10) == (11, 10)


def test_describe_billing_period():
    assert describe_billing_period("shinhan", 14) == "previous month 1 ~ previous month last day"
    assert describe_billing_period("samsung", 14) == "previous month 2 ~ current month 1"
    assert describe_billing_period("shinhan", 1) == "two months ago 18 ~ previous month 17"
    assert describe_billing_period("unknown", 14) is None
