"""KRW / sats conversions"""

from decimal import Decimal, ROUND_HALF_UP

SATS_PER_BTC = 100_000_000


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties away from zero"""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def krw_to_sats(krw_amount: float, btc_krw: float) -> int:
    """Convert a KRW amount to sats at the given BTC/KRW rate (0 when the rate is 0)"""
    if btc_krw == 0:
        return 0
    return round_half_up(krw_amount / btc_krw * SATS_PER_BTC)


def sats_to_krw(sats_amount: float, btc_krw: float) -> int:
    return round_half_up(sats_amount / SATS_PER_BTC * btc_krw)
