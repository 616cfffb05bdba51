"""
Derived-field computation
Nights and totals are always recomputed from the current inputs, never supplied by the caller.
"""
import math
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Union
from erp_reservations.services.errors import ServiceError

SECONDS_PER_DAY = 24 * 3600
CENTS = Decimal("0.01")
# largest value a Numeric(10, 2) column holds
MAX_AMOUNT = Decimal("99999999.99")

Number = Union[Decimal, int, float, str]


def to_money(value: Number) -> Decimal:
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def calculate_nights(check_in: datetime, check_out: datetime) -> int:
    """ceil((check_out - check_in) in days); a partial day counts as a night"""
    seconds = (check_out - check_in).total_seconds()
    return math.ceil(seconds / SECONDS_PER_DAY)


def _bounded_total(amount: Decimal) -> Decimal:
    amount = to_money(amount)
    if amount > MAX_AMOUNT:
        raise ServiceError(f"Total amount exceeds {MAX_AMOUNT}")
    return amount


def calculate_reservation_total(nights: int, price_per_night: Number) -> Decimal:
    return _bounded_total(to_money(price_per_night) * nights)


def calculate_booking_total(price: Number, quantity: int) -> Decimal:
    return _bounded_total(to_money(price) * quantity)
