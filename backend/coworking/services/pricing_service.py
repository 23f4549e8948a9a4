"""
Stay pricing.

A stay is billed per calendar day, both ends included. Stays of 28 days or
more get the office's monthly discount; the discount amount is floored
(integer minor units throughout).
"""

from datetime import date

MONTHLY_STAY_DAYS = 28
MAX_MONTHLY_DISCOUNT = 90


def count_days(start_date: date, end_date: date) -> int:
    """Inclusive number of calendar days between two dates."""
    return (end_date - start_date).days + 1


def compute_price(
    start_date: date,
    end_date: date,
    daily_rate: int,
    monthly_discount: int = 0,
) -> int:
    if daily_rate <= 0:
        raise ValueError(f"daily_rate must be positive, got {daily_rate}")
    if not 0 <= monthly_discount <= MAX_MONTHLY_DISCOUNT:
        raise ValueError(f"monthly_discount must be within 0..{MAX_MONTHLY_DISCOUNT}, got {monthly_discount}")
    if end_date < start_date:
        raise ValueError("end_date precedes start_date")

    days = count_days(start_date, end_date)
    price = days * daily_rate

    if days >= MONTHLY_STAY_DAYS and monthly_discount:
        price -= price * monthly_discount // 100

    return price
