"""
Shared Numeric Utilities

Rounding, compounding and annuity helpers used by both the loan
and the retirement engines.
"""

import math
from enum import Enum


class PaymentFrequency(str, Enum):
    """How often a loan payment is made."""

    monthly = "monthly"
    biweekly = "biweekly"
    weekly = "weekly"


def round_to_cents(value: float) -> float:
    """Round half-up to 2 decimal places."""
    return math.floor(value * 100 + 0.5) / 100


def round_to_one_decimal(value: float) -> float:
    """Round half-up to 1 decimal place (ages, years)."""
    return math.floor(value * 10 + 0.5) / 10


def round_half_up(value: float) -> int:
    """Round half-up to the nearest integer."""
    return int(math.floor(value + 0.5))


def periods_per_year(frequency: PaymentFrequency) -> float:
    """
    Number of payment periods in a year.

    Weekly and biweekly use the calendar cadence (365/7 and 365/14)
    rather than 52 and 26.
    """
    if frequency == PaymentFrequency.weekly:
        return 365 / 7
    if frequency == PaymentFrequency.biweekly:
        return 365 / 14
    return 12


def future_value_with_contributions(
    present_value: float,
    periodic_rate: float,
    periods: int,
    periodic_contribution: float,
) -> float:
    """
    Future value of a balance plus a level contribution each period.

    FV = PV * (1 + r)^n + PMT * [((1 + r)^n - 1) / r]

    Args:
        present_value: Starting balance
        periodic_rate: Rate per period as decimal (e.g., 0.005)
        periods: Number of compounding periods
        periodic_contribution: Amount added every period

    Returns:
        Balance after the last period
    """
    if periodic_rate == 0:
        return present_value + periodic_contribution * periods

    growth_factor = (1 + periodic_rate) ** periods
    annuity_factor = (growth_factor - 1) / periodic_rate

    return present_value * growth_factor + periodic_contribution * annuity_factor


def real_value(future_value: float, inflation_rate: float, years: float) -> float:
    """Deflate a future amount to today's money. inflation_rate is a percentage."""
    if inflation_rate == 0 or years <= 0:
        return future_value
    return future_value / ((1 + inflation_rate / 100) ** years)


def savings_longevity(
    balance: float, periodic_rate: float, periodic_withdrawal: float
) -> float:
    """
    Number of periods a balance lasts under a fixed withdrawal.

    n = -ln(1 - PV * r / PMT) / ln(1 + r)

    Returns math.inf when the balance never runs out.
    """
    if periodic_withdrawal <= 0 or balance <= 0:
        return math.inf

    if periodic_rate == 0:
        return balance / periodic_withdrawal

    # Growth keeps pace with withdrawals
    if periodic_withdrawal <= balance * periodic_rate:
        return math.inf

    ratio = balance * periodic_rate / periodic_withdrawal
    if ratio >= 1:
        return math.inf

    return -math.log(1 - ratio) / math.log(1 + periodic_rate)
