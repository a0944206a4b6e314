"""
Effective Rate Calculations

Solves the fee-inclusive effective annual rate (APR/TAE/TAEG) of a loan as
the internal rate of return of its cash flows, using Newton-Raphson, and
converts between nominal and effective annual rates.
"""

import logging
from dataclasses import dataclass
from enum import Enum

import numpy as np

from fincalc.calculations.numeric import round_to_cents

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 100
TOLERANCE = 1e-7
INITIAL_ANNUAL_GUESS = 0.05
DEFAULT_ESTIMATED_RATE = 7.0

# Annual effective rates (percent) that compound past this are reported at it
MAX_EFFECTIVE_RATE = 1_000_000.0


class RateInputType(str, Enum):
    """Which annual rate the borrower knows."""

    nominal = "nominal"
    apr = "apr"
    both = "both"
    unknown = "unknown"


@dataclass(frozen=True)
class EffectiveRate:
    """Solved effective annual rate (percent) and how it was reached."""

    rate: float
    converged: bool
    iterations: int


def calculate_annuity_npv(
    net_amount: float, periodic_payment: float, total_periods: int, rate: float
) -> float:
    """NPV of receiving net_amount now and paying periodic_payment for each period."""
    periods = np.arange(1, total_periods + 1)
    # Discount factors overflow to inf for large rates; those terms vanish
    with np.errstate(over="ignore", divide="ignore"):
        return float(-net_amount + np.sum(periodic_payment / (1 + rate) ** periods))


def _annuity_npv_derivative(
    periodic_payment: float, total_periods: int, rate: float
) -> float:
    """Derivative of the annuity NPV with respect to rate (for Newton-Raphson)."""
    periods = np.arange(1, total_periods + 1)
    with np.errstate(over="ignore", divide="ignore"):
        return float(-np.sum(periods * periodic_payment / (1 + rate) ** (periods + 1)))


def periodic_to_annual_rate(periodic_rate: float, periods_per_year: float) -> float:
    """
    Compound a periodic rate into an annual effective rate (decimal).

    The result is capped at MAX_EFFECTIVE_RATE so it stays finite.
    """
    cap = MAX_EFFECTIVE_RATE / 100
    try:
        annual = (1 + periodic_rate) ** periods_per_year - 1
    except OverflowError:
        return cap
    return min(annual, cap)


def _annualized(
    periodic_rate: float, periods_per_year: float, converged: bool, iterations: int
) -> EffectiveRate:
    rate = periodic_to_annual_rate(periodic_rate, periods_per_year) * 100
    if rate >= MAX_EFFECTIVE_RATE:
        logger.warning(
            "Effective rate capped at %s%% (periodic rate %s)",
            MAX_EFFECTIVE_RATE, periodic_rate,
        )
        converged = False
    return EffectiveRate(rate=rate, converged=converged, iterations=iterations)


def calculate_effective_rate(
    loan_amount: float,
    periodic_payment: float,
    total_periods: int,
    periods_per_year: float,
    origination_fee_amount: float = 0.0,
    monthly_fee: float = 0.0,
    insurance_cost: float = 0.0,
    other_fees: float = 0.0,
) -> EffectiveRate:
    """
    Calculate the effective annual rate including all loan costs.

    The borrower receives the loan net of up-front fees and pays the
    periodic payment plus recurring fees every period. Recurring fees
    are quoted per month and rescaled to the payment frequency.

    Args:
        loan_amount: Loan principal
        periodic_payment: Scheduled payment per period
        total_periods: Number of payments
        periods_per_year: Payments per year
        origination_fee_amount: Up-front origination fee (currency)
        monthly_fee: Recurring account fee per month
        insurance_cost: Recurring insurance premium per month
        other_fees: Other one-time fees

    Returns:
        EffectiveRate with the annual rate as a percentage. When the
        iteration does not converge the last iterate is annualized and
        converged is False. A rate that compounds past MAX_EFFECTIVE_RATE
        is reported at the cap, also with converged False.
    """
    net_amount = loan_amount - origination_fee_amount - other_fees
    total_periodic_payment = (
        periodic_payment
        + monthly_fee * 12 / periods_per_year
        + insurance_cost * 12 / periods_per_year
    )

    if net_amount <= 0 or total_periodic_payment <= 0:
        return EffectiveRate(rate=0.0, converged=True, iterations=0)

    rate = INITIAL_ANNUAL_GUESS / periods_per_year

    for iteration in range(1, MAX_ITERATIONS + 1):
        npv = calculate_annuity_npv(net_amount, total_periodic_payment, total_periods, rate)
        dnpv = _annuity_npv_derivative(total_periodic_payment, total_periods, rate)

        if dnpv == 0 or not np.isfinite(dnpv) or not np.isfinite(npv):
            logger.warning("Effective rate derivative degenerate at iteration %d", iteration)
            break

        new_rate = rate - npv / dnpv

        if new_rate <= -1:
            logger.warning("Effective rate iterate left the valid domain: %s", new_rate)
            break

        if abs(new_rate - rate) < TOLERANCE:
            logger.debug("Effective rate converged after %d iterations", iteration)
            return _annualized(new_rate, periods_per_year, True, iteration)

        rate = new_rate
    else:
        logger.warning(
            "Effective rate did not converge after %d iterations", MAX_ITERATIONS
        )

    return _annualized(rate, periods_per_year, False, iteration)


def convert_apr_to_nominal(apr: float, periods_per_year: float = 12) -> float:
    """
    Convert an effective annual rate (APR/TAE) to a nominal rate (TIN/TAN).

    nominal = ppy * ((1 + APR)^(1/ppy) - 1), both in percent.
    """
    if apr <= 0 or periods_per_year <= 0:
        return 0.0
    nominal = periods_per_year * ((1 + apr / 100) ** (1 / periods_per_year) - 1)
    return round_to_cents(nominal * 100)


def convert_nominal_to_apr(nominal: float, periods_per_year: float = 12) -> float:
    """
    Convert a nominal rate (TIN/TAN) to an effective annual rate (APR/TAE).

    APR = (1 + nominal/ppy)^ppy - 1, both in percent.
    """
    if nominal <= 0 or periods_per_year <= 0:
        return 0.0
    apr = periodic_to_annual_rate(nominal / 100 / periods_per_year, periods_per_year)
    return round_to_cents(apr * 100)


def nominal_rate_from_input(
    rate_type: RateInputType,
    nominal_input: float,
    apr_input: float,
    periods_per_year: float = 12,
    estimated_rate: float = DEFAULT_ESTIMATED_RATE,
) -> float:
    """Resolve the nominal rate to calculate with from whatever the user entered."""
    if rate_type == RateInputType.apr:
        return convert_apr_to_nominal(apr_input, periods_per_year)
    if rate_type == RateInputType.unknown:
        return estimated_rate
    # nominal, or both (the nominal rate wins)
    return nominal_input
