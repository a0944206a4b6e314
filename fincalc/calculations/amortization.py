"""
Loan Amortization Calculations

Implements periodic loan payment, the payment-by-payment amortization
schedule and the complete loan result for monthly, biweekly and weekly
payment frequencies.
"""

from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from fincalc.calculations.irr import calculate_effective_rate
from fincalc.calculations.numeric import (
    PaymentFrequency,
    periods_per_year as get_periods_per_year,
    round_half_up,
    round_to_cents,
)

# Calendar step between two consecutive payments
_PAYMENT_STEP = {
    PaymentFrequency.monthly: ("months", 1),
    PaymentFrequency.biweekly: ("weeks", 2),
    PaymentFrequency.weekly: ("weeks", 1),
}


@dataclass(frozen=True)
class LoanInputs:
    """Loan terms for a single calculation."""

    loan_amount: float
    interest_rate: float  # Nominal annual rate (TIN/TAN) in percent
    loan_term: int  # Months
    payment_frequency: PaymentFrequency = PaymentFrequency.monthly
    origination_fee: float = 0.0  # Percent of loan amount
    monthly_fee: float = 0.0  # Recurring account fee per month
    insurance_cost: float = 0.0  # Insurance premium per month
    other_fees: float = 0.0  # One-time fees
    start_date: Optional[date] = None  # Date of the first payment


@dataclass(frozen=True)
class AmortizationRow:
    """One payment of the schedule."""

    period: int
    payment: float
    principal: float
    interest: float
    balance: float
    payment_date: Optional[date] = None


@dataclass(frozen=True)
class LoanResult:
    """Everything derived from a set of LoanInputs."""

    periodic_payment: float
    payment_frequency: PaymentFrequency
    periods_per_year: float
    total_periods: int
    total_payment: float
    total_interest: float
    nominal_rate: float
    effective_rate: float
    effective_rate_converged: bool
    total_fees: float
    amortization_schedule: Tuple[AmortizationRow, ...]
    payoff_date: Optional[date] = None


def calculate_periodic_payment(
    principal: float,
    annual_rate: float,
    total_periods: int,
    periods_per_year: float,
) -> float:
    """
    Calculate the periodic loan payment.

    P = L * [r(1+r)^n] / [(1+r)^n - 1]

    Args:
        principal: Loan principal amount
        annual_rate: Nominal annual rate in percent (e.g., 5 for 5%)
        total_periods: Number of payments
        periods_per_year: Payments per year

    Returns:
        Payment per period (0 for a non-positive principal or term)
    """
    if principal <= 0 or total_periods <= 0:
        return 0.0

    if annual_rate == 0:
        return principal / total_periods

    periodic_rate = annual_rate / 100 / periods_per_year
    growth = (1 + periodic_rate) ** total_periods

    return principal * (periodic_rate * growth / (growth - 1))


def payment_date(
    start_date: date, period: int, frequency: PaymentFrequency
) -> date:
    """Date of the given 1-based payment when the first one falls on start_date."""
    unit, step = _PAYMENT_STEP[frequency]
    return start_date + relativedelta(**{unit: step * (period - 1)})


def generate_amortization_schedule(
    principal: float,
    annual_rate: float,
    total_periods: int,
    periods_per_year: float,
    periodic_payment: float,
    start_date: Optional[date] = None,
    frequency: PaymentFrequency = PaymentFrequency.monthly,
) -> List[AmortizationRow]:
    """
    Generate a full amortization schedule.

    Interest and principal are rounded to cents every period. The final
    period (or the first one that would leave less than a cent) takes the
    whole remaining balance so the loan closes at exactly zero.

    Args:
        principal: Loan principal amount
        annual_rate: Nominal annual rate in percent
        total_periods: Number of payments
        periods_per_year: Payments per year
        periodic_payment: Scheduled payment per period
        start_date: Date of the first payment, if rows should be dated
        frequency: Payment frequency used to date rows

    Returns:
        List of amortization rows
    """
    schedule = []
    balance = principal
    periodic_rate = annual_rate / 100 / periods_per_year

    for period in range(1, total_periods + 1):
        interest = round_to_cents(balance * periodic_rate)
        principal_pmt = round_to_cents(periodic_payment - interest)

        if period == total_periods or balance - principal_pmt < 0.01:
            principal_pmt = round_to_cents(balance)
            balance = 0.0
        else:
            balance = round_to_cents(balance - principal_pmt)

        schedule.append(
            AmortizationRow(
                period=period,
                payment=round_to_cents(interest + principal_pmt),
                principal=principal_pmt,
                interest=interest,
                balance=balance,
                payment_date=(
                    payment_date(start_date, period, frequency) if start_date else None
                ),
            )
        )

        # Stop if balance is paid off
        if balance <= 0:
            break

    return schedule


def calculate_loan(inputs: LoanInputs) -> LoanResult:
    """
    Calculate the complete loan result.

    Inputs are expected to have passed validate_loan_inputs(); this
    function does not validate them again.
    """
    periods_per_year = get_periods_per_year(inputs.payment_frequency)
    total_periods = round_half_up(inputs.loan_term * (periods_per_year / 12))

    periodic_payment = calculate_periodic_payment(
        inputs.loan_amount, inputs.interest_rate, total_periods, periods_per_year
    )

    # Fees
    origination_fee_amount = inputs.origination_fee / 100 * inputs.loan_amount
    total_monthly_fees = inputs.monthly_fee * inputs.loan_term
    total_insurance_cost = inputs.insurance_cost * inputs.loan_term
    total_fees = round_to_cents(
        origination_fee_amount + total_monthly_fees + total_insurance_cost + inputs.other_fees
    )

    total_payment = round_to_cents(periodic_payment * total_periods + total_fees)
    total_interest = round_to_cents(total_payment - inputs.loan_amount - total_fees)

    effective = calculate_effective_rate(
        inputs.loan_amount,
        periodic_payment,
        total_periods,
        periods_per_year,
        origination_fee_amount,
        inputs.monthly_fee,
        inputs.insurance_cost,
        inputs.other_fees,
    )

    schedule = generate_amortization_schedule(
        inputs.loan_amount,
        inputs.interest_rate,
        total_periods,
        periods_per_year,
        periodic_payment,
        start_date=inputs.start_date,
        frequency=inputs.payment_frequency,
    )

    return LoanResult(
        periodic_payment=round_to_cents(periodic_payment),
        payment_frequency=inputs.payment_frequency,
        periods_per_year=periods_per_year,
        total_periods=total_periods,
        total_payment=total_payment,
        total_interest=total_interest,
        nominal_rate=inputs.interest_rate,
        effective_rate=round_to_cents(effective.rate),
        effective_rate_converged=effective.converged,
        total_fees=total_fees,
        amortization_schedule=tuple(schedule),
        payoff_date=schedule[-1].payment_date if schedule else None,
    )
