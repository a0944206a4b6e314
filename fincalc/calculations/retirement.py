"""
Retirement Projection Calculations

Projects savings through two phases:

1. Accumulation (current age -> retirement age): monthly compounding of the
   pre-retirement return with a monthly contribution.
2. Decumulation (retirement age -> life expectancy): annual compounding of
   the post-retirement return on the average balance of the year, with a
   fixed annual withdrawal sized from the balance at retirement.

The headline balance at retirement comes from the closed-form annuity
formula; the year tables simulate every month. Both must agree within
rounding.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from fincalc.calculations.numeric import (
    future_value_with_contributions,
    real_value,
    round_to_cents,
    round_to_one_decimal,
    savings_longevity,
)
from fincalc.calculations.validation import validate_retirement_inputs

logger = logging.getLogger(__name__)

# Largest acceptable gap between the closed-form and simulated balances,
# absolute for small balances and relative for large ones
PROJECTION_TOLERANCE = 0.05
PROJECTION_REL_TOLERANCE = 1e-9

MILESTONE_100K = 100_000
MILESTONE_500K = 500_000
MILESTONE_1M = 1_000_000


@dataclass(frozen=True)
class RetirementInputs:
    """Life-cycle assumptions. Rates are percentages (7 for 7%)."""

    current_age: int
    retirement_age: int
    life_expectancy: int
    current_savings: float
    monthly_contribution: float
    pre_retirement_return: float
    post_retirement_return: float
    inflation_rate: float
    withdrawal_rate: float


@dataclass(frozen=True)
class AccumulationYearProjection:
    year: int
    age: int
    starting_balance: float
    contributions: float
    investment_growth: float
    ending_balance: float
    real_balance: float  # In today's money


@dataclass(frozen=True)
class RetirementYearProjection:
    year: int
    age: int
    starting_balance: float
    withdrawals: float
    investment_growth: float
    ending_balance: float
    is_savings_depleted: bool


@dataclass(frozen=True)
class AccumulationPhaseSummary:
    years_to_retirement: int
    total_contributions: float  # Includes the current savings
    total_growth: float
    balance_at_retirement: float
    real_balance_at_retirement: float


@dataclass(frozen=True)
class RetirementPhaseSummary:
    years_in_retirement: int
    sustainable_monthly_income: float
    real_monthly_income: float
    age_when_depleted: Optional[float]  # None if savings never run out
    savings_longevity_years: Optional[float]
    savings_lasts_through_retirement: bool
    final_balance: float


@dataclass(frozen=True)
class Milestones:
    """
    Ages at which savings first reach a threshold.

    None means never reached, or already reached before the first year.
    """

    age_100k: Optional[int] = None
    age_500k: Optional[int] = None
    age_1m: Optional[int] = None
    age_depleted_savings: Optional[int] = None


@dataclass(frozen=True)
class RetirementResult:
    accumulation_summary: AccumulationPhaseSummary
    retirement_summary: RetirementPhaseSummary
    accumulation_projections: Tuple[AccumulationYearProjection, ...]
    retirement_projections: Tuple[RetirementYearProjection, ...]
    milestones: Milestones


def generate_accumulation_projections(
    current_savings: float,
    monthly_contribution: float,
    pre_retirement_return: float,
    inflation_rate: float,
    current_age: int,
    retirement_age: int,
) -> List[AccumulationYearProjection]:
    """
    Generate year-by-year accumulation projections.

    Each year is simulated as 12 monthly steps: growth on the running
    balance, then the month's contribution.
    """
    projections = []
    monthly_return = pre_retirement_return / 100 / 12
    balance = current_savings

    for year in range(1, retirement_age - current_age + 1):
        starting_balance = balance
        yearly_growth = 0.0

        for _ in range(12):
            month_growth = balance * monthly_return
            yearly_growth += month_growth
            balance = balance + month_growth + monthly_contribution

        projections.append(
            AccumulationYearProjection(
                year=year,
                age=current_age + year,
                starting_balance=round_to_cents(starting_balance),
                contributions=round_to_cents(monthly_contribution * 12),
                investment_growth=round_to_cents(yearly_growth),
                ending_balance=round_to_cents(balance),
                real_balance=round_to_cents(real_value(balance, inflation_rate, year)),
            )
        )

    return projections


def generate_retirement_projections(
    retirement_balance: float,
    annual_withdrawal: float,
    post_retirement_return: float,
    retirement_age: int,
    life_expectancy: int,
) -> List[RetirementYearProjection]:
    """
    Generate year-by-year retirement projections.

    Withdrawals are spread over the year, so growth applies to the
    balance net of half the year's withdrawal. Once the balance hits
    zero every later year is an all-zero depleted row.
    """
    projections = []
    annual_return = post_retirement_return / 100
    balance = retirement_balance

    for year in range(1, life_expectancy - retirement_age + 1):
        age = retirement_age + year

        if balance <= 0:
            projections.append(
                RetirementYearProjection(
                    year=year,
                    age=age,
                    starting_balance=0.0,
                    withdrawals=0.0,
                    investment_growth=0.0,
                    ending_balance=0.0,
                    is_savings_depleted=True,
                )
            )
            continue

        starting_balance = balance
        withdrawal = min(annual_withdrawal, balance)
        growth = (balance - withdrawal / 2) * annual_return

        balance = max(0.0, balance - withdrawal + growth)

        projections.append(
            RetirementYearProjection(
                year=year,
                age=age,
                starting_balance=round_to_cents(starting_balance),
                withdrawals=round_to_cents(withdrawal),
                investment_growth=round_to_cents(growth),
                ending_balance=round_to_cents(balance),
                is_savings_depleted=balance <= 0,
            )
        )

    return projections


def calculate_milestones(
    current_savings: float,
    accumulation_projections: List[AccumulationYearProjection],
    retirement_projections: List[RetirementYearProjection],
) -> Milestones:
    """Find the first age at which each savings milestone is reached."""
    crossed = {}
    for threshold in (MILESTONE_100K, MILESTONE_500K, MILESTONE_1M):
        if current_savings >= threshold:
            # Already there at the start; never flagged retroactively
            continue
        crossed[threshold] = next(
            (p.age for p in accumulation_projections if p.ending_balance >= threshold),
            None,
        )

    age_depleted = next(
        (p.age for p in retirement_projections if p.is_savings_depleted), None
    )

    return Milestones(
        age_100k=crossed.get(MILESTONE_100K),
        age_500k=crossed.get(MILESTONE_500K),
        age_1m=crossed.get(MILESTONE_1M),
        age_depleted_savings=age_depleted,
    )


def calculate_retirement(inputs: RetirementInputs) -> RetirementResult:
    """
    Calculate the full retirement projection.

    Args:
        inputs: Life-cycle assumptions

    Returns:
        RetirementResult with phase summaries, year tables and milestones

    Raises:
        InvalidInputsError: If inputs fail validate_retirement_inputs()
    """
    validation = validate_retirement_inputs(inputs)
    if not validation.valid:
        logger.info("Rejected retirement inputs: %s", validation.errors)
        validation.raise_for_errors("retirement inputs")

    years_to_retirement = inputs.retirement_age - inputs.current_age
    years_in_retirement = inputs.life_expectancy - inputs.retirement_age

    # Accumulation phase (closed form)
    balance_at_retirement = future_value_with_contributions(
        inputs.current_savings,
        inputs.pre_retirement_return / 100 / 12,
        years_to_retirement * 12,
        inputs.monthly_contribution,
    )
    real_balance_at_retirement = real_value(
        balance_at_retirement, inputs.inflation_rate, years_to_retirement
    )
    total_contributions = (
        inputs.current_savings + inputs.monthly_contribution * 12 * years_to_retirement
    )
    total_growth = balance_at_retirement - total_contributions

    # Retirement phase
    annual_withdrawal = balance_at_retirement * inputs.withdrawal_rate / 100
    sustainable_monthly_income = annual_withdrawal / 12
    real_monthly_income = real_value(
        sustainable_monthly_income, inputs.inflation_rate, years_to_retirement
    )

    longevity_months = savings_longevity(
        balance_at_retirement,
        inputs.post_retirement_return / 100 / 12,
        sustainable_monthly_income,
    )
    longevity_years = None if math.isinf(longevity_months) else longevity_months / 12
    age_when_depleted = (
        inputs.retirement_age + longevity_years if longevity_years is not None else None
    )
    lasts_through_retirement = (
        longevity_years is None or longevity_years >= years_in_retirement
    )

    accumulation_projections = generate_accumulation_projections(
        inputs.current_savings,
        inputs.monthly_contribution,
        inputs.pre_retirement_return,
        inputs.inflation_rate,
        inputs.current_age,
        inputs.retirement_age,
    )
    retirement_projections = generate_retirement_projections(
        balance_at_retirement,
        annual_withdrawal,
        inputs.post_retirement_return,
        inputs.retirement_age,
        inputs.life_expectancy,
    )

    if accumulation_projections:
        simulated = accumulation_projections[-1].ending_balance
        if not math.isclose(
            simulated,
            balance_at_retirement,
            rel_tol=PROJECTION_REL_TOLERANCE,
            abs_tol=PROJECTION_TOLERANCE,
        ):
            logger.warning(
                "Simulated balance at retirement differs from closed form by %.4f",
                abs(simulated - balance_at_retirement),
            )

    final_balance = (
        retirement_projections[-1].ending_balance
        if retirement_projections
        else balance_at_retirement
    )

    return RetirementResult(
        accumulation_summary=AccumulationPhaseSummary(
            years_to_retirement=years_to_retirement,
            total_contributions=round_to_cents(total_contributions),
            total_growth=round_to_cents(total_growth),
            balance_at_retirement=round_to_cents(balance_at_retirement),
            real_balance_at_retirement=round_to_cents(real_balance_at_retirement),
        ),
        retirement_summary=RetirementPhaseSummary(
            years_in_retirement=years_in_retirement,
            sustainable_monthly_income=round_to_cents(sustainable_monthly_income),
            real_monthly_income=round_to_cents(real_monthly_income),
            age_when_depleted=(
                round_to_one_decimal(age_when_depleted)
                if age_when_depleted is not None
                else None
            ),
            savings_longevity_years=(
                round_to_one_decimal(longevity_years)
                if longevity_years is not None
                else None
            ),
            savings_lasts_through_retirement=lasts_through_retirement,
            final_balance=round_to_cents(final_balance),
        ),
        accumulation_projections=tuple(accumulation_projections),
        retirement_projections=tuple(retirement_projections),
        milestones=calculate_milestones(
            inputs.current_savings, accumulation_projections, retirement_projections
        ),
    )
