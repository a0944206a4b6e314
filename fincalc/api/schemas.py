"""
Request bodies for the calculator endpoints.
"""

from dataclasses import asdict
from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel

from fincalc.calculations.amortization import LoanInputs
from fincalc.calculations.irr import RateInputType, nominal_rate_from_input
from fincalc.calculations.numeric import PaymentFrequency, periods_per_year
from fincalc.calculations.retirement import RetirementInputs
from fincalc.calculations.validation import ValidationResult


class LoanRequest(BaseModel):
    """Loan form as submitted by the calculator page."""

    loan_amount: float
    loan_term: int  # Months
    payment_frequency: PaymentFrequency = PaymentFrequency.monthly

    # Rate, as known by the borrower
    rate_type: RateInputType = RateInputType.nominal
    interest_rate: float = 0.0  # Nominal (TIN/TAN), percent
    apr: float = 0.0  # Effective (APR/TAE), percent

    # Fees
    origination_fee: float = 0.0
    monthly_fee: float = 0.0
    insurance_cost: float = 0.0
    other_fees: float = 0.0

    start_date: Optional[date] = None

    def to_inputs(self, estimated_rate: float) -> LoanInputs:
        """Build engine inputs, resolving the nominal rate from the rate type."""
        nominal = nominal_rate_from_input(
            self.rate_type,
            self.interest_rate,
            self.apr,
            periods_per_year(self.payment_frequency),
            estimated_rate=estimated_rate,
        )
        return LoanInputs(
            loan_amount=self.loan_amount,
            interest_rate=nominal,
            loan_term=self.loan_term,
            payment_frequency=self.payment_frequency,
            origination_fee=self.origination_fee,
            monthly_fee=self.monthly_fee,
            insurance_cost=self.insurance_cost,
            other_fees=self.other_fees,
            start_date=self.start_date,
        )


class RetirementRequest(BaseModel):
    """Retirement form as submitted by the calculator page."""

    current_age: int
    retirement_age: int
    life_expectancy: int
    current_savings: float = 0.0
    monthly_contribution: float = 0.0
    pre_retirement_return: float
    post_retirement_return: float
    inflation_rate: float
    withdrawal_rate: float = 4.0

    def to_inputs(self) -> RetirementInputs:
        return RetirementInputs(**self.model_dump())


class RateConversionRequest(BaseModel):
    """A single annual rate to convert."""

    rate: float
    rate_type: Literal["nominal", "apr"] = "nominal"
    payment_frequency: PaymentFrequency = PaymentFrequency.monthly


class RateConversionResponse(BaseModel):
    nominal_rate: float
    effective_rate: float
    periods_per_year: float


def validation_payload(result: ValidationResult) -> dict:
    """Serialize a ValidationResult, including its derived valid flag."""
    return {
        "valid": result.valid,
        "errors": [asdict(error) for error in result.errors],
    }
