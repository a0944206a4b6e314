"""
Input Validation

Validators return every problem with an input record as data so the
caller can render them next to the offending field. Only
ValidationResult.raise_for_errors() turns them into an exception.
"""

from dataclasses import dataclass
from typing import List, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from fincalc.calculations.amortization import LoanInputs
    from fincalc.calculations.retirement import RetirementInputs

MAX_LOAN_AMOUNT = 100_000_000
MAX_INTEREST_RATE = 100
MAX_LOAN_TERM_MONTHS = 600
MAX_ORIGINATION_FEE = 20

MAX_SAVINGS = 100_000_000
MAX_MONTHLY_CONTRIBUTION = 100_000


@dataclass(frozen=True)
class FieldError:
    """A single validation problem tied to an input field."""

    field: str
    message: str


class InvalidInputsError(ValueError):
    """Raised when a calculation is asked to run on invalid inputs."""

    def __init__(self, errors: Tuple[FieldError, ...], label: str = "inputs"):
        self.errors = errors
        messages = ", ".join(error.message for error in errors)
        super().__init__(f"Invalid {label}: {messages}")


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating an input record."""

    errors: Tuple[FieldError, ...] = ()

    @property
    def valid(self) -> bool:
        return not self.errors

    def raise_for_errors(self, label: str = "inputs") -> None:
        if self.errors:
            raise InvalidInputsError(self.errors, label)


def validate_loan_inputs(inputs: "LoanInputs") -> ValidationResult:
    """
    Validate loan inputs.

    Args:
        inputs: Loan terms as entered by the user

    Returns:
        ValidationResult listing every failing field
    """
    errors: List[FieldError] = []

    if inputs.loan_amount <= 0:
        errors.append(FieldError("loan_amount", "Loan amount must be greater than zero"))
    elif inputs.loan_amount > MAX_LOAN_AMOUNT:
        errors.append(
            FieldError("loan_amount", "Loan amount exceeds maximum (100,000,000)")
        )

    if inputs.interest_rate < 0:
        errors.append(FieldError("interest_rate", "Interest rate cannot be negative"))
    elif inputs.interest_rate > MAX_INTEREST_RATE:
        errors.append(FieldError("interest_rate", "Interest rate exceeds 100%"))

    if inputs.loan_term <= 0:
        errors.append(FieldError("loan_term", "Loan term must be greater than zero"))
    elif inputs.loan_term > MAX_LOAN_TERM_MONTHS:
        errors.append(FieldError("loan_term", "Loan term exceeds maximum (50 years)"))

    if not 0 <= inputs.origination_fee <= MAX_ORIGINATION_FEE:
        errors.append(
            FieldError("origination_fee", "Origination fee must be between 0% and 20%")
        )

    if inputs.monthly_fee < 0:
        errors.append(FieldError("monthly_fee", "Monthly fee cannot be negative"))

    if inputs.insurance_cost < 0:
        errors.append(FieldError("insurance_cost", "Insurance cost cannot be negative"))

    if inputs.other_fees < 0:
        errors.append(FieldError("other_fees", "Other fees cannot be negative"))

    return ValidationResult(tuple(errors))


def _check_range(
    errors: List[FieldError],
    name: str,
    value: float,
    low: float,
    high: float,
    low_message: str,
    high_message: str,
) -> None:
    if value < low:
        errors.append(FieldError(name, low_message))
    elif value > high:
        errors.append(FieldError(name, high_message))


def validate_retirement_inputs(inputs: "RetirementInputs") -> ValidationResult:
    """
    Validate retirement inputs.

    Age ordering is checked in addition to the per-field ranges, so a
    field can appear more than once in the result.
    """
    errors: List[FieldError] = []

    _check_range(
        errors, "current_age", inputs.current_age, 18, 100,
        "Current age must be 18 or older",
        "Current age cannot exceed 100",
    )
    _check_range(
        errors, "retirement_age", inputs.retirement_age, 30, 100,
        "Retirement age must be at least 30",
        "Retirement age cannot exceed 100",
    )
    if inputs.retirement_age <= inputs.current_age:
        errors.append(
            FieldError("retirement_age", "Retirement age must be greater than current age")
        )

    _check_range(
        errors, "life_expectancy", inputs.life_expectancy, 50, 120,
        "Life expectancy must be at least 50",
        "Life expectancy cannot exceed 120",
    )
    if inputs.life_expectancy <= inputs.retirement_age:
        errors.append(
            FieldError(
                "life_expectancy", "Life expectancy must be greater than retirement age"
            )
        )

    _check_range(
        errors, "current_savings", inputs.current_savings, 0, MAX_SAVINGS,
        "Current savings cannot be negative",
        "Current savings exceeds maximum (100,000,000)",
    )
    _check_range(
        errors, "monthly_contribution", inputs.monthly_contribution,
        0, MAX_MONTHLY_CONTRIBUTION,
        "Monthly contribution cannot be negative",
        "Monthly contribution exceeds maximum (100,000)",
    )
    _check_range(
        errors, "pre_retirement_return", inputs.pre_retirement_return, -10, 25,
        "Pre-retirement return cannot be less than -10%",
        "Pre-retirement return exceeds realistic maximum (25%)",
    )
    _check_range(
        errors, "post_retirement_return", inputs.post_retirement_return, -10, 15,
        "Post-retirement return cannot be less than -10%",
        "Post-retirement return exceeds realistic maximum (15%)",
    )
    _check_range(
        errors, "inflation_rate", inputs.inflation_rate, 0, 20,
        "Inflation rate cannot be negative",
        "Inflation rate exceeds realistic maximum (20%)",
    )

    if inputs.withdrawal_rate <= 0:
        errors.append(
            FieldError("withdrawal_rate", "Withdrawal rate must be greater than 0%")
        )
    elif inputs.withdrawal_rate > 15:
        errors.append(
            FieldError("withdrawal_rate", "Withdrawal rate exceeds recommended maximum (15%)")
        )

    return ValidationResult(tuple(errors))
