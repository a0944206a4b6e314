"""
Financial calculation API endpoints.

These endpoints accept inputs and return calculated results.
Called by the calculator pages on every input change.
"""

from dataclasses import asdict

from fastapi import APIRouter, HTTPException

from fincalc.api.schemas import (
    LoanRequest,
    RateConversionRequest,
    RateConversionResponse,
    RetirementRequest,
)
from fincalc.calculations.amortization import calculate_loan
from fincalc.calculations.irr import convert_apr_to_nominal, convert_nominal_to_apr
from fincalc.calculations.numeric import periods_per_year
from fincalc.calculations.retirement import calculate_retirement
from fincalc.calculations.validation import InvalidInputsError, validate_loan_inputs
from fincalc.config import get_settings

router = APIRouter()


@router.post("/loan")
async def calculate_loan_endpoint(request: LoanRequest):
    """Calculate payment, totals, effective rate and amortization schedule."""
    inputs = request.to_inputs(get_settings().default_estimated_rate)

    validation = validate_loan_inputs(inputs)
    if not validation.valid:
        raise HTTPException(
            status_code=400, detail=[asdict(error) for error in validation.errors]
        )

    return calculate_loan(inputs)


@router.post("/retirement")
async def calculate_retirement_endpoint(request: RetirementRequest):
    """Calculate accumulation and retirement projections."""
    try:
        return calculate_retirement(request.to_inputs())
    except InvalidInputsError as e:
        raise HTTPException(
            status_code=400, detail=[asdict(error) for error in e.errors]
        )


@router.post("/rate-conversion", response_model=RateConversionResponse)
async def convert_rate_endpoint(request: RateConversionRequest):
    """Convert between nominal (TIN/TAN) and effective (APR/TAE) annual rates."""
    ppy = periods_per_year(request.payment_frequency)

    if request.rate_type == "apr":
        nominal = convert_apr_to_nominal(request.rate, ppy)
        effective = request.rate
    else:
        nominal = request.rate
        effective = convert_nominal_to_apr(request.rate, ppy)

    return RateConversionResponse(
        nominal_rate=nominal,
        effective_rate=effective,
        periods_per_year=ppy,
    )
