"""
Input validation endpoints.

Return validation problems as data so the page can show them inline.
"""

from fastapi import APIRouter

from fincalc.api.schemas import LoanRequest, RetirementRequest, validation_payload
from fincalc.calculations.validation import (
    validate_loan_inputs,
    validate_retirement_inputs,
)
from fincalc.config import get_settings

router = APIRouter()


@router.post("/loan")
async def validate_loan_endpoint(request: LoanRequest):
    inputs = request.to_inputs(get_settings().default_estimated_rate)
    return validation_payload(validate_loan_inputs(inputs))


@router.post("/retirement")
async def validate_retirement_endpoint(request: RetirementRequest):
    return validation_payload(validate_retirement_inputs(request.to_inputs()))
