"""
API routes for the calculators.
"""

from fastapi import APIRouter

from fincalc.api import calculations, validation

router = APIRouter()

# Include sub-routers
router.include_router(calculations.router, prefix="/calculate", tags=["calculations"])
router.include_router(validation.router, prefix="/validate", tags=["validation"])
