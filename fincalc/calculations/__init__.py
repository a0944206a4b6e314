"""
Financial Calculation Engine

Core calculation modules for the loan and retirement calculators.
All functions are pure and return immutable result records.
"""

from fincalc.calculations import numeric, validation, irr, amortization, retirement

__all__ = ["numeric", "validation", "irr", "amortization", "retirement"]
