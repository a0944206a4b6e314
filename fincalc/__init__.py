"""
Financial projection engine for the loan and retirement calculators.
"""

__version__ = "0.1.0"
