"""
Pytest configuration and shared fixtures.
"""

import pytest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fincalc.calculations.amortization import LoanInputs
from fincalc.calculations.numeric import PaymentFrequency
from fincalc.calculations.retirement import RetirementInputs


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks integration tests")


@pytest.fixture
def loan_inputs():
    """10,000 at 5% over 5 years, paid monthly, no fees."""
    return LoanInputs(
        loan_amount=10000,
        interest_rate=5,
        loan_term=60,
        payment_frequency=PaymentFrequency.monthly,
    )


@pytest.fixture
def retirement_inputs():
    """Typical 30-year-old saver using the 4% rule."""
    return RetirementInputs(
        current_age=30,
        retirement_age=65,
        life_expectancy=90,
        current_savings=50000,
        monthly_contribution=500,
        pre_retirement_return=7,
        post_retirement_return=5,
        inflation_rate=2.5,
        withdrawal_rate=4,
    )
