"""
Tests for the loan calculation engine.
"""

import math
import warnings
from dataclasses import replace
from datetime import date

import pytest

from fincalc.calculations import irr
from fincalc.calculations.amortization import (
    LoanInputs,
    calculate_loan,
    calculate_periodic_payment,
    generate_amortization_schedule,
)
from fincalc.calculations.irr import (
    RateInputType,
    calculate_effective_rate,
    convert_apr_to_nominal,
    convert_nominal_to_apr,
    nominal_rate_from_input,
)
from fincalc.calculations.numeric import (
    PaymentFrequency,
    future_value_with_contributions,
    periods_per_year,
    real_value,
    round_to_cents,
    round_to_one_decimal,
    savings_longevity,
)
from fincalc.calculations.validation import validate_loan_inputs


class TestNumeric:
    """Test shared numeric helpers."""

    def test_round_to_cents_half_up(self):
        """Halves round up, unlike Python's round()."""
        assert round_to_cents(0.125) == 0.13
        assert round_to_cents(-0.125) == -0.12
        assert round_to_cents(188.71234) == 188.71

    def test_round_to_one_decimal(self):
        assert round_to_one_decimal(72.25) == 72.3
        assert round_to_one_decimal(6.6666) == 6.7

    def test_periods_per_year(self):
        assert periods_per_year(PaymentFrequency.monthly) == 12
        assert periods_per_year(PaymentFrequency.biweekly) == 365 / 14
        assert periods_per_year(PaymentFrequency.weekly) == 365 / 7

    def test_future_value_zero_rate(self):
        """Zero rate degenerates to principal plus contributions."""
        assert future_value_with_contributions(1000, 0, 12, 100) == 2200

    def test_future_value_compounding(self):
        assert future_value_with_contributions(1000, 0.1, 2, 0) == pytest.approx(1210)
        assert future_value_with_contributions(0, 0.01, 1, 100) == pytest.approx(100)

    def test_real_value(self):
        assert real_value(1100, 10, 1) == pytest.approx(1000)
        assert real_value(1100, 0, 5) == 1100
        assert real_value(1100, 3, 0) == 1100

    def test_savings_longevity_closed_form(self):
        periods = savings_longevity(100000, 0.005, 1000)
        assert periods == pytest.approx(math.log(2) / math.log(1.005))

    def test_savings_longevity_zero_rate(self):
        assert savings_longevity(100000, 0, 1000) == 100

    def test_savings_longevity_never_depletes(self):
        """Growth that keeps pace with withdrawals lasts forever."""
        assert savings_longevity(100000, 0.01, 1000) == math.inf
        assert savings_longevity(100000, 0.02, 1000) == math.inf
        assert savings_longevity(100000, 0.01, 0) == math.inf
        assert savings_longevity(0, 0.01, 1000) == math.inf


class TestEffectiveRate:
    """Test Newton-Raphson effective rate solver."""

    def test_no_fees_matches_compounded_nominal(self):
        """Without fees the effective rate is the compounded nominal rate."""
        payment = calculate_periodic_payment(10000, 5, 60, 12)
        result = calculate_effective_rate(10000, payment, 60, 12)
        assert result.converged
        assert result.rate == pytest.approx(((1 + 0.05 / 12) ** 12 - 1) * 100, abs=1e-4)

    def test_origination_fee_raises_rate(self):
        payment = calculate_periodic_payment(10000, 5, 60, 12)
        plain = calculate_effective_rate(10000, payment, 60, 12)
        with_fee = calculate_effective_rate(10000, payment, 60, 12, origination_fee_amount=200)
        assert with_fee.converged
        assert with_fee.rate > plain.rate

    def test_recurring_fees_raise_rate(self):
        payment = calculate_periodic_payment(10000, 5, 60, 12)
        plain = calculate_effective_rate(10000, payment, 60, 12)
        with_fees = calculate_effective_rate(
            10000, payment, 60, 12, monthly_fee=5, insurance_cost=10
        )
        assert with_fees.rate > plain.rate

    def test_degenerate_net_amount(self):
        """Fees that swallow the whole loan give a zero rate."""
        result = calculate_effective_rate(1000, 100, 12, 12, origination_fee_amount=600, other_fees=400)
        assert result.rate == 0
        assert result.converged
        assert result.iterations == 0

    def test_non_convergence_returns_best_estimate(self, monkeypatch):
        """Running out of iterations degrades to the last iterate."""
        monkeypatch.setattr(irr, "MAX_ITERATIONS", 1)
        payment = calculate_periodic_payment(10000, 5, 60, 12)
        result = calculate_effective_rate(10000, payment, 60, 12, origination_fee_amount=500)
        assert not result.converged
        assert result.iterations == 1
        assert result.rate > 5

    def test_solved_rate_prices_net_amount(self):
        """Discounting at the solved rate values the payments at the net amount."""
        payment = calculate_periodic_payment(10000, 5, 60, 12)
        result = calculate_effective_rate(10000, payment, 60, 12, origination_fee_amount=300)
        assert result.converged
        periodic = (1 + result.rate / 100) ** (1 / 12) - 1
        npv = irr.calculate_annuity_npv(10000 - 300, payment, 60, periodic)
        assert abs(npv) < 1e-2

    @pytest.mark.parametrize(
        "origination_fee,other_fees", [(0, 99_999_999.99), (20, 79_999_999.99)]
    )
    def test_fees_leaving_cents_to_borrow(self, origination_fee, other_fees):
        """A rate too large to annualize is capped instead of overflowing."""
        inputs = LoanInputs(
            100_000_000,
            100,
            600,
            PaymentFrequency.weekly,
            origination_fee=origination_fee,
            other_fees=other_fees,
        )
        assert validate_loan_inputs(inputs).valid
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            result = calculate_loan(inputs)
        assert math.isfinite(result.effective_rate)
        assert result.effective_rate == irr.MAX_EFFECTIVE_RATE
        assert not result.effective_rate_converged

    def test_annualization_is_capped(self):
        assert irr.periodic_to_annual_rate(191780719.04, 365 / 7) == irr.MAX_EFFECTIVE_RATE / 100
        assert irr.periodic_to_annual_rate(0.01, 12) == pytest.approx(1.01 ** 12 - 1)


class TestRateConversion:
    """Test nominal/APR conversions."""

    def test_nominal_to_apr(self):
        assert convert_nominal_to_apr(5) == 5.12
        assert convert_nominal_to_apr(12) == 12.68

    def test_apr_to_nominal(self):
        assert convert_apr_to_nominal(5.12) == 5.0

    def test_non_positive_rates(self):
        assert convert_nominal_to_apr(0) == 0
        assert convert_apr_to_nominal(-1) == 0
        assert convert_apr_to_nominal(5, 0) == 0

    @pytest.mark.parametrize("rate", [1, 3.5, 5, 7.25, 12, 20])
    @pytest.mark.parametrize("frequency", list(PaymentFrequency))
    def test_round_trip(self, rate, frequency):
        ppy = periods_per_year(frequency)
        assert convert_nominal_to_apr(convert_apr_to_nominal(rate, ppy), ppy) == pytest.approx(
            rate, abs=0.02
        )

    def test_nominal_rate_from_input(self):
        assert nominal_rate_from_input(RateInputType.nominal, 6, 0) == 6
        assert nominal_rate_from_input(RateInputType.both, 6, 6.17) == 6
        assert nominal_rate_from_input(RateInputType.apr, 0, 5.12) == 5.0
        assert nominal_rate_from_input(RateInputType.unknown, 0, 0) == 7.0


class TestAmortization:
    """Test loan amortization calculations."""

    def test_calculate_payment(self):
        """Standard reference: 10,000 at 5% for 60 months."""
        payment = calculate_periodic_payment(10000, 5, 60, 12)
        assert round_to_cents(payment) == 188.71

    def test_calculate_payment_zero_rate(self):
        assert calculate_periodic_payment(12000, 0, 12, 12) == 1000

    def test_calculate_payment_invalid(self):
        assert calculate_periodic_payment(0, 5, 60, 12) == 0
        assert calculate_periodic_payment(10000, 5, 0, 12) == 0

    def test_amortization_schedule_length(self):
        payment = calculate_periodic_payment(100000, 6, 60, 12)
        schedule = generate_amortization_schedule(100000, 6, 60, 12, payment)
        assert len(schedule) == 60
        assert [row.period for row in schedule] == list(range(1, 61))

    def test_amortization_final_balance(self):
        """Final balance is exactly zero."""
        payment = calculate_periodic_payment(100000, 6, 60, 12)
        schedule = generate_amortization_schedule(100000, 6, 60, 12, payment)
        assert schedule[-1].balance == 0

    def test_zero_rate_schedule_has_no_interest(self):
        payment = calculate_periodic_payment(10000, 0, 60, 12)
        schedule = generate_amortization_schedule(10000, 0, 60, 12, payment)
        assert all(row.interest == 0 for row in schedule)
        assert sum(row.principal for row in schedule) == pytest.approx(10000, abs=0.01)

    def test_rows_are_rounding_consistent(self):
        payment = calculate_periodic_payment(25000, 7.9, 84, 12)
        schedule = generate_amortization_schedule(25000, 7.9, 84, 12, payment)
        for row in schedule:
            assert row.payment == round_to_cents(row.principal + row.interest)

    def test_dated_schedule(self):
        payment = calculate_periodic_payment(1200, 0, 12, 12)
        schedule = generate_amortization_schedule(
            1200, 0, 12, 12, payment, start_date=date(2025, 1, 31)
        )
        assert schedule[0].payment_date == date(2025, 1, 31)
        assert schedule[1].payment_date == date(2025, 2, 28)
        assert schedule[-1].payment_date == date(2025, 12, 31)


class TestCalculateLoan:
    """Test the complete loan result."""

    def test_reference_scenario(self, loan_inputs):
        result = calculate_loan(loan_inputs)
        assert result.periodic_payment == 188.71
        assert result.total_periods == 60
        assert result.periods_per_year == 12
        assert result.total_fees == 0
        assert result.total_interest == pytest.approx(1322.6, abs=0.5)
        assert result.nominal_rate == 5
        assert result.effective_rate == 5.12
        assert result.effective_rate_converged
        assert result.payoff_date is None

    def test_total_periods_by_frequency(self, loan_inputs):
        biweekly = calculate_loan(replace(loan_inputs, payment_frequency=PaymentFrequency.biweekly))
        weekly = calculate_loan(replace(loan_inputs, payment_frequency=PaymentFrequency.weekly))
        assert biweekly.total_periods == 130
        assert weekly.total_periods == 261
        assert len(weekly.amortization_schedule) == 261

    @pytest.mark.parametrize(
        "amount,rate,term,frequency",
        [
            (250000, 6.5, 360, PaymentFrequency.monthly),
            (15000, 9.9, 48, PaymentFrequency.biweekly),
            (5000, 0, 24, PaymentFrequency.weekly),
            (1234.56, 19.99, 13, PaymentFrequency.monthly),
        ],
    )
    def test_schedule_closes_loan(self, amount, rate, term, frequency):
        """Principal portions sum to the loan and the last balance is zero."""
        result = calculate_loan(LoanInputs(amount, rate, term, frequency))
        schedule = result.amortization_schedule
        assert schedule[-1].balance == 0
        assert sum(row.principal for row in schedule) == pytest.approx(amount, abs=0.01)

    def test_zero_rate_loan(self):
        result = calculate_loan(LoanInputs(loan_amount=12000, interest_rate=0, loan_term=12))
        assert result.periodic_payment == 1000
        assert result.total_interest == 0
        assert all(row.interest == 0 for row in result.amortization_schedule)

    def test_fees(self, loan_inputs):
        result = calculate_loan(
            replace(
                loan_inputs,
                origination_fee=2,
                monthly_fee=5,
                insurance_cost=10,
                other_fees=100,
            )
        )
        # 200 origination + 300 account + 600 insurance + 100 other
        assert result.total_fees == 1200
        assert result.total_interest == pytest.approx(1322.6, abs=0.5)
        assert result.effective_rate > result.nominal_rate

    @pytest.mark.parametrize("fee_field,value", [("origination_fee", 3), ("other_fees", 150)])
    def test_one_time_fees_increase_effective_rate(self, loan_inputs, fee_field, value):
        result = calculate_loan(replace(loan_inputs, **{fee_field: value}))
        assert result.effective_rate > convert_nominal_to_apr(loan_inputs.interest_rate)

    def test_payoff_date(self, loan_inputs):
        result = calculate_loan(replace(loan_inputs, start_date=date(2025, 1, 15)))
        assert result.amortization_schedule[1].payment_date == date(2025, 2, 15)
        assert result.payoff_date == date(2029, 12, 15)

    def test_biweekly_payment_dates(self, loan_inputs):
        result = calculate_loan(
            replace(
                loan_inputs,
                payment_frequency=PaymentFrequency.biweekly,
                start_date=date(2025, 1, 1),
            )
        )
        assert result.amortization_schedule[1].payment_date == date(2025, 1, 15)

    def test_idempotent(self, loan_inputs):
        assert calculate_loan(loan_inputs) == calculate_loan(loan_inputs)
