# tests/test_rates.py

import pytest

from app.calculator.rates import (NormalizedRate, bps_from_share, bps_to_stored_decimal,
                                  normalize_rate, round_half_up)
from app.calculator.schema import AllocationDiagnostics


# --- The three stored encodings ---

@pytest.mark.parametrize('stored, expected_bps, expected_multiplier', [
    (0.75, 75, 0.0075),       # decimal-as-BPS
    (0.05, 5, 0.0005),
    (75, 75, 0.0075),         # plain BPS
    (2.5, 3, 0.00025),
    (7500, 75, 0.0075),       # BPS x 100
    (2500, 25, 0.0025),
])
def test_each_encoding_normalizes(stored, expected_bps, expected_multiplier):
    rate = normalize_rate(stored)
    assert rate.display_bps == expected_bps
    assert rate.multiplier == pytest.approx(expected_multiplier)


def test_boundary_exactly_one_is_decimal_form():
    """1 is read as decimal-as-BPS: 100 BPS, not 1 BPS."""
    assert normalize_rate(1) == NormalizedRate(100, pytest.approx(0.01))


def test_boundary_exactly_one_hundred_is_plain_bps():
    rate = normalize_rate(100)
    assert rate.display_bps == 100
    assert rate.multiplier == pytest.approx(0.01)


def test_just_above_one_hundred_is_raw_form():
    rate = normalize_rate(100.5)
    assert rate.display_bps == 1
    assert rate.multiplier == pytest.approx(100.5 / 1_000_000)


def test_just_above_one_is_plain_bps():
    rate = normalize_rate(1.01)
    assert rate.display_bps == 1
    assert rate.multiplier == pytest.approx(0.000101)


@pytest.mark.parametrize('decimal_form, plain_form, raw_form', [
    (0.75, 75, 7500),
    (0.3, 30, 3000),
    (0.05, 5, 500),
    (1, 100, 10000),
])
def test_display_bps_converts_back_to_the_same_multiplier(decimal_form, plain_form, raw_form):
    for stored in (decimal_form, plain_form, raw_form):
        rate = normalize_rate(stored)
        again = normalize_rate(bps_to_stored_decimal(rate.display_bps))
        assert again.multiplier == pytest.approx(rate.multiplier, rel=1e-12)
        assert again.display_bps == rate.display_bps


# --- Dirty values ---

def test_numeric_strings_are_accepted():
    assert normalize_rate('0.75').display_bps == 75
    assert normalize_rate('7,500').display_bps == 75


@pytest.mark.parametrize('missing', [None, '', '   ', 0, 0.0])
def test_missing_rate_is_zero_without_coercion(missing):
    diagnostics = AllocationDiagnostics()
    assert normalize_rate(missing, diagnostics) == NormalizedRate(0, 0.0)
    assert diagnostics.total_coercions == 0


@pytest.mark.parametrize('dirty', ['abc', float('nan'), float('inf'), -25, object()])
def test_invalid_rate_is_coerced_to_zero_and_counted(dirty):
    diagnostics = AllocationDiagnostics()
    assert normalize_rate(dirty, diagnostics) == NormalizedRate(0, 0.0)
    assert diagnostics.coercions['rate'] == 1


# --- Helpers ---

def test_round_half_up_differs_from_bankers_rounding():
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(74.4) == 74


def test_bps_from_share():
    assert bps_from_share(88.75, 1500) == 592
    assert bps_from_share(10, 0) == 0
