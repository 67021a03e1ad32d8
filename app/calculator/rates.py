# ==============================================================================
# app/calculator/rates.py
# ------------------------------------------------------------------------------
# The one place stored commission rates are interpreted.
#
# Stored rates come in three encodings that coexist in the datastore:
#   rate <= 1          decimal-as-BPS   0.75  -> 75 BPS -> multiplier 0.0075
#   1 < rate <= 100    plain BPS        75    -> 75 BPS -> multiplier 0.0075
#   rate > 100         BPS x 100        7500  -> 75 BPS -> multiplier 0.0075
# ==============================================================================

import math
from typing import NamedTuple

from .validator import parse_amount

BPS_PER_UNIT = 10_000


class NormalizedRate(NamedTuple):
    display_bps: int
    multiplier: float


ZERO_RATE = NormalizedRate(0, 0.0)


def round_half_up(value):
    """Rounds to the nearest integer with .5 going up, as the dashboards display it."""
    return int(math.floor(value + 0.5))


def normalize_rate(raw, diagnostics=None):
    """
    Resolves a stored rate into a display BPS value and a calculation
    multiplier (volume x multiplier = money).

    Missing values normalize to zero. Non-numeric and negative values are
    coerced to zero and counted on ``diagnostics`` under ``rate``.
    """
    value, coerced = parse_amount(raw)
    if value < 0:
        value, coerced = 0.0, True
    if coerced and diagnostics is not None:
        diagnostics.record_coercion('rate')
    if value == 0:
        return ZERO_RATE

    if value <= 1:
        return NormalizedRate(round_half_up(value * 100), value / 100)
    if value > 100:
        return NormalizedRate(round_half_up(value / 100), value / 1_000_000)
    return NormalizedRate(round_half_up(value), value / BPS_PER_UNIT)


def bps_from_share(amount, volume):
    """Back-computes a display BPS from an amount earned on a volume."""
    if volume <= 0:
        return 0
    return round_half_up(amount / volume * BPS_PER_UNIT)


def bps_to_stored_decimal(bps):
    """Converts display BPS to the decimal-as-BPS storage form (75 -> 0.75)."""
    return bps / 100
