# ==============================================================================
# app/main/filters.py
# ------------------------------------------------------------------------------
# Money and BPS formatting, registered as Jinja2 template filters and used by
# the JSON endpoints for their display strings.
# Amounts are truncated, not rounded, so a displayed payout never exceeds
# what was computed.
# ==============================================================================

import math

from app.main import bp


def truncate_to(value, decimals):
    """Truncates toward zero. Non-finite or non-numeric input becomes 0."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    factor = 10 ** decimals
    # absorb float noise such as 0.0075 * 100 = 0.7499999...
    scaled = round(number * factor, 6)
    return (math.floor(scaled) if scaled >= 0 else math.ceil(scaled)) / factor


@bp.app_template_filter('money')
def format_money_exact(value, decimals=2):
    """
    Example: 1234567.899 -> "$1,234,567.89"
    """
    amount = truncate_to(value, decimals)
    sign = '-' if amount < 0 else ''
    return f"{sign}${abs(amount):,.{decimals}f}"


@bp.app_template_filter('bps')
def format_bps_exact(value, decimals=0):
    """
    Example: 75 -> "75 BPS"
    """
    return f"{truncate_to(value, decimals):,.{decimals}f} BPS"


@bp.app_template_filter('percent')
def format_percent_exact(value, decimals=2):
    """
    Formats a fraction as a percentage. Example: 0.0075 -> "0.75%"
    """
    try:
        fraction = float(value)
    except (TypeError, ValueError):
        fraction = 0.0
    return f"{truncate_to(fraction * 100, decimals):,.{decimals}f}%"
