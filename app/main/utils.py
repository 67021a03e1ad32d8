# ==============================================================================
# app/main/utils.py
# ------------------------------------------------------------------------------
# Glue between the datastore and the commission engine: period parsing,
# fetching the three input collections and building the allocator from the
# app config.
# ==============================================================================
import re
from datetime import date

from flask import current_app

from app.calculator.engine import CommissionAllocator
from app.models import Location, LocationAgentAssignment, Transaction

_MONTH_PATTERN = re.compile(r'^(\d{4})-(\d{1,2})$')


def normalize_month(value):
    """
    Normalizes a month key. Accepts '2025-6', '2025-06' and '2025/06'.

    Raises:
        ValueError: If the value is not a year-month pair.
    """
    text = str(value if value is not None else '').strip().replace('/', '-')
    match = _MONTH_PATTERN.match(text)
    if not match:
        raise ValueError(f"Invalid month '{value}': use YYYY-MM")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month '{value}': month must be 01-12")
    return f"{year}-{month:02d}"


def month_bounds(month_key):
    """Returns (first day of the month, first day of the next month)."""
    year, month = map(int, normalize_month(month_key).split('-'))
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, end


def load_inputs(month_key=None):
    """
    Fetches transactions (optionally limited to one month), all assignments
    and all locations. Inactive assignments are passed through so the engine
    can count them.
    """
    query = Transaction.query
    if month_key:
        start, end = month_bounds(month_key)
        query = query.filter(Transaction.transaction_date >= start, Transaction.transaction_date < end)
    transactions = query.all()
    assignments = LocationAgentAssignment.query.all()
    locations = Location.query.all()
    current_app.logger.info(f"Loaded {len(transactions)} transactions, {len(assignments)} assignments, "
                            f"{len(locations)} locations for period '{month_key or 'all'}'.")
    return transactions, assignments, locations


def build_allocator():
    return CommissionAllocator(remainder_party=current_app.config['REMAINDER_PARTY_NAME'],
                               log=current_app.logger)


def run_allocation(month_key=None):
    """Loads the period's rows and runs the engine. Returns (AllocationResult, transactions)."""
    transactions, assignments, locations = load_inputs(month_key)
    result = build_allocator().allocate(transactions, assignments, locations)
    return result, transactions
