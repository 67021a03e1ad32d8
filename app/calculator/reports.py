# ==============================================================================
# app/calculator/reports.py
# ------------------------------------------------------------------------------
# Dashboard and P&L aggregates built on top of the engine output.
# ==============================================================================

import logging

import pandas as pd

from .schema import AllocationDiagnostics, Transaction
from .validator import ensure_collection, read_field

logger = logging.getLogger(__name__)

PL_COLUMNS = ['month', 'total_volume', 'total_payout', 'transaction_count']
PROCESSOR_COLUMNS = ['processor', 'transaction_count', 'bank_card_volume',
                     'debit_volume', 'total_volume', 'share_pct']


def dashboard_totals(records):
    """
    Headline numbers for the dashboard.

    `total_volume` counts each location once even though every agent at the
    location has its own record. `external_commissions` is what explicit-rate
    agents earn; `net_income` is what the remainder party keeps.
    """
    volume_by_location = {}
    external, net_income = 0.0, 0.0
    agents = set()
    for record in ensure_collection(records, 'records'):
        volume_by_location[record.location_id] = record.location_volume
        agents.add(record.agent_name.casefold())
        if record.is_remainder:
            net_income += record.remainder_payout
        else:
            external += record.explicit_payout

    return {
        'total_volume': sum(volume_by_location.values()),
        'external_commissions': external,
        'net_income': net_income,
        'location_count': len(volume_by_location),
        'agent_count': len(agents),
    }


def top_agents(summaries, limit=4):
    """First `limit` agent summaries; `group_by_agent` already sorts them."""
    if limit < 0:
        raise ValueError("limit must be zero or positive")
    return list(summaries)[:limit]


def transactions_frame(transactions, diagnostics=None):
    """
    Loads transactions into a DataFrame with coerced numeric columns.
    Every amount forced to 0 is counted on `diagnostics` and logged.
    """
    if diagnostics is None:
        diagnostics = AllocationDiagnostics()
    rows = [Transaction.from_row(row, diagnostics)
            for row in ensure_collection(transactions, 'transactions')]
    if diagnostics.total_coercions:
        diagnostics.warn(logger, f"Coerced {diagnostics.total_coercions} non-numeric transaction value(s) to 0: "
                                 f"{dict(diagnostics.coercions)}")
    frame = pd.DataFrame([{
        'account_id': t.account_id,
        'processor': t.processor,
        'transaction_date': t.transaction_date,
        'bank_card_volume': t.primary_volume,
        'debit_volume': t.secondary_volume,
        'net_payout': t.net_payout,
    } for t in rows], columns=['account_id', 'processor', 'transaction_date',
                               'bank_card_volume', 'debit_volume', 'net_payout'])
    frame['total_volume'] = frame['bank_card_volume'] + frame['debit_volume']
    return frame


def available_months(transactions):
    """Distinct 'YYYY-MM' keys that have dated transactions, newest first."""
    dates = pd.to_datetime(
        pd.Series([read_field(row, 'transaction_date')
                   for row in ensure_collection(transactions, 'transactions')], dtype=object),
        errors='coerce')
    months = dates.dropna().dt.strftime('%Y-%m').unique()
    return sorted((str(month) for month in months), reverse=True)


def monthly_pl(transactions, diagnostics=None):
    """
    Monthly P&L: processed volume, net payout and transaction count per
    'YYYY-MM', newest month first. Rows without a readable date are left out.
    """
    frame = transactions_frame(transactions, diagnostics)
    if frame.empty:
        return pd.DataFrame(columns=PL_COLUMNS)

    dates = pd.to_datetime(frame['transaction_date'], errors='coerce')
    undated = int(dates.isna().sum())
    if undated:
        logger.warning(f"Monthly P&L: {undated} transaction(s) without a readable date were left out.")
    frame = frame[dates.notna()].assign(month=dates[dates.notna()].dt.strftime('%Y-%m'))
    if frame.empty:
        return pd.DataFrame(columns=PL_COLUMNS)

    report = (frame.groupby('month')
              .agg(total_volume=('total_volume', 'sum'),
                   total_payout=('net_payout', 'sum'),
                   transaction_count=('net_payout', 'size'))
              .reset_index()
              .sort_values('month', ascending=False, ignore_index=True))
    return report[PL_COLUMNS]


def processor_breakdown(transactions, diagnostics=None):
    """Volume split by processor, with each processor's share of total volume in percent."""
    frame = transactions_frame(transactions, diagnostics)
    if frame.empty:
        return pd.DataFrame(columns=PROCESSOR_COLUMNS)

    frame['processor'] = frame['processor'].fillna('Unknown').replace('', 'Unknown')
    report = (frame.groupby('processor')
              .agg(transaction_count=('total_volume', 'size'),
                   bank_card_volume=('bank_card_volume', 'sum'),
                   debit_volume=('debit_volume', 'sum'),
                   total_volume=('total_volume', 'sum'))
              .reset_index())
    grand_total = report['total_volume'].sum()
    report['share_pct'] = (report['total_volume'] / grand_total * 100) if grand_total > 0 else 0.0
    return report.sort_values('total_volume', ascending=False, ignore_index=True)[PROCESSOR_COLUMNS]
