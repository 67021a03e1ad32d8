# ==============================================================================
# app/main/routes.py
# ------------------------------------------------------------------------------
# JSON endpoints for the dashboard. Each one fetches the period's rows, runs
# the commission engine and returns plain records.
# ==============================================================================

import json

from flask import current_app, jsonify, request

from app.main import bp
from app.calculator.engine import group_by_agent
from app.calculator.reports import (available_months, dashboard_totals, monthly_pl,
                                    processor_breakdown, top_agents)
from app.main.filters import format_money_exact
from app.main.utils import normalize_month, run_allocation, load_inputs

NO_DATA_MESSAGE = 'No data for this period'


def _requested_month():
    value = request.args.get('month')
    return normalize_month(value) if value else None


@bp.errorhandler(ValueError)
def bad_request(error):
    current_app.logger.warning(f"Rejected request {request.path}: {error}")
    return jsonify({'error': str(error)}), 400


@bp.route('/api/commissions')
def commissions():
    """Per-location, per-agent commission records for a month (or all data)."""
    month_key = _requested_month()
    result, _ = run_allocation(month_key)
    return jsonify({
        'month': month_key,
        'records': [record.to_dict() for record in result.records],
        'diagnostics': result.diagnostics.to_dict(),
        'message': None if result.records else NO_DATA_MESSAGE,
    })


@bp.route('/api/agents')
def agents():
    """Commission records rolled up per agent, highest earner first."""
    month_key = _requested_month()
    result, _ = run_allocation(month_key)
    summaries = group_by_agent(result.records, current_app.config['REMAINDER_PARTY_NAME'])
    return jsonify({
        'month': month_key,
        'agents': [summary.to_dict() for summary in summaries],
        'message': None if summaries else NO_DATA_MESSAGE,
    })


@bp.route('/api/dashboard')
def dashboard():
    """Headline totals and the top agents for a month."""
    month_key = _requested_month()
    result, _ = run_allocation(month_key)
    totals = dashboard_totals(result.records)
    summaries = group_by_agent(result.records, current_app.config['REMAINDER_PARTY_NAME'])
    leaders = top_agents(summaries, current_app.config['TOP_AGENT_COUNT'])
    return jsonify({
        'month': month_key,
        'totals': totals,
        'display': {key: format_money_exact(totals[key])
                    for key in ('total_volume', 'external_commissions', 'net_income')},
        'top_agents': [{
            'agent_name': s.agent_name,
            'total_commission': s.total_commission,
            'total_volume': s.total_volume,
            'location_count': len(s.locations),
        } for s in leaders],
        'message': None if result.records else NO_DATA_MESSAGE,
    })


@bp.route('/api/reports/pl')
def pl_report():
    """Volume and net payout per month across all uploaded data."""
    transactions, _, _ = load_inputs()
    report = monthly_pl(transactions)
    return jsonify({'months': json.loads(report.to_json(orient='records'))})


@bp.route('/api/reports/processors')
def processor_report():
    """Volume split by payment processor for a month (or all data)."""
    month_key = _requested_month()
    transactions, _, _ = load_inputs(month_key)
    report = processor_breakdown(transactions)
    return jsonify({'month': month_key, 'processors': json.loads(report.to_json(orient='records'))})


@bp.route('/api/months')
def months():
    """Months that have transaction data, newest first, as valid `?month=` values."""
    transactions, _, _ = load_inputs()
    keys = available_months(transactions)
    return jsonify({'months': keys, 'message': None if keys else NO_DATA_MESSAGE})
