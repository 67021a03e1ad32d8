# tests/test_routes.py

import pytest

from app.main.filters import format_bps_exact, format_money_exact, format_percent_exact, truncate_to
from app.main.utils import month_bounds, normalize_month

TOLERANCE = 0.01


# --- Period helpers ---

@pytest.mark.parametrize('raw, expected', [
    ('2025-6', '2025-06'), ('2025/06', '2025-06'), (' 2025-12 ', '2025-12'),
])
def test_normalize_month(raw, expected):
    assert normalize_month(raw) == expected


@pytest.mark.parametrize('raw', ['2025-13', '2025-0', 'June 2025', '', None])
def test_normalize_month_rejects_invalid(raw):
    with pytest.raises(ValueError):
        normalize_month(raw)


def test_month_bounds_rolls_over_the_year():
    start, end = month_bounds('2025-12')
    assert (start.isoformat(), end.isoformat()) == ('2025-12-01', '2026-01-01')


# --- Formatting ---

def test_formatters_truncate_instead_of_rounding():
    assert format_money_exact(1234567.899) == '$1,234,567.89'
    assert format_money_exact(-5.678) == '-$5.67'
    assert format_money_exact('n/a') == '$0.00'
    assert format_bps_exact(75.9) == '75 BPS'
    assert format_percent_exact(0.0075) == '0.75%'
    assert truncate_to(float('inf'), 2) == 0.0


def test_formatters_are_registered_as_template_filters(app_with_db):
    filters = app_with_db.jinja_env.filters
    assert filters['money'](11.259) == '$11.25'
    assert filters['bps'](592) == '592 BPS'
    assert filters['percent'](0.5) == '50.00%'


# --- JSON endpoints over the demo data ---

def test_commissions_for_june(client):
    response = client.get('/api/commissions?month=2025/6')
    assert response.status_code == 200
    data = response.get_json()

    assert data['month'] == '2025-06'
    assert data['message'] is None
    rows = [(r['location_id'], r['agent_name']) for r in data['records']]
    assert rows == [
        ('1', 'Jane Cooper'), ('1', 'Merchant Hero'),
        ('2', 'Jane Cooper'), ('2', 'Marcus Lee'), ('2', 'Merchant Hero'),
    ]

    brick_jane, brick_house = data['records'][0], data['records'][1]
    assert brick_jane['bps_rate'] == 75
    assert abs(brick_jane['location_volume'] - 177088.88) < TOLERANCE
    assert abs(brick_jane['explicit_payout'] - 1328.17) < TOLERANCE
    assert abs(brick_house['remainder_payout'] - 1328.16) < TOLERANCE

    harbor = {r['agent_name']: r for r in data['records'][2:]}
    assert harbor['Jane Cooper']['bps_rate'] == 25
    assert abs(harbor['Jane Cooper']['explicit_payout'] - 150) < TOLERANCE
    assert abs(harbor['Marcus Lee']['explicit_payout'] - 300) < TOLERANCE
    assert abs(harbor['Merchant Hero']['remainder_payout'] - 450) < TOLERANCE

    diagnostics = data['diagnostics']
    assert diagnostics['dropped_zero_volume'] == 1
    assert diagnostics['unmatched_locations'] == 2


def test_commissions_for_all_periods_include_july_only_location(client):
    data = client.get('/api/commissions').get_json()
    assert data['month'] is None
    assert len(data['records']) == 7
    sunset = [r for r in data['records'] if r['location_id'] == '3']
    assert [r['agent_name'] for r in sunset] == ['Marcus Lee', 'Merchant Hero']
    assert abs(sunset[0]['explicit_payout'] - 47.5) < TOLERANCE
    assert abs(sunset[1]['remainder_payout'] - 95) < TOLERANCE


def test_empty_period_reports_no_data(client):
    data = client.get('/api/commissions?month=2024-01').get_json()
    assert data['records'] == []
    assert data['message'] == 'No data for this period'


def test_invalid_month_is_a_bad_request(client):
    response = client.get('/api/agents?month=2025-13')
    assert response.status_code == 400
    assert 'Invalid month' in response.get_json()['error']


def test_agents_for_june(client):
    data = client.get('/api/agents?month=2025-06').get_json()
    agents = data['agents']
    assert [a['agent_name'] for a in agents] == ['Merchant Hero', 'Jane Cooper', 'Marcus Lee']
    assert abs(agents[0]['total_commission'] - 1778.16) < TOLERANCE
    assert abs(agents[1]['total_commission'] - 1478.17) < TOLERANCE
    assert agents[1]['location_count'] == 2


def test_dashboard_for_june(client):
    data = client.get('/api/dashboard?month=2025-06').get_json()
    totals = data['totals']
    assert abs(totals['total_volume'] - 237088.88) < TOLERANCE
    assert abs(totals['external_commissions'] - 1778.17) < TOLERANCE
    assert abs(totals['net_income'] - 1778.16) < TOLERANCE
    assert abs(totals['external_commissions'] + totals['net_income'] - 3556.33) < TOLERANCE
    assert data['display']['total_volume'] == '$237,088.88'
    assert [a['agent_name'] for a in data['top_agents']] == ['Merchant Hero', 'Jane Cooper', 'Marcus Lee']


def test_dashboard_respects_top_agent_count(seeded_app):
    seeded_app.config['TOP_AGENT_COUNT'] = 1
    data = seeded_app.test_client().get('/api/dashboard?month=2025-06').get_json()
    assert [a['agent_name'] for a in data['top_agents']] == ['Merchant Hero']


def test_pl_report(client):
    months = client.get('/api/reports/pl').get_json()['months']
    assert [m['month'] for m in months] == ['2025-07', '2025-06']
    july, june = months
    assert abs(july['total_volume'] - 231010.40) < TOLERANCE
    assert abs(july['total_payout'] - 3465.16) < TOLERANCE
    assert june['transaction_count'] == 3


def test_processor_report(client):
    data = client.get('/api/reports/processors?month=2025-06').get_json()
    processors = [p['processor'] for p in data['processors']]
    assert processors == ['TRNXN', 'Maverick', 'Green Payments']
    assert abs(sum(p['share_pct'] for p in data['processors']) - 100) < TOLERANCE


def test_inactive_assignment_in_datastore_is_ignored(seeded_app):
    from app import db
    from app.models import LocationAgentAssignment

    marcus = LocationAgentAssignment.query.filter_by(location_id=2, agent_name='Marcus Lee').one()
    marcus.is_active = False
    db.session.commit()

    data = seeded_app.test_client().get('/api/commissions?month=2025-06').get_json()
    harbor = {r['agent_name']: r for r in data['records'] if r['location_id'] == '2'}
    assert set(harbor) == {'Jane Cooper', 'Merchant Hero'}
    assert abs(harbor['Merchant Hero']['remainder_payout'] - 750) < TOLERANCE
    assert data['diagnostics']['inactive_assignments'] == 1


def test_model_exposes_normalized_rate(seeded_app):
    from app.models import LocationAgentAssignment

    jane_at_harbor = LocationAgentAssignment.query.filter_by(location_id=2, agent_name='Jane Cooper').one()
    assert jane_at_harbor.normalized_rate.display_bps == 25
    assert jane_at_harbor.normalized_rate.multiplier == pytest.approx(0.0025)


def test_months_lists_periods_with_data(client):
    data = client.get('/api/months').get_json()
    assert data['months'] == ['2025-07', '2025-06']
    assert data['message'] is None


def test_months_without_data(app_with_db):
    data = app_with_db.test_client().get('/api/months').get_json()
    assert data == {'months': [], 'message': 'No data for this period'}
