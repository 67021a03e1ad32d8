# tests/test_account_matching.py

from app.calculator.account_matching import fuzzy_account_matches, fuzzy_resolver, repair_account_ids
from app.calculator.schema import Location


def test_matches_in_either_direction():
    candidates = ['001058', '1058-B', '2210', None, '']
    assert fuzzy_account_matches('1058', candidates) == ['001058', '1058-B']
    assert fuzzy_account_matches('00002210', candidates) == ['2210']


def test_exact_match_sorts_first_ignoring_case_and_spaces():
    assert fuzzy_account_matches('ab 12', ['XAB12', 'AB12'])[0] == 'AB12'


def test_no_match_or_blank_id():
    assert fuzzy_account_matches('9999', ['1058']) == []
    assert fuzzy_account_matches('', ['1058']) == []
    assert fuzzy_account_matches(None, ['1058']) == []


def test_resolver_prefers_exact_and_refuses_ambiguous_matches():
    resolve = fuzzy_resolver(['1058', '001058', 'X1058', '3307'])
    assert resolve('1058') == '1058'
    assert resolve('01058') is None  # '001058' and '1058' are equally close
    assert resolve('33070') == '3307'
    assert resolve('777') is None


def test_repair_account_ids_only_proposes_for_unmatched_locations():
    locations = [
        Location('1', '1058', 'Brick & Brew'),
        Location('2', ' 2210 ', 'Harbor'),
        Location('3', '2210', 'Harbor exact'),
        Location('4', None, 'No account'),
    ]
    proposals = repair_account_ids(locations, ['001058', '2210', None])
    assert proposals == {'1': '001058', '2': '2210'}
