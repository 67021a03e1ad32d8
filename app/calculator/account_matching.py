# ==============================================================================
# app/calculator/account_matching.py
# ------------------------------------------------------------------------------
# Data-repair helpers for account ids that do not match exactly between the
# processor exports and the location table (leading zeros, stray prefixes,
# truncated ids). The allocator never uses these on its own; a caller opts in
# by passing `account_resolver=fuzzy_resolver(...)`.
# ==============================================================================

import logging

logger = logging.getLogger(__name__)


def _squash(value):
    return ''.join(str(value).split()).lower()


def _closeness(candidate, needle):
    squashed = _squash(candidate)
    return (squashed != needle, abs(len(squashed) - len(needle)))


def fuzzy_account_matches(account_id, candidates):
    """
    Returns candidate account ids that contain, or are contained in, the
    given id, ignoring case and whitespace.

    Exact matches come first, then candidates ordered by how close their
    length is to the requested id, then alphabetically.
    """
    if account_id is None:
        return []
    needle = _squash(account_id)
    if not needle:
        return []

    matches = set()
    for candidate in candidates:
        if candidate is None:
            continue
        hay = _squash(candidate)
        if hay and (needle in hay or hay in needle):
            matches.add(candidate)

    return sorted(matches, key=lambda c: _closeness(c, needle) + (str(c),))


def fuzzy_resolver(account_ids):
    """
    Builds an account resolver for CommissionAllocator. The resolver returns
    the exact id when present, otherwise the single closest fuzzy match.
    Ambiguous matches (two equally close candidates) resolve to None.
    """
    known = set(account_ids)

    def resolve(account_id):
        if account_id in known:
            return account_id
        matches = fuzzy_account_matches(account_id, known)
        if not matches:
            return None
        needle = _squash(account_id)
        if len(matches) > 1 and _closeness(matches[0], needle) == _closeness(matches[1], needle):
            logger.warning(f"Ambiguous fuzzy account match for '{account_id}': {matches[:3]}")
            return None
        logger.info(f"Fuzzy account match: '{account_id}' -> '{matches[0]}'")
        return matches[0]

    return resolve


def repair_account_ids(locations, account_ids):
    """
    Proposes account id repairs for locations whose id has no exact match.

    Args:
        locations (iterable): Location records.
        account_ids (iterable): Account ids seen in the transaction data.

    Returns:
        dict: location id -> proposed account id, only for unambiguous matches.
    """
    known = {a for a in account_ids if a}
    resolve = fuzzy_resolver(known)
    proposals = {}
    for location in locations:
        if not location.account_id or location.account_id in known:
            continue
        match = resolve(location.account_id)
        if match is not None:
            proposals[location.id] = match
    return proposals
