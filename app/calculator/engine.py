# ==============================================================================
# app/calculator/engine.py
# ------------------------------------------------------------------------------
# Commission allocation engine.
#
# Takes processor transactions, agent-to-location assignments and locations,
# and works out per location and per agent how much volume was processed and
# how much each party is owed. Explicit-rate agents are paid first; the
# remainder party takes whatever is left of the location's net payout pool.
# ==============================================================================

import logging
from datetime import datetime

from .rates import bps_from_share, normalize_rate
from .schema import (DEFAULT_REMAINDER_PARTY, AccountAggregate, AgentSummary,
                     AllocationDiagnostics, AllocationResult, Assignment,
                     CommissionRecord, Location, Transaction)
from .validator import ensure_collection

logger = logging.getLogger(__name__)


# --- Helper Functions ---

def _timestamp(value):
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
        except ValueError:
            return None
    return None


def _supersedes(candidate, current):
    """True when `candidate` should replace `current` for the same location and agent."""
    new, old = _timestamp(candidate.updated_at), _timestamp(current.updated_at)
    if new is not None and old is not None and new != old:
        try:
            return new > old
        except TypeError:
            # naive vs aware timestamps: input order decides
            pass
    return True


def location_sort_key(location_id):
    """Orders numeric ids by value ('9' before '10'), then other ids as text."""
    if location_id.isdigit():
        return (0, int(location_id), location_id)
    return (1, 0, location_id)


def aggregate_by_account(transactions, diagnostics=None, log=None):
    """
    Collapses transactions into one aggregate per account id.

    Zero-volume transactions are dropped before grouping so they can never
    make an account appear. Transactions without an account id are dropped
    and reported. Accounts whose summed volume is not positive are excluded.

    Args:
        transactions (iterable): Transaction records, mappings or ORM rows.
        diagnostics (AllocationDiagnostics): Optional report to update.
        log (logging.Logger): Optional logger for warnings.

    Returns:
        dict: account id -> AccountAggregate.
    """
    log = log or logger
    if diagnostics is None:
        diagnostics = AllocationDiagnostics()

    aggregates = {}
    missing_account_count, missing_account_volume = 0, 0.0
    for row in ensure_collection(transactions, 'transactions'):
        transaction = Transaction.from_row(row, diagnostics)
        if transaction.total_volume == 0:
            diagnostics.dropped_zero_volume += 1
            continue
        if transaction.account_id is None:
            missing_account_count += 1
            missing_account_volume += transaction.total_volume
            continue
        aggregate = aggregates.get(transaction.account_id)
        if aggregate is None:
            aggregate = aggregates[transaction.account_id] = AccountAggregate(transaction.account_id)
        aggregate.add(transaction)

    if missing_account_count:
        diagnostics.dropped_missing_account += missing_account_count
        diagnostics.warn(log, f"Dropped {missing_account_count} transaction(s) with no account id "
                              f"({missing_account_volume:,.2f} volume).")

    for account_id in sorted(aggregates):
        if aggregates[account_id].total_volume <= 0:
            diagnostics.non_positive_accounts += 1
            diagnostics.warn(log, f"Account '{account_id}' has non-positive total volume "
                                  f"({aggregates[account_id].total_volume:,.2f}); excluded.")
            del aggregates[account_id]

    log.debug(f"Aggregated {len(aggregates)} account(s); dropped {diagnostics.dropped_zero_volume} zero-volume transaction(s).")
    return aggregates


# --- Allocator ---

class CommissionAllocator:
    """
    Stateless allocator. Configuration is passed to the constructor; each
    `compute`/`allocate` call works only on its arguments.

    Args:
        remainder_party (str): Agent name that receives what is left of the
            net payout pool at each location.
        account_resolver (callable): Optional `account_id -> account_id | None`
            used to correlate locations with transaction accounts. Defaults to
            exact matching. See `account_matching.fuzzy_resolver`.
        log (logging.Logger): Logger for the audit trail and warnings.
    """

    def __init__(self, remainder_party=DEFAULT_REMAINDER_PARTY, account_resolver=None, log=None):
        if not isinstance(remainder_party, str) or not remainder_party.strip():
            raise TypeError("remainder_party must be a non-empty string")
        if account_resolver is not None and not callable(account_resolver):
            raise TypeError("account_resolver must be callable")
        self.remainder_party = remainder_party.strip()
        self.account_resolver = account_resolver
        self.log = log or logger

    def is_remainder(self, agent_name):
        return agent_name.casefold() == self.remainder_party.casefold()

    def compute(self, transactions, assignments, locations):
        """Returns the list of CommissionRecords for the given inputs."""
        return self.allocate(transactions, assignments, locations).records

    def allocate(self, transactions, assignments, locations):
        """Runs the allocation and returns records together with the data-quality report."""
        diagnostics = AllocationDiagnostics()
        aggregates = aggregate_by_account(transactions, diagnostics, self.log)
        locations_by_id = self._index_locations(locations, diagnostics)
        agents_by_location = self._active_assignments(assignments, locations_by_id, diagnostics)
        location_aggregates = self._claim_accounts(agents_by_location, locations_by_id, aggregates, diagnostics)

        records = []
        for location_id in sorted(location_aggregates, key=location_sort_key):
            records.extend(self._allocate_location(
                locations_by_id[location_id],
                agents_by_location[location_id],
                location_aggregates[location_id],
                diagnostics,
            ))

        if diagnostics.total_coercions:
            diagnostics.warn(self.log, f"Coerced {diagnostics.total_coercions} non-numeric value(s) to 0: "
                                       f"{dict(diagnostics.coercions)}")
        self.log.info(f"Commission allocation complete: {len(records)} record(s) across "
                      f"{len(location_aggregates)} location(s), {len(diagnostics.warnings)} warning(s).")
        return AllocationResult(records=records, diagnostics=diagnostics, aggregates=aggregates)

    # --- Steps ---

    def _index_locations(self, locations, diagnostics):
        locations_by_id = {}
        for row in ensure_collection(locations, 'locations'):
            location = Location.from_row(row)
            if location.id is None:
                diagnostics.warn(self.log, f"Skipping location '{location.name}' with no id.")
                continue
            if location.id in locations_by_id:
                diagnostics.warn(self.log, f"Duplicate location id '{location.id}'; keeping the first row.")
                continue
            locations_by_id[location.id] = location
        return locations_by_id

    def _active_assignments(self, assignments, locations_by_id, diagnostics):
        """
        Groups active assignments by location. For repeated (location, agent)
        pairs the most recently updated row wins; without timestamps the later
        row in input order wins.
        """
        by_location = {}
        for row in ensure_collection(assignments, 'assignments'):
            assignment = Assignment.from_row(row)
            if not assignment.is_active:
                diagnostics.inactive_assignments += 1
                continue
            if not assignment.agent_name:
                diagnostics.warn(self.log, f"Skipping assignment with no agent name at location '{assignment.location_id}'.")
                continue
            if assignment.location_id not in locations_by_id:
                diagnostics.missing_locations += 1
                diagnostics.warn(self.log, f"Assignment for '{assignment.agent_name}' references unknown "
                                           f"location '{assignment.location_id}'; skipped.")
                continue

            agents = by_location.setdefault(assignment.location_id, {})
            key = assignment.agent_name.casefold()
            current = agents.get(key)
            if current is not None:
                diagnostics.duplicate_assignments += 1
                if _supersedes(assignment, current):
                    kept, dropped = assignment, current
                else:
                    kept, dropped = current, assignment
                diagnostics.warn(self.log, f"Duplicate active assignment for '{assignment.agent_name}' at location "
                                           f"'{assignment.location_id}'; using rate {kept.rate!r}, ignoring {dropped.rate!r}.")
                agents[key] = kept
            else:
                agents[key] = assignment
        return by_location

    def _resolve_account(self, account_id, aggregates):
        if account_id is None:
            return None
        if self.account_resolver is not None:
            return self.account_resolver(account_id)
        return account_id if account_id in aggregates else None

    def _claim_accounts(self, agents_by_location, locations_by_id, aggregates, diagnostics):
        """
        Maps each assigned location to its account aggregate. When several
        assigned locations share one account id, the lowest location id
        claims the volume and the others are skipped.
        """
        claims = {}
        for location_id in sorted(agents_by_location, key=location_sort_key):
            location = locations_by_id[location_id]
            account_key = self._resolve_account(location.account_id, aggregates)
            if account_key is None or account_key not in aggregates:
                diagnostics.unmatched_locations += 1
                self.log.debug(f"No volume for location '{location.name}' ({location_id}), "
                               f"account '{location.account_id}'; skipped.")
                continue
            claims.setdefault(account_key, []).append(location_id)

        location_aggregates = {}
        for account_key, location_ids in claims.items():
            owner = min(location_ids, key=location_sort_key)
            location_aggregates[owner] = aggregates[account_key]
            for other in location_ids:
                if other == owner:
                    continue
                diagnostics.shared_account_ids += 1
                diagnostics.warn(self.log, f"Account '{account_key}' is shared by locations "
                                           f"'{owner}' and '{other}'; volume attributed to '{owner}' only.")
        return location_aggregates

    def _allocate_location(self, location, agents, aggregate, diagnostics):
        volume = aggregate.total_volume
        pool = aggregate.net_payout_pool
        records = []
        explicit_total = 0.0
        remainder_agent = None

        for assignment in sorted(agents.values(), key=lambda a: a.agent_name.casefold()):
            if self.is_remainder(assignment.agent_name):
                remainder_agent = assignment
                continue
            rate = normalize_rate(assignment.rate, diagnostics)
            payout = volume * rate.multiplier
            explicit_total += payout
            records.append(CommissionRecord(
                location_id=location.id,
                location_name=location.name,
                agent_name=assignment.agent_name,
                bps_rate=rate.display_bps,
                location_volume=volume,
                net_payout_pool=pool,
                explicit_payout=payout,
                multiplier=rate.multiplier,
            ))
            self.log.debug(f"  {location.name}: {assignment.agent_name} stored rate {assignment.rate!r} -> "
                           f"{rate.display_bps} BPS, {volume:,.2f} x {rate.multiplier} = {payout:,.2f}")

        if remainder_agent is not None:
            left_over = pool - explicit_total
            if left_over < 0:
                diagnostics.warn(self.log, f"Explicit payouts ({explicit_total:,.2f}) exceed the net payout pool "
                                           f"({pool:,.2f}) at location '{location.name}' ({location.id}).")
            remainder = max(0.0, left_over)
            records.append(CommissionRecord(
                location_id=location.id,
                location_name=location.name,
                agent_name=remainder_agent.agent_name,
                bps_rate=bps_from_share(remainder, volume),
                location_volume=volume,
                net_payout_pool=pool,
                remainder_payout=remainder,
                multiplier=remainder / volume,
                is_remainder=True,
            ))
            self.log.debug(f"  {location.name}: {remainder_agent.agent_name} remainder "
                           f"max(0, {pool:,.2f} - {explicit_total:,.2f}) = {remainder:,.2f}")

        return records


# --- Summaries ---

def group_by_agent(records, remainder_party=DEFAULT_REMAINDER_PARTY):
    """
    Rolls commission records up per agent, sorted by total commission
    (highest first, ties by name).

    Agent names are matched case-insensitively, like the allocator does; a
    summary keeps the spelling of the first record seen. The remainder
    party's total uses `remainder_payout`; everyone else's uses
    `explicit_payout`. Records are matched to the remainder party by their
    `is_remainder` flag or by name. Pass `remainder_party=None` to rely on
    the flag alone.
    """
    summaries = {}
    for record in ensure_collection(records, 'records'):
        if not isinstance(record, CommissionRecord):
            raise TypeError(f"group_by_agent expects CommissionRecord items, got {type(record).__name__}")
        key = record.agent_name.casefold()
        is_remainder = record.is_remainder or (
            remainder_party is not None and key == remainder_party.casefold())
        summary = summaries.get(key)
        if summary is None:
            summary = summaries[key] = AgentSummary(agent_name=record.agent_name)
        summary.locations.append(record)
        summary.total_commission += record.remainder_payout if is_remainder else record.explicit_payout
        summary.total_volume += record.location_volume

    logger.debug(f"Grouped {len(summaries)} agent summaries.")
    return sorted(summaries.values(), key=lambda s: (-s.total_commission, s.agent_name.casefold()))
