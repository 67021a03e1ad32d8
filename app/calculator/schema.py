# ==============================================================================
# app/calculator/schema.py
# ------------------------------------------------------------------------------
# Record shapes consumed and produced by the commission engine.
# Inputs may arrive as these dataclasses, as plain mappings (JSON objects) or
# as ORM rows; `from_row` reads all three and accepts the datastore column
# names (volume, debit_volume, agent_payout, commission_rate) as aliases.
# ==============================================================================

from collections import Counter
from dataclasses import asdict, dataclass, field, fields
from datetime import date, datetime
from typing import List, Optional

from .validator import is_blank, parse_amount, read_field, read_flag

DEFAULT_REMAINDER_PARTY = 'Merchant Hero'


def _clean_id(value):
    if is_blank(value):
        return None
    return str(value).strip()


# --- Inputs ---

@dataclass(frozen=True)
class Transaction:
    """One processor-reported volume line for one account in one period."""
    account_id: Optional[str]
    primary_volume: float = 0.0
    secondary_volume: float = 0.0
    net_payout: float = 0.0
    processor: Optional[str] = None
    transaction_date: Optional[date] = None

    @property
    def total_volume(self):
        return self.primary_volume + self.secondary_volume

    @classmethod
    def from_row(cls, row, diagnostics=None):
        amounts = {}
        for name, alias in (('primary_volume', 'volume'),
                            ('secondary_volume', 'debit_volume'),
                            ('net_payout', 'agent_payout')):
            amount, coerced = parse_amount(read_field(row, name, alias))
            if coerced and diagnostics is not None:
                diagnostics.record_coercion(name)
            amounts[name] = amount
        return cls(
            account_id=_clean_id(read_field(row, 'account_id', required=True)),
            processor=read_field(row, 'processor'),
            transaction_date=read_field(row, 'transaction_date'),
            **amounts,
        )


@dataclass(frozen=True)
class Assignment:
    """An agreement that an agent earns a rate on all volume at a location."""
    location_id: str
    agent_name: str
    rate: object = 0
    is_active: bool = True
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row):
        return cls(
            location_id=_clean_id(read_field(row, 'location_id', required=True)),
            agent_name=str(read_field(row, 'agent_name', required=True) or '').strip(),
            rate=read_field(row, 'rate', 'commission_rate', default=0),
            is_active=read_flag(read_field(row, 'is_active', default=True)),
            updated_at=read_field(row, 'updated_at'),
        )


@dataclass(frozen=True)
class Location:
    """A merchant site. `account_id` may be missing or shared with other rows."""
    id: str
    account_id: Optional[str] = None
    name: str = ''

    @classmethod
    def from_row(cls, row):
        return cls(
            id=_clean_id(read_field(row, 'id', required=True)),
            account_id=_clean_id(read_field(row, 'account_id')),
            name=str(read_field(row, 'name', default='') or ''),
        )


# --- Intermediate ---

@dataclass
class AccountAggregate:
    """Summed volume and net payout for one account identifier."""
    account_id: str
    primary_volume: float = 0.0
    secondary_volume: float = 0.0
    net_payout_pool: float = 0.0
    tx_count: int = 0

    @property
    def total_volume(self):
        return self.primary_volume + self.secondary_volume

    def add(self, transaction):
        self.primary_volume += transaction.primary_volume
        self.secondary_volume += transaction.secondary_volume
        self.net_payout_pool += transaction.net_payout
        self.tx_count += 1


# --- Outputs ---

@dataclass(frozen=True)
class CommissionRecord:
    location_id: str
    location_name: str
    agent_name: str
    bps_rate: int
    location_volume: float
    net_payout_pool: float
    explicit_payout: float = 0.0
    remainder_payout: float = 0.0
    multiplier: float = 0.0
    is_remainder: bool = False

    @property
    def payout(self):
        """The payout field that applies to this record's agent."""
        return self.remainder_payout if self.is_remainder else self.explicit_payout

    def to_dict(self):
        return asdict(self)


@dataclass
class AgentSummary:
    agent_name: str
    locations: List[CommissionRecord] = field(default_factory=list)
    total_commission: float = 0.0
    total_volume: float = 0.0

    def to_dict(self):
        return {
            'agent_name': self.agent_name,
            'locations': [record.to_dict() for record in self.locations],
            'total_commission': self.total_commission,
            'total_volume': self.total_volume,
            'location_count': len(self.locations),
        }


@dataclass
class AllocationDiagnostics:
    """
    Data-quality report for one allocation run. Every skipped or coerced
    input is counted here so regressions in upstream data stay visible.
    """
    coercions: Counter = field(default_factory=Counter)
    dropped_zero_volume: int = 0
    dropped_missing_account: int = 0
    non_positive_accounts: int = 0
    inactive_assignments: int = 0
    missing_locations: int = 0
    duplicate_assignments: int = 0
    shared_account_ids: int = 0
    unmatched_locations: int = 0
    warnings: List[str] = field(default_factory=list)

    def record_coercion(self, field_name):
        self.coercions[field_name] += 1

    @property
    def total_coercions(self):
        return sum(self.coercions.values())

    def warn(self, logger, message):
        self.warnings.append(message)
        logger.warning(message)

    def to_dict(self):
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data['coercions'] = dict(self.coercions)
        data['warnings'] = list(self.warnings)
        return data


@dataclass
class AllocationResult:
    records: List[CommissionRecord]
    diagnostics: AllocationDiagnostics
    aggregates: dict = field(default_factory=dict)
