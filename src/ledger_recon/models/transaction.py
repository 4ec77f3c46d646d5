"""Data models for ledger transactions and match results."""

from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Union

# Absorbs representation error only; not a matching tolerance
AMOUNT_EPSILON = Decimal("0.001")


class SourceType(Enum):
    """Which side of the reconciliation a transaction comes from."""

    SYSTEM = "SYSTEM"
    BANK = "BANK"


class TransactionType(Enum):
    """Transaction polarity, independent of the numeric sign."""

    DEBIT = "DEBIT"  # Money out
    CREDIT = "CREDIT"  # Money in


@dataclass
class Transaction:
    """
    Normalized transaction representation for reconciliation matching.

    Both the internal system ledger and the bank statements are parsed into
    this model. Whatever sign convention the source uses, the amount is
    normalized at construction so that debits are negative and credits are
    non-negative.
    """

    # Identifier from the source (unique within its own file only)
    id: str

    # SYSTEM or BANK
    source_type: SourceType

    # Date or timestamp; matching only looks at the calendar day
    transaction_date: Union[date, datetime]

    # Signed amount (negative for debits after normalization)
    amount: Decimal

    # DEBIT or CREDIT
    type: TransactionType

    # Originator label, e.g. the bank name
    source: str = ""

    # Original raw values for audit trail
    raw_data: dict[str, Any] = field(default_factory=dict)

    # Set by the caller of a strategy, never by the strategy itself
    matched: bool = False

    def __post_init__(self) -> None:
        """Coerce the amount to Decimal and apply sign normalization."""
        if not isinstance(self.amount, Decimal):
            self.amount = Decimal(str(self.amount))
        self.normalize()

    def normalize(self) -> None:
        """
        Make the sign of ``amount`` agree with ``type``.

        Debits become negative and credits non-negative. An amount whose sign
        already agrees is left untouched, so calling this repeatedly is safe.
        """
        if self.type == TransactionType.DEBIT and self.amount > 0:
            self.amount = -self.amount
        elif self.type == TransactionType.CREDIT and self.amount < 0:
            self.amount = -self.amount

    def is_debit(self) -> bool:
        """True for DEBIT transactions or any negative amount."""
        return self.type == TransactionType.DEBIT or self.amount < 0

    def absolute_amount(self) -> Decimal:
        """Unsigned amount."""
        if self.amount < 0:
            return -self.amount
        return self.amount

    @property
    def calendar_date(self) -> date:
        """Calendar day of the transaction, time-of-day dropped."""
        if isinstance(self.transaction_date, datetime):
            return self.transaction_date.date()
        return self.transaction_date


@dataclass
class MatchPair:
    """An accepted pairing of one system and one bank transaction."""

    system_transaction: Transaction
    bank_transaction: Transaction

    # 0-100, 100 = exact match
    confidence_score: float

    # |abs(system) - abs(bank)|
    amount_discrepancy: Decimal = Decimal("0")

    @property
    def has_discrepancy(self) -> bool:
        """Check whether the two amounts differ beyond representation error."""
        return self.amount_discrepancy > AMOUNT_EPSILON


def calculate_match_rate(total_matched: int, total_system: int, total_bank: int) -> float:
    """
    Compute the match rate as a percentage.

    Each matched pair accounts for one record on each side, so the rate is
    measured against the combined number of records. Two empty ledgers are
    considered fully reconciled.

    Args:
        total_matched: Number of matched pairs
        total_system: Number of system transactions
        total_bank: Number of bank transactions

    Returns:
        Match rate between 0.0 and 100.0
    """
    if total_system == 0 and total_bank == 0:
        return 100.0
    return (total_matched * 2) / (total_system + total_bank) * 100.0


@dataclass
class MatchResult:
    """
    Output of a matching strategy.

    Every input transaction ends up in exactly one of ``matched``,
    ``unmatched_system`` or ``unmatched_bank``. Statistics are only valid
    after ``finalize()`` has run.
    """

    algorithm_used: str
    matched: list[MatchPair] = field(default_factory=list)
    unmatched_system: list[Transaction] = field(default_factory=list)
    unmatched_bank: list[Transaction] = field(default_factory=list)

    # Statistics
    match_rate: float = 0.0
    total_system_txns: int = 0
    total_bank_txns: int = 0
    total_matched: int = 0
    total_discrepancy: Decimal = Decimal("0")

    def finalize(self) -> None:
        """Calculate statistics from the final partitions."""
        self.total_matched = len(self.matched)
        self.total_system_txns = self.total_matched + len(self.unmatched_system)
        self.total_bank_txns = self.total_matched + len(self.unmatched_bank)
        self.match_rate = calculate_match_rate(
            self.total_matched, self.total_system_txns, self.total_bank_txns
        )

        # Pair deltas plus the full value of everything left unmatched
        total = sum((pair.amount_discrepancy for pair in self.matched), Decimal("0"))
        total += sum((t.absolute_amount() for t in self.unmatched_system), Decimal("0"))
        total += sum((t.absolute_amount() for t in self.unmatched_bank), Decimal("0"))
        self.total_discrepancy = total

    @property
    def total_unmatched(self) -> int:
        """Unmatched transactions on both sides."""
        return len(self.unmatched_system) + len(self.unmatched_bank)

    @property
    def discrepant_pairs(self) -> list[MatchPair]:
        """Matched pairs whose amounts differ."""
        return [pair for pair in self.matched if pair.has_discrepancy]

    def unmatched_bank_by_source(self) -> "OrderedDict[str, list[Transaction]]":
        """Group unmatched bank transactions by bank source, in input order."""
        groups: "OrderedDict[str, list[Transaction]]" = OrderedDict()
        for txn in self.unmatched_bank:
            groups.setdefault(txn.source, []).append(txn)
        return groups
