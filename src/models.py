from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from amount import Amount
from errors import MalformedRecord

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @property
    def moves_funds(self) -> bool:
        """Deposits and withdrawals carry an amount and get stored."""
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class ProcessingResult(Enum):
    SUCCESS = "success"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    ACCOUNT_LOCKED = "account_locked"
    UNKNOWN_REFERENCE = "unknown_reference"
    INVALID_STATE_TRANSITION = "invalid_state_transition"
    CLIENT_MISMATCH = "client_mismatch"
    INVALID_AMOUNT = "invalid_amount"
    UNSUPPORTED_TYPE = "unsupported_type"

    @property
    def succeeded(self) -> bool:
        return self is ProcessingResult.SUCCESS


class DisputeState(Enum):
    NORMAL = "normal"
    DISPUTED = "disputed"
    RESOLVED = "resolved"
    CHARGED_BACK = "charged_back"

    def can_transition_to(self, new_state: "DisputeState") -> bool:
        return new_state in _ALLOWED_TRANSITIONS[self]


# A resolved transaction behaves like a normal one and may be disputed again.
_ALLOWED_TRANSITIONS = {
    DisputeState.NORMAL: {DisputeState.DISPUTED},
    DisputeState.RESOLVED: {DisputeState.DISPUTED},
    DisputeState.DISPUTED: {DisputeState.RESOLVED, DisputeState.CHARGED_BACK},
    DisputeState.CHARGED_BACK: set(),
}


@dataclass(frozen=True)
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Amount] = None

    def __post_init__(self):
        if not 0 <= self.client_id <= MAX_CLIENT_ID:
            raise MalformedRecord(f"Client id {self.client_id} out of range")
        if not 0 <= self.transaction_id <= MAX_TRANSACTION_ID:
            raise MalformedRecord(f"Transaction id {self.transaction_id} out of range")

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass
class StoredTransaction:
    """An accepted deposit or withdrawal, kept for later dispute lookups."""

    transaction_id: int
    transaction_type: TransactionType
    client_id: int
    amount: Amount
    state: DisputeState = DisputeState.NORMAL


@dataclass
class ClientAccount:
    """
    Per-client balances. total is always available + held.
    Mutators apply fully or not at all and report the outcome.
    """

    client_id: int
    available: Amount = field(default_factory=Amount.zero)
    held: Amount = field(default_factory=Amount.zero)
    locked: bool = False

    @property
    def total(self) -> Amount:
        return self.available + self.held

    def deposit(self, amount: Amount) -> ProcessingResult:
        if self.locked:
            return ProcessingResult.ACCOUNT_LOCKED
        self.available = self.available + amount
        return ProcessingResult.SUCCESS

    def withdraw(self, amount: Amount) -> ProcessingResult:
        if self.locked:
            return ProcessingResult.ACCOUNT_LOCKED
        if self.available < amount:
            return ProcessingResult.INSUFFICIENT_FUNDS
        self.available = self.available - amount
        return ProcessingResult.SUCCESS

    def hold(self, amount: Amount) -> ProcessingResult:
        if self.locked:
            return ProcessingResult.ACCOUNT_LOCKED
        available = self.available - amount
        held = self.held + amount
        self.available, self.held = available, held
        return ProcessingResult.SUCCESS

    def release(self, amount: Amount) -> ProcessingResult:
        held = self.held - amount
        available = self.available + amount
        self.available, self.held = available, held
        return ProcessingResult.SUCCESS

    def chargeback(self, amount: Amount) -> ProcessingResult:
        self.held = self.held - amount
        self.locked = True
        return ProcessingResult.SUCCESS

    def as_row(self) -> List[str]:
        return [
            str(self.client_id),
            self.available.to_text(),
            self.held.to_text(),
            self.total.to_text(),
            str(self.locked).lower(),
        ]


class ProcessingStats:
    """Counters for processed records and skipped ones by outcome."""

    def __init__(self):
        self.processed = 0
        self.skipped: Counter = Counter()

    def record(self, result: ProcessingResult) -> None:
        if result.succeeded:
            self.processed += 1
        else:
            self.skipped[result] += 1

    def record_unparsed(self) -> None:
        self.skipped["unparsed"] += 1

    @property
    def total_skipped(self) -> int:
        return sum(self.skipped.values())

    def as_dict(self) -> Dict[str, int]:
        counts = {"processed": self.processed}
        for reason, count in self.skipped.items():
            key = reason.value if isinstance(reason, ProcessingResult) else reason
            counts[key] = count
        return counts
