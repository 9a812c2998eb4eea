from typing import Dict, Iterator, Optional

from amount import Amount
from errors import DuplicateTransactionId, InvalidTransition, MalformedRecord
from models import ClientAccount, DisputeState, StoredTransaction, TransactionType


class AccountStore:
    """Client accounts keyed by client id. Accounts are created lazily and never removed."""

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create new one."""
        if client_id not in self._accounts:
            self._accounts[client_id] = ClientAccount(client_id=client_id)
        return self._accounts[client_id]

    def get_account(self, client_id: int) -> Optional[ClientAccount]:
        return self._accounts.get(client_id)

    def get_all_accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts (for final output)."""
        return dict(self._accounts)

    def __iter__(self) -> Iterator[ClientAccount]:
        for client_id in sorted(self._accounts):
            yield self._accounts[client_id]

    def __len__(self) -> int:
        return len(self._accounts)


class TransactionStore:
    """
    Accepted deposits and withdrawals keyed by transaction id, for dispute lookups.
    Every entry is kept for the lifetime of the store, so memory grows with
    the number of accepted transactions.
    """

    def __init__(self):
        self._transactions: Dict[int, StoredTransaction] = {}

    def record(
        self,
        transaction_id: int,
        transaction_type: TransactionType,
        client_id: int,
        amount: Amount,
    ) -> StoredTransaction:
        """
        Store a new transaction in the NORMAL dispute state.

        Raises:
            DuplicateTransactionId: the id is already stored.
            MalformedRecord: the transaction type does not move funds.
        """
        if not transaction_type.moves_funds:
            raise MalformedRecord(f"Only deposits and withdrawals are stored, got {transaction_type.value}")
        if transaction_id in self._transactions:
            raise DuplicateTransactionId(transaction_id)

        stored = StoredTransaction(
            transaction_id=transaction_id,
            transaction_type=transaction_type,
            client_id=client_id,
            amount=amount,
        )
        self._transactions[transaction_id] = stored
        return stored

    def lookup(self, transaction_id: int) -> Optional[StoredTransaction]:
        """Retrieve stored transaction by ID."""
        return self._transactions.get(transaction_id)

    def transition(self, transaction_id: int, new_state: DisputeState) -> None:
        stored = self._transactions.get(transaction_id)
        if stored is None:
            raise InvalidTransition(f"Transaction {transaction_id} is not stored")
        if not stored.state.can_transition_to(new_state):
            raise InvalidTransition(
                f"Transaction {transaction_id}: cannot move from {stored.state.value} to {new_state.value}"
            )
        stored.state = new_state

    def __contains__(self, transaction_id: int) -> bool:
        return transaction_id in self._transactions

    def __len__(self) -> int:
        return len(self._transactions)
