import logging

from errors import DuplicateTransactionId
from models import ClientAccount, DisputeState, ProcessingResult, Transaction, TransactionType
from state_manager import AccountStore, TransactionStore

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Processes transactions against the account and transaction stores.
    Returns ProcessingResult to indicate success or why a record was skipped.
    Raises only for input that makes the run untrustworthy.
    """

    def __init__(self, accounts: AccountStore, transactions: TransactionStore):
        self._accounts = accounts
        self._transactions = transactions

    def process_transaction(self, transaction: Transaction) -> ProcessingResult:
        """
        Process a single transaction.

        Returns:
            SUCCESS: Applied to the account (and store, where relevant)
            anything else: Skipped, nothing changed

        Raises:
            DuplicateTransactionId: a deposit or withdrawal reused a stored id
            AmountOverflow: balance arithmetic left the representable range
        """
        account = self._accounts.get_or_create_account(transaction.client_id)

        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                return self._handle_deposit(account, transaction)
            case TransactionType.WITHDRAWAL:
                return self._handle_withdrawal(account, transaction)
            case TransactionType.DISPUTE:
                return self._handle_dispute(account, transaction)
            case TransactionType.RESOLVE:
                return self._handle_resolve(account, transaction)
            case TransactionType.CHARGEBACK:
                return self._handle_chargeback(account, transaction)
            case _:
                logger.warning(f"Unsupported transaction type: {transaction}")
                return ProcessingResult.UNSUPPORTED_TYPE

    def _check_new_funds_movement(self, transaction: Transaction) -> ProcessingResult:
        if transaction.transaction_id in self._transactions:
            raise DuplicateTransactionId(transaction.transaction_id)

        if transaction.amount is None or not transaction.amount.is_positive():
            logger.warning(
                f"{transaction.transaction_type.value.capitalize()} tx {transaction.transaction_id}: "
                f"invalid amount {transaction.amount}"
            )
            return ProcessingResult.INVALID_AMOUNT

        return ProcessingResult.SUCCESS

    def _handle_deposit(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        result = self._check_new_funds_movement(transaction)
        if result.succeeded:
            result = account.deposit(transaction.amount)
        if result.succeeded:
            self._record(transaction)
        return result

    def _handle_withdrawal(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        result = self._check_new_funds_movement(transaction)
        if result.succeeded:
            result = account.withdraw(transaction.amount)
        if result.succeeded:
            self._record(transaction)
        return result

    def _record(self, transaction: Transaction) -> None:
        self._transactions.record(
            transaction.transaction_id,
            transaction.transaction_type,
            transaction.client_id,
            transaction.amount,
        )

    def _check_reference(self, transaction: Transaction, target: DisputeState) -> ProcessingResult:
        """Validate that a dispute/resolve/chargeback may move its referenced transaction to `target`."""
        original = self._transactions.lookup(transaction.transaction_id)
        kind = transaction.transaction_type.value.capitalize()

        if original is None:
            logger.info(f"{kind} for tx {transaction.transaction_id}: transaction not found")
            return ProcessingResult.UNKNOWN_REFERENCE

        if original.client_id != transaction.client_id:
            logger.warning(
                f"{kind} for tx {transaction.transaction_id}: client mismatch "
                f"(expected {original.client_id}, got {transaction.client_id})"
            )
            return ProcessingResult.CLIENT_MISMATCH

        if not original.state.can_transition_to(target):
            logger.info(f"{kind} for tx {transaction.transaction_id}: transaction is {original.state.value}")
            return ProcessingResult.INVALID_STATE_TRANSITION

        return ProcessingResult.SUCCESS

    def _handle_dispute(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        result = self._check_reference(transaction, DisputeState.DISPUTED)
        if not result.succeeded:
            return result

        original = self._transactions.lookup(transaction.transaction_id)
        result = account.hold(original.amount)
        if result.succeeded:
            self._transactions.transition(transaction.transaction_id, DisputeState.DISPUTED)
        return result

    def _handle_resolve(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        result = self._check_reference(transaction, DisputeState.RESOLVED)
        if not result.succeeded:
            return result

        original = self._transactions.lookup(transaction.transaction_id)
        result = account.release(original.amount)
        if result.succeeded:
            self._transactions.transition(transaction.transaction_id, DisputeState.RESOLVED)
        return result

    def _handle_chargeback(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        result = self._check_reference(transaction, DisputeState.CHARGED_BACK)
        if not result.succeeded:
            return result

        original = self._transactions.lookup(transaction.transaction_id)
        result = account.chargeback(original.amount)
        if result.succeeded:
            self._transactions.transition(transaction.transaction_id, DisputeState.CHARGED_BACK)
        return result
