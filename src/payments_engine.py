import csv
import logging
from typing import Dict, Iterable, Mapping, Optional

from amount import Amount, RoundingPolicy
from errors import MalformedRecord
from models import ClientAccount, ProcessingStats, Transaction, TransactionType
from state_manager import AccountStore, TransactionStore
from transaction_processor import TransactionProcessor

logger = logging.getLogger(__name__)


def _parse_id(field_name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise MalformedRecord(f"Invalid {field_name} {value!r}") from e


def parse_csv_row(
    row: Mapping[Optional[str], Optional[str]],
    rounding: RoundingPolicy = RoundingPolicy.TRUNCATE,
) -> Optional[Transaction]:
    """
    Parse CSV row into Transaction.

    Returns None for rows whose type is unknown; those are skipped.
    Raises MalformedRecord for bad client/tx fields and MalformedAmount for
    a non-numeric amount, since either means the input cannot be trusted.
    """
    # DictReader puts surplus fields under a None key and fills missing ones with None
    normalized = {k.strip(): (v or "").strip() for k, v in row.items() if k is not None}

    try:
        transaction_type = TransactionType(normalized.get("type", "").lower())
    except ValueError:
        logger.warning(f"Skipping row with unknown type: {row}")
        return None

    if "client" not in normalized or "tx" not in normalized:
        raise MalformedRecord(f"Row is missing client or tx: {row}")

    client_id = _parse_id("client", normalized["client"])
    transaction_id = _parse_id("tx", normalized["tx"])

    amount = None
    amount_str = normalized.get("amount", "")
    if transaction_type.moves_funds and amount_str:
        amount = Amount.from_text(amount_str, rounding)

    return Transaction(
        transaction_type=transaction_type,
        client_id=client_id,
        transaction_id=transaction_id,
        amount=amount,
    )


class PaymentsEngine:
    """
    Feeds transactions one at a time, in input order, through the processor.
    Skipped records are logged and counted in `stats`; fatal errors propagate.
    """

    def __init__(
        self,
        accounts: Optional[AccountStore] = None,
        transactions: Optional[TransactionStore] = None,
        rounding: RoundingPolicy = RoundingPolicy.TRUNCATE,
    ):
        self._accounts = accounts if accounts is not None else AccountStore()
        self._transactions = transactions if transactions is not None else TransactionStore()
        self._processor = TransactionProcessor(self._accounts, self._transactions)
        self._rounding = rounding
        self.stats = ProcessingStats()

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states."""
        logger.info(f"Processing {filepath}")
        with open(filepath, "r", newline="") as f:
            accounts = self.process_rows(csv.DictReader(f))
        logger.info(f"Finished {filepath}: {self.stats.as_dict()}")
        return accounts

    def process_rows(self, rows: Iterable[Mapping[Optional[str], Optional[str]]]) -> Dict[int, ClientAccount]:
        def parsed():
            for row in rows:
                transaction = parse_csv_row(row, self._rounding)
                if transaction is None:
                    self.stats.record_unparsed()
                    continue
                yield transaction

        return self.process_transactions(parsed())

    def process_transactions(self, transactions: Iterable[Transaction]) -> Dict[int, ClientAccount]:
        for transaction in transactions:
            result = self._processor.process_transaction(transaction)
            self.stats.record(result)
            if not result.succeeded:
                logger.info(f"Skipped {transaction}: {result.value}")

        return self._accounts.get_all_accounts()
