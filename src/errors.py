class PaymentsError(Exception):
    """Base class for errors that abort a processing run."""


class MalformedAmount(PaymentsError, ValueError):
    """Amount input is not a finite number or does not fit the scaled range."""


class AmountOverflow(PaymentsError, ArithmeticError):
    """Amount arithmetic left the signed 64-bit scaled range."""


class MalformedRecord(PaymentsError, ValueError):
    """Transaction record has unparseable or out-of-range fields, or a type that cannot be stored."""


class DuplicateTransactionId(PaymentsError):
    """A deposit or withdrawal reused an already stored transaction id."""

    def __init__(self, transaction_id: int):
        super().__init__(f"Transaction id {transaction_id} already recorded")
        self.transaction_id = transaction_id


class InvalidTransition(PaymentsError):
    """Dispute state change not allowed from the transaction's current state."""
