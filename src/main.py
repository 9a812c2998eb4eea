import csv
import logging
import sys
from typing import Iterable, List, Optional, TextIO

from config import get_settings
from errors import PaymentsError
from models import ClientAccount
from payments_engine import PaymentsEngine

logger = logging.getLogger(__name__)

HEADER = ["client", "available", "held", "total", "locked"]


def write_accounts(accounts: Iterable[ClientAccount], stream: TextIO) -> None:
    """Write one CSV row per client, sorted by client id, amounts with 4 decimal places."""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(HEADER)
    for account in sorted(accounts, key=lambda a: a.client_id):
        writer.writerow(account.as_row())


def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    settings = get_settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format=settings.log_format,
        stream=sys.stderr,
    )

    if len(args) != 1:
        print("Usage: payments <input.csv>", file=sys.stderr)
        return 1

    engine = PaymentsEngine(rounding=settings.rounding)
    try:
        accounts = engine.process_file(args[0])
    except (PaymentsError, OSError) as e:
        logger.error(f"Aborting run: {e}")
        return 1

    write_accounts(accounts.values(), sys.stdout)

    if settings.report_stats:
        print(
            f"Processed: {engine.stats.processed}, "
            f"Skipped: {engine.stats.total_skipped}",
            file=sys.stderr,
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
