from __future__ import annotations

from krakenapi.logging.logger import init_logging

init_logging()

import sys

from krakenapi.configuration.config import settings
from krakenapi.integrations.kraken.kraken_client import KrakenClient
from krakenapi.integrations.kraken.kraken_errors import KrakenError
from krakenapi.logging.logger import get_logger

log = get_logger(__name__)


def main() -> int:
    """Print non-zero balances of the account configured through KRAKEN_API_KEY / KRAKEN_API_SECRET."""
    with KrakenClient(settings.KRAKEN_API_KEY, settings.KRAKEN_API_SECRET) as client:
        try:
            balances = client.balance()
        except KrakenError as error:
            log.error("[BALANCES] Request failed: %s", error)
            return 1

    for asset, amount in sorted(balances.items()):
        if amount:
            print(f"{asset:<10} {amount:.10f}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
