"""Entry point for the order book synchronizer."""

import asyncio
import logging
import signal
import sys

from okx_book.config.settings import Settings
from okx_book.errors import OkxBookError
from okx_book.synchronizer import BookSynchronizer


def main() -> None:
    settings = Settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
        stream=sys.stdout,
    )
    logger = logging.getLogger("okx_book")
    logger.info("Starting order book sync for %s (rest=%s ws=%s)", settings.symbol, settings.rest_url, settings.ws_url)

    synchronizer = BookSynchronizer(settings)

    loop = asyncio.new_event_loop()

    def _shutdown(sig: signal.Signals) -> None:
        logger.info("Received %s, shutting down...", sig.name)
        synchronizer.request_shutdown()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _shutdown, sig)

    try:
        book = loop.run_until_complete(synchronizer.run())
    except OkxBookError as exc:
        logger.error("Order book sync failed: %s", exc)
        sys.exit(1)
    finally:
        loop.close()

    if book is not None:
        logger.info(
            "Final book: %d asks, %d bids, best ask=%s, best bid=%s, spread=%s",
            len(book.asks),
            len(book.bids),
            book.best_ask,
            book.best_bid,
            book.spread,
        )
    logger.info("Order book sync stopped after %d updates", synchronizer.pushes_applied)


if __name__ == "__main__":
    main()
