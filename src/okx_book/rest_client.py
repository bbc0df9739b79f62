"""REST snapshot client for the order book endpoint."""

import logging
from urllib.parse import urljoin

import requests

from okx_book.book import BookState
from okx_book.errors import SnapshotFetchError

logger = logging.getLogger(__name__)

BOOKS_PATH = "api/v5/market/books"
DEFAULT_TIMEOUT = 30.0
DEFAULT_USER_AGENT = "okx-book/0.1"


class RestClient:
    """Fetches one-shot order book snapshots over HTTP."""

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = base_url if base_url.endswith("/") else base_url + "/"
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers["User-Agent"] = user_agent

    def fetch_snapshot_text(self, symbol: str) -> str:
        """Return the raw snapshot response body for a symbol."""
        url = urljoin(self._base_url, BOOKS_PATH)
        try:
            resp = self._session.get(url, params={"instId": symbol}, timeout=self._timeout)
        except requests.RequestException as exc:
            raise SnapshotFetchError(f"Snapshot request for {symbol} failed: {exc}") from exc

        if resp.status_code != 200:
            logger.error("Snapshot request for %s returned %d: %s", symbol, resp.status_code, resp.text[:300])
            raise SnapshotFetchError(
                f"Snapshot request for {symbol} returned HTTP {resp.status_code}",
                status_code=resp.status_code,
            )
        return resp.text

    def get_order_book(self, symbol: str) -> BookState:
        """Fetch and decode a snapshot into a sorted, validated BookState."""
        book = BookState.from_snapshot(self.fetch_snapshot_text(symbol))
        logger.info(
            "Fetched %s snapshot: %d asks, %d bids, ts=%d", symbol, len(book.asks), len(book.bids), book.timestamp
        )
        return book

    def close(self) -> None:
        self._session.close()
