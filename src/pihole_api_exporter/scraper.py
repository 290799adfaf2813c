import logging
import threading
import time
from concurrent.futures import Future

from . import metrics
from .client import PiholeClient
from .exceptions import AuthError, FetchError, ScrapeError, SessionExpiredError
from .models import StatsSnapshot

logger = logging.getLogger("pihole_api_exporter")

MAX_ATTEMPTS = 2


class Scraper:
    """Runs scrapes against Pi-hole one at a time.

    Callers that arrive while a scrape is running attach to it and get the
    same payload (or the same error) instead of starting another one.
    """

    def __init__(self, client: PiholeClient) -> None:
        self.client = client
        self._lock = threading.Lock()
        self._inflight: Future | None = None

    def scrape(self) -> bytes:
        with self._lock:
            future = self._inflight
            leader = future is None
            if leader:
                future = Future()
                self._inflight = future

        if not leader:
            logger.debug("Scrape already in flight; waiting for its result")
            return future.result()

        try:
            payload = self._scrape_once()
        except BaseException as e:
            future.set_exception(e)
            raise
        else:
            future.set_result(payload)
            return payload
        finally:
            with self._lock:
                self._inflight = None

    def _scrape_once(self) -> bytes:
        start = time.time()
        try:
            snapshot = self._fetch_with_renewal()
        except (AuthError, FetchError) as e:
            logger.warning("Scrape failed: %s", e)
            raise ScrapeError(f"scrape failed: {e}", cause=e) from e
        payload = metrics.render(snapshot)
        logger.debug(
            "Scrape done total=%d blocked=%d took=%.3fs",
            snapshot.total_queries,
            snapshot.blocked_queries,
            time.time() - start,
        )
        return payload

    def _fetch_with_renewal(self) -> StatsSnapshot:
        for attempt in range(1, MAX_ATTEMPTS + 1):
            session = self.client.ensure_session()
            try:
                return self.client.fetch_stats(session)
            except SessionExpiredError as e:
                self.client.invalidate_session()
                if attempt == MAX_ATTEMPTS:
                    if session.sid is None:
                        raise ScrapeError(
                            "Pi-hole requires authentication; set PIHOLE_EXPORTER__PIHOLE_PASSWORD",
                            cause=e,
                        ) from e
                    raise ScrapeError(f"session rejected again after re-login: {e}", cause=e) from e
                logger.warning("Pi-hole session rejected (%s); re-authenticating", e)
        raise AssertionError("unreachable")
