import logging
import time
from collections.abc import Callable, Mapping

import requests
import urllib3

from .exceptions import (
    AuthError,
    AuthUnreachableError,
    FetchError,
    FetchTimeoutError,
    FetchUnreachableError,
    InvalidCredentialsError,
    ResponseParseError,
    SessionExpiredError,
)
from .models import Session, SessionState, StatsSnapshot
from .settings import Settings

logger = logging.getLogger("pihole_api_exporter")

AUTH_PATH = "/api/auth"
SUMMARY_PATH = "/api/stats/summary"

JSON_HEADERS = {"accept": "application/json"}


class PiholeClient:
    """Talks to the Pi-hole v6 REST API and owns the login session.

    Not thread-safe on its own; the scraper makes sure only one caller uses
    it at a time.
    """

    def __init__(
        self,
        settings: Settings,
        http: requests.Session | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings
        self.session: Session | None = None
        self._http = http if http is not None else requests.Session()
        self._clock = clock
        if settings.pihole_tls and not settings.verify_tls:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    def _url(self, path: str) -> str:
        return self.settings.base_url + path

    def _request_kwargs(self, headers: Mapping[str, str] | None = None) -> dict:
        return {
            "headers": {**JSON_HEADERS, **(headers or {})},
            "timeout": self.settings.request_timeout,
            "verify": self.settings.verify_tls,
        }

    def authenticate(self) -> Session:
        password = self.settings.pihole_password
        if not password:
            logger.debug("No Pi-hole password configured; using unauthenticated access")
            self.session = Session()
            return self.session

        self.session = None
        url = self._url(AUTH_PATH)
        logger.info("Authenticating against Pi-hole at %s", self.settings.base_url)
        try:
            resp = self._http.post(url, json={"password": password}, **self._request_kwargs())
        except requests.Timeout as e:
            raise AuthUnreachableError(f"timed out logging in to {self.settings.base_url}") from e
        except requests.RequestException as e:
            raise AuthUnreachableError(f"cannot reach Pi-hole at {self.settings.base_url}: {e}") from e

        if resp.status_code in (401, 403):
            raise InvalidCredentialsError(f"Pi-hole rejected the password (HTTP {resp.status_code})")
        if not 200 <= resp.status_code < 300:
            raise AuthError(f"unexpected HTTP {resp.status_code} from {AUTH_PATH}")

        try:
            body = resp.json()
        except ValueError as e:
            raise AuthError(f"invalid JSON from {AUTH_PATH}") from e

        info = body.get("session") if isinstance(body, Mapping) else None
        if not isinstance(info, Mapping):
            raise AuthError(f"missing session object in {AUTH_PATH} response")
        if not info.get("valid"):
            message = info.get("message") or "session not valid"
            raise InvalidCredentialsError(f"Pi-hole rejected the password: {message}")

        sid = info.get("sid")
        if not sid:
            # Pi-hole without a web password hands out a valid session with no sid.
            logger.info("Pi-hole does not require authentication")
            self.session = Session()
            return self.session

        validity = info.get("validity")
        if isinstance(validity, bool) or not isinstance(validity, (int, float)):
            validity = 0
        self.session = Session.active(str(sid), float(validity), now=self._clock())
        logger.info("Authenticated against Pi-hole (session valid for %ss)", validity)
        return self.session

    def ensure_session(self) -> Session:
        """Return the current session, logging in again if it is missing or stale."""
        session = self.session
        if session is not None and session.is_usable(self._clock()):
            return session
        if session is not None:
            logger.info("Pi-hole session is %s; re-authenticating", session.state.value)
        return self.authenticate()

    def invalidate_session(self) -> None:
        if self.session is not None:
            self.session.expire()

    def fetch_stats(self, session: Session) -> StatsSnapshot:
        url = self._url(SUMMARY_PATH)
        logger.debug("GET %s", url)
        try:
            resp = self._http.get(url, **self._request_kwargs(session.headers()))
        except requests.Timeout as e:
            raise FetchTimeoutError(
                f"Pi-hole did not answer {SUMMARY_PATH} within {self.settings.request_timeout}s"
            ) from e
        except requests.RequestException as e:
            raise FetchUnreachableError(
                f"cannot reach Pi-hole at {self.settings.base_url}: {e}"
            ) from e

        if resp.status_code in (401, 403):
            session.expire()
            raise SessionExpiredError(f"Pi-hole answered HTTP {resp.status_code} on {SUMMARY_PATH}")
        if not 200 <= resp.status_code < 300:
            raise FetchError(f"unexpected HTTP {resp.status_code} from {SUMMARY_PATH}")

        try:
            payload = resp.json()
        except ValueError as e:
            raise ResponseParseError(f"invalid JSON from {SUMMARY_PATH}") from e

        snapshot = StatsSnapshot.from_summary(payload)
        session.touch(self._clock())
        return snapshot

    def logout(self) -> None:
        """Release the Pi-hole session so it does not hold an API seat."""
        session = self.session
        if session is None or session.state is not SessionState.ACTIVE:
            return
        try:
            resp = self._http.delete(self._url(AUTH_PATH), **self._request_kwargs(session.headers()))
            logger.info("Logged out of Pi-hole (HTTP %d)", resp.status_code)
        except requests.RequestException as e:
            logger.warning("Pi-hole logout failed: %s", e)
        finally:
            session.expire()

    def close(self) -> None:
        self.logout()
        self._http.close()
