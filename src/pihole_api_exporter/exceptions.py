"""Exceptions raised while talking to Pi-hole and serving scrapes."""


class PiholeExporterError(Exception):
    """Base class for all exporter errors."""


class AuthError(PiholeExporterError):
    """Login against the Pi-hole API failed."""


class InvalidCredentialsError(AuthError):
    """Pi-hole rejected the configured password."""


class AuthUnreachableError(AuthError):
    """Pi-hole could not be reached (or timed out) during login."""


class FetchError(PiholeExporterError):
    """Reading statistics from the Pi-hole API failed."""


class SessionExpiredError(FetchError):
    """Pi-hole answered 401/403: the session is no longer accepted."""


class ResponseParseError(FetchError):
    """The response body was not JSON or did not have the expected shape."""


class FetchUnreachableError(FetchError):
    """Connection to Pi-hole failed while fetching statistics."""


class FetchTimeoutError(FetchError):
    """Pi-hole did not answer a statistics request in time."""


class ScrapeError(PiholeExporterError):
    """A scrape failed after the retry policy was exhausted."""

    def __init__(self, message: str, cause: PiholeExporterError | None = None) -> None:
        super().__init__(message)
        self.cause = cause

    @property
    def upstream_unavailable(self) -> bool:
        return isinstance(
            self.cause, (AuthUnreachableError, FetchUnreachableError, FetchTimeoutError)
        )


class StartupError(PiholeExporterError):
    """The exporter could not start (e.g. the listen port cannot be bound)."""
