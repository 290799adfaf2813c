import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from .exceptions import ResponseParseError

# Renew a little before Pi-hole drops the session on its side.
SESSION_EXPIRY_MARGIN_SEC = 5.0


class SessionState(Enum):
    UNAUTHENTICATED = "unauthenticated"
    ACTIVE = "active"
    EXPIRED = "expired"


@dataclass
class Session:
    """Pi-hole API session.

    UNAUTHENTICATED sessions carry no sid and are used as-is when no password
    is configured. ACTIVE sessions expire ``validity`` seconds after their last
    successful use, which is how Pi-hole itself tracks them.
    """

    sid: str | None = None
    state: SessionState = SessionState.UNAUTHENTICATED
    validity: float = 0.0
    expires_at: float | None = None

    @classmethod
    def active(cls, sid: str, validity: float, now: float | None = None) -> "Session":
        session = cls(sid=sid, state=SessionState.ACTIVE, validity=validity)
        session.touch(now)
        return session

    def touch(self, now: float | None = None) -> None:
        if self.state is not SessionState.ACTIVE or self.validity <= 0:
            return
        if now is None:
            now = time.monotonic()
        self.expires_at = now + self.validity

    def expire(self) -> None:
        self.state = SessionState.EXPIRED
        self.expires_at = None

    def is_usable(self, now: float | None = None) -> bool:
        if self.state is SessionState.EXPIRED:
            return False
        if self.state is SessionState.ACTIVE and self.expires_at is not None:
            if now is None:
                now = time.monotonic()
            return now < self.expires_at - SESSION_EXPIRY_MARGIN_SEC
        return True

    def headers(self) -> dict[str, str]:
        if self.state is SessionState.ACTIVE and self.sid:
            return {"sid": self.sid}
        return {}


def _section(payload: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = payload.get(key)
    if not isinstance(value, Mapping):
        raise ResponseParseError(f"missing or invalid object {key!r} in stats summary")
    return value


def _count(section: Mapping[str, Any], key: str, path: str) -> int:
    value = section.get(key)
    # bool is an int subclass; Pi-hole never reports counters as booleans
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ResponseParseError(f"missing or non-numeric field {path}.{key}")
    if isinstance(value, float) and not value.is_integer():
        raise ResponseParseError(f"non-integer value for {path}.{key}: {value!r}")
    if value < 0:
        raise ResponseParseError(f"negative value for {path}.{key}: {value!r}")
    return int(value)


def _breakdown(section: Mapping[str, Any], key: str, path: str) -> Mapping[str, int]:
    value = section.get(key)
    if not isinstance(value, Mapping):
        raise ResponseParseError(f"missing or invalid object {path}.{key}")
    counts = {str(name): _count(value, name, f"{path}.{key}") for name in value}
    return MappingProxyType(counts)


@dataclass(frozen=True)
class StatsSnapshot:
    total_queries: int
    blocked_queries: int
    cached_queries: int
    forwarded_queries: int
    unique_domains: int
    active_clients: int
    gravity_domains: int
    query_types: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))
    query_status: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))
    reply_types: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        # Freeze caller-supplied dicts so a snapshot can't change after mapping.
        for name in ("query_types", "query_status", "reply_types"):
            value = getattr(self, name)
            if not isinstance(value, MappingProxyType):
                object.__setattr__(self, name, MappingProxyType(dict(value)))

    @classmethod
    def from_summary(cls, payload: Any) -> "StatsSnapshot":
        """Build a snapshot from a ``GET /api/stats/summary`` response body."""
        if not isinstance(payload, Mapping):
            raise ResponseParseError("stats summary is not a JSON object")

        queries = _section(payload, "queries")
        clients = _section(payload, "clients")
        gravity = _section(payload, "gravity")

        return cls(
            total_queries=_count(queries, "total", "queries"),
            blocked_queries=_count(queries, "blocked", "queries"),
            cached_queries=_count(queries, "cached", "queries"),
            forwarded_queries=_count(queries, "forwarded", "queries"),
            unique_domains=_count(queries, "unique_domains", "queries"),
            active_clients=_count(clients, "active", "clients"),
            gravity_domains=_count(gravity, "domains_being_blocked", "gravity"),
            query_types=_breakdown(queries, "types", "queries"),
            query_status=_breakdown(queries, "status", "queries"),
            reply_types=_breakdown(queries, "replies", "queries"),
        )
