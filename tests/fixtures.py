import json
import threading


class FakeResponse:
    def __init__(self, status_code: int = 200, payload=None, text: str | None = None) -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    def json(self):
        if self._payload is None:
            return json.loads(self.text)
        return self._payload


class FakeHTTP:
    """Stand-in for requests.Session that replays queued responses per method."""

    def __init__(self) -> None:
        self.queues: dict[str, list] = {"POST": [], "GET": [], "DELETE": []}
        self.calls: list[tuple[str, str, dict]] = []
        self.closed = False
        self.gate: threading.Event | None = None
        self.get_started = threading.Event()
        self._lock = threading.Lock()

    def queue(self, method: str, *items) -> None:
        self.queues[method].extend(items)

    def _handle(self, method: str, url: str, kwargs: dict):
        with self._lock:
            self.calls.append((method, url, kwargs))
            item = self.queues[method].pop(0)
        if method == "GET":
            self.get_started.set()
            if self.gate is not None:
                self.gate.wait(10)
        if isinstance(item, BaseException):
            raise item
        return item

    def post(self, url, **kwargs):
        return self._handle("POST", url, kwargs)

    def get(self, url, **kwargs):
        return self._handle("GET", url, kwargs)

    def delete(self, url, **kwargs):
        return self._handle("DELETE", url, kwargs)

    def close(self) -> None:
        self.closed = True

    def count(self, method: str) -> int:
        return sum(1 for call in self.calls if call[0] == method)


def make_summary(
    *,
    total: int = 1000,
    blocked: int = 250,
    cached: int = 100,
    forwarded: int = 650,
    unique_domains: int = 80,
    active_clients: int = 5,
    gravity: int = 150000,
    types: dict[str, int] | None = None,
    status: dict[str, int] | None = None,
    replies: dict[str, int] | None = None,
) -> dict:
    if types is None:
        types = {"A": 900, "AAAA": 100}
    if status is None:
        status = {"FORWARDED": 650, "CACHE": 100, "GRAVITY": 250}
    if replies is None:
        replies = {"IP": 700, "NXDOMAIN": 50, "NODATA": 0}
    return {
        "queries": {
            "total": total,
            "blocked": blocked,
            "percent_blocked": blocked / total * 100 if total else 0.0,
            "unique_domains": unique_domains,
            "forwarded": forwarded,
            "cached": cached,
            "frequency": 1.2,
            "types": types,
            "status": status,
            "replies": replies,
        },
        "clients": {"active": active_clients, "total": 12},
        "gravity": {"domains_being_blocked": gravity, "last_update": 1700000000},
        "took": 0.0003,
    }


def auth_ok(sid: str = "sid-1", validity: int = 1800) -> FakeResponse:
    return FakeResponse(
        200,
        {
            "session": {
                "valid": True,
                "totp": False,
                "sid": sid,
                "csrf": "csrf",
                "validity": validity,
                "message": "app-password correct",
            },
            "took": 0.01,
        },
    )


def unauthorized() -> FakeResponse:
    return FakeResponse(
        401,
        {"error": {"key": "unauthorized", "message": "Unauthorized", "hint": None}},
    )
