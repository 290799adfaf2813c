import os
from dataclasses import dataclass, field, replace

ENV_PREFIX = "PIHOLE_EXPORTER__"


@dataclass(frozen=True)
class Settings:
    listen_addr: str
    listen_port: int
    pihole_host: str
    pihole_tls: bool
    verify_tls: bool
    request_timeout: float
    pihole_password: str | None = field(default=None, repr=False)

    @property
    def base_url(self) -> str:
        scheme = "https" if self.pihole_tls else "http"
        return f"{scheme}://{self.pihole_host}"

    @classmethod
    def from_env(cls, env: dict[str, str] | None = None) -> "Settings":
        if env is None:
            env = os.environ

        def _get(name: str, default: str) -> str:
            return env.get(ENV_PREFIX + name, default)

        def _get_int(name: str, default: int) -> int:
            value = _get(name, str(default))
            parsed = int(value)
            if parsed < 1:
                raise ValueError(f"{ENV_PREFIX}{name} must be >= 1 (got {value!r})")
            return parsed

        listen_port = _get_int("EXPORTER_PORT", 3141)
        if listen_port > 65535:
            raise ValueError(f"{ENV_PREFIX}EXPORTER_PORT must be <= 65535 (got {listen_port!r})")

        pihole_host = _get("PIHOLE_HOST", "localhost").strip().rstrip("/")
        if not pihole_host:
            raise ValueError(f"{ENV_PREFIX}PIHOLE_HOST must not be empty")

        return cls(
            listen_addr=_get("EXPORTER_HOST", "127.0.0.1"),
            listen_port=listen_port,
            pihole_host=pihole_host,
            pihole_tls=env_truthy(ENV_PREFIX + "PIHOLE_TLS", "false", env),
            verify_tls=env_truthy(ENV_PREFIX + "PIHOLE_VERIFY_TLS", "false", env),
            request_timeout=float(_get_int("REQUEST_TIMEOUT", 30)),
            pihole_password=env.get(ENV_PREFIX + "PIHOLE_PASSWORD") or None,
        )

    def with_overrides(self, **overrides) -> "Settings":
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def env_truthy(name: str, default: str = "false", env: dict[str, str] | None = None) -> bool:
    if env is None:
        env = os.environ
    value = env.get(name, default)
    return str(value).strip().lower() in {"1", "true", "t", "yes", "y", "on"}
