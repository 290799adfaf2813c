import argparse
import logging
import os
from pathlib import Path

from . import http_server
from .client import PiholeClient
from .exceptions import StartupError
from .scraper import Scraper
from .settings import Settings, env_truthy

logger = logging.getLogger("pihole_api_exporter")


def _read_version() -> str:
    version_path = Path(__file__).resolve().parents[2] / "VERSION"
    if version_path.is_file():
        return version_path.read_text().strip()
    try:
        from . import __version__  # type: ignore

        return str(__version__)
    except Exception:
        return "unknown"


def _read_commit() -> str:
    return (
        os.getenv("GIT_COMMIT") or os.getenv("GIT_SHA") or os.getenv("SOURCE_COMMIT") or "unknown"
    )


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Pi-hole API Prometheus exporter")
    parser.add_argument("--host", help="Address to listen on (default 127.0.0.1)")
    parser.add_argument("-p", "--port", type=int, help="Port to listen on (default 3141)")
    parser.add_argument("--pihole", help="Pi-hole host[:port] (default localhost)")
    parser.add_argument(
        "--tls", action="store_true", default=None, help="Use https to talk to Pi-hole"
    )
    parser.add_argument("-P", "--password", help="Pi-hole app password, if required")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose (debug) logging")
    return parser.parse_args(argv)


def load_settings(args: argparse.Namespace) -> Settings:
    settings = Settings.from_env()
    settings = settings.with_overrides(
        listen_addr=args.host,
        listen_port=args.port,
        pihole_host=args.pihole,
        pihole_tls=args.tls,
        pihole_password=args.password,
    )
    if not 1 <= settings.listen_port <= 65535:
        raise ValueError(f"port must be between 1 and 65535 (got {settings.listen_port})")
    return settings


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    verbose = bool(args.verbose) or env_truthy("DEBUG", "false")
    configure_logging(verbose)
    logger.info("Exporter version=%s commit=%s", _read_version(), _read_commit())

    settings = load_settings(args)
    logger.info(
        "Starting exporter (listen=%s:%s, pihole=%s, auth=%s, timeout=%ss)",
        settings.listen_addr,
        settings.listen_port,
        settings.base_url,
        "password" if settings.pihole_password else "none",
        settings.request_timeout,
    )

    client = PiholeClient(settings)
    scraper = Scraper(client)
    try:
        httpd = http_server.create_server(
            settings.listen_addr, settings.listen_port, http_server.make_handler(scraper)
        )
    except StartupError as e:
        logger.error("%s", e)
        client.close()
        return 1

    try:
        http_server.serve(httpd)
    except KeyboardInterrupt:
        logger.info("Interrupted; shutting down")
    finally:
        httpd.server_close()
        client.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
