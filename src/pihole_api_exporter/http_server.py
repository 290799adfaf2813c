import logging
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

from prometheus_client import CONTENT_TYPE_LATEST

from .exceptions import ScrapeError, StartupError

TEXT_PLAIN = "text/plain; charset=utf-8"


def make_handler(scraper, logger=None):
    if logger is None:
        logger = logging.getLogger("pihole_api_exporter")

    class Handler(BaseHTTPRequestHandler):
        def do_GET(self):
            path = self.path.split("?", 1)[0]
            if path == "/healthz":
                self._send(200, TEXT_PLAIN, b"OK\n")
                return
            if path != "/metrics":
                self._send(404, TEXT_PLAIN, b"not found\n")
                return

            try:
                logger.debug("HTTP request: %s %s", self.command, self.path)
                start = time.time()
                payload = scraper.scrape()
                self._send(200, CONTENT_TYPE_LATEST, payload)
                logger.info(
                    "HTTP 200 served metrics bytes=%d scrape_time=%.3fs",
                    len(payload),
                    time.time() - start,
                )
            except (BrokenPipeError, ConnectionResetError) as e:
                logger.debug("Client disconnected while serving request: %s", e)
            except ScrapeError as e:
                status = 503 if e.upstream_unavailable else 502
                logger.info("HTTP %d scrape failed: %s", status, e)
                self._send(status, TEXT_PLAIN, f"{e}\n".encode())
            except Exception as e:
                logger.exception("Scrape failed while serving request")
                self._send(500, TEXT_PLAIN, f"scrape failed: {e}\n".encode())

        def _send(self, status: int, content_type: str, body: bytes) -> None:
            self.send_response(status)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, format, *args):
            return

    return Handler


def create_server(listen_addr: str, listen_port: int, handler_cls) -> ThreadingHTTPServer:
    try:
        httpd = ThreadingHTTPServer((listen_addr, listen_port), handler_cls)
    except OSError as e:
        raise StartupError(f"cannot listen on {listen_addr}:{listen_port}: {e}") from e
    httpd.daemon_threads = True
    return httpd


def serve(httpd: ThreadingHTTPServer) -> None:
    logging.getLogger("pihole_api_exporter").info("HTTP server ready; waiting for scrapes")
    httpd.serve_forever()
