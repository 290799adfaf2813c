from dataclasses import replace

import pytest
from fixtures import FakeHTTP, make_summary

from pihole_api_exporter.client import PiholeClient
from pihole_api_exporter.models import StatsSnapshot
from pihole_api_exporter.settings import Settings


@pytest.fixture
def summary() -> dict:
    return make_summary()


@pytest.fixture
def snapshot(summary: dict) -> StatsSnapshot:
    return StatsSnapshot.from_summary(summary)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        listen_addr="127.0.0.1",
        listen_port=3141,
        pihole_host="pi.hole",
        pihole_tls=False,
        verify_tls=False,
        request_timeout=5.0,
        pihole_password="secret",
    )


@pytest.fixture
def open_settings(settings: Settings) -> Settings:
    return replace(settings, pihole_password=None)


@pytest.fixture
def http() -> FakeHTTP:
    return FakeHTTP()


@pytest.fixture
def clock():
    class Clock:
        now = 1000.0

        def __call__(self) -> float:
            return self.now

    return Clock()


@pytest.fixture
def client(settings: Settings, http: FakeHTTP, clock) -> PiholeClient:
    return PiholeClient(settings, http=http, clock=clock)


@pytest.fixture
def metric_value():
    def _metric_value(text: str, name: str, labels: dict[str, str] | None = None) -> float:
        for line in text.splitlines():
            if line.startswith("#") or line.split("{", 1)[0].split(" ", 1)[0] != name:
                continue
            if labels:
                if "{" not in line:
                    continue
                label_part = line.split("{", 1)[1].split("}", 1)[0]
                label_items = {}
                for item in label_part.split(","):
                    if not item:
                        continue
                    key, value = item.split("=", 1)
                    label_items[key] = value.strip('"')
                if any(label_items.get(k) != v for k, v in labels.items()):
                    continue
            return float(line.split()[-1])
        raise AssertionError(f"Metric {name} with labels {labels} not found")

    return _metric_value
