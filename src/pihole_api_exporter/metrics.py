from prometheus_client import CollectorRegistry, generate_latest
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric

from .models import StatsSnapshot

# (metric name, family class, snapshot attribute, help)
SCALAR_METRICS = (
    (
        "pihole_queries_total",
        CounterMetricFamily,
        "total_queries",
        "Total number of DNS queries as reported by Pi-hole",
    ),
    (
        "pihole_queries_blocked_total",
        CounterMetricFamily,
        "blocked_queries",
        "Number of blocked DNS queries as reported by Pi-hole",
    ),
    (
        "pihole_queries_cached_total",
        CounterMetricFamily,
        "cached_queries",
        "Number of DNS queries answered from cache",
    ),
    (
        "pihole_queries_forwarded_total",
        CounterMetricFamily,
        "forwarded_queries",
        "Number of DNS queries forwarded to upstream servers",
    ),
    (
        "pihole_unique_domains_total",
        GaugeMetricFamily,
        "unique_domains",
        "Number of unique domains queried",
    ),
    (
        "pihole_clients_total",
        GaugeMetricFamily,
        "active_clients",
        "Number of active clients",
    ),
    (
        "pihole_gravity_domains_total",
        GaugeMetricFamily,
        "gravity_domains",
        "Number of domains on the gravity blocklist",
    ),
)

# (metric name, label, snapshot attribute, help)
BREAKDOWN_METRICS = (
    (
        "pihole_queries_by_type_total",
        "type",
        "query_types",
        "Number of DNS queries by query type",
    ),
    (
        "pihole_queries_by_status_total",
        "status",
        "query_status",
        "Number of DNS queries by status",
    ),
    (
        "pihole_queries_by_reply_total",
        "reply_type",
        "reply_types",
        "Number of DNS queries by reply type",
    ),
)


def build_families(snapshot: StatsSnapshot) -> list[Metric]:
    """Map one snapshot onto the fixed set of exported metric families.

    Breakdown series are emitted in sorted label order, zero counts included,
    so equal snapshots always render to identical text.
    """
    families: list[Metric] = []

    for name, family_cls, attr, documentation in SCALAR_METRICS:
        families.append(family_cls(name, documentation, value=float(getattr(snapshot, attr))))

    for name, label, attr, documentation in BREAKDOWN_METRICS:
        family = CounterMetricFamily(name, documentation, labels=[label])
        counts = getattr(snapshot, attr)
        for key in sorted(counts):
            family.add_metric([key], float(counts[key]))
        families.append(family)

    return families


class SnapshotCollector:
    def __init__(self, snapshot: StatsSnapshot) -> None:
        self.snapshot = snapshot

    def collect(self):
        yield from build_families(self.snapshot)


def render(snapshot: StatsSnapshot) -> bytes:
    # Fresh registry per scrape: one snapshot in, one payload out.
    registry = CollectorRegistry()
    registry.register(SnapshotCollector(snapshot))
    return generate_latest(registry)
