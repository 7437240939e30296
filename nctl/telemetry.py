# FILE: nctl/telemetry.py
# Prometheus instruments for node RPC calls.
#
# Commands are short-lived, so nothing is served over HTTP. Instruments live
# on a private registry and can be dumped once at exit in the node-exporter
# textfile-collector format.

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from prometheus_client import CollectorRegistry, Counter, Histogram, write_to_textfile

logger = logging.getLogger(__name__)

_LATENCY_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)


def _safe_label(value: str) -> str:
    s = str(value or "")
    if len(s) > 64:
        s = s[:61] + "..."
    return s


@dataclass
class RpcMetrics:
    """
    Wrapper over the RPC instruments to keep usage structured.
    """

    registry: CollectorRegistry = field(default_factory=CollectorRegistry)

    def __post_init__(self) -> None:
        self.requests = Counter(
            "nctl_rpc_requests_total",
            "Node JSON-RPC requests",
            ["method", "outcome"],
            registry=self.registry,
        )
        self.latency = Histogram(
            "nctl_rpc_request_latency_seconds",
            "Node JSON-RPC request latency in seconds",
            ["method"],
            buckets=_LATENCY_BUCKETS,
            registry=self.registry,
        )

    def observe(self, method: str, outcome: str, elapsed: float) -> None:
        m = _safe_label(method)
        self.requests.labels(method=m, outcome=_safe_label(outcome)).inc()
        self.latency.labels(method=m).observe(max(0.0, elapsed))

    def count(self, method: str, outcome: str) -> float:
        value = self.registry.get_sample_value(
            "nctl_rpc_requests_total",
            {"method": _safe_label(method), "outcome": _safe_label(outcome)},
        )
        return value or 0.0

    def write_textfile(self, path: str) -> None:
        write_to_textfile(path, self.registry)
        logger.debug("rpc metrics written", extra={"path": path})
