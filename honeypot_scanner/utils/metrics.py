"""Prometheus metrics for monitoring system performance."""

from typing import Optional
from prometheus_client import Counter, Histogram, start_http_server

from .config import get_config
from .logger import get_logger


logger = get_logger(__name__)


# Counters
tokens_checked = Counter(
    "honeypot_scanner_tokens_checked_total",
    "Total number of tokens checked"
)

honeypots_detected = Counter(
    "honeypot_scanner_honeypots_detected_total",
    "Total number of tokens flagged as honeypots"
)

evidence_items = Counter(
    "honeypot_scanner_evidence_items_total",
    "Total number of evidence items emitted",
    ["check", "severity"]
)

rpc_requests = Counter(
    "honeypot_scanner_rpc_requests_total",
    "Total number of RPC requests",
    ["provider", "method", "status"]
)

quote_requests = Counter(
    "honeypot_scanner_quote_requests_total",
    "Total number of swap provider requests",
    ["endpoint", "status"]
)

# Histograms
rpc_request_duration = Histogram(
    "honeypot_scanner_rpc_request_duration_seconds",
    "Duration of RPC requests in seconds",
    ["provider", "method"],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0]
)

quote_request_duration = Histogram(
    "honeypot_scanner_quote_request_duration_seconds",
    "Duration of swap provider requests in seconds",
    ["endpoint"],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0]
)

check_duration = Histogram(
    "honeypot_scanner_check_duration_seconds",
    "Duration of a full token check in seconds",
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0]
)


class MetricsServer:
    """Prometheus metrics server manager."""

    def __init__(self):
        self.config = get_config()
        self.server_started = False

    def start(self) -> None:
        """Start Prometheus metrics server."""
        if not self.config.prometheus_enabled:
            logger.debug("Prometheus metrics disabled")
            return

        if self.server_started:
            logger.warning("Metrics server already started")
            return

        try:
            start_http_server(self.config.prometheus_port)
            self.server_started = True
            logger.info(f"Prometheus metrics server started on port {self.config.prometheus_port}")
        except Exception as e:
            logger.error(f"Failed to start metrics server: {e}")
            raise


# Global metrics server instance
_metrics_server: Optional[MetricsServer] = None


def get_metrics_server() -> MetricsServer:
    """Get or create global metrics server instance."""
    global _metrics_server
    if _metrics_server is None:
        _metrics_server = MetricsServer()
    return _metrics_server


def start_metrics_server() -> None:
    """Start the global metrics server."""
    server = get_metrics_server()
    server.start()
