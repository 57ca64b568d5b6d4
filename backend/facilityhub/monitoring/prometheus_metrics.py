"""
Prometheus metrics module for FacilityHub.

Service timings come from the @measure_operation decorator; booking and
inventory counters are recorded by the services that own those rules.
"""

from threading import Lock
from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Create a custom registry to avoid conflicts with default metrics
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "facilityhub_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "facilityhub_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "facilityhub_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

booking_conflicts_total = Counter(
    "facilityhub_booking_conflicts_total",
    "Booking requests rejected because the facility window was taken",
    ["source"],  # check | constraint
    registry=REGISTRY,
)

inventory_rejections_total = Counter(
    "facilityhub_inventory_rejections_total",
    "Inventory decrements rejected",
    ["reason"],  # insufficient | not_found
    registry=REGISTRY,
)

facility_lock_total = Counter(
    "facilityhub_facility_lock_total",
    "Facility mutex operations by outcome",
    ["action", "outcome"],
    registry=REGISTRY,
)

event_publish_failures_total = Counter(
    "facilityhub_event_publish_failures_total",
    "Domain events that could not be published",
    ["event_type"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Manages Prometheus metrics collection and exposure."""

    _cache_lock: Lock = Lock()
    _cache_payload: Optional[bytes] = None

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Record service operation metrics from @measure_operation decorator.

        Args:
            service: Service name (e.g., 'BookingService')
            operation: Operation/method name (e.g., 'create_booking')
            duration: Operation duration in seconds
            status: Operation status ('success' or 'error')
            error_type: Type of error if status is 'error'
        """
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()

        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_booking_conflict(source: str = "check") -> None:
        booking_conflicts_total.labels(source=source).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_inventory_rejection(reason: str) -> None:
        inventory_rejections_total.labels(reason=reason).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_facility_lock(action: str, outcome: str) -> None:
        facility_lock_total.labels(action=action, outcome=outcome).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_event_publish_failure(event_type: str) -> None:
        event_publish_failures_total.labels(event_type=event_type).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def get_metrics() -> bytes:
        """
        Generate Prometheus metrics in exposition format.

        The payload is cached until the next recorded sample.
        """
        with PrometheusMetrics._cache_lock:
            if PrometheusMetrics._cache_payload is None:
                PrometheusMetrics._cache_payload = cast(bytes, generate_latest(REGISTRY))
            return PrometheusMetrics._cache_payload

    @staticmethod
    def get_content_type() -> str:
        """Get the content type for Prometheus metrics."""
        return cast(str, CONTENT_TYPE_LATEST)

    @staticmethod
    def _invalidate_cache() -> None:
        with PrometheusMetrics._cache_lock:
            PrometheusMetrics._cache_payload = None


prometheus_metrics = PrometheusMetrics()
