"""Metrics service for tracking generation metrics across calls.

Keeps metrics in memory; callers export them as they see fit.
"""

import logging
import threading
from typing import Any

from coloringengine.models.metrics import GenerationMetrics

logger = logging.getLogger(__name__)


class MetricsService:
    """Service for aggregating generation metrics."""

    def __init__(self):
        self._metrics: list[GenerationMetrics] = []
        self._lock = threading.Lock()

    def record(self, metrics: GenerationMetrics) -> None:
        """
        Record one orchestration's metrics.

        Args:
            metrics: The metrics to record
        """
        with self._lock:
            self._metrics.append(metrics)
        logger.debug(
            f"📊 [MetricsService] Recorded metrics for {metrics.request_id}: "
            f"success={metrics.success}, duration={metrics.duration_ms}ms, "
            f"cost=${metrics.estimated_cost_usd or 0:.4f}"
        )

    def get_all(self) -> list[GenerationMetrics]:
        """Get all recorded metrics."""
        with self._lock:
            return self._metrics.copy()

    def clear(self) -> None:
        """Clear all recorded metrics."""
        with self._lock:
            self._metrics.clear()

    def summary(self) -> dict[str, Any]:
        """Get a summary of recorded metrics."""
        metrics = self.get_all()
        if not metrics:
            return {
                "count": 0,
                "success_count": 0,
                "failure_count": 0,
                "total_duration_ms": 0,
                "total_cost_usd": 0.0,
                "avg_duration_ms": 0,
                "error_codes": {},
            }

        total_duration = sum(m.duration_ms for m in metrics)
        total_cost = sum(m.estimated_cost_usd or 0 for m in metrics)
        success_count = sum(1 for m in metrics if m.success)

        error_codes: dict[str, int] = {}
        for m in metrics:
            if m.error_code is not None:
                error_codes[m.error_code.value] = error_codes.get(m.error_code.value, 0) + 1

        return {
            "count": len(metrics),
            "success_count": success_count,
            "failure_count": len(metrics) - success_count,
            "total_duration_ms": total_duration,
            "total_cost_usd": round(total_cost, 4),
            "avg_duration_ms": total_duration / len(metrics),
            "error_codes": error_codes,
        }
