"""
Metrics Collection for the Occurrence Engine.

Provides in-process counters for generation, races and the background sweep.
"""

from typing import Dict, Any
from collections import defaultdict
from datetime import datetime, timezone
import threading


class MetricsCollector:
    """Collects and manages metrics for the occurrence engine."""

    def __init__(self):
        """Initialize metrics collector."""
        self.metrics = defaultdict(int)
        self.lock = threading.Lock()

        self.metrics["occurrences_generated_total"] = 0
        self.metrics["occurrence_races_total"] = 0
        self.metrics["rules_swept_total"] = 0
        self.metrics["sweep_errors_total"] = 0
        self.metrics["occurrences_cleaned_total"] = 0

    def increment_counter(self, metric_name: str, value: int = 1):
        """Increment a counter metric."""
        with self.lock:
            self.metrics[metric_name] += value

    def get_metrics(self) -> Dict[str, Any]:
        """Get current metrics values."""
        with self.lock:
            return {
                "counters": dict(self.metrics),
                "timestamp": datetime.now(timezone.utc).isoformat()
            }

    def occurrences_generated(self, count: int):
        self.increment_counter("occurrences_generated_total", count)

    def occurrence_race(self):
        """Record an insert that lost a uniqueness race."""
        self.increment_counter("occurrence_races_total")

    def rule_swept(self):
        self.increment_counter("rules_swept_total")

    def sweep_error(self):
        self.increment_counter("sweep_errors_total")

    def occurrences_cleaned(self, count: int):
        self.increment_counter("occurrences_cleaned_total", count)


# Global metrics instance
metrics_collector = MetricsCollector()
