"""
Metrics Collection for vSphere Reconciler

Counters for remote operations issued during reconciliation passes.
"""

import time
from typing import Dict, Any
from collections import defaultdict, deque


class MetricsCollector:
    """Collect and aggregate reconciliation metrics."""
    
    def __init__(self):
        self.counters: Dict[str, int] = defaultdict(int)
        self.histograms: Dict[str, deque] = defaultdict(lambda: deque(maxlen=1000))
    
    def increment(self, metric: str, value: int = 1) -> None:
        """Increment a counter metric."""
        self.counters[metric] += value
    
    def record_histogram(self, metric: str, value: float) -> None:
        """Record a histogram value."""
        self.histograms[metric].append(value)
    
    def get_metrics(self) -> Dict[str, Any]:
        """Get all collected metrics."""
        return {
            'counters': dict(self.counters),
            'histograms': {k: list(v) for k, v in self.histograms.items()},
            'timestamp': time.time()
        }

    def reset(self) -> None:
        """Drop all collected values."""
        self.counters.clear()
        self.histograms.clear()


# Global metrics collector
metrics = MetricsCollector()
