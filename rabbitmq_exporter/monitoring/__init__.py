"""
모니터링 패키지

파생 지표 계산과 Prometheus 메트릭 노출을 담당합니다.
"""

from .collector import QueueMetricsCollector
from .derived import (
    calculate_health_score,
    classify_queue_state,
    depth_alerts,
    is_dead_letter_queue,
    utilisation_alerts,
)
from .metrics import ExporterMetrics

__all__ = [
    "ExporterMetrics",
    "QueueMetricsCollector",
    "calculate_health_score",
    "classify_queue_state",
    "depth_alerts",
    "is_dead_letter_queue",
    "utilisation_alerts",
]
