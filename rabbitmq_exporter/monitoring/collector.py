"""
큐 메트릭 수집기 모듈

스크랩 요청마다 스냅샷 캐시를 읽어 파생 지표를 계산하고 메트릭에 반영합니다.
스크랩 경로는 관리 API 를 호출하지 않으므로 지연은 메모리 읽기 수준으로 제한됩니다.
"""

import threading
import time
from datetime import datetime
from typing import Callable, List, Optional

from prometheus_client.metrics_core import Metric
from prometheus_client.registry import Collector

from ..broker.cache import SnapshotCache
from ..broker.circuit_breaker import CircuitBreaker
from ..models.enums import QueueState
from ..models.queue import QueueRecord, Snapshot
from ..utils.logging import get_logger
from .derived import (
    calculate_health_score,
    classify_queue_state,
    depth_alerts,
    is_dead_letter_queue,
    utilisation_alerts,
)
from .metrics import ExporterMetrics

logger = get_logger(__name__)

STALE_CACHE_ERROR = "stale_cache"


class QueueMetricsCollector(Collector):
    """스냅샷 기반 큐 메트릭 수집기 (prometheus_client 커스텀 수집기)"""

    def __init__(
        self,
        cache: SnapshotCache,
        metrics: ExporterMetrics,
        interval: float,
        circuit_breaker: Optional[CircuitBreaker] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        수집기 초기화

        Args:
            cache: 스냅샷 캐시
            metrics: 익스포터 메트릭
            interval: 백그라운드 수집 간격 (초, 캐시 신선도 판단 기준)
            circuit_breaker: 상태를 노출할 서킷 브레이커
            clock: 현재 시각 함수 (테스트용 주입)
        """
        self.cache = cache
        self.metrics = metrics
        self.interval = interval
        self.circuit_breaker = circuit_breaker
        self._clock = clock
        self._render_lock = threading.Lock()
        self._reported_failures = 0

    def describe(self) -> List[Metric]:
        return [
            metric
            for collector in self.metrics.all_collectors()
            for metric in collector.describe()
        ]

    def collect(self) -> List[Metric]:
        """스크랩 1회: 캐시를 읽어 렌더링한 뒤 전체 메트릭 반환"""
        with self._render_lock:
            self.render(self.cache.get())
            return [
                metric
                for collector in self.metrics.all_collectors()
                for metric in collector.collect()
            ]

    def is_stale(self, snapshot: Snapshot) -> bool:
        """
        스냅샷 신선도 판단

        Args:
            snapshot: 스냅샷

        Returns:
            bool: 마지막 수집이 실패했거나 수집 간격의 2배보다 오래되었으면 True
        """
        if not snapshot.valid:
            return True
        age = snapshot.age(self._clock())
        return age is None or age > self.interval * 2

    def render(self, snapshot: Snapshot) -> None:
        """
        스냅샷을 메트릭으로 렌더링

        이전 큐 메트릭은 모두 지운 뒤 다시 채우므로 사라진 큐의 시계열은 남지 않습니다.
        캐시가 오래되었어도 보관 중인 큐는 그대로 렌더링하고 오류 카운터만 증가시킵니다.

        Args:
            snapshot: 렌더링할 스냅샷
        """
        start = time.perf_counter()

        self.metrics.reset_queue_metrics()

        if self.is_stale(snapshot):
            error_type = getattr(snapshot.error, "error_type", "unknown") \
                if snapshot.error is not None else STALE_CACHE_ERROR
            self.metrics.scrape_errors_total.labels(error_type=error_type).inc()
            logger.debug(f"오래된 캐시로 스크랩 응답: {error_type} (큐 {len(snapshot.queues)}개)")

        for queue in snapshot.queues:
            self._render_queue(queue)

        self._render_cache_state(snapshot)
        self._render_circuit_breaker()

        self.metrics.scrape_duration_seconds.set(time.perf_counter() - start)

    def _render_queue(self, queue: QueueRecord) -> None:
        metrics = self.metrics
        name, vhost = queue.name, queue.vhost
        state = classify_queue_state(queue)

        metrics.queue_messages.labels(name, vhost, state.value).set(queue.messages)
        metrics.queue_messages_ready.labels(name, vhost).set(queue.messages_ready)
        metrics.queue_messages_unacknowledged.labels(name, vhost).set(queue.messages_unacknowledged)

        metrics.queue_message_publish_rate.labels(name, vhost).set(queue.publish_rate)
        metrics.queue_message_deliver_rate.labels(name, vhost).set(queue.deliver_rate)
        metrics.queue_message_ack_rate.labels(name, vhost).set(queue.ack_rate)
        metrics.queue_message_redeliver_rate.labels(name, vhost).set(queue.redeliver_rate)

        metrics.queue_consumers.labels(name, vhost).set(queue.consumers)
        metrics.queue_consumer_utilisation.labels(name, vhost).set(queue.consumer_utilisation)
        metrics.queue_consumer_capacity.labels(name, vhost).set(queue.effective_consumer_capacity)

        for candidate in QueueState:
            metrics.queue_state.labels(name, vhost, candidate.value).set(
                1.0 if candidate is state else 0.0
            )

        metrics.queue_is_dead_letter.labels(name, vhost).set(
            1.0 if is_dead_letter_queue(queue) else 0.0
        )
        metrics.queue_health_score.labels(name, vhost).set(calculate_health_score(queue))

        for severity, firing in depth_alerts(queue).items():
            metrics.queue_depth_alert.labels(name, vhost, severity.value).set(1.0 if firing else 0.0)
        for severity, firing in utilisation_alerts(queue).items():
            metrics.queue_utilization_alert.labels(name, vhost, severity.value).set(
                1.0 if firing else 0.0
            )

    def _render_cache_state(self, snapshot: Snapshot) -> None:
        age = snapshot.age(self._clock())
        self.metrics.cache_age_seconds.set(age if age is not None else -1)
        self.metrics.cache_valid.set(1.0 if snapshot.valid else 0.0)

    def _render_circuit_breaker(self) -> None:
        if self.circuit_breaker is None:
            return

        endpoint = self.circuit_breaker.name
        status = self.circuit_breaker.status()
        self.metrics.circuit_breaker_state.labels(endpoint=endpoint).set(
            1.0 if status.is_open else 0.0
        )

        # 브레이커 누적 실패 수와 카운터를 맞춤
        total = self.circuit_breaker.total_failures
        counter = self.metrics.circuit_breaker_failures_total.labels(endpoint=endpoint)
        if total > self._reported_failures:
            counter.inc(total - self._reported_failures)
        self._reported_failures = total
