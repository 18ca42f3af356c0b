"""
Prometheus 메트릭 정의 모듈

익스포터가 노출하는 큐 메트릭과 익스포터 자체 상태 메트릭을 정의합니다.
메트릭은 레지스트리에 직접 등록하지 않고 수집기(QueueMetricsCollector)를 통해 노출됩니다.
"""

from typing import List, Sequence

from prometheus_client import Counter, Gauge
from prometheus_client.registry import Collector

DEFAULT_NAMESPACE = "rabbitmq_custom"

QUEUE_LABELS = ["queue_name", "vhost"]
QUEUE_STATE_LABELS = ["queue_name", "vhost", "state"]
QUEUE_SEVERITY_LABELS = ["queue_name", "vhost", "severity"]


class ExporterMetrics:
    """익스포터 메트릭 모음"""

    def __init__(self, namespace: str = DEFAULT_NAMESPACE):
        """
        메트릭 초기화

        Args:
            namespace: 메트릭 이름 접두사
        """
        self.namespace = namespace

        # 큐 메시지 수
        self.queue_messages = self._gauge(
            "queue_messages",
            "Total number of messages in the queue",
            QUEUE_STATE_LABELS
        )
        self.queue_messages_ready = self._gauge(
            "queue_messages_ready",
            "Number of messages ready to be delivered",
            QUEUE_LABELS
        )
        self.queue_messages_unacknowledged = self._gauge(
            "queue_messages_unacknowledged",
            "Number of messages that have been delivered but not yet acknowledged",
            QUEUE_LABELS
        )

        # 메시지 처리율 (초당)
        self.queue_message_publish_rate = self._gauge(
            "queue_message_publish_rate",
            "Message publish rate per second",
            QUEUE_LABELS
        )
        self.queue_message_deliver_rate = self._gauge(
            "queue_message_deliver_rate",
            "Message delivery rate per second",
            QUEUE_LABELS
        )
        self.queue_message_ack_rate = self._gauge(
            "queue_message_ack_rate",
            "Message acknowledgment rate per second",
            QUEUE_LABELS
        )
        self.queue_message_redeliver_rate = self._gauge(
            "queue_message_redeliver_rate",
            "Message redelivery rate per second",
            QUEUE_LABELS
        )

        # 컨슈머
        self.queue_consumers = self._gauge(
            "queue_consumers",
            "Number of consumers connected to the queue",
            QUEUE_LABELS
        )
        self.queue_consumer_utilisation = self._gauge(
            "queue_consumer_utilisation",
            "Consumer utilisation as a fraction (0-1)",
            QUEUE_LABELS
        )
        self.queue_consumer_capacity = self._gauge(
            "queue_consumer_capacity",
            "Consumer capacity as a fraction (0-1), utilisation when the broker does not report it",
            QUEUE_LABELS
        )

        # 큐 상태
        self.queue_state = self._gauge(
            "queue_state",
            "Queue state indicator (1 for current state, 0 otherwise)",
            QUEUE_STATE_LABELS
        )
        self.queue_is_dead_letter = self._gauge(
            "queue_is_dead_letter",
            "Indicates if the queue is a dead letter queue (1 if true, 0 if false)",
            QUEUE_LABELS
        )

        # 큐 헬스
        self.queue_health_score = self._gauge(
            "queue_health_score",
            "Queue health score (0-100, higher is better)",
            QUEUE_LABELS
        )
        self.queue_depth_alert = self._gauge(
            "queue_depth_alert",
            "Queue depth alert indicator (1 if depth > threshold, 0 otherwise)",
            QUEUE_SEVERITY_LABELS
        )
        self.queue_utilization_alert = self._gauge(
            "queue_utilization_alert",
            "Queue utilization alert indicator (1 if utilization < threshold, 0 otherwise)",
            QUEUE_SEVERITY_LABELS
        )

        # 익스포터 상태
        self.scrape_duration_seconds = self._gauge(
            "scrape_duration_seconds",
            "Duration of the last scrape in seconds"
        )
        self.scrape_errors_total = Counter(
            f"{namespace}_scrape_errors_total",
            "Total number of scrapes served from a stale or failed cache",
            ["error_type"],
            registry=None
        )
        self.cache_age_seconds = self._gauge(
            "cache_age_seconds",
            "Seconds since the last successful collection (-1 if none yet)"
        )
        self.cache_valid = self._gauge(
            "cache_valid",
            "Whether the most recent collection succeeded (1 if true, 0 if false)"
        )

        # 서킷 브레이커
        self.circuit_breaker_state = self._gauge(
            "circuit_breaker_state",
            "Circuit breaker state (0=closed, 1=open)",
            ["endpoint"]
        )
        self.circuit_breaker_failures_total = Counter(
            f"{namespace}_circuit_breaker_failures_total",
            "Total number of failures recorded by the circuit breaker",
            ["endpoint"],
            registry=None
        )

    def _gauge(self, name: str, documentation: str, labels: Sequence[str] = ()) -> Gauge:
        return Gauge(
            f"{self.namespace}_{name}",
            documentation,
            list(labels),
            registry=None
        )

    def queue_collectors(self) -> List[Gauge]:
        """큐 단위 메트릭 목록 (스크랩마다 초기화 대상)"""
        return [
            self.queue_messages,
            self.queue_messages_ready,
            self.queue_messages_unacknowledged,
            self.queue_message_publish_rate,
            self.queue_message_deliver_rate,
            self.queue_message_ack_rate,
            self.queue_message_redeliver_rate,
            self.queue_consumers,
            self.queue_consumer_utilisation,
            self.queue_consumer_capacity,
            self.queue_state,
            self.queue_is_dead_letter,
            self.queue_health_score,
            self.queue_depth_alert,
            self.queue_utilization_alert,
        ]

    def all_collectors(self) -> List[Collector]:
        """노출 대상 전체 메트릭 목록"""
        return self.queue_collectors() + [
            self.scrape_duration_seconds,
            self.scrape_errors_total,
            self.cache_age_seconds,
            self.cache_valid,
            self.circuit_breaker_state,
            self.circuit_breaker_failures_total,
        ]

    def reset_queue_metrics(self) -> None:
        """큐 단위 메트릭의 모든 레이블 조합 제거"""
        for gauge in self.queue_collectors():
            gauge.clear()
