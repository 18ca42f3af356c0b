"""
RabbitMQ 관리 API 수집 패키지

관리 API 클라이언트, 서킷 브레이커, 스냅샷 캐시, 백그라운드 수집기를 제공합니다.
"""

from .cache import SnapshotCache
from .circuit_breaker import CircuitBreaker, CircuitBreakerStatus
from .client import RabbitMQClient
from .poller import BackgroundPoller

__all__ = [
    "BackgroundPoller",
    "CircuitBreaker",
    "CircuitBreakerStatus",
    "RabbitMQClient",
    "SnapshotCache",
]
