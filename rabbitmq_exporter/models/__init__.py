"""
데이터 모델 패키지

익스포터의 핵심 데이터 모델들을 정의합니다.
"""

from .enums import AlertSeverity, QueueState
from .queue import (
    BrokerErrorBody,
    MessageStats,
    QueueRecord,
    RateDetails,
    Snapshot,
    parse_queue_list,
)

__all__ = [
    "AlertSeverity",
    "BrokerErrorBody",
    "MessageStats",
    "QueueRecord",
    "QueueState",
    "RateDetails",
    "Snapshot",
    "parse_queue_list",
]
