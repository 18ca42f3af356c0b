"""
열거형 정의 모듈

익스포터에서 사용되는 상수 값들을 열거형으로 정의합니다.
"""

from enum import Enum


class QueueState(Enum):
    """큐 상태 열거형"""
    IDLE = "idle"
    ACTIVE = "active"
    BLOCKED = "blocked"


class AlertSeverity(Enum):
    """알림 심각도 열거형"""
    WARNING = "warning"
    CRITICAL = "critical"
