"""
파생 지표 계산 모듈

큐 레코드로부터 상태, 데드레터 여부, 헬스 점수, 알림 값을 계산합니다.
모든 함수는 순수 함수이며 결과를 캐시하지 않습니다.
"""

from typing import Dict

from ..models.enums import AlertSeverity, QueueState
from ..models.queue import QueueRecord

DEAD_LETTER_ARGUMENT = "x-dead-letter-exchange"
DEAD_LETTER_SUFFIXES = (".dlq", ".dead", ".deadletter")

# 큐 깊이 임계치 (메시지 수)
DEPTH_WARNING_THRESHOLD = 1000
DEPTH_CRITICAL_THRESHOLD = 10000

# 컨슈머 활용률 임계치
UTILISATION_WARNING_THRESHOLD = 0.10
UTILISATION_CRITICAL_THRESHOLD = 0.01

# 재전달률 임계치 (초당)
REDELIVER_WARNING_THRESHOLD = 1.0
REDELIVER_CRITICAL_THRESHOLD = 5.0

# 상태 분류 임계치 (초당)
IDLE_PUBLISH_RATE = 0.01
BLOCKED_DELIVER_RATE = 0.1
BLOCKED_PUBLISH_RATE = 1.0

MAX_HEALTH_SCORE = 100.0


def classify_queue_state(queue: QueueRecord) -> QueueState:
    """
    큐 상태 분류

    - idle: 컨슈머가 없고 메시지가 없거나 발행이 거의 없음
    - blocked: 컨슈머와 메시지가 있지만 전달은 멈추고 발행은 계속됨
    - active: 그 밖의 경우

    발행률이나 전달률 통계가 없는 큐는 해당 비율을 0으로 보고 분류합니다.
    통계 없이 메시지만 쌓인 큐는 idle, 전달률 없이 발행이 계속되는 큐는
    blocked 로 분류되며 의도된 동작입니다.

    Args:
        queue: 큐 레코드

    Returns:
        QueueState: 큐 상태
    """
    if queue.consumers == 0 and (queue.messages == 0 or queue.publish_rate < IDLE_PUBLISH_RATE):
        return QueueState.IDLE

    if (
        queue.consumers > 0
        and queue.messages > 0
        and queue.deliver_rate < BLOCKED_DELIVER_RATE
        and queue.publish_rate > BLOCKED_PUBLISH_RATE
    ):
        return QueueState.BLOCKED

    return QueueState.ACTIVE


def is_dead_letter_queue(queue: QueueRecord) -> bool:
    """
    데드레터 큐 여부 판별

    Args:
        queue: 큐 레코드

    Returns:
        bool: 데드레터 익스체인지 인자가 있거나 이름이 데드레터 접미사로 끝나면 True
    """
    if DEAD_LETTER_ARGUMENT in queue.arguments:
        return True
    return queue.name.endswith(DEAD_LETTER_SUFFIXES)


def calculate_health_score(queue: QueueRecord) -> float:
    """
    큐 헬스 점수 계산 (0~100, 높을수록 양호)

    Args:
        queue: 큐 레코드

    Returns:
        float: 헬스 점수
    """
    score = MAX_HEALTH_SCORE

    if queue.messages > DEPTH_WARNING_THRESHOLD:
        score -= 20
    if queue.messages > DEPTH_CRITICAL_THRESHOLD:
        score -= 30

    if queue.consumer_utilisation < UTILISATION_WARNING_THRESHOLD:
        score -= 25
    if queue.consumer_utilisation < UTILISATION_CRITICAL_THRESHOLD:
        score -= 40

    redeliver_rate = queue.redeliver_rate
    if redeliver_rate > REDELIVER_WARNING_THRESHOLD:
        score -= 15
    if redeliver_rate > REDELIVER_CRITICAL_THRESHOLD:
        score -= 25

    return max(score, 0.0)


def depth_alerts(queue: QueueRecord) -> Dict[AlertSeverity, bool]:
    """큐 깊이 알림 (심각도별 발생 여부)"""
    return {
        AlertSeverity.WARNING: queue.messages > DEPTH_WARNING_THRESHOLD,
        AlertSeverity.CRITICAL: queue.messages > DEPTH_CRITICAL_THRESHOLD,
    }


def utilisation_alerts(queue: QueueRecord) -> Dict[AlertSeverity, bool]:
    """컨슈머 활용률 알림 (심각도별 발생 여부)"""
    return {
        AlertSeverity.WARNING: queue.consumer_utilisation < UTILISATION_WARNING_THRESHOLD,
        AlertSeverity.CRITICAL: queue.consumer_utilisation < UTILISATION_CRITICAL_THRESHOLD,
    }
