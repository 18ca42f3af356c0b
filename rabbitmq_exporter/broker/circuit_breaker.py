"""
서킷 브레이커 모듈

관리 API 호출 연속 실패를 추적하고, 임계치를 넘으면 대기 시간 동안
네트워크 호출 없이 요청을 차단합니다.
"""

import threading
import time
from typing import Callable, NamedTuple, Optional

from ..utils.logging import get_logger

logger = get_logger(__name__)


class CircuitBreakerStatus(NamedTuple):
    """서킷 브레이커 상태 조회 결과"""
    is_open: bool
    failure_count: int
    last_failure_time: Optional[float]


class CircuitBreaker:
    """닫힘/열림 두 상태만 가지는 서킷 브레이커

    열린 서킷은 별도 타이머 없이 ``allow_request`` 호출 시점에
    대기 시간 경과 여부를 확인하여 닫힙니다.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        reset_timeout: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        name: str = "rabbitmq_api",
    ):
        """
        서킷 브레이커 초기화

        Args:
            failure_threshold: 서킷을 여는 연속 실패 횟수
            reset_timeout: 서킷이 열린 뒤 다시 허용하기까지의 시간 (초)
            clock: 시간 함수 (테스트용 주입)
            name: 엔드포인트 이름 (메트릭 레이블)
        """
        if failure_threshold < 1:
            raise ValueError(f"failure_threshold 는 1 이상이어야 합니다: {failure_threshold}")
        if reset_timeout < 0:
            raise ValueError(f"reset_timeout 은 음수일 수 없습니다: {reset_timeout}")

        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self.name = name
        self._clock = clock
        self._lock = threading.Lock()

        self._failure_count = 0
        self._last_failure_time: Optional[float] = None
        self._open = False
        self._total_failures = 0

    def allow_request(self) -> bool:
        """
        요청 허용 여부 확인

        대기 시간이 지난 열린 서킷은 이 호출에서 닫히고 실패 횟수가 초기화됩니다.

        Returns:
            bool: 요청을 보내도 되면 True
        """
        with self._lock:
            if not self._open:
                return True

            if not self._cooldown_elapsed():
                return False

            self._open = False
            self._failure_count = 0

        logger.info(f"서킷 브레이커 대기 시간 경과, 요청 재허용: {self.name}")
        return True

    def record_success(self) -> None:
        """성공 기록 (실패 횟수 초기화, 서킷 닫기)"""
        with self._lock:
            was_open = self._open
            self._failure_count = 0
            self._open = False

        if was_open:
            logger.info(f"서킷 브레이커 닫힘: {self.name}")

    def record_failure(self) -> None:
        """실패 기록 (임계치 도달 시 서킷 열기)"""
        with self._lock:
            self._failure_count += 1
            self._total_failures += 1
            self._last_failure_time = self._clock()

            opened = not self._open and self._failure_count >= self.failure_threshold
            if self._failure_count >= self.failure_threshold:
                self._open = True
            failure_count = self._failure_count

        if opened:
            logger.warning(
                f"서킷 브레이커 열림: {self.name} "
                f"(연속 실패 {failure_count}회, {self.reset_timeout}초 동안 요청 차단)"
            )

    def _cooldown_elapsed(self) -> bool:
        # 잠금을 보유한 상태에서만 호출
        if self._last_failure_time is None:
            return True
        return self._clock() - self._last_failure_time >= self.reset_timeout

    def status(self) -> CircuitBreakerStatus:
        """
        현재 상태 조회

        상태를 변경하지 않으며, 대기 시간이 지난 서킷은 닫힌 것으로 보고합니다.
        실패 횟수 초기화는 다음 ``allow_request`` 호출에서 일어납니다.

        Returns:
            CircuitBreakerStatus: (열림 여부, 연속 실패 횟수, 마지막 실패 시각)
        """
        with self._lock:
            is_open = self._open and not self._cooldown_elapsed()
            return CircuitBreakerStatus(is_open, self._failure_count, self._last_failure_time)

    @property
    def total_failures(self) -> int:
        """생성 이후 누적 실패 횟수"""
        with self._lock:
            return self._total_failures
