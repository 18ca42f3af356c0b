"""
백그라운드 수집기 모듈

고정 간격으로 관리 API 를 호출하고 결과를 스냅샷 캐시에 반영합니다.
스크랩 요청과 독립적으로 동작하므로 스크랩 지연이 API 지연에 묶이지 않습니다.
"""

import asyncio
import time
from typing import Callable, Optional

from ..exceptions import BrokerException, ExporterException
from ..models.queue import Snapshot
from ..utils.logging import get_logger
from .cache import SnapshotCache
from .client import RabbitMQClient

logger = get_logger(__name__)


class BackgroundPoller:
    """백그라운드 큐 수집기"""

    def __init__(
        self,
        client: RabbitMQClient,
        cache: SnapshotCache,
        interval: float,
        poll_timeout: float = 30.0,
        stale_after: float = 60.0,
        error_log_interval: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        수집기 초기화

        Args:
            client: 관리 API 클라이언트
            cache: 결과를 기록할 스냅샷 캐시
            interval: 수집 간격 (초)
            poll_timeout: 수집 1회당 데드라인 (초, 수집 간격과 무관)
            stale_after: 마지막 성공 이후 경고를 시작할 시간 (초)
            error_log_interval: 경고 로그 최소 간격 (초)
            clock: 시간 함수 (테스트용 주입)
        """
        if interval <= 0:
            raise ValueError(f"수집 간격은 0보다 커야 합니다: {interval}")

        self.client = client
        self.cache = cache
        self.interval = interval
        self.poll_timeout = poll_timeout
        self.stale_after = stale_after
        self.error_log_interval = error_log_interval
        self._clock = clock

        self._task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()

        self._started_at: Optional[float] = None
        self._last_success: Optional[float] = None
        self._last_error_log: Optional[float] = None
        self._consecutive_failures = 0
        self._poll_count = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def last_success_time(self) -> Optional[float]:
        return self._last_success

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    @property
    def poll_count(self) -> int:
        return self._poll_count

    def start(self) -> None:
        """수집 루프 시작 (이미 실행 중이면 무시)"""
        if self.is_running:
            return

        self._stop_event = asyncio.Event()
        self._started_at = self._clock()
        self._task = asyncio.create_task(self._run(), name="rabbitmq-exporter-poller")
        logger.info(f"백그라운드 수집 시작: {self.interval}초 간격")

    async def stop(self) -> None:
        """
        수집 루프 정지

        진행 중인 수집은 자체 데드라인 안에서 끝나도록 두고,
        루프가 완전히 종료될 때까지 기다립니다.
        """
        if self._task is None:
            return

        self._stop_event.set()
        try:
            await self._task
        finally:
            self._task = None
            logger.info("백그라운드 수집 정지 완료")

    async def _run(self) -> None:
        """고정 주기 수집 루프"""
        loop = asyncio.get_running_loop()
        next_tick = loop.time()

        while not self._stop_event.is_set():
            await self.poll_once()

            next_tick += self.interval
            now = loop.time()
            if next_tick <= now:
                # 수집이 간격보다 오래 걸리면 밀린 틱은 건너뜀
                skipped = int((now - next_tick) // self.interval) + 1
                next_tick += skipped * self.interval
                logger.debug(f"수집 지연으로 {skipped}개 주기 건너뜀")

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=next_tick - now)
            except asyncio.TimeoutError:
                pass

    async def poll_once(self) -> Snapshot:
        """
        1회 수집 후 결과를 캐시에 반영

        모든 수집 오류는 여기서 흡수되어 스냅샷의 오류 필드로만 전달됩니다.

        Returns:
            Snapshot: 반영된 스냅샷
        """
        self._poll_count += 1
        if self._started_at is None:
            self._started_at = self._clock()

        try:
            queues = await self.client.fetch_queues(self.poll_timeout)
        except ExporterException as e:
            snapshot = self.cache.publish(None, e)
            self._on_failure(e)
            return snapshot
        except Exception as e:
            logger.exception(f"예상치 못한 수집 오류: {e}")
            error = BrokerException(f"예상치 못한 수집 오류: {type(e).__name__}: {e}")
            snapshot = self.cache.publish(None, error)
            self._on_failure(error)
            return snapshot

        snapshot = self.cache.publish(queues)
        self._on_success(len(queues))
        return snapshot

    def _on_success(self, queue_count: int) -> None:
        if self._last_error_log is not None:
            logger.info(f"백그라운드 수집 복구: {self._consecutive_failures}회 연속 실패 후 성공")

        self._last_success = self._clock()
        self._last_error_log = None
        self._consecutive_failures = 0
        logger.debug(f"백그라운드 수집 완료: 큐 {queue_count}개")

    def _on_failure(self, error: ExporterException) -> None:
        self._consecutive_failures += 1
        logger.debug(f"백그라운드 수집 실패 ({self._consecutive_failures}회 연속): {error}")

        now = self._clock()
        reference = self._last_success if self._last_success is not None else self._started_at

        if now - reference <= self.stale_after:
            return
        if self._last_error_log is not None and now - self._last_error_log < self.error_log_interval:
            return

        self._last_error_log = now
        logger.warning(
            f"백그라운드 수집 오류 지속 ({now - reference:.0f}초 동안 성공 없음, "
            f"{self._consecutive_failures}회 연속 실패): {error}"
        )
