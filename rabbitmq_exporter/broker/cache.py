"""
스냅샷 캐시 모듈

백그라운드 수집기가 기록하고 스크랩 요청이 읽는 마지막 큐 스냅샷을 보관합니다.
"""

import threading
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..exceptions import ExporterException
from ..models.queue import QueueRecord, Snapshot


class SnapshotCache:
    """단일 기록자, 다중 판독자 스냅샷 캐시

    스냅샷은 불변 객체이므로 잠금은 교체 순간에만 필요하며,
    판독자는 항상 완전한 스냅샷을 받습니다.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        """
        캐시 초기화

        Args:
            clock: 현재 시각 함수 (테스트용 주입)
        """
        self._clock = clock
        self._lock = threading.Lock()
        self._snapshot = Snapshot.empty()

    def get(self) -> Snapshot:
        """
        현재 스냅샷 반환 (네트워크 호출 없음)

        Returns:
            Snapshot: 현재 스냅샷
        """
        with self._lock:
            return self._snapshot

    def publish(
        self,
        queues: Optional[Sequence[QueueRecord]],
        error: Optional[ExporterException] = None,
    ) -> Snapshot:
        """
        수집 결과 반영

        성공 시 큐 목록과 시각을 통째로 교체하고, 실패 시 이전 큐 목록을
        유지한 채 유효 플래그와 오류만 갱신합니다.

        Args:
            queues: 수집된 큐 목록 (실패 시 무시)
            error: 수집 오류 (None이면 성공)

        Returns:
            Snapshot: 새로 반영된 스냅샷
        """
        with self._lock:
            if error is None:
                self._snapshot = Snapshot.success(queues or (), self._clock())
            else:
                self._snapshot = self._snapshot.failed(error)
            return self._snapshot
