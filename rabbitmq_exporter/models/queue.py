"""
큐 데이터 모델 모듈

RabbitMQ 관리 API 응답과 캐시 스냅샷의 데이터 구조를 정의합니다.
"""

import json
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from ..exceptions import ExporterException

BROKER_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class RateDetails(BaseModel):
    """초당 처리율 상세 정보"""

    model_config = ConfigDict(frozen=True, extra="ignore")

    rate: float = Field(default=0.0, description="초당 처리율")

    @field_validator("rate", mode="before")
    @classmethod
    def _null_rate(cls, value: Any) -> Any:
        return 0.0 if value is None else value


class MessageStats(BaseModel):
    """큐 메시지 통계"""

    model_config = ConfigDict(frozen=True, extra="ignore")

    publish: int = Field(default=0, description="누적 발행 메시지 수")
    publish_details: Optional[RateDetails] = None
    deliver: int = Field(default=0, description="누적 전달 메시지 수")
    deliver_details: Optional[RateDetails] = None
    ack: int = Field(default=0, description="누적 확인 메시지 수")
    ack_details: Optional[RateDetails] = None
    redeliver: int = Field(default=0, description="누적 재전달 메시지 수")
    redeliver_details: Optional[RateDetails] = None

    @field_validator("publish", "deliver", "ack", "redeliver", mode="before")
    @classmethod
    def _null_counter(cls, value: Any) -> Any:
        return 0 if value is None else value


class QueueRecord(BaseModel):
    """특정 시점의 큐 상태 데이터 모델

    관리 API 응답에서 한 번 생성된 뒤에는 변경되지 않습니다.
    상태, 헬스 점수, 알림 값은 여기에 저장하지 않고 매 스크랩마다 계산합니다.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = Field(..., description="큐 이름")
    vhost: str = Field(default="/", description="가상 호스트")
    messages: int = Field(default=0, description="전체 메시지 수", ge=0)
    messages_ready: int = Field(default=0, description="전달 대기 메시지 수", ge=0)
    messages_unacknowledged: int = Field(default=0, description="미확인 메시지 수", ge=0)
    consumers: int = Field(default=0, description="컨슈머 수", ge=0)
    consumer_utilisation: float = Field(
        default=0.0,
        description="컨슈머 활용률 (보통 0~1, 범위 보정 없음)"
    )
    consumer_capacity: Optional[float] = Field(
        default=None,
        description="컨슈머 수용률 (RabbitMQ 3.12 이상에서만 보고)"
    )
    message_stats: Optional[MessageStats] = None
    arguments: Dict[str, Any] = Field(default_factory=dict, description="큐 선언 인자")
    state: Optional[str] = Field(default=None, description="브로커가 보고한 큐 상태")
    idle_since: Optional[datetime] = Field(default=None, description="유휴 시작 시각")

    @field_validator(
        "messages",
        "messages_ready",
        "messages_unacknowledged",
        "consumers",
        mode="before",
    )
    @classmethod
    def _null_count(cls, value: Any) -> Any:
        if value is None:
            return 0
        # 음수 카운터 하나로 전체 큐 목록이 거부되지 않도록 0으로 보정
        if isinstance(value, (int, float)) and not isinstance(value, bool) and value < 0:
            return 0
        return value

    @field_validator("consumer_utilisation", mode="before")
    @classmethod
    def _null_utilisation(cls, value: Any) -> Any:
        # 컨슈머가 없는 큐는 null 로 보고됨
        return 0.0 if value is None else value

    @field_validator("arguments", mode="before")
    @classmethod
    def _null_arguments(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("idle_since", mode="before")
    @classmethod
    def _parse_idle_since(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return datetime.strptime(value, BROKER_DATETIME_FORMAT)
            except ValueError:
                return value
        return value

    def _rate(self, kind: str) -> float:
        if self.message_stats is None:
            return 0.0
        details = getattr(self.message_stats, f"{kind}_details")
        return details.rate if details is not None else 0.0

    @property
    def publish_rate(self) -> float:
        return self._rate("publish")

    @property
    def deliver_rate(self) -> float:
        return self._rate("deliver")

    @property
    def ack_rate(self) -> float:
        return self._rate("ack")

    @property
    def redeliver_rate(self) -> float:
        return self._rate("redeliver")

    @property
    def effective_consumer_capacity(self) -> float:
        """브로커가 수용률을 보고하지 않으면 활용률로 대체"""
        if self.consumer_capacity is not None:
            return self.consumer_capacity
        return self.consumer_utilisation

    @property
    def total_redeliveries(self) -> int:
        return self.message_stats.redeliver if self.message_stats is not None else 0


QUEUE_LIST_ADAPTER = TypeAdapter(list[QueueRecord])


def parse_queue_list(payload: Any) -> list[QueueRecord]:
    """
    관리 API 의 큐 목록 응답을 QueueRecord 목록으로 변환

    Args:
        payload: JSON 디코딩된 응답 (리스트)

    Returns:
        list[QueueRecord]: 큐 레코드 목록

    Raises:
        pydantic.ValidationError: 스키마가 맞지 않을 때
    """
    return QUEUE_LIST_ADAPTER.validate_python(payload)


class BrokerErrorBody(BaseModel):
    """관리 API 구조화 오류 본문 (``{"error": ..., "reason": ...}``)"""

    error: str = ""
    reason: str = ""

    @classmethod
    def parse(cls, body: bytes) -> Optional["BrokerErrorBody"]:
        """
        응답 본문을 구조화 오류로 해석

        Args:
            body: 응답 본문

        Returns:
            Optional[BrokerErrorBody]: 구조화 오류가 아니면 None
        """
        try:
            data = json.loads(body)
        except (ValueError, UnicodeDecodeError):
            return None

        if not isinstance(data, dict) or not ({"error", "reason"} & data.keys()):
            return None

        return cls(
            error=data["error"] if isinstance(data.get("error"), str) else "",
            reason=data["reason"] if isinstance(data.get("reason"), str) else "",
        )


@dataclass(frozen=True)
class Snapshot:
    """캐시된 큐 목록 스냅샷

    수집 실패 시에도 이전 큐 목록은 유지되며 ``valid`` 만 False 가 됩니다.
    """

    queues: Tuple[QueueRecord, ...] = field(default_factory=tuple)
    captured_at: Optional[datetime] = None
    valid: bool = False
    error: Optional[ExporterException] = None

    @classmethod
    def empty(cls) -> "Snapshot":
        """시작 시점의 빈 스냅샷 (invalid)"""
        return cls()

    @classmethod
    def success(cls, queues: Sequence[QueueRecord], captured_at: datetime) -> "Snapshot":
        return cls(queues=tuple(queues), captured_at=captured_at, valid=True, error=None)

    def failed(self, error: ExporterException) -> "Snapshot":
        """이전 큐 목록을 유지한 채 실패 상태로 전환한 스냅샷 반환"""
        return replace(self, valid=False, error=error)

    def age(self, now: Optional[datetime] = None) -> Optional[float]:
        """
        마지막 성공 수집 이후 경과 시간

        Args:
            now: 기준 시각 (None이면 현재 시각)

        Returns:
            Optional[float]: 경과 시간(초), 한 번도 성공하지 못했으면 None
        """
        if self.captured_at is None:
            return None
        return ((now or datetime.now()) - self.captured_at).total_seconds()
