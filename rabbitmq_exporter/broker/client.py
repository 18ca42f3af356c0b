"""
RabbitMQ 관리 API 클라이언트 모듈

인증된 HTTP 호출, 1회 재시도, 응답 크기 제한, 서킷 브레이커 기록을 담당합니다.
"""

import asyncio
import json
import math
from typing import TYPE_CHECKING, Optional

import aiohttp
from pydantic import ValidationError

from ..exceptions import (
    BrokerAPIException,
    BrokerDecodeException,
    BrokerException,
    BrokerHTTPException,
    BrokerTimeoutException,
    BrokerTransportException,
    CircuitOpenException,
)
from ..models.queue import BrokerErrorBody, QueueRecord, parse_queue_list
from ..utils.helpers import redact_url, truncate_string
from ..utils.logging import get_logger
from .circuit_breaker import CircuitBreaker, CircuitBreakerStatus

if TYPE_CHECKING:
    from ..config.settings import Settings

logger = get_logger(__name__)

DEFAULT_BASE_URL = "http://localhost:15672"
DEFAULT_USERNAME = "guest"
DEFAULT_PASSWORD = "guest"
DEFAULT_TIMEOUT = 10.0
DEFAULT_RETRY_BACKOFF = 0.5
MAX_RESPONSE_BYTES = 10 * 1024 * 1024

# 오류 메시지에 포함할 응답 본문 최대 길이
ERROR_BODY_PREVIEW = 512
READ_CHUNK_SIZE = 64 * 1024


def _validate_deadline(timeout: float) -> None:
    if timeout is None or not math.isfinite(timeout) or timeout <= 0:
        raise ValueError(f"데드라인은 0보다 큰 유한한 값이어야 합니다: {timeout!r}")


class RabbitMQClient:
    """RabbitMQ 관리 API 클라이언트"""

    def __init__(
        self,
        base_url: str = "",
        username: str = "",
        password: str = "",
        timeout: float = DEFAULT_TIMEOUT,
        circuit_breaker: Optional[CircuitBreaker] = None,
        retry_backoff: float = DEFAULT_RETRY_BACKOFF,
        max_response_bytes: int = MAX_RESPONSE_BYTES,
    ):
        """
        클라이언트 초기화

        Args:
            base_url: 관리 API URL (빈 값이면 http://localhost:15672)
            username: 사용자 이름 (빈 값이면 guest)
            password: 비밀번호 (빈 값이면 guest)
            timeout: 요청별 타임아웃 (초, 0 이하이면 10초)
            circuit_breaker: 서킷 브레이커 (None이면 기본값으로 생성)
            retry_backoff: 전송 실패 시 재시도 전 대기 시간 (초)
            max_response_bytes: 응답 본문 최대 크기 (바이트)
        """
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip('/')
        self.username = username or DEFAULT_USERNAME
        self._password = password or DEFAULT_PASSWORD
        self.timeout = timeout if timeout and timeout > 0 else DEFAULT_TIMEOUT
        self.circuit_breaker = circuit_breaker or CircuitBreaker()
        self.retry_backoff = retry_backoff
        self.max_response_bytes = max_response_bytes
        self.session: Optional[aiohttp.ClientSession] = None

    @classmethod
    def from_settings(cls, settings: "Settings") -> "RabbitMQClient":
        """
        설정으로부터 클라이언트 생성

        Args:
            settings: 시스템 설정

        Returns:
            RabbitMQClient: 클라이언트 인스턴스
        """
        circuit_breaker = CircuitBreaker(
            failure_threshold=settings.circuit_breaker_threshold,
            reset_timeout=settings.circuit_breaker_reset_timeout,
        )
        return cls(
            base_url=settings.rabbitmq_url,
            username=settings.rabbitmq_username,
            password=settings.rabbitmq_password,
            timeout=settings.timeout,
            circuit_breaker=circuit_breaker,
            retry_backoff=settings.retry_backoff,
            max_response_bytes=settings.max_response_bytes,
        )

    async def _get_session(self) -> aiohttp.ClientSession:
        """HTTP 세션 생성 (keep-alive 연결 재사용)"""
        if self.session is None or self.session.closed:
            connector = aiohttp.TCPConnector(
                limit=100,
                limit_per_host=50,
                keepalive_timeout=90,
            )
            self.session = aiohttp.ClientSession(
                connector=connector,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                auth=aiohttp.BasicAuth(self.username, self._password),
                headers={
                    'Accept': 'application/json',
                    'User-Agent': 'RabbitMQ-Exporter/1.0'
                },
            )
        return self.session

    def _ensure_request_allowed(self) -> None:
        if not self.circuit_breaker.allow_request():
            logger.debug(f"서킷 브레이커 열림, 요청 생략: {self.circuit_breaker.name}")
            raise CircuitOpenException(self.circuit_breaker.name)

    async def fetch_queues(self, timeout: float) -> list[QueueRecord]:
        """
        전체 큐 목록 조회

        Args:
            timeout: 재시도를 포함한 전체 호출 데드라인 (초)

        Returns:
            list[QueueRecord]: 큐 레코드 목록

        Raises:
            ValueError: 데드라인이 유한한 양수가 아닐 때
            CircuitOpenException: 서킷이 열려 있을 때 (네트워크 호출 없음)
            BrokerException: 그 밖의 호출 실패
        """
        _validate_deadline(timeout)
        self._ensure_request_allowed()

        url = f"{self.base_url}/api/queues"
        try:
            body = await asyncio.wait_for(self._request(url, retries=1), timeout=timeout)
            queues = self._decode_queues(body)
        except asyncio.TimeoutError:
            self.circuit_breaker.record_failure()
            raise BrokerTimeoutException(redact_url(url), timeout) from None
        except BrokerException:
            self.circuit_breaker.record_failure()
            raise

        self.circuit_breaker.record_success()
        logger.debug(f"큐 목록 조회 완료: {len(queues)}개")
        return queues

    async def health_check(self, timeout: float) -> None:
        """
        관리 API 연결 확인 (``/api/overview``)

        Args:
            timeout: 호출 데드라인 (초)

        Raises:
            CircuitOpenException: 서킷이 열려 있을 때
            BrokerException: 연결 확인 실패
        """
        _validate_deadline(timeout)
        self._ensure_request_allowed()

        url = f"{self.base_url}/api/overview"
        try:
            await asyncio.wait_for(self._request(url, retries=0), timeout=timeout)
        except asyncio.TimeoutError:
            self.circuit_breaker.record_failure()
            raise BrokerTimeoutException(redact_url(url), timeout) from None
        except BrokerException:
            self.circuit_breaker.record_failure()
            raise

        self.circuit_breaker.record_success()

    async def _request(self, url: str, retries: int) -> bytes:
        """
        GET 요청 수행

        전송 수준 실패만 재시도하며, HTTP 상태 오류나 응답 크기 초과는 재시도하지 않습니다.

        Args:
            url: 요청 URL
            retries: 전송 실패 시 재시도 횟수

        Returns:
            bytes: 2xx 응답 본문
        """
        session = await self._get_session()
        last_error: Optional[BaseException] = None

        for attempt in range(retries + 1):
            try:
                async with session.get(url) as response:
                    status = response.status
                    body = await self._read_body(response)
                break
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_error = e
                if attempt < retries:
                    logger.debug(
                        f"요청 실패 ({attempt + 1}/{retries + 1}), "
                        f"{self.retry_backoff}초 후 재시도: {e!r}"
                    )
                    await asyncio.sleep(self.retry_backoff)
        else:
            if isinstance(last_error, asyncio.TimeoutError):
                raise BrokerTimeoutException(redact_url(url), self.timeout) from last_error
            raise BrokerTransportException(
                redact_url(url),
                str(last_error) or type(last_error).__name__,
                attempts=retries + 1,
            ) from last_error

        if not 200 <= status < 300:
            raise self._status_error(status, body)

        return body

    async def _read_body(self, response: aiohttp.ClientResponse) -> bytes:
        """응답 본문을 최대 크기 제한 안에서 읽기"""
        limit = self.max_response_bytes
        if response.content_length is not None and response.content_length > limit:
            raise BrokerDecodeException(
                f"응답 크기 초과: {response.content_length} > {limit} 바이트"
            )

        chunks = []
        size = 0
        async for chunk in response.content.iter_chunked(READ_CHUNK_SIZE):
            size += len(chunk)
            if size > limit:
                raise BrokerDecodeException(f"응답 크기 초과: {limit} 바이트 이상")
            chunks.append(chunk)

        return b"".join(chunks)

    @staticmethod
    def _status_error(status: int, body: bytes) -> BrokerHTTPException:
        api_error = BrokerErrorBody.parse(body)
        if api_error is not None:
            return BrokerAPIException(status, api_error.error, api_error.reason)

        text = body.decode('utf-8', errors='replace')
        return BrokerHTTPException(status, truncate_string(text, ERROR_BODY_PREVIEW))

    @staticmethod
    def _decode_queues(body: bytes) -> list[QueueRecord]:
        try:
            payload = json.loads(body)
        except ValueError as e:
            raise BrokerDecodeException(f"JSON 해석 실패: {e}") from e

        if not isinstance(payload, list):
            raise BrokerDecodeException(
                f"큐 목록은 배열이어야 합니다: {type(payload).__name__}"
            )

        try:
            return parse_queue_list(payload)
        except ValidationError as e:
            raise BrokerDecodeException(
                f"큐 목록 스키마 불일치: {e.error_count()}개 오류"
            ) from e

    def circuit_status(self) -> CircuitBreakerStatus:
        """서킷 브레이커 상태 조회"""
        return self.circuit_breaker.status()

    async def close(self) -> None:
        """HTTP 세션 종료 (유휴 연결 정리)"""
        if self.session is not None and not self.session.closed:
            await self.session.close()
            logger.info("RabbitMQ 관리 API 세션 종료 완료")
        self.session = None
