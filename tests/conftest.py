"""
공통 테스트 픽스처

가짜 시계, 큐 레코드 팩토리, 가짜 RabbitMQ 관리 API 서버를 제공합니다.
"""

import asyncio
import base64
import logging
from typing import Any, Callable, Dict, List

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from rabbitmq_exporter.models.queue import QueueRecord


class FakeClock:
    """수동으로 진행시키는 단조 시계"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def queue_payload(name: str = "orders", **overrides: Any) -> Dict[str, Any]:
    """관리 API ``/api/queues`` 응답 항목 형태의 딕셔너리 생성"""
    payload: Dict[str, Any] = {
        "name": name,
        "vhost": "/",
        "messages": 10,
        "messages_ready": 8,
        "messages_unacknowledged": 2,
        "consumers": 2,
        "consumer_utilisation": 0.9,
        "message_stats": {
            "publish": 1200,
            "publish_details": {"rate": 5.0},
            "deliver": 1150,
            "deliver_details": {"rate": 4.5},
            "ack": 1100,
            "ack_details": {"rate": 4.4},
            "redeliver": 3,
            "redeliver_details": {"rate": 0.0},
        },
        "arguments": {},
        "state": "running",
    }
    payload.update(overrides)
    return payload


def make_queue(name: str = "orders", **overrides: Any) -> QueueRecord:
    """테스트용 큐 레코드 생성"""
    return QueueRecord.model_validate(queue_payload(name, **overrides))


class FakeManagementAPI:
    """요청을 기록하는 가짜 RabbitMQ 관리 API

    ``queues_handler``/``overview_handler`` 를 교체해 응답을 바꿀 수 있습니다.
    """

    def __init__(self, username: str = "guest", password: str = "guest"):
        credentials = base64.b64encode(f"{username}:{password}".encode()).decode()
        self.expected_auth = f"Basic {credentials}"
        self.requests: List[str] = []
        self.queues_payload: List[Dict[str, Any]] = [queue_payload("orders"), queue_payload("events")]
        self.queues_handler: Callable[[web.Request], Any] = self._default_queues
        self.overview_handler: Callable[[web.Request], Any] = self._default_overview

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/api/queues", self._queues)
        app.router.add_get("/api/overview", self._overview)
        return app

    def count(self, path: str) -> int:
        return sum(1 for requested in self.requests if requested == path)

    async def _dispatch(self, request: web.Request, handler: Callable[[web.Request], Any]):
        self.requests.append(request.path)
        if request.headers.get("Authorization") != self.expected_auth:
            return web.json_response(
                {"error": "not_authorised", "reason": "Login failed"}, status=401
            )
        result = handler(request)
        if asyncio.iscoroutine(result):
            result = await result
        return result

    async def _queues(self, request: web.Request):
        return await self._dispatch(request, self.queues_handler)

    async def _overview(self, request: web.Request):
        return await self._dispatch(request, self.overview_handler)

    def _default_queues(self, request: web.Request):
        return web.json_response(self.queues_payload)

    def _default_overview(self, request: web.Request):
        return web.json_response({"management_version": "3.12.0", "cluster_name": "rabbit@test"})


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def queue_factory() -> Callable[..., QueueRecord]:
    return make_queue


@pytest.fixture
def payload_factory() -> Callable[..., Dict[str, Any]]:
    return queue_payload


@pytest_asyncio.fixture
async def management_api():
    """가짜 관리 API 서버 (base_url 과 요청 기록 제공)"""
    api = FakeManagementAPI()
    server = TestServer(api.build_app())
    await server.start_server()
    api.base_url = str(server.make_url("")).rstrip("/")
    try:
        yield api
    finally:
        await server.close()


@pytest.fixture(autouse=True)
def reset_exporter_logger():
    """setup_logging 이 바꾼 로거 설정을 테스트마다 원복"""
    logger = logging.getLogger("rabbitmq_exporter")
    yield
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
