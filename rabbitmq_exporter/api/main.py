"""
FastAPI 메인 애플리케이션

Prometheus 메트릭, 헬스 체크, 안내 페이지를 제공하는 익스포터 HTTP 서버입니다.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import HTMLResponse, PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

from .. import __version__
from ..broker.cache import SnapshotCache
from ..broker.client import RabbitMQClient
from ..broker.poller import BackgroundPoller
from ..config.settings import Settings, get_settings
from ..exceptions import BrokerConnectionException, ExporterException
from ..monitoring.collector import QueueMetricsCollector
from ..monitoring.metrics import ExporterMetrics
from ..utils.helpers import redact_url
from ..utils.logging import get_logger, setup_logging

logger = get_logger(__name__)

INDEX_PAGE = """<!DOCTYPE html>
<html>
<head>
    <title>RabbitMQ Custom Exporter</title>
</head>
<body>
    <h1>RabbitMQ Custom Prometheus Exporter</h1>
    <p>This exporter provides detailed queue-level metrics for RabbitMQ.</p>
    <ul>
        <li><a href="/metrics">Metrics</a> - Prometheus metrics endpoint</li>
        <li><a href="/health">Health</a> - Health check endpoint</li>
    </ul>
</body>
</html>
"""


@asynccontextmanager
async def lifespan(app: FastAPI):
    """앱 생명주기 관리"""
    settings: Settings = app.state.settings
    logger = setup_logging(settings)

    client: RabbitMQClient = app.state.client or RabbitMQClient.from_settings(settings)
    app.state.client = client

    logger.info("RabbitMQ 익스포터 시작")

    # 시작 시점 연결 확인 실패는 치명적 오류
    try:
        await client.health_check(settings.timeout)
    except ExporterException as e:
        logger.error(f"RabbitMQ 연결 실패: {e}")
        await client.close()
        raise BrokerConnectionException(f"{redact_url(settings.rabbitmq_url)} - {e}") from e

    logger.info(f"RabbitMQ 연결 성공: {redact_url(settings.rabbitmq_url)}")

    cache = SnapshotCache()
    metrics = ExporterMetrics()
    collector = QueueMetricsCollector(
        cache,
        metrics,
        interval=settings.scrape_interval,
        circuit_breaker=client.circuit_breaker,
    )
    registry = CollectorRegistry()
    registry.register(collector)

    poller = BackgroundPoller(
        client,
        cache,
        interval=settings.scrape_interval,
        poll_timeout=settings.poll_timeout,
        stale_after=settings.stale_error_threshold,
    )

    app.state.cache = cache
    app.state.metrics = metrics
    app.state.collector = collector
    app.state.registry = registry
    app.state.poller = poller

    poller.start()
    logger.info("익스포터 초기화 완료")

    try:
        yield
    finally:
        # 수집기 정지 → 유휴 연결 정리 순서
        logger.info("익스포터 종료 시작")
        await poller.stop()
        await client.close()
        logger.info("익스포터 종료 완료")


def create_app(
    settings: Optional[Settings] = None,
    client: Optional[RabbitMQClient] = None,
) -> FastAPI:
    """
    FastAPI 애플리케이션 생성

    Args:
        settings: 시스템 설정 (None이면 기본 설정 사용)
        client: 관리 API 클라이언트 (None이면 설정으로 생성)

    Returns:
        FastAPI: 애플리케이션 인스턴스
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="RabbitMQ Custom Exporter",
        description="큐 단위 RabbitMQ Prometheus 익스포터",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None
    )
    app.state.settings = settings
    app.state.client = client

    @app.get("/metrics", tags=["Monitoring"])
    async def get_prometheus_metrics(request: Request) -> Response:
        """
        Prometheus 메트릭 노출

        캐시만 읽으므로 관리 API 상태와 무관하게 항상 응답합니다.
        """
        metrics_data = generate_latest(request.app.state.registry)
        return Response(content=metrics_data, media_type=CONTENT_TYPE_LATEST)

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request) -> Response:
        """헬스 체크 (관리 API 연결 확인)"""
        state = request.app.state
        try:
            await state.client.health_check(state.settings.timeout)
        except ExporterException as e:
            logger.warning(f"헬스 체크 실패: {e}")
            return PlainTextResponse("Health check failed", status_code=503)
        return PlainTextResponse("OK")

    @app.get("/", tags=["Root"], response_class=HTMLResponse)
    async def root() -> HTMLResponse:
        """안내 페이지"""
        return HTMLResponse(INDEX_PAGE)

    return app
