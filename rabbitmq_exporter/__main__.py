"""
익스포터 실행 진입점

명령행 인자와 설정 파일을 읽어 HTTP 서버를 시작합니다.
"""

import argparse
import sys
from typing import Optional, Sequence

import uvicorn

from .api.main import create_app
from .config.settings import Settings, load_settings
from .exceptions import ConfigurationException
from .utils.helpers import parse_duration, redact_url
from .utils.logging import setup_logging


def build_parser() -> argparse.ArgumentParser:
    """명령행 인자 파서 생성"""
    parser = argparse.ArgumentParser(
        prog="rabbitmq-exporter",
        description="A lightweight RabbitMQ Prometheus exporter with queue-level visibility."
    )
    parser.add_argument("--config", help="YAML 설정 파일 경로 (기본: ./config.yaml)")
    parser.add_argument("--rabbitmq-url", dest="rabbitmq_url", help="RabbitMQ 관리 API URL")
    parser.add_argument("--username", dest="rabbitmq_username", help="RabbitMQ 사용자 이름")
    parser.add_argument("--password", dest="rabbitmq_password", help="RabbitMQ 비밀번호")
    parser.add_argument(
        "--scrape-interval",
        dest="scrape_interval",
        type=parse_duration,
        help="수집 간격 (예: 15s)"
    )
    parser.add_argument("--port", dest="listen_port", type=int, help="HTTP 서버 포트")
    parser.add_argument("--timeout", type=parse_duration, help="요청 타임아웃 (예: 10s)")
    parser.add_argument("--log-level", dest="log_level", help="로그 레벨")
    return parser


def log_configuration(settings: Settings) -> None:
    """현재 설정 출력 (비밀번호 제외)"""
    logger = setup_logging(settings)
    logger.info("RabbitMQ 익스포터 설정:")
    logger.info(f"  RabbitMQ URL: {redact_url(settings.rabbitmq_url)}")
    logger.info(f"  사용자 이름: {settings.rabbitmq_username}")
    logger.info(f"  수집 간격: {settings.scrape_interval}초")
    logger.info(f"  서버 포트: {settings.listen_port}")
    logger.info(f"  요청 타임아웃: {settings.timeout}초")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """익스포터 메인 함수"""
    args = vars(build_parser().parse_args(argv))
    config_file = args.pop("config")

    try:
        settings = load_settings(config_file, **args)
    except ConfigurationException as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    log_configuration(settings)

    uvicorn.run(
        create_app(settings),
        host=settings.listen_host,
        port=settings.listen_port,
        log_level=settings.log_level.lower(),
        timeout_graceful_shutdown=int(settings.shutdown_grace_period),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
