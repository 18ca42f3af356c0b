"""
설정 관리 모듈

환경 변수, .env 파일, YAML 설정 파일을 통한 익스포터 설정을 관리합니다.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from ..exceptions import ConfigurationException
from ..utils.helpers import parse_duration, validate_url

DEFAULT_RABBITMQ_URL = "http://localhost:15672"
DEFAULT_RABBITMQ_USERNAME = "guest"
DEFAULT_RABBITMQ_PASSWORD = "guest"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# 명시적 설정 파일이 없을 때 순서대로 탐색
DEFAULT_CONFIG_PATHS = (
    Path("config.yaml"),
    Path("/etc/rabbitmq-exporter/config.yaml"),
)


class Settings(BaseSettings):
    """익스포터 설정 관리 클래스"""

    model_config = SettingsConfigDict(
        env_prefix="RABBITMQ_EXPORTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # RabbitMQ 관리 API 설정
    rabbitmq_url: str = Field(
        default=DEFAULT_RABBITMQ_URL,
        description="RabbitMQ 관리 API URL"
    )
    rabbitmq_username: str = Field(
        default=DEFAULT_RABBITMQ_USERNAME,
        description="RabbitMQ 사용자 이름"
    )
    rabbitmq_password: str = Field(
        default=DEFAULT_RABBITMQ_PASSWORD,
        description="RabbitMQ 비밀번호"
    )

    # 수집 설정
    scrape_interval: float = Field(
        default=15.0,
        description="백그라운드 수집 간격 (초)"
    )
    timeout: float = Field(
        default=10.0,
        description="API 요청별 타임아웃 (초)"
    )
    poll_timeout: float = Field(
        default=30.0,
        description="수집 1회당 전체 데드라인 (초)"
    )
    retry_backoff: float = Field(
        default=0.5,
        description="전송 실패 시 재시도 전 대기 시간 (초)"
    )
    max_response_bytes: int = Field(
        default=10 * 1024 * 1024,
        description="응답 본문 최대 크기 (바이트)"
    )
    stale_error_threshold: float = Field(
        default=60.0,
        description="마지막 성공 이후 경고 로그를 남기기 시작하는 시간 (초)"
    )

    # 서킷 브레이커 설정
    circuit_breaker_threshold: int = Field(
        default=5,
        description="서킷을 여는 연속 실패 횟수"
    )
    circuit_breaker_reset_timeout: float = Field(
        default=60.0,
        description="서킷이 열린 뒤 다시 닫히기까지의 대기 시간 (초)"
    )

    # HTTP 서버 설정
    listen_host: str = Field(
        default="0.0.0.0",
        description="HTTP 서버 호스트"
    )
    listen_port: int = Field(
        default=9419,
        description="HTTP 서버 포트"
    )
    shutdown_grace_period: float = Field(
        default=30.0,
        description="종료 시 HTTP 서버 유예 시간 (초)"
    )

    # 로깅 설정
    log_level: str = Field(
        default="INFO",
        description="로그 레벨"
    )
    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="로그 포맷"
    )
    log_file: Optional[str] = Field(
        default=None,
        description="로그 파일 경로"
    )

    @field_validator("rabbitmq_url", mode="before")
    @classmethod
    def _default_url(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_RABBITMQ_URL
        return value.rstrip("/") if isinstance(value, str) else value

    @field_validator("rabbitmq_username", mode="before")
    @classmethod
    def _default_username(cls, value: Any) -> Any:
        if value is None or value == "":
            return DEFAULT_RABBITMQ_USERNAME
        return value

    @field_validator("rabbitmq_password", mode="before")
    @classmethod
    def _default_password(cls, value: Any) -> Any:
        if value is None or value == "":
            return DEFAULT_RABBITMQ_PASSWORD
        return value

    @field_validator(
        "scrape_interval",
        "timeout",
        "poll_timeout",
        "retry_backoff",
        "stale_error_threshold",
        "circuit_breaker_reset_timeout",
        "shutdown_grace_period",
        mode="before",
    )
    @classmethod
    def _parse_durations(cls, value: Any) -> Any:
        """``"15s"`` 같은 지속 시간 문자열을 초 단위로 변환"""
        if value is None:
            return value
        return parse_duration(value)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # 우선순위: CLI 인자 > 환경 변수 > .env > YAML 설정 파일
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    def validate_configuration(self) -> None:
        """설정 유효성 검증"""
        if not validate_url(self.rabbitmq_url):
            raise ConfigurationException(
                "RABBITMQ_URL", f"유효한 http(s) URL 이 아닙니다: {self.rabbitmq_url}"
            )

        if self.scrape_interval <= 0:
            raise ConfigurationException("SCRAPE_INTERVAL", "0보다 커야 합니다")
        if self.timeout <= 0:
            raise ConfigurationException("TIMEOUT", "0보다 커야 합니다")
        if self.poll_timeout <= 0:
            raise ConfigurationException("POLL_TIMEOUT", "0보다 커야 합니다")

        if not 1 <= self.listen_port <= 65535:
            raise ConfigurationException(
                "LISTEN_PORT", f"1~65535 범위여야 합니다: {self.listen_port}"
            )

        if self.circuit_breaker_threshold < 1:
            raise ConfigurationException("CIRCUIT_BREAKER_THRESHOLD", "1 이상이어야 합니다")
        if self.max_response_bytes <= 0:
            raise ConfigurationException("MAX_RESPONSE_BYTES", "0보다 커야 합니다")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigurationException(
                "LOG_LEVEL", f"{', '.join(LOG_LEVELS)} 중 하나여야 합니다: {self.log_level}"
            )


def find_config_file() -> Optional[Path]:
    """
    기본 경로에서 설정 파일 탐색

    Returns:
        Optional[Path]: 발견된 설정 파일 경로
    """
    for path in DEFAULT_CONFIG_PATHS:
        if path.is_file():
            return path
    return None


def load_settings(config_file: Optional[Union[str, Path]] = None, **overrides: Any) -> Settings:
    """
    설정 파일과 명령행 인자를 반영한 설정 인스턴스 생성

    Args:
        config_file: YAML 설정 파일 경로 (None이면 기본 경로 탐색)
        **overrides: 명령행 등에서 전달된 설정값 (None 값은 무시)

    Returns:
        Settings: 검증된 설정 인스턴스

    Raises:
        ConfigurationException: 설정 파일이 없거나 설정값이 유효하지 않을 때
    """
    if config_file is not None:
        path = Path(config_file)
        if not path.is_file():
            raise ConfigurationException("CONFIG", f"설정 파일을 찾을 수 없습니다: {path}")
    else:
        path = find_config_file()

    values = {key: value for key, value in overrides.items() if value is not None}

    try:
        if path is None:
            settings = Settings(**values)
        else:
            class FileSettings(Settings):
                model_config = SettingsConfigDict(yaml_file=path)

            settings = FileSettings(**values)
    except ValueError as e:
        raise ConfigurationException("CONFIG", str(e)) from e

    settings.validate_configuration()
    return settings


@lru_cache()
def get_settings() -> Settings:
    """
    설정 인스턴스를 반환합니다 (싱글톤 패턴)

    Returns:
        Settings: 설정 인스턴스
    """
    return load_settings()
