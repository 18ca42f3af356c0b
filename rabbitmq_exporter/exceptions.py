"""
예외 클래스 정의 모듈

RabbitMQ 익스포터에서 사용되는 커스텀 예외들을 정의합니다.
"""

from typing import Optional


class ExporterException(Exception):
    """익스포터 기본 예외 클래스"""

    def __init__(self, message: str, error_code: Optional[str] = None):
        """
        예외 초기화

        Args:
            message: 오류 메시지
            error_code: 오류 코드 (선택사항)
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class ConfigurationException(ExporterException):
    """설정 오류 시 발생하는 예외"""

    def __init__(self, config_key: str, error_detail: str):
        """
        설정 예외 초기화

        Args:
            config_key: 설정 키
            error_detail: 오류 상세 정보
        """
        message = f"설정 오류: {config_key} - {error_detail}"
        super().__init__(message, "CONFIGURATION_ERROR")
        self.config_key = config_key
        self.error_detail = error_detail


class BrokerException(ExporterException):
    """RabbitMQ 관리 API 호출 관련 기본 예외

    ``error_type`` 은 스크랩 오류 카운터의 레이블 값으로 사용됩니다.
    """

    error_type = "unknown"

    def __init__(self, message: str, error_code: str = "BROKER_ERROR"):
        super().__init__(message, error_code)


class CircuitOpenException(BrokerException):
    """서킷 브레이커가 열려 있어 호출이 차단되었을 때 발생하는 예외"""

    error_type = "circuit_open"

    def __init__(self, endpoint: str = "rabbitmq_api"):
        """
        서킷 오픈 예외 초기화

        Args:
            endpoint: 차단된 엔드포인트 이름
        """
        message = f"서킷 브레이커가 열려 있습니다 - 최근 실패가 너무 많습니다 ({endpoint})"
        super().__init__(message, "CIRCUIT_OPEN")
        self.endpoint = endpoint


class BrokerTransportException(BrokerException):
    """네트워크/연결 수준 실패"""

    error_type = "transport_error"

    def __init__(self, url: str, error_detail: str, attempts: int = 1):
        """
        전송 예외 초기화

        Args:
            url: 요청 URL
            error_detail: 오류 상세 정보
            attempts: 시도 횟수
        """
        message = f"요청 실패 ({attempts}회 시도): {url} - {error_detail}"
        super().__init__(message, "TRANSPORT_ERROR")
        self.url = url
        self.error_detail = error_detail
        self.attempts = attempts


class BrokerTimeoutException(BrokerException):
    """요청 데드라인 초과"""

    error_type = "timeout"

    def __init__(self, url: str, timeout_seconds: float):
        """
        타임아웃 예외 초기화

        Args:
            url: 요청 URL
            timeout_seconds: 타임아웃 시간(초)
        """
        message = f"요청 타임아웃: {url} ({timeout_seconds}초)"
        super().__init__(message, "TIMEOUT")
        self.url = url
        self.timeout_seconds = timeout_seconds


class BrokerHTTPException(BrokerException):
    """2xx 가 아닌 HTTP 응답"""

    error_type = "http_error"

    def __init__(self, status: int, body: str, message: Optional[str] = None,
                 error_code: str = "HTTP_STATUS_ERROR"):
        """
        HTTP 상태 예외 초기화

        Args:
            status: HTTP 상태 코드
            body: 응답 본문 (잘린 상태일 수 있음)
            message: 오류 메시지 (None이면 상태 코드와 본문으로 구성)
            error_code: 오류 코드
        """
        super().__init__(message or f"HTTP {status}: {body}", error_code)
        self.status = status
        self.body = body


class BrokerAPIException(BrokerHTTPException):
    """관리 API 가 구조화된 오류 본문을 반환한 경우"""

    error_type = "api_error"

    def __init__(self, status: int, error: str, reason: str):
        """
        API 오류 예외 초기화

        Args:
            status: HTTP 상태 코드
            error: API 오류 이름
            reason: API 오류 사유
        """
        super().__init__(status, f"{error}: {reason}", f"{error}: {reason}", "API_ERROR")
        self.error = error
        self.reason = reason


class BrokerDecodeException(BrokerException):
    """응답 본문 해석 실패"""

    error_type = "decode_error"

    def __init__(self, error_detail: str):
        """
        디코드 예외 초기화

        Args:
            error_detail: 오류 상세 정보
        """
        super().__init__(f"응답 해석 실패: {error_detail}", "DECODE_ERROR")
        self.error_detail = error_detail


class BrokerConnectionException(ExporterException):
    """시작 시점 RabbitMQ 연결 확인 실패"""

    def __init__(self, connection_info: str):
        """
        연결 예외 초기화

        Args:
            connection_info: 연결 정보
        """
        message = f"RabbitMQ 연결 실패: {connection_info}"
        super().__init__(message, "BROKER_CONNECTION_ERROR")
        self.connection_info = connection_info
