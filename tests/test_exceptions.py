"""
예외 클래스 테스트 모듈

익스포터 커스텀 예외와 스크랩 오류 분류 값을 테스트합니다.
"""

import pytest

from rabbitmq_exporter.exceptions import (
    BrokerAPIException,
    BrokerConnectionException,
    BrokerDecodeException,
    BrokerException,
    BrokerHTTPException,
    BrokerTimeoutException,
    BrokerTransportException,
    CircuitOpenException,
    ConfigurationException,
    ExporterException,
)


class TestExporterException:
    """기본 예외 클래스 테스트"""

    def test_basic_exception(self):
        exc = ExporterException("테스트 오류")

        assert str(exc) == "테스트 오류"
        assert exc.message == "테스트 오류"
        assert exc.error_code is None

    def test_configuration_exception(self):
        exc = ConfigurationException("LISTEN_PORT", "1~65535 범위여야 합니다")

        assert "설정 오류: LISTEN_PORT" in str(exc)
        assert exc.error_code == "CONFIGURATION_ERROR"
        assert exc.config_key == "LISTEN_PORT"

    def test_connection_exception(self):
        exc = BrokerConnectionException("http://rabbit:15672")

        assert "RabbitMQ 연결 실패" in str(exc)
        assert exc.error_code == "BROKER_CONNECTION_ERROR"
        assert not isinstance(exc, BrokerException)


class TestBrokerException:
    """관리 API 예외 분류 테스트"""

    @pytest.mark.parametrize("exc,error_type", [
        (CircuitOpenException(), "circuit_open"),
        (BrokerTransportException("http://rabbit/api/queues", "refused", 2), "transport_error"),
        (BrokerTimeoutException("http://rabbit/api/queues", 30), "timeout"),
        (BrokerHTTPException(500, "boom"), "http_error"),
        (BrokerAPIException(401, "not_authorised", "Login failed"), "api_error"),
        (BrokerDecodeException("invalid json"), "decode_error"),
        (BrokerException("unknown"), "unknown"),
    ])
    def test_오류_분류(self, exc, error_type):
        assert exc.error_type == error_type
        assert isinstance(exc, ExporterException)

    def test_구조화_오류_메시지(self):
        exc = BrokerAPIException(401, "not_authorised", "Login failed")

        assert str(exc) == "not_authorised: Login failed"
        assert exc.status == 401
        assert exc.error_code == "API_ERROR"
        assert isinstance(exc, BrokerHTTPException)

    def test_HTTP_오류_메시지(self):
        exc = BrokerHTTPException(503, "Service Unavailable")

        assert str(exc) == "HTTP 503: Service Unavailable"
        assert exc.body == "Service Unavailable"

    def test_전송_오류_시도_횟수(self):
        exc = BrokerTransportException("http://rabbit/api/queues", "refused", attempts=2)

        assert "2회 시도" in str(exc)
        assert exc.attempts == 2

    def test_서킷_오픈_메시지(self):
        exc = CircuitOpenException("rabbitmq_api")

        assert "서킷 브레이커가 열려 있습니다" in str(exc)
        assert exc.endpoint == "rabbitmq_api"
