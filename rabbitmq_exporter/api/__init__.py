"""
HTTP API 패키지

메트릭, 헬스 체크 엔드포인트를 제공하는 FastAPI 애플리케이션입니다.
"""

from .main import create_app

__all__ = ["create_app"]
