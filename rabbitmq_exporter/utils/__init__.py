"""
유틸리티 패키지

공통으로 사용되는 유틸리티 함수들을 포함합니다.
"""

from .logging import get_logger, setup_logging
from .helpers import parse_duration, redact_url, truncate_string, validate_url

__all__ = [
    "setup_logging",
    "get_logger",
    "parse_duration",
    "redact_url",
    "truncate_string",
    "validate_url",
]
