"""
공통 유틸리티 함수 모듈

익스포터에서 공통으로 사용되는 헬퍼 함수들을 제공합니다.
"""

import re
from datetime import timedelta
from typing import Union
from urllib.parse import urlsplit, urlunsplit

_DURATION_PART = re.compile(r'(\d+(?:\.\d+)?)(ms|h|m|s)')

_DURATION_UNITS = {
    'ms': 0.001,
    's': 1.0,
    'm': 60.0,
    'h': 3600.0,
}


def parse_duration(value: Union[str, int, float, timedelta]) -> float:
    """
    지속 시간 값을 초 단위 실수로 변환

    숫자는 초로 취급하며, 문자열은 ``"500ms"``, ``"15s"``, ``"1m30s"`` 처럼
    단위가 붙은 형식 또는 숫자만 있는 형식을 지원합니다.

    Args:
        value: 변환할 값

    Returns:
        float: 초 단위 시간

    Raises:
        ValueError: 해석할 수 없는 형식일 때
    """
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, bool):
        raise ValueError(f"지속 시간으로 해석할 수 없습니다: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)

    text = str(value).strip().lower()
    if not text:
        raise ValueError("빈 지속 시간 값입니다")

    try:
        return float(text)
    except ValueError:
        pass

    total = 0.0
    position = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if position != len(text):
        raise ValueError(f"지속 시간으로 해석할 수 없습니다: {value!r}")

    return total


def validate_url(url: str) -> bool:
    """
    URL 유효성 검증

    Args:
        url: 검증할 URL

    Returns:
        bool: 유효한 URL인지 여부
    """
    url_pattern = re.compile(
        r'^https?://'  # http:// or https://
        r'(?:[^\s/@]+@)?'  # optional userinfo
        r'(?:(?:[A-Z0-9](?:[A-Z0-9-]{0,61}[A-Z0-9])?\.)+[A-Z]{2,63}\.?|'  # domain...
        r'localhost|'  # localhost...
        r'[A-Z0-9](?:[A-Z0-9-]{0,61}[A-Z0-9])?|'  # single-label host (e.g. docker service name)
        r'\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3})'  # ...or ip
        r'(?::\d+)?'  # optional port
        r'(?:/?|[/?]\S+)$', re.IGNORECASE)

    return url_pattern.match(url) is not None


def redact_url(url: str) -> str:
    """
    URL 에 포함된 사용자 정보(자격 증명)를 제거

    Args:
        url: 원본 URL

    Returns:
        str: 자격 증명이 제거된 URL
    """
    parts = urlsplit(url)
    if '@' not in parts.netloc:
        return url
    host = parts.netloc.rsplit('@', 1)[1]
    return urlunsplit((parts.scheme, host, parts.path, parts.query, parts.fragment))


def truncate_string(text: str, max_length: int, suffix: str = "...") -> str:
    """
    문자열을 지정된 길이로 자르기

    Args:
        text: 자를 문자열
        max_length: 최대 길이
        suffix: 자른 부분에 추가할 접미사

    Returns:
        str: 자른 문자열
    """
    if len(text) <= max_length:
        return text

    return text[:max_length - len(suffix)] + suffix
