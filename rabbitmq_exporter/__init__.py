"""
RabbitMQ 큐 단위 Prometheus 익스포터

관리 API 를 백그라운드에서 수집하여 캐시하고, 스크랩 요청마다
큐 상태, 헬스 점수, 알림 지표를 계산해 노출합니다.
"""

__version__ = "1.0.0"
