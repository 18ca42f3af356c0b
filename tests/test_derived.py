"""
파생 지표 계산 테스트
"""

import pytest

from rabbitmq_exporter.models.enums import AlertSeverity, QueueState
from rabbitmq_exporter.monitoring.derived import (
    calculate_health_score,
    classify_queue_state,
    depth_alerts,
    is_dead_letter_queue,
    utilisation_alerts,
)


def _stats(publish=0.0, deliver=0.0, redeliver=0.0):
    return {
        "publish_details": {"rate": publish},
        "deliver_details": {"rate": deliver},
        "redeliver_details": {"rate": redeliver},
    }


class TestQueueState:
    """큐 상태 분류 테스트"""

    def test_컨슈머와_메시지가_없으면_idle(self, queue_factory):
        queue = queue_factory(consumers=0, messages=0, message_stats=_stats())

        assert classify_queue_state(queue) is QueueState.IDLE

    def test_컨슈머_없고_발행이_거의_없으면_idle(self, queue_factory):
        queue = queue_factory(consumers=0, messages=500, message_stats=_stats(publish=0.005))

        assert classify_queue_state(queue) is QueueState.IDLE

    def test_통계가_없으면_발행률_0으로_간주(self, queue_factory):
        queue = queue_factory(consumers=0, messages=50, message_stats=None)

        assert classify_queue_state(queue) is QueueState.IDLE

    def test_컨슈머_없이_발행이_계속되면_active(self, queue_factory):
        queue = queue_factory(consumers=0, messages=500, message_stats=_stats(publish=3.0))

        assert classify_queue_state(queue) is QueueState.ACTIVE

    def test_전달이_멈추고_발행이_계속되면_blocked(self, queue_factory):
        queue = queue_factory(
            consumers=2, messages=100, message_stats=_stats(publish=2.0, deliver=0.05)
        )

        assert classify_queue_state(queue) is QueueState.BLOCKED

    def test_정상_처리_중이면_active(self, queue_factory):
        queue = queue_factory(
            consumers=2, messages=100, message_stats=_stats(publish=2.0, deliver=2.0)
        )

        assert classify_queue_state(queue) is QueueState.ACTIVE

    def test_전달률이_없으면_0으로_간주해_blocked(self, queue_factory):
        queue = queue_factory(
            consumers=1, messages=15, message_stats={"publish_details": {"rate": 5.0}}
        )

        assert classify_queue_state(queue) is QueueState.BLOCKED

    def test_빈_큐에_컨슈머만_있으면_active(self, queue_factory):
        queue = queue_factory(consumers=1, messages=0, message_stats=_stats())

        assert classify_queue_state(queue) is QueueState.ACTIVE


class TestDeadLetterQueue:
    """데드레터 큐 판별 테스트"""

    @pytest.mark.parametrize("name", ["orders.dlq", "orders.dead", "orders.deadletter"])
    def test_접미사로_판별(self, queue_factory, name):
        assert is_dead_letter_queue(queue_factory(name)) is True

    def test_데드레터_익스체인지_인자로_판별(self, queue_factory):
        queue = queue_factory("orders", arguments={"x-dead-letter-exchange": "dlx"})

        assert is_dead_letter_queue(queue) is True

    def test_일반_큐(self, queue_factory):
        assert is_dead_letter_queue(queue_factory("orders.dlq.archive")) is False
        assert is_dead_letter_queue(queue_factory("dead-orders")) is False


class TestHealthScore:
    """헬스 점수 계산 테스트"""

    def test_정상_큐는_만점(self, queue_factory):
        queue = queue_factory(messages=10, consumer_utilisation=0.9, message_stats=_stats())

        assert calculate_health_score(queue) == 100.0

    def test_누적_감점(self, queue_factory):
        """깊이 15000, 활용률 0.05, 재전달 2/s → 100-20-30-25-15 = 10"""
        queue = queue_factory(
            messages=15000,
            consumer_utilisation=0.05,
            message_stats=_stats(redeliver=2.0),
        )

        assert calculate_health_score(queue) == 10.0

    def test_최저_점수는_0(self, queue_factory):
        queue = queue_factory(
            messages=20000,
            consumer_utilisation=0.0,
            message_stats=_stats(redeliver=10.0),
        )

        assert calculate_health_score(queue) == 0.0

    def test_임계치_경계값은_감점_없음(self, queue_factory):
        queue = queue_factory(
            messages=1000,
            consumer_utilisation=0.10,
            message_stats=_stats(redeliver=1.0),
        )

        assert calculate_health_score(queue) == 100.0

    @pytest.mark.parametrize("messages", [0, 999, 1001, 9999, 10001, 50000])
    def test_깊이가_늘어도_점수는_증가하지_않음(self, queue_factory, messages):
        shallower = queue_factory(messages=messages, consumer_utilisation=0.5)
        deeper = queue_factory(messages=messages + 5000, consumer_utilisation=0.5)

        assert calculate_health_score(deeper) <= calculate_health_score(shallower)

    @pytest.mark.parametrize("utilisation", [0.0, 0.005, 0.05, 0.5])
    def test_활용률이_낮아도_점수는_증가하지_않음(self, queue_factory, utilisation):
        higher = queue_factory(consumer_utilisation=utilisation + 0.09)
        lower = queue_factory(consumer_utilisation=utilisation)

        assert calculate_health_score(lower) <= calculate_health_score(higher)

    @pytest.mark.parametrize("rate", [0.0, 0.5, 1.0, 1.5, 5.0, 5.5, 20.0])
    def test_재전달률이_늘어도_점수는_증가하지_않음(self, queue_factory, rate):
        calmer = queue_factory(message_stats=_stats(redeliver=rate))
        noisier = queue_factory(message_stats=_stats(redeliver=rate + 3))

        assert calculate_health_score(noisier) <= calculate_health_score(calmer)

    def test_재전달률만_심각하면_60점(self, queue_factory):
        queue = queue_factory(messages=10, consumer_utilisation=0.9, message_stats=_stats(redeliver=6.0))

        assert calculate_health_score(queue) == 60.0


class TestAlerts:
    """알림 계산 테스트"""

    def test_깊이_경고(self, queue_factory):
        alerts = depth_alerts(queue_factory(messages=1500))

        assert alerts == {AlertSeverity.WARNING: True, AlertSeverity.CRITICAL: False}

    def test_깊이_심각(self, queue_factory):
        alerts = depth_alerts(queue_factory(messages=10001))

        assert alerts == {AlertSeverity.WARNING: True, AlertSeverity.CRITICAL: True}

    def test_깊이_정상(self, queue_factory):
        alerts = depth_alerts(queue_factory(messages=1000))

        assert alerts == {AlertSeverity.WARNING: False, AlertSeverity.CRITICAL: False}

    def test_활용률_경고(self, queue_factory):
        alerts = utilisation_alerts(queue_factory(consumer_utilisation=0.05))

        assert alerts == {AlertSeverity.WARNING: True, AlertSeverity.CRITICAL: False}

    def test_활용률_심각(self, queue_factory):
        alerts = utilisation_alerts(queue_factory(consumer_utilisation=0.0))

        assert alerts == {AlertSeverity.WARNING: True, AlertSeverity.CRITICAL: True}

    def test_활용률_정상(self, queue_factory):
        alerts = utilisation_alerts(queue_factory(consumer_utilisation=0.9))

        assert alerts == {AlertSeverity.WARNING: False, AlertSeverity.CRITICAL: False}
