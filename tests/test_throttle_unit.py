"""
Unit tests — Burst / cooldown throttle on the submission loop.
"""

from unittest.mock import MagicMock, call, patch

import pytest

from gety.core.throttle import BurstThrottle


class TestBurstThrottle:
    """gety.core.throttle.BurstThrottle.tick"""

    @patch("gety.core.throttle.time.sleep")
    def test_pauses_after_every_burst(self, mock_sleep):
        notify = MagicMock()
        throttle = BurstThrottle(burst_size=3, cooldown_s=5, notify=notify)

        slept = [throttle.tick() for _ in range(7)]

        # pause happens right before the 4th and 7th submissions
        assert slept == [0, 0, 0, 5, 0, 0, 5]
        assert mock_sleep.call_args_list == [call(5), call(5)]
        assert throttle.cooldowns == 2
        assert notify.call_count == 2
        assert "burst of 3 reached, cooling down for 5s" in notify.call_args[0][0]

    @patch("gety.core.throttle.time.sleep")
    def test_exactly_one_burst_needs_no_pause(self, mock_sleep):
        throttle = BurstThrottle(burst_size=4, cooldown_s=1)
        for _ in range(4):
            throttle.tick()
        mock_sleep.assert_not_called()
        assert throttle.count == 4

    @pytest.mark.parametrize("burst,cooldown", [(0, 5), (3, 0), (0, 0), (-1, 5), (3, -2)])
    @patch("gety.core.throttle.time.sleep")
    def test_unconfigured_never_pauses(self, mock_sleep, burst, cooldown):
        throttle = BurstThrottle(burst_size=burst, cooldown_s=cooldown)
        assert not throttle.enabled
        for _ in range(1000):
            assert throttle.tick() == 0.0
        mock_sleep.assert_not_called()
        assert throttle.cooldowns == 0

    @patch("gety.core.throttle.time.sleep")
    def test_burst_of_one_pauses_between_every_submission(self, mock_sleep):
        throttle = BurstThrottle(burst_size=1, cooldown_s=0.5)
        for _ in range(4):
            throttle.tick()
        assert mock_sleep.call_count == 3

    @patch("gety.core.throttle.time.sleep")
    def test_count_resets_after_cooldown(self, mock_sleep):
        throttle = BurstThrottle(burst_size=2, cooldown_s=1)
        throttle.tick()
        throttle.tick()
        assert throttle.count == 2
        throttle.tick()
        assert throttle.count == 1
