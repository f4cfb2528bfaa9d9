"""Tests for mode selection at session creation."""

import pytest

from src.domain.models.profile import ProfileCompleteness
from src.domain.models.session import SessionMode
from src.services.mode_selector import select_mode


def snapshot(pct: int) -> ProfileCompleteness:
    return ProfileCompleteness(completion_percentage=pct)


class TestSelectMode:
    @pytest.mark.parametrize("pct", [0, 40, 80, 100])
    def test_explicit_discovery_always_wins(self, pct):
        assert select_mode(SessionMode.DISCOVERY, snapshot(pct)) == SessionMode.DISCOVERY

    @pytest.mark.parametrize("pct", [20, 40, 60])
    def test_partial_profile_resumes_discovery(self, pct):
        assert select_mode(None, snapshot(pct)) == SessionMode.PARTIAL_DISCOVERY

    def test_partial_profile_overrides_coaching_request(self):
        assert (
            select_mode(SessionMode.COACHING, snapshot(60))
            == SessionMode.PARTIAL_DISCOVERY
        )

    @pytest.mark.parametrize("pct", [80, 100])
    def test_coaching_on_request_when_profile_complete(self, pct):
        assert select_mode(SessionMode.COACHING, snapshot(pct)) == SessionMode.COACHING

    @pytest.mark.parametrize("pct", [80, 100])
    def test_default_is_check_in(self, pct):
        assert select_mode(None, snapshot(pct)) == SessionMode.CHECK_IN

    def test_empty_profile_is_check_in(self):
        """0% is outside the open interval for partial discovery."""
        assert select_mode(None, snapshot(0)) == SessionMode.CHECK_IN
        assert select_mode(SessionMode.COACHING, snapshot(0)) == SessionMode.CHECK_IN

    def test_explicit_check_in(self):
        assert select_mode(SessionMode.CHECK_IN, snapshot(100)) == SessionMode.CHECK_IN

    def test_threshold_is_configurable(self):
        assert select_mode(None, snapshot(80), threshold=90) == SessionMode.PARTIAL_DISCOVERY
        assert (
            select_mode(SessionMode.COACHING, snapshot(60), threshold=60)
            == SessionMode.COACHING
        )
