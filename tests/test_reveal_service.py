"""Tests for timed reveal sessions"""

import pytest
from masking_engine.models.settings import MaskingSettings, UserContext
from masking_engine.services.reveal_service import (
    PassthroughRevealHandle,
    RevealHandle,
    RevealSessionManager,
)

EMAIL = "john.doe@example.com"
MASKED_EMAIL = "j***e@e***.com"


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms / 1000.0


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def agent():
    return UserContext(id=2, role="agent", account_role_type="agent")


@pytest.fixture
def manager(agent, clock):
    return RevealSessionManager(MaskingSettings(), agent, clock=clock)


class TestRevealHandle:
    """Test reveal/hide state transitions"""

    def test_starts_hidden(self, manager):
        handle = manager.create_reveal(EMAIL, "email", "contact-1:email")
        assert handle.is_revealed is False
        assert handle.get_current_value() == MASKED_EMAIL

    def test_reveal_hide_round_trip(self, manager):
        handle = manager.create_reveal(EMAIL, "email", "contact-1:email")

        assert handle.reveal() == EMAIL
        assert handle.get_current_value() == EMAIL
        assert handle.is_revealed is True

        assert handle.hide() == MASKED_EMAIL
        assert handle.get_current_value() == MASKED_EMAIL
        assert handle.is_revealed is False

    def test_expires_after_duration(self, manager, clock):
        handle = manager.create_reveal(EMAIL, "email", "contact-1:email")
        handle.reveal()

        clock.advance(2500)
        assert handle.is_revealed is True

        clock.advance(600)
        assert handle.is_revealed is False
        assert handle.get_current_value() == MASKED_EMAIL

    def test_reveal_rearms_deadline(self, manager, clock):
        handle = manager.create_reveal(EMAIL, "email", "contact-1:email")
        handle.reveal()
        clock.advance(2000)
        handle.reveal()
        clock.advance(2000)

        assert handle.is_revealed is True

        clock.advance(1500)
        assert handle.is_revealed is False

    def test_hide_cancels_deadline(self, manager, clock):
        handle = manager.create_reveal(EMAIL, "email", "contact-1:email")
        handle.reveal()
        handle.hide()

        assert handle.state.expires_at is None
        clock.advance(5000)
        assert handle.is_revealed is False

    def test_state_snapshot(self, manager, clock):
        handle = manager.create_reveal(EMAIL, "email", "contact-1:email")
        handle.reveal()

        state = handle.state
        assert state.is_revealed is True
        assert state.expires_at == pytest.approx(clock.now + 3.0)

    def test_toggle(self, manager):
        handle = manager.create_reveal(EMAIL, "email", "contact-1:email")
        assert handle.toggle() == EMAIL
        assert handle.toggle() == MASKED_EMAIL

    def test_custom_duration(self, agent, clock):
        manager = RevealSessionManager(MaskingSettings(), agent, duration_ms=500, clock=clock)
        handle = manager.create_reveal(EMAIL, "email", "contact-1:email")
        handle.reveal()

        clock.advance(600)
        assert handle.is_revealed is False

    def test_uses_field_pattern(self, agent, clock):
        settings = {"masking_rules": {"phone": {"pattern": "minimal"}}}
        manager = RevealSessionManager(settings, agent, clock=clock)
        handle = manager.create_reveal("+1-555-123-4567", "phone", "contact-1:phone")
        assert handle.get_current_value() == "+1 ***-***-4567"


class TestPassthrough:
    """Test handles for values that are not masked"""

    def test_unmasked_user_gets_passthrough(self, agent):
        manager = RevealSessionManager({"masking_enabled": False}, agent)
        handle = manager.create_reveal(EMAIL, "email", "contact-1:email")

        assert isinstance(handle, PassthroughRevealHandle)
        assert handle.is_revealed is True
        assert handle.hide() == EMAIL
        assert handle.get_current_value() == EMAIL
        assert len(manager) == 0

    def test_empty_value(self, manager):
        handle = manager.create_reveal("", "email", "contact-1:email")
        assert isinstance(handle, PassthroughRevealHandle)
        assert handle.reveal() == ""


class TestRevealSessionManager:
    """Test per-key state"""

    def test_keys_are_independent(self, manager):
        first = manager.create_reveal(EMAIL, "email", "contact-1:email")
        manager.create_reveal("+1-555-123-4567", "phone", "contact-1:phone")

        first.reveal()

        assert manager.current_value("contact-1:email") == EMAIL
        assert manager.current_value("contact-1:phone") == "***-***-4567"

    def test_get_and_has(self, manager):
        handle = manager.create_reveal(EMAIL, "email", "contact-1:email")
        assert manager.get("contact-1:email") is handle
        assert isinstance(handle, RevealHandle)
        assert manager.has("contact-1:email")
        assert not manager.has("contact-2:email")

    def test_current_value_default(self, manager):
        assert manager.current_value("missing", default="fallback") == "fallback"

    def test_hide_all(self, manager):
        manager.create_reveal(EMAIL, "email", "a").reveal()
        manager.create_reveal(EMAIL, "email", "b").reveal()

        manager.hide_all()

        assert manager.current_value("a") == MASKED_EMAIL
        assert manager.current_value("b") == MASKED_EMAIL

    def test_recreating_a_key_replaces_its_handle(self, manager):
        first = manager.create_reveal(EMAIL, "email", "a")
        second = manager.create_reveal("jane@example.com", "email", "a")

        assert len(manager) == 1
        assert manager.get("a") is second
        assert second is not first

    def test_clear(self, manager):
        manager.create_reveal(EMAIL, "email", "a")
        manager.clear()
        assert len(manager) == 0

    def test_can_reveal_data(self, agent):
        assert RevealSessionManager(MaskingSettings(), agent).can_reveal_data("email") is True
        disallowed = RevealSessionManager({"masking_rules": {"allow_reveal": False}}, agent)
        assert disallowed.can_reveal_data("email") is False
