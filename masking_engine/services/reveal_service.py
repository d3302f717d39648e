"""Reveal Session Service"""

import time
from enum import Enum
from typing import Callable, Dict, Optional, Union
import structlog

from masking_engine.models.mask import RevealState
from masking_engine.models.settings import DataType
from masking_engine.rules.policy_engine import PolicyResolver, SettingsInput, UserInput
from masking_engine.services.masking_service import mask_value
from masking_engine.utils.config import settings as app_settings

logger = structlog.get_logger()

Clock = Callable[[], float]


class Visibility(str, Enum):
    HIDDEN = "hidden"
    REVEALED = "revealed"


class PassthroughRevealHandle:
    """Handle for values that are not masked for the caller; nothing to hide"""

    def __init__(self, raw_value: Optional[str]):
        self.raw_value = raw_value

    @property
    def is_revealed(self) -> bool:
        return True

    @property
    def state(self) -> RevealState:
        return RevealState(is_revealed=True)

    def reveal(self) -> Optional[str]:
        return self.raw_value

    def hide(self) -> Optional[str]:
        return self.raw_value

    def toggle(self) -> Optional[str]:
        return self.raw_value

    def get_current_value(self) -> Optional[str]:
        return self.raw_value


class RevealHandle:
    """
    Timed reveal of one field instance

    State machine {HIDDEN, REVEALED} with a single deadline back to
    HIDDEN. reveal() rearms the deadline; hide() cancels it. Expiry is
    applied on the next read, so polling is enough to observe it.
    """

    def __init__(
        self,
        raw_value: str,
        masked_value: Optional[str],
        duration_ms: int = 3000,
        clock: Clock = time.monotonic
    ):
        self.raw_value = raw_value
        self.masked_value = masked_value
        self.duration_ms = duration_ms
        self._clock = clock
        self._visibility = Visibility.HIDDEN
        self._expires_at: Optional[float] = None

    def _expire(self) -> None:
        if (
            self._visibility == Visibility.REVEALED
            and self._expires_at is not None
            and self._clock() >= self._expires_at
        ):
            self._visibility = Visibility.HIDDEN
            self._expires_at = None

    @property
    def is_revealed(self) -> bool:
        self._expire()
        return self._visibility == Visibility.REVEALED

    @property
    def state(self) -> RevealState:
        self._expire()
        return RevealState(
            is_revealed=self._visibility == Visibility.REVEALED,
            expires_at=self._expires_at
        )

    def reveal(self) -> str:
        self._visibility = Visibility.REVEALED
        self._expires_at = self._clock() + self.duration_ms / 1000.0
        return self.raw_value

    def hide(self) -> Optional[str]:
        self._visibility = Visibility.HIDDEN
        self._expires_at = None
        return self.masked_value

    def toggle(self) -> Optional[str]:
        return self.hide() if self.is_revealed else self.reveal()

    def get_current_value(self) -> Optional[str]:
        return self.raw_value if self.is_revealed else self.masked_value


AnyRevealHandle = Union[RevealHandle, PassthroughRevealHandle]


class RevealSessionManager:
    """
    Reveal states of one user session, keyed by reveal key

    Never share an instance across users; the state map is owned by
    the session that created it. A key holds one handle at a time, so
    create_reveal replaces the previous handle and the map grows with
    the number of distinct keys, never with the number of reveals.
    """

    def __init__(
        self,
        settings: SettingsInput = None,
        user: UserInput = None,
        duration_ms: Optional[int] = None,
        clock: Clock = time.monotonic,
        policy: Optional[PolicyResolver] = None
    ):
        self.policy = policy or PolicyResolver(settings, user)
        self.duration_ms = duration_ms if duration_ms is not None else app_settings.REVEAL_DURATION_MS
        self._clock = clock
        self._states: Dict[str, RevealHandle] = {}

    def can_reveal_data(self, data_type: Union[str, DataType]) -> bool:
        return self.policy.can_reveal(data_type)

    def create_reveal(
        self,
        raw_value: Optional[str],
        data_type: Union[str, DataType],
        reveal_key: str
    ) -> AnyRevealHandle:
        """
        Create the reveal handle for a field instance

        Callers check can_reveal_data() first. A value that is not masked
        for this user gets a passthrough handle and no stored state.
        """
        decision = self.policy.resolve(data_type)
        if not raw_value or not decision.should_mask:
            return PassthroughRevealHandle(raw_value)

        handle = RevealHandle(
            raw_value=raw_value,
            masked_value=mask_value(data_type, raw_value, decision.pattern),
            duration_ms=self.duration_ms,
            clock=self._clock
        )
        self._states[reveal_key] = handle

        logger.debug(
            "reveal_handle_created",
            reveal_key=reveal_key,
            duration_ms=self.duration_ms
        )

        return handle

    def get(self, reveal_key: str) -> Optional[RevealHandle]:
        return self._states.get(reveal_key)

    def has(self, reveal_key: str) -> bool:
        return reveal_key in self._states

    def current_value(self, reveal_key: str, default: Optional[str] = None) -> Optional[str]:
        handle = self._states.get(reveal_key)
        return handle.get_current_value() if handle else default

    def hide_all(self) -> None:
        for handle in self._states.values():
            handle.hide()

    def clear(self) -> None:
        self.hide_all()
        self._states.clear()

    def __len__(self) -> int:
        return len(self._states)
