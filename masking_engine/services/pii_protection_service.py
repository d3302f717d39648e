"""PII Protection Service"""

from datetime import datetime, timezone
from typing import Any, Dict, List
import structlog

from masking_engine.rules.policy_engine import UserInput, coerce_user
from masking_engine.services.masking_service import hash_value

logger = structlog.get_logger()

PROTECTED = "[PROTECTED]"
PROTECTED_FIELDS = frozenset({"email", "phone", "phone_number", "phone_number_formatted"})


class PiiProtectionService:
    """
    User-level PII protection

    Users with pii_masking_enabled never receive contact PII, whatever
    the account masking settings say. Protected keys are replaced with
    PROTECTED at any depth and every replacement is kept as a violation
    holding only a SHA-256 digest of the value.
    """

    def __init__(self, user: UserInput):
        self.user = coerce_user(user)
        self.violations: List[Dict[str, Any]] = []

    @property
    def is_protected(self) -> bool:
        return bool(self.user and self.user.pii_masking_enabled)

    def sanitize(self, data: Any) -> Any:
        """
        Sanitized copy of a payload; unchanged for unprotected users

        Violations of the previous call are discarded.
        """
        self.violations = []
        if not self.is_protected:
            return data

        logger.info("pii_access_attempt", user_id=self.user.id)
        sanitized = self._sanitize(data)

        if self.violations:
            logger.warning(
                "pii_data_sanitized",
                user_id=self.user.id,
                violations=len(self.violations)
            )
            for violation in self.violations:
                logger.warning(
                    "pii_field_sanitized",
                    field=violation["field"],
                    value_hash=violation["value_hash"][:11]
                )
        return sanitized

    def _sanitize(self, data: Any) -> Any:
        if isinstance(data, dict):
            sanitized = {}
            for key, value in data.items():
                if key in PROTECTED_FIELDS:
                    sanitized[key] = self._protect(key, value)
                else:
                    sanitized[key] = self._sanitize(value)
            return sanitized
        if isinstance(data, list):
            return [self._sanitize(item) for item in data]
        return data

    def _protect(self, field: str, value: Any) -> Any:
        # Blank values carry nothing to protect
        if value is None or value == "":
            return value

        self.violations.append({
            "field": field,
            "value_hash": hash_value(str(value)),
            "timestamp": datetime.now(timezone.utc)
        })
        return PROTECTED


def validate_agent_access(user: UserInput, data: Any) -> Any:
    """Payload as the user may receive it"""
    return PiiProtectionService(user).sanitize(data)
