"""Contact Display Service"""

from typing import Any, Dict, Mapping, Optional, Tuple, Union
import structlog

from masking_engine.models.audit import AuditEventType
from masking_engine.models.mask import MaskingDecision
from masking_engine.models.settings import DataType
from masking_engine.rules.policy_engine import PolicyResolver, SettingsInput, UserInput
from masking_engine.services.audit_service import AccountInput, AuditRecorder, get_audit_recorder
from masking_engine.services.masking_service import mask_email_list, mask_value
from masking_engine.services.pii_protection_service import PROTECTED, PiiProtectionService
from masking_engine.services.reveal_service import AnyRevealHandle, RevealSessionManager

logger = structlog.get_logger()

# Payload keys holding PII, by data type
PII_FIELDS: Dict[str, DataType] = {
    "email": DataType.EMAIL,
    "phone": DataType.PHONE,
    "phone_number": DataType.PHONE,
    "phone_number_formatted": DataType.PHONE,
}


class MaskingDisplayService:
    """
    Display facade for contact PII

    Resolves the policy once per session, masks values, manages timed
    reveals and records reveal/copy audit events. One instance per
    user session.
    """

    def __init__(
        self,
        settings: SettingsInput,
        user: UserInput,
        account: AccountInput = None,
        recorder: Optional[AuditRecorder] = None,
        reveal_duration_ms: Optional[int] = None,
        reveals: Optional[RevealSessionManager] = None
    ):
        self.policy = PolicyResolver(settings, user)
        self.account = account
        self.recorder = recorder or get_audit_recorder()
        self.reveals = reveals or RevealSessionManager(
            duration_ms=reveal_duration_ms,
            policy=self.policy
        )
        self.protection = PiiProtectionService(self.policy.user)

    @property
    def user(self):
        return self.policy.user

    def decision(self, data_type: Union[str, DataType]) -> MaskingDecision:
        return self.policy.resolve(data_type)

    def is_masking_enabled(self, data_type: Union[str, DataType]) -> bool:
        return self.decision(data_type).should_mask

    @property
    def can_view_sensitive_data(self) -> bool:
        return self.policy.can_view_sensitive_data()

    def can_reveal_data(self, data_type: Union[str, DataType]) -> bool:
        return self.policy.can_reveal(data_type)

    @property
    def is_pii_protected(self) -> bool:
        """User-level protection; overrides the account masking settings"""
        return self.protection.is_protected

    # Masking

    def mask(self, value: Optional[str], data_type: Union[str, DataType]) -> Optional[str]:
        """Masked value when the policy says so, raw value otherwise"""
        decision = self.decision(data_type)
        if not value or not decision.should_mask:
            return value
        return mask_value(data_type, value, decision.pattern)

    def mask_email(self, value: Optional[str]) -> Optional[str]:
        return self.mask(value, DataType.EMAIL)

    def mask_phone(self, value: Optional[str]) -> Optional[str]:
        return self.mask(value, DataType.PHONE)

    def mask_email_list(self, value: Optional[str]) -> Optional[str]:
        decision = self.decision(DataType.EMAIL)
        if not value or not decision.should_mask:
            return value
        return mask_email_list(value, decision.pattern)

    # Display

    def get_display_value(
        self,
        value: Optional[str],
        data_type: Union[str, DataType],
        reveal_key: Optional[str] = None
    ) -> Optional[str]:
        """
        Value to render for a field

        PROTECTED for protected users. Otherwise raw when unmasked; the
        reveal state's current value when a reveal of this value exists
        for the key and reveal is permitted; masked otherwise.
        """
        if self.is_pii_protected:
            return PROTECTED
        if not value or not self.is_masking_enabled(data_type):
            return value

        if reveal_key and self.can_reveal_data(data_type):
            handle = self.reveals.get(reveal_key)
            # Keys can be reused across records
            if handle is not None and handle.raw_value == value:
                return handle.get_current_value()

        return self.mask(value, data_type)

    def get_display_email(self, value: Optional[str], reveal_key: Optional[str] = None) -> Optional[str]:
        return self.get_display_value(value, DataType.EMAIL, reveal_key)

    def get_display_phone(self, value: Optional[str], reveal_key: Optional[str] = None) -> Optional[str]:
        return self.get_display_value(value, DataType.PHONE, reveal_key)

    # Reveal

    def create_reveal(
        self,
        value: Optional[str],
        data_type: Union[str, DataType],
        reveal_key: str
    ) -> Optional[AnyRevealHandle]:
        """
        Reveal handle for a field instance

        Passthrough handle when the value is not masked, None when the
        account does not allow reveals or the user is PII protected.
        """
        if self.is_pii_protected:
            return None
        if self.is_masking_enabled(data_type) and not self.can_reveal_data(data_type):
            return None
        return self.reveals.create_reveal(value, data_type, reveal_key)

    def reveal(
        self,
        value: Optional[str],
        data_type: Union[str, DataType],
        reveal_key: str,
        context: Optional[Mapping[str, Any]] = None
    ) -> Optional[str]:
        """Reveal a field, record the access and return the displayed value"""
        if self.is_pii_protected:
            logger.warning("reveal_not_permitted", reveal_key=reveal_key, data_type=str(data_type))
            return PROTECTED
        if not value or not self.is_masking_enabled(data_type):
            return value

        if not self.can_reveal_data(data_type):
            logger.warning("reveal_not_permitted", reveal_key=reveal_key, data_type=str(data_type))
            return self.mask(value, data_type)

        handle = self.reveals.get(reveal_key)
        if handle is None or handle.raw_value != value:
            handle = self.reveals.create_reveal(value, data_type, reveal_key)
        revealed = handle.reveal()

        self.recorder.record_access(
            self.user,
            self.account,
            AuditEventType.DATA_REVEALED,
            data_type,
            context=self._event_context(context, "reveal"),
            value=value
        )
        return revealed

    def hide(self, reveal_key: str) -> Optional[str]:
        handle = self.reveals.get(reveal_key)
        return handle.hide() if handle else None

    def record_copy(
        self,
        value: Optional[str],
        data_type: Union[str, DataType],
        context: Optional[Mapping[str, Any]] = None
    ) -> None:
        """Record that a raw value was copied by the user"""
        if not value:
            return
        self.recorder.record_access(
            self.user,
            self.account,
            AuditEventType.DATA_COPIED,
            data_type,
            context=self._event_context(context, "copy"),
            value=value
        )

    @staticmethod
    def _event_context(context: Optional[Mapping[str, Any]], action: str) -> Dict[str, Any]:
        merged = dict(context or {})
        merged.setdefault("action", action)
        return merged

    # Links

    def _raw_visible(self, data_type: DataType) -> bool:
        if self.is_pii_protected:
            return False
        return not self.is_masking_enabled(data_type) or self.can_view_sensitive_data

    def should_show_mailto_link(self, value: Optional[str]) -> bool:
        return bool(value) and self._raw_visible(DataType.EMAIL)

    def should_show_tel_link(self, value: Optional[str]) -> bool:
        return bool(value) and self._raw_visible(DataType.PHONE)

    def get_link_value(self, original: Optional[str], data_type: Union[str, DataType]) -> Optional[str]:
        """Original value for links/copy targets, None while it is masked"""
        try:
            data_type = DataType(data_type)
        except (ValueError, TypeError):
            return None
        return original if self._raw_visible(data_type) else None

    # Payloads

    def mask_contact(self, payload: Any) -> Tuple[Any, int]:
        """
        Mask PII keys anywhere in a contact payload

        PII protected users get every PII key replaced with PROTECTED.

        Returns:
            Tuple of (masked_payload, masked_field_count)
        """
        if self.is_pii_protected:
            sanitized = self.protection.sanitize(payload)
            return sanitized, len(self.protection.violations)
        return self._mask_payload(payload)

    def _mask_payload(self, payload: Any) -> Tuple[Any, int]:
        if isinstance(payload, Mapping):
            masked: Dict[str, Any] = {}
            count = 0
            for key, value in payload.items():
                data_type = PII_FIELDS.get(key)
                if data_type and isinstance(value, str):
                    masked[key] = self.mask(value, data_type)
                    count += int(masked[key] != value)
                else:
                    masked[key], nested = self._mask_payload(value)
                    count += nested
            return masked, count

        if isinstance(payload, list):
            items = [self._mask_payload(item) for item in payload]
            return [item for item, _ in items], sum(n for _, n in items)

        return payload, 0
