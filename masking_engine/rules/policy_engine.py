"""Policy Engine for Masking Decisions"""

from typing import Any, Mapping, Optional, Union
from pydantic import ValidationError
import structlog

from masking_engine.models.mask import MaskingDecision
from masking_engine.models.settings import (
    AccountRoleType,
    DataType,
    MaskingPattern,
    MaskingSettings,
    UserContext,
)
from masking_engine.services.masking_service import normalize_pattern

logger = structlog.get_logger()

SettingsInput = Union[MaskingSettings, Mapping[str, Any], None]
UserInput = Union[UserContext, Mapping[str, Any], None]

UNMASKED = MaskingDecision(should_mask=False)
DEFAULT_MASKED = MaskingDecision(should_mask=True, pattern=MaskingPattern.STANDARD)


def coerce_settings(settings: SettingsInput) -> Optional[MaskingSettings]:
    """Settings snapshot, or None when absent or malformed"""
    if settings is None or isinstance(settings, MaskingSettings):
        return settings
    if not isinstance(settings, Mapping):
        return None
    try:
        return MaskingSettings.model_validate(dict(settings))
    except ValidationError as e:
        logger.warning("masking_settings_malformed", errors=e.error_count())
        return None


def coerce_user(user: UserInput) -> Optional[UserContext]:
    """User snapshot, or None when absent or malformed"""
    if user is None or isinstance(user, UserContext):
        return user
    if not isinstance(user, Mapping):
        return None
    try:
        return UserContext.model_validate(dict(user))
    except ValidationError as e:
        logger.warning("user_context_malformed", errors=e.error_count())
        return None


def is_bypassed(settings: MaskingSettings, user: UserContext) -> bool:
    """Admin bypass and exempt roles are independent; either one suffices"""
    rules = settings.masking_rules
    if user.account_role_type == AccountRoleType.ADMINISTRATOR and rules.admin_bypass:
        return True
    return user.role is not None and user.role in rules.exempt_roles


def resolve(
    settings: SettingsInput,
    user: UserInput,
    field: Union[str, DataType]
) -> MaskingDecision:
    """
    Resolve the masking decision for a field

    First match wins:
    1. settings missing or malformed -> unmasked
    2. masking disabled for the account -> unmasked
    3. field rule disabled -> unmasked
    4. user missing -> masked with the standard pattern
    5. administrator with admin_bypass -> unmasked
    6. role in exempt_roles -> unmasked
    7. masked with the field's pattern

    Never raises; sits on every PII read path.
    """
    snapshot = coerce_settings(settings)
    if snapshot is None:
        return UNMASKED

    if not snapshot.masking_enabled:
        return UNMASKED

    # A disabled field rule unmasks even when the user is unknown
    rule = snapshot.rule_for(field)
    if not rule.enabled:
        return UNMASKED

    context = coerce_user(user)
    if context is None:
        return DEFAULT_MASKED

    if is_bypassed(snapshot, context):
        return UNMASKED

    return MaskingDecision(should_mask=True, pattern=normalize_pattern(rule.pattern))


def can_view_sensitive_data(settings: SettingsInput, user: UserInput) -> bool:
    """Whether the user sees raw values regardless of field rules"""
    snapshot = coerce_settings(settings)
    if snapshot is None or not snapshot.masking_enabled:
        return True

    context = coerce_user(user)
    if context is None:
        return False
    return is_bypassed(snapshot, context)


def can_reveal(
    settings: SettingsInput,
    user: UserInput,
    field: Union[str, DataType]
) -> bool:
    """Reveal needs something to reveal and allow_reveal on the account"""
    if not resolve(settings, user, field).should_mask:
        return False
    snapshot = coerce_settings(settings)
    return snapshot is not None and snapshot.masking_rules.allow_reveal


class PolicyResolver:
    """
    Masking policy bound to one settings snapshot and user

    Coerces the inputs once so that repeated lookups on a request path
    do not re-validate the raw account settings.
    """

    def __init__(self, settings: SettingsInput, user: UserInput):
        self.settings = coerce_settings(settings)
        self.user = coerce_user(user)

    def resolve(self, field: Union[str, DataType]) -> MaskingDecision:
        decision = resolve(self.settings, self.user, field)
        logger.debug(
            "masking_decision_resolved",
            field=field.value if isinstance(field, DataType) else field,
            should_mask=decision.should_mask,
            pattern=decision.pattern.value if decision.pattern else None
        )
        return decision

    def can_view_sensitive_data(self) -> bool:
        return can_view_sensitive_data(self.settings, self.user)

    def can_reveal(self, field: Union[str, DataType]) -> bool:
        return can_reveal(self.settings, self.user, field)
