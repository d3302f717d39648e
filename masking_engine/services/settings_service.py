"""Masking Settings Update Service"""

from typing import Any, Dict, List, Mapping, Optional, Tuple
from pydantic import ValidationError
import structlog

from masking_engine.models.audit import AuditRecord
from masking_engine.models.settings import MaskingSettings
from masking_engine.rules.policy_engine import SettingsInput, UserInput, coerce_settings
from masking_engine.services.audit_service import AccountInput, AuditRecorder

logger = structlog.get_logger()

_FIELD_RULE_KEYS = {"enabled": None, "pattern": None}

# None marks a leaf; nested dicts are permitted sub-keys
PERMITTED_KEYS: Dict[str, Any] = {
    "masking_enabled": None,
    "masking_rules": {
        "admin_bypass": None,
        "allow_reveal": None,
        "exempt_roles": None,
        "email": _FIELD_RULE_KEYS,
        "phone": _FIELD_RULE_KEYS,
    },
}


class SettingsUpdateError(ValueError):
    """Update payload produced an invalid settings snapshot"""

    def __init__(self, errors: List[Dict[str, Any]]):
        self.errors = errors
        super().__init__(f"Invalid masking settings: {len(errors)} error(s)")


def filter_permitted(payload: Optional[Mapping[str, Any]], permitted: Mapping[str, Any] = PERMITTED_KEYS) -> Dict[str, Any]:
    """Drop every key outside the permitted whitelist"""
    if not isinstance(payload, Mapping):
        return {}

    filtered = {}
    for key, value in payload.items():
        if key not in permitted:
            continue
        allowed = permitted[key]
        if allowed is None:
            filtered[key] = value
        elif isinstance(value, Mapping):
            filtered[key] = filter_permitted(value, allowed)
    return filtered


def _deep_merge(base: Dict[str, Any], update: Mapping[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in update.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def apply_settings_update(current: SettingsInput, payload: Optional[Mapping[str, Any]]) -> MaskingSettings:
    """
    Merge a permitted update onto the current snapshot

    Returns a new snapshot; the current one is never mutated. Pattern
    strings are stored as given and interpreted when applied.

    Raises:
        SettingsUpdateError: when the merged settings do not validate
    """
    snapshot = coerce_settings(current) or MaskingSettings()
    update = filter_permitted(payload)

    rules = update.get("masking_rules")
    if isinstance(rules, dict) and "exempt_roles" in rules and rules["exempt_roles"] is None:
        rules["exempt_roles"] = []

    merged = _deep_merge(snapshot.to_account_settings(), update)

    try:
        return MaskingSettings.model_validate(merged)
    except ValidationError as e:
        logger.warning("masking_settings_update_rejected", errors=e.error_count())
        raise SettingsUpdateError(e.errors(include_url=False, include_context=False, include_input=False))


def update_settings(
    user: UserInput,
    account: AccountInput,
    current: SettingsInput,
    payload: Optional[Mapping[str, Any]],
    recorder: AuditRecorder
) -> Tuple[MaskingSettings, List[AuditRecord]]:
    """
    Apply a settings update and record its audit trail

    Emits a settings diff record, plus a feature toggle record when
    masking_enabled flipped.
    """
    old_snapshot = coerce_settings(current)
    new_snapshot = apply_settings_update(old_snapshot, payload)

    records = []
    record = recorder.record_settings_change(user, account, old_snapshot, new_snapshot)
    if record:
        records.append(record)

    was_enabled = old_snapshot.masking_enabled if old_snapshot else None
    if was_enabled is not None and was_enabled != new_snapshot.masking_enabled:
        toggle = recorder.record_feature_toggle(user, account, new_snapshot.masking_enabled)
        if toggle:
            records.append(toggle)

    logger.info(
        "masking_settings_updated",
        changed=bool(records),
        masking_enabled=new_snapshot.masking_enabled
    )

    return new_snapshot, records
