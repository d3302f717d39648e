"""Audit Service"""

import uuid
from datetime import datetime, timezone
from functools import lru_cache
from typing import Optional, Dict, Any, List, Callable, Mapping, Union
from pydantic import ValidationError
import structlog

from masking_engine.models.audit import (
    AuditActor,
    AuditEventType,
    AuditQuery,
    AuditRecord,
    AuditTarget,
)
from masking_engine.models.settings import AccountContext, DataType
from masking_engine.rules.policy_engine import SettingsInput, UserInput, coerce_settings, coerce_user
from masking_engine.services.masking_service import hash_value
from masking_engine.utils.config import settings

logger = structlog.get_logger()

AuditSink = Callable[[AuditRecord], Any]
AccountInput = Union[AccountContext, Mapping[str, Any], None]

ALLOWED_CONTEXT_KEYS = ("contact_id", "conversation_id", "message_id", "action")
CONTEXT_KEY_ALIASES = {
    "contactId": "contact_id",
    "conversationId": "conversation_id",
    "messageId": "message_id",
}
RULE_DIFF_FIELDS = ("email", "phone", "admin_bypass", "allow_reveal", "exempt_roles")


class InMemoryAuditSink:
    """
    In-memory audit sink

    Bounded list of records with filtered, paginated listing. Durable
    storage is the job of whatever sink replaces this one.
    """

    def __init__(self, max_records: Optional[int] = None):
        self.max_records = max_records or settings.AUDIT_MAX_RECORDS
        self.records: List[AuditRecord] = []

    def __call__(self, record: AuditRecord) -> None:
        self.records.append(record)
        if len(self.records) > self.max_records:
            del self.records[: len(self.records) - self.max_records]

    def _matching(self, query: AuditQuery) -> List[AuditRecord]:
        results = []
        for record in self.records:
            if query.event and record.event != query.event:
                continue
            if query.actor_id and str(record.actor.id) != query.actor_id:
                continue
            if query.data_type and record.data_type != query.data_type:
                continue
            results.append(record)
        return results

    def query(self, query: AuditQuery) -> List[AuditRecord]:
        """Query records with filters"""
        results = self._matching(query)
        start = query.offset
        end = start + query.limit
        return results[start:end]

    def count(self, query: AuditQuery) -> int:
        return len(self._matching(query))

    def clear(self) -> None:
        self.records.clear()


class LoggingAuditSink:
    """Writes every record as a structured log event"""

    def __call__(self, record: AuditRecord) -> None:
        logger.info("masking_audit", record=record.model_dump(mode="json"))


def filter_context(context: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Keep only allow-listed context keys"""
    if not context:
        return {}

    filtered = {}
    for key, value in context.items():
        key = CONTEXT_KEY_ALIASES.get(key, key)
        if key in ALLOWED_CONTEXT_KEYS:
            filtered[key] = value
    return filtered


def _coerce_account(account: AccountInput) -> Optional[AccountContext]:
    """Account snapshot; ids of any other type are kept as strings"""
    if account is None or isinstance(account, AccountContext):
        return account
    if isinstance(account, Mapping):
        account_id, name = account.get("id"), account.get("name")
    else:
        account_id, name = getattr(account, "id", None), getattr(account, "name", None)

    if account_id is not None and not isinstance(account_id, (int, str)):
        account_id = str(account_id)
    try:
        return AccountContext(id=account_id, name=name)
    except ValidationError as e:
        logger.warning("account_context_malformed", errors=e.error_count())
        return AccountContext(id=account_id)


def _settings_view(value: SettingsInput) -> Dict[str, Any]:
    """Comparable view of a settings snapshot (missing -> all None)"""
    snapshot = coerce_settings(value)
    if snapshot is None:
        return {"masking_enabled": None, "masking_rules": {}}
    return snapshot.to_account_settings()


def compute_settings_changes(old_settings: SettingsInput, new_settings: SettingsInput) -> Dict[str, Any]:
    """
    Structural diff of two settings snapshots

    Checks masking_enabled, then email, phone, admin_bypass,
    allow_reveal and exempt_roles under masking_rules.
    """
    old_view = _settings_view(old_settings)
    new_view = _settings_view(new_settings)
    changes: Dict[str, Any] = {}

    if old_view["masking_enabled"] != new_view["masking_enabled"]:
        changes["masking_enabled"] = {
            "from": old_view["masking_enabled"],
            "to": new_view["masking_enabled"]
        }

    old_rules = old_view["masking_rules"]
    new_rules = new_view["masking_rules"]
    rule_changes = {}
    for field in RULE_DIFF_FIELDS:
        if old_rules.get(field) != new_rules.get(field):
            rule_changes[field] = {
                "from": old_rules.get(field),
                "to": new_rules.get(field)
            }
    if rule_changes:
        changes["masking_rules"] = rule_changes

    return changes


class AuditRecorder:
    """
    Masking audit recorder

    Features:
    - Closed event and data type sets (invalid input is dropped)
    - Context allow-list, value digests instead of raw values
    - Settings diffs
    - Sink failures are logged, never raised
    """

    def __init__(self, sink: Optional[AuditSink] = None, hash_salt: Optional[str] = None):
        self.sink = sink if sink is not None else InMemoryAuditSink()
        self.hash_salt = settings.AUDIT_HASH_SALT if hash_salt is None else hash_salt

    def record_access(
        self,
        user: UserInput,
        account: AccountInput,
        event: Union[str, AuditEventType],
        data_type: Union[str, DataType],
        context: Optional[Mapping[str, Any]] = None,
        value: Optional[str] = None
    ) -> Optional[AuditRecord]:
        """
        Record a data access event

        Args:
            user: Acting user
            account: Account that owns the data
            event: One of AuditEventType
            data_type: email or phone
            context: Caller context (only allow-listed keys are kept)
            value: Raw value to reference; stored as a digest only

        Returns:
            The emitted record, or None when the event was dropped
        """
        try:
            event_type = AuditEventType(event)
            data_type = DataType(data_type)
        except (ValueError, TypeError):
            logger.debug("audit_event_dropped", audit_event=str(event), data_type=str(data_type))
            return None

        context = filter_context(context)

        record = self._build_record(
            user=user,
            account=account,
            event=event_type,
            data_type=data_type,
            action=str(context["action"]) if context.get("action") is not None else None,
            context=context,
            value_digest=hash_value(value, self.hash_salt) if value else None
        )
        return self._emit(record)

    def record_settings_change(
        self,
        user: UserInput,
        account: AccountInput,
        old_settings: SettingsInput,
        new_settings: SettingsInput
    ) -> Optional[AuditRecord]:
        """Record a settings update; nothing is emitted when nothing changed"""
        changes = compute_settings_changes(old_settings, new_settings)
        if not changes:
            return None

        record = self._build_record(
            user=user,
            account=account,
            event=AuditEventType.SETTINGS_UPDATED,
            changes=changes
        )
        return self._emit(record)

    def record_feature_toggle(
        self,
        user: UserInput,
        account: AccountInput,
        enabled: bool
    ) -> Optional[AuditRecord]:
        """Record the masking feature being switched on or off"""
        event = AuditEventType.FEATURE_ENABLED if enabled else AuditEventType.FEATURE_DISABLED

        record = self._build_record(
            user=user,
            account=account,
            event=event,
            details={"feature": "data_masking", "enabled": bool(enabled)}
        )
        return self._emit(record)

    def _build_record(
        self,
        user: UserInput,
        account: AccountInput,
        event: AuditEventType,
        **fields: Any
    ) -> AuditRecord:
        user_context = coerce_user(user)
        account_context = _coerce_account(account)

        return AuditRecord(
            record_id=str(uuid.uuid4()),
            event=event,
            actor=AuditActor(
                id=user_context.id if user_context else None,
                role=(user_context.role if user_context else None) or "unknown"
            ),
            target=AuditTarget(account_id=account_context.id if account_context else None),
            timestamp=datetime.now(timezone.utc),
            **fields
        )

    def _emit(self, record: AuditRecord) -> Optional[AuditRecord]:
        try:
            self.sink(record)
        except Exception as e:
            logger.error(
                "audit_sink_failed",
                record_id=record.record_id,
                audit_event=record.event.value,
                error=str(e)
            )
            return None

        logger.info(
            "audit_record_emitted",
            record_id=record.record_id,
            audit_event=record.event.value,
            actor_id=record.actor.id
        )
        return record


@lru_cache()
def get_audit_sink() -> AuditSink:
    if settings.AUDIT_SINK == "log":
        return LoggingAuditSink()
    return InMemoryAuditSink()


@lru_cache()
def get_audit_recorder() -> AuditRecorder:
    return AuditRecorder(sink=get_audit_sink())
