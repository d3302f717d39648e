"""Audit Models"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any, Union
from datetime import datetime
from enum import Enum

from masking_engine.models.settings import AccountContext, DataType, UserContext


class AuditEventType(str, Enum):
    """Closed set of masking audit events"""
    DATA_REVEALED = "data_revealed"
    DATA_COPIED = "data_copied"
    SETTINGS_UPDATED = "masking_settings_updated"
    FEATURE_ENABLED = "masking_feature_enabled"
    FEATURE_DISABLED = "masking_feature_disabled"


class AuditActor(BaseModel):
    """User that triggered the event"""
    type: str = "User"
    id: Optional[Union[int, str]] = None
    role: str = "unknown"


class AuditTarget(BaseModel):
    """Account the event belongs to"""
    type: str = "Account"
    account_id: Optional[Union[int, str]] = None


class AuditRecord(BaseModel):
    """Pre-redacted masking audit record"""
    record_id: str
    event: AuditEventType
    actor: AuditActor
    target: AuditTarget
    data_type: Optional[DataType] = None
    action: Optional[str] = None
    context: Dict[str, Any] = Field(default_factory=dict)
    changes: Dict[str, Any] = Field(default_factory=dict)
    details: Dict[str, Any] = Field(default_factory=dict)
    value_digest: Optional[str] = None  # SHA-256, never the raw value
    source: str = "masking_system"
    timestamp: datetime

    class Config:
        json_schema_extra = {
            "example": {
                "record_id": "0b6f0d5e-4c1e-4f55-9a57-0d2b0c6f3f11",
                "event": "data_revealed",
                "actor": {"type": "User", "id": 7, "role": "agent"},
                "target": {"type": "Account", "account_id": 1},
                "data_type": "email",
                "action": "reveal",
                "context": {"contact_id": 42},
                "value_digest": "5f4dcc3b...",
                "source": "masking_system",
                "timestamp": "2024-01-15T10:30:00Z"
            }
        }


class AuditQuery(BaseModel):
    """Query parameters for in-memory audit records"""
    event: Optional[AuditEventType] = None
    actor_id: Optional[str] = None
    data_type: Optional[DataType] = None
    limit: int = 100
    offset: int = 0


class AccessEventRequest(BaseModel):
    """Request to record a data access event"""
    user: Optional[UserContext] = None
    account: Optional[AccountContext] = None
    event: str
    data_type: str
    context: Dict[str, Any] = Field(default_factory=dict)


class AuditRecordList(BaseModel):
    """Page of audit records"""
    records: List[AuditRecord]
    total: int
    limit: int
    offset: int
