"""Settings Update Models"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any

from masking_engine.models.audit import AuditRecord
from masking_engine.models.settings import AccountContext, UserContext


class SettingsUpdateRequest(BaseModel):
    """Request to update account masking settings"""
    user: Optional[UserContext] = None
    account: Optional[AccountContext] = None
    current_settings: Optional[Dict[str, Any]] = Field(
        None,
        description="Settings currently stored for the account"
    )
    update: Dict[str, Any] = Field(..., description="Requested changes (unpermitted keys are dropped)")

    class Config:
        json_schema_extra = {
            "example": {
                "user": {"id": 1, "role": "administrator", "account_role_type": "administrator"},
                "account": {"id": 1},
                "current_settings": None,
                "update": {
                    "masking_enabled": True,
                    "masking_rules": {
                        "admin_bypass": True,
                        "phone": {"enabled": True, "pattern": "minimal"}
                    }
                }
            }
        }


class SettingsUpdateResult(BaseModel):
    """New settings snapshot plus the audit records it produced"""
    settings: Dict[str, Any]
    audit_records: List[AuditRecord]


class FeatureToggleRequest(BaseModel):
    """Request to switch the masking feature on or off"""
    user: Optional[UserContext] = None
    account: Optional[AccountContext] = None
    enabled: bool
