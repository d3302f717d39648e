"""Data Masking Models"""

from pydantic import BaseModel, Field
from typing import Optional, Dict, Any

from masking_engine.models.settings import (
    DataType,
    MaskingPattern,
    MaskingSettings,
    UserContext,
)


class MaskingDecision(BaseModel):
    """Effective masking decision for one field"""
    should_mask: bool
    pattern: Optional[MaskingPattern] = None

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {"should_mask": True, "pattern": "standard"}
        }


class RevealState(BaseModel):
    """Reveal state of a single field instance"""
    is_revealed: bool = False
    expires_at: Optional[float] = None  # clock reading, not wall time


class ResolveRequest(BaseModel):
    """Request to resolve the masking decision for a field"""
    settings: Optional[Dict[str, Any]] = Field(
        None,
        description="Account masking settings (missing means not provisioned)"
    )
    user: Optional[UserContext] = None
    data_type: DataType


class MaskValueRequest(BaseModel):
    """Request to get the display value of a single field"""
    value: Optional[str] = Field(None, description="Raw email or phone")
    data_type: DataType
    settings: Optional[Dict[str, Any]] = None
    user: Optional[UserContext] = None

    class Config:
        json_schema_extra = {
            "example": {
                "value": "john.doe@example.com",
                "data_type": "email",
                "settings": MaskingSettings.model_config["json_schema_extra"]["example"],
                "user": {"id": 7, "role": "agent", "account_role_type": "agent"}
            }
        }


class MaskValueResult(BaseModel):
    """Display value plus the decision that produced it"""
    value: Optional[str]
    decision: MaskingDecision
    can_reveal: bool


class ContactMaskRequest(BaseModel):
    """Request to mask every PII field of a contact payload"""
    contact: Dict[str, Any]
    settings: Optional[Dict[str, Any]] = None
    user: Optional[UserContext] = None


class ContactMaskResult(BaseModel):
    """Masked contact payload"""
    contact: Dict[str, Any]
    masked_fields: int
