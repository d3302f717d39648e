"""Masking Settings and Request Context Models"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, FrozenSet, Any, Union
from enum import Enum


class MaskingPattern(str, Enum):
    """How much of a value remains visible"""
    MINIMAL = "minimal"
    STANDARD = "standard"
    COMPLETE = "complete"


class DataType(str, Enum):
    """Maskable data types"""
    EMAIL = "email"
    PHONE = "phone"


class AccountRoleType(str, Enum):
    """Role type of a user inside the account"""
    ADMINISTRATOR = "administrator"
    AGENT = "agent"
    OTHER = "other"


class FieldRule(BaseModel):
    """Masking rule for a single data type"""
    enabled: bool = True
    # Stored as given; unknown values resolve to standard when applied
    pattern: Optional[str] = MaskingPattern.STANDARD.value

    class Config:
        frozen = True
        extra = "ignore"

    @field_validator("pattern", mode="before")
    @classmethod
    def _keep_pattern(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return str(value)


class MaskingRules(BaseModel):
    """Per-field rules plus account-wide bypass options"""
    email: FieldRule = Field(default_factory=FieldRule)
    phone: FieldRule = Field(default_factory=FieldRule)
    admin_bypass: bool = False
    allow_reveal: bool = True
    exempt_roles: FrozenSet[str] = frozenset()

    class Config:
        frozen = True
        extra = "ignore"

    @field_validator("email", "phone", mode="before")
    @classmethod
    def _default_rule(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("exempt_roles", mode="before")
    @classmethod
    def _default_roles(cls, value: Any) -> Any:
        return frozenset() if value is None else value


class MaskingSettings(BaseModel):
    """
    Account masking configuration

    Immutable snapshot passed into every evaluation. Updates produce a
    new snapshot (see settings_service.apply_settings_update).
    """
    masking_enabled: bool = True
    masking_rules: MaskingRules = Field(default_factory=MaskingRules)

    class Config:
        frozen = True
        extra = "ignore"
        json_schema_extra = {
            "example": {
                "masking_enabled": True,
                "masking_rules": {
                    "email": {"enabled": True, "pattern": "standard"},
                    "phone": {"enabled": True, "pattern": "minimal"},
                    "admin_bypass": False,
                    "allow_reveal": True,
                    "exempt_roles": []
                }
            }
        }

    @field_validator("masking_rules", mode="before")
    @classmethod
    def _default_rules(cls, value: Any) -> Any:
        return {} if value is None else value

    def rule_for(self, field: Union[str, DataType]) -> FieldRule:
        """Get the rule for a data type (default rule for unknown fields)"""
        name = field.value if isinstance(field, DataType) else field
        if name == DataType.EMAIL.value:
            return self.masking_rules.email
        if name == DataType.PHONE.value:
            return self.masking_rules.phone
        return FieldRule()

    def to_account_settings(self) -> dict:
        """Plain mapping in account-settings shape (roles sorted)"""
        data = self.model_dump(mode="json")
        data["masking_rules"]["exempt_roles"] = sorted(self.masking_rules.exempt_roles)
        return data


class UserContext(BaseModel):
    """Acting user snapshot for one request"""
    id: Optional[Union[int, str]] = None
    role: Optional[str] = None
    account_role_type: AccountRoleType = AccountRoleType.OTHER
    # Per-user protection: contact PII is never shown to this user
    pii_masking_enabled: bool = False

    class Config:
        frozen = True
        extra = "ignore"

    @field_validator("account_role_type", mode="before")
    @classmethod
    def _coerce_role_type(cls, value: Any) -> Any:
        if isinstance(value, AccountRoleType):
            return value
        try:
            return AccountRoleType(value)
        except (ValueError, TypeError):
            return AccountRoleType.OTHER

    @field_validator("pii_masking_enabled", mode="before")
    @classmethod
    def _default_protection(cls, value: Any) -> Any:
        return False if value is None else value


class AccountContext(BaseModel):
    """Account that owns the masking settings"""
    id: Optional[Union[int, str]] = None
    name: Optional[str] = None

    class Config:
        frozen = True
        extra = "ignore"
