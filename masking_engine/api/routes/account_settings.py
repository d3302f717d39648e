"""Masking Settings Endpoints"""

from fastapi import APIRouter, HTTPException
import structlog

from masking_engine.models.audit import AuditRecord
from masking_engine.models.settings_update import (
    FeatureToggleRequest,
    SettingsUpdateRequest,
    SettingsUpdateResult,
)
from masking_engine.services.audit_service import get_audit_recorder
from masking_engine.services.settings_service import SettingsUpdateError, update_settings

router = APIRouter()
logger = structlog.get_logger()


@router.post("/update", response_model=SettingsUpdateResult)
async def update_masking_settings(request: SettingsUpdateRequest):
    """
    Apply a masking settings update

    Only permitted keys are applied:
    - masking_enabled
    - masking_rules.admin_bypass / allow_reveal / exempt_roles
    - masking_rules.email / phone (enabled, pattern)

    Returns the new snapshot and the audit records of the change.
    """
    try:
        new_settings, records = update_settings(
            user=request.user,
            account=request.account,
            current=request.current_settings,
            payload=request.update,
            recorder=get_audit_recorder()
        )

        return SettingsUpdateResult(
            settings=new_settings.to_account_settings(),
            audit_records=records
        )

    except SettingsUpdateError as e:
        raise HTTPException(status_code=422, detail=e.errors)
    except Exception as e:
        logger.error("settings_update_failed", error=str(e))
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/feature", response_model=AuditRecord)
async def toggle_masking_feature(request: FeatureToggleRequest):
    """Record the masking feature being enabled or disabled"""
    record = get_audit_recorder().record_feature_toggle(
        request.user,
        request.account,
        request.enabled
    )
    if not record:
        raise HTTPException(status_code=503, detail="Audit sink unavailable")
    return record
