"""Data Masking Endpoints"""

from fastapi import APIRouter, HTTPException
import structlog

from masking_engine.models.mask import (
    ContactMaskRequest,
    ContactMaskResult,
    MaskValueRequest,
    MaskValueResult,
)
from masking_engine.services.display_service import MaskingDisplayService

router = APIRouter()
logger = structlog.get_logger()


@router.post("/value", response_model=MaskValueResult)
async def mask_value(request: MaskValueRequest):
    """
    Get the display value of an email or phone

    The value is masked when the account settings and the acting user
    call for it; otherwise it is returned as is.
    """
    try:
        service = MaskingDisplayService(request.settings, request.user)

        return MaskValueResult(
            value=service.get_display_value(request.value, request.data_type),
            decision=service.decision(request.data_type),
            can_reveal=service.can_reveal_data(request.data_type)
        )

    except Exception as e:
        logger.error("masking_failed", error=str(e))
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/contact", response_model=ContactMaskResult)
async def mask_contact(request: ContactMaskRequest):
    """
    Mask a contact payload

    Masks email, phone, phone_number and phone_number_formatted keys at
    any depth. PII protected users get them replaced with [PROTECTED].
    """
    try:
        service = MaskingDisplayService(request.settings, request.user)
        contact, masked_fields = service.mask_contact(request.contact)

        logger.info("contact_masked", masked_fields=masked_fields)

        return ContactMaskResult(contact=contact, masked_fields=masked_fields)

    except Exception as e:
        logger.error("contact_masking_failed", error=str(e))
        raise HTTPException(status_code=500, detail=str(e))
