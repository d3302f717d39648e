"""Masking Policy Endpoints"""

from fastapi import APIRouter

from masking_engine.models.mask import MaskingDecision, ResolveRequest
from masking_engine.rules.policy_engine import resolve

router = APIRouter()


@router.post("/resolve", response_model=MaskingDecision)
async def resolve_policy(request: ResolveRequest):
    """
    Resolve the masking decision for a field

    Order:
    - Missing settings: unmasked
    - Masking disabled: unmasked
    - Missing user: masked (standard)
    - Admin bypass / exempt role: unmasked
    - Field rule disabled: unmasked
    - Otherwise masked with the field's pattern
    """
    return resolve(request.settings, request.user, request.data_type)


@router.get("/patterns")
async def get_patterns():
    """Get available masking patterns"""
    return {
        "patterns": [
            {
                "name": "minimal",
                "email": "j***@example.com",
                "phone": "+1 ***-***-4567",
                "description": "First character and full domain; country code and last 4 digits"
            },
            {
                "name": "standard",
                "email": "j***e@e***.com",
                "phone": "***-***-4567",
                "description": "First and last character, masked domain; last 4 digits"
            },
            {
                "name": "complete",
                "email": "*** HIDDEN ***",
                "phone": "*** HIDDEN ***",
                "description": "Nothing visible, even for malformed values"
            }
        ]
    }
