"""Audit Trail Endpoints"""

from fastapi import APIRouter, HTTPException, Query
from typing import Optional

from masking_engine.models.audit import AccessEventRequest, AuditEventType, AuditQuery, AuditRecordList
from masking_engine.models.settings import DataType
from masking_engine.services.audit_service import InMemoryAuditSink, get_audit_recorder

router = APIRouter()


@router.post("/access")
async def record_access(request: AccessEventRequest):
    """
    Record a sensitive data access event

    Unknown events or data types are ignored rather than rejected.
    """
    record = get_audit_recorder().record_access(
        request.user,
        request.account,
        request.event,
        request.data_type,
        context=request.context
    )
    return {"recorded": record is not None, "record": record}


@router.get("/logs", response_model=AuditRecordList)
async def get_audit_logs(
    event: Optional[AuditEventType] = None,
    actor_id: Optional[str] = None,
    data_type: Optional[DataType] = None,
    limit: int = Query(default=100, le=1000),
    offset: int = 0
):
    """
    Query masking audit records kept in memory

    Supports filtering by:
    - Event type
    - Actor ID
    - Data type
    """
    sink = get_audit_recorder().sink
    if not isinstance(sink, InMemoryAuditSink):
        raise HTTPException(status_code=404, detail="Audit records are not kept in memory")

    query = AuditQuery(
        event=event,
        actor_id=actor_id,
        data_type=data_type,
        limit=limit,
        offset=offset
    )

    return AuditRecordList(
        records=sink.query(query),
        total=sink.count(query),
        limit=limit,
        offset=offset
    )
