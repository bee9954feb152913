"""Removal request routes."""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from broker_remover.api.deps import Manager, Repository, Tracker
from broker_remover.models.metadata import parse_metadata
from broker_remover.models.request import RemovalRequest, RequestStatus

router = APIRouter()


# Schemas
class RequestCreate(BaseModel):
    broker_name: str
    user_email: str
    status: str = RequestStatus.PENDING.value
    response_content: str | None = None
    metadata: dict[str, Any] | None = None


class RequestUpdate(BaseModel):
    broker_name: str | None = None
    status: str | None = None
    user_email: str | None = None
    response_content: str | None = None
    metadata: dict[str, Any] | None = None  # merged into the stored metadata


class RequestResponse(BaseModel):
    id: str
    broker_name: str
    status: str
    user_email: str
    response_content: str | None
    metadata: dict[str, Any] | None
    created_at: datetime
    updated_at: datetime


class RequestStats(BaseModel):
    total: int
    pending: int
    sent: int
    responded: int
    completed: int


class ProcessingResponse(BaseModel):
    processed: int
    successes: int
    failures: int
    skipped: int


class AutomatedRequestCreate(BaseModel):
    broker_name: str
    email: str
    form_data: dict[str, Any] | None = None
    detect_fields: bool = True


class AutomationResultResponse(BaseModel):
    success: bool
    message: str
    screenshot: str | None
    timestamp: datetime


class AutomatedRequestResponse(BaseModel):
    request: RequestResponse
    result: AutomationResultResponse
    fields: list[dict[str, Any]]


class QueueRequest(BaseModel):
    email: str


def to_response(req: RemovalRequest) -> RequestResponse:
    metadata = None
    if req.metadata_json:
        metadata = parse_metadata(req.metadata_json, req.id).model_dump(mode="json", exclude_none=True)
    return RequestResponse(
        id=str(req.id),
        broker_name=req.broker_name,
        status=req.status,
        user_email=req.user_email,
        response_content=req.response_content,
        metadata=metadata,
        created_at=req.created_at,
        updated_at=req.updated_at,
    )


@router.get("/", response_model=list[RequestResponse])
async def list_requests(repository: Repository, status: str | None = None):
    """List removal requests, optionally filtered by status."""
    requests = await repository.get_requests(status=status)
    return [to_response(r) for r in requests]


@router.get("/stats", response_model=RequestStats)
async def get_request_stats(repository: Repository):
    """Get request statistics."""
    requests = await repository.get_requests()

    return RequestStats(
        total=len(requests),
        pending=sum(1 for r in requests if r.status == RequestStatus.PENDING.value),
        sent=sum(1 for r in requests if r.status == RequestStatus.SENT.value),
        responded=sum(1 for r in requests if r.status == RequestStatus.RESPONDED.value),
        completed=sum(1 for r in requests if r.status == RequestStatus.COMPLETED.value),
    )


@router.post("/process", response_model=ProcessingResponse)
async def process_pending(manager: Manager):
    """Run every pending request through the automation engine now."""
    summary = await manager.process_pending_requests()
    return ProcessingResponse(**summary.to_dict())


@router.post("/automated", response_model=AutomatedRequestResponse, status_code=201)
async def create_automated_request(request_data: AutomatedRequestCreate, manager: Manager):
    """Create a request and submit the broker's opt-out form right away."""
    outcome = await manager.create_request_with_automation(
        request_data.broker_name,
        request_data.email,
        form_data=request_data.form_data,
        detect_fields=request_data.detect_fields,
    )
    return AutomatedRequestResponse(
        request=to_response(outcome.request),
        result=AutomationResultResponse(**outcome.result.to_dict()),
        fields=[f.to_dict() for f in outcome.fields],
    )


@router.post("/queue", response_model=list[RequestResponse], status_code=201)
async def queue_requests(queue_data: QueueRequest, manager: Manager):
    """Create pending requests for every broker likely to hold the address."""
    requests = await manager.queue_requests_for_email(queue_data.email)
    return [to_response(r) for r in requests]


@router.get("/{request_id}", response_model=RequestResponse)
async def get_request(request_id: str, repository: Repository):
    """Get a specific removal request."""
    req = await repository.get_request_by_id(request_id)
    if not req:
        raise HTTPException(status_code=404, detail="Request not found")
    return to_response(req)


@router.post("/", response_model=RequestResponse, status_code=201)
async def create_request(request_data: RequestCreate, repository: Repository):
    """Create a new removal request."""
    req = await repository.create_request(request_data.model_dump())
    return to_response(req)


@router.put("/{request_id}", response_model=RequestResponse)
async def update_request(request_id: str, request_data: RequestUpdate, repository: Repository):
    """Update status or details of a removal request."""
    changes = request_data.model_dump(exclude_unset=True)
    metadata = changes.pop("metadata", None)

    req = await repository.update_request(request_id, changes, metadata)
    if not req:
        raise HTTPException(status_code=404, detail="Request not found")
    return to_response(req)


@router.delete("/{request_id}")
async def delete_request(request_id: str, repository: Repository):
    """Delete a removal request."""
    deleted = await repository.delete_request(request_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Request not found")
    return {"status": "deleted", "id": request_id}


@router.get("/{request_id}/progress")
async def get_request_progress(request_id: str, tracker: Tracker):
    """Advance and return the removal progress of a request."""
    progress = await tracker.track_progress(request_id)
    return progress.model_dump(mode="json")
