"""Data broker routes."""

from datetime import datetime

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from broker_remover.api.deps import Repository

router = APIRouter()


# Schemas
class BrokerResponse(BaseModel):
    id: str
    name: str
    domain: str | None
    category: str
    opt_out_url: str
    opt_out_method: str
    data_types: list[str]
    difficulty: str
    response_days: int | None
    regions: list[str] | None
    laws: list[str] | None
    premium: bool
    created_at: datetime | None


class BrokerMatchResponse(BrokerResponse):
    match_score: int
    has_user_data: bool


class BrokerCreate(BaseModel):
    name: str
    opt_out_url: str
    category: str = "other"
    opt_out_method: str = "form"
    difficulty: str = "medium"
    data_types: list[str] = []
    domain: str | None = None
    response_days: int | None = None
    regions: list[str] | None = None
    laws: list[str] | None = None
    premium: bool = False


class BrokerSearch(BaseModel):
    email: str


@router.get("/", response_model=list[BrokerResponse])
async def list_brokers(repository: Repository):
    """List all data brokers."""
    brokers = await repository.get_brokers()
    return [BrokerResponse(**b.to_dict()) for b in brokers]


@router.post("/", response_model=BrokerResponse, status_code=201)
async def add_broker(broker_data: BrokerCreate, repository: Repository):
    """Add a broker to the catalog."""
    broker = await repository.add_broker(broker_data.model_dump(exclude_none=True))
    return BrokerResponse(**broker.to_dict())


@router.delete("/{broker_id}")
async def delete_broker(broker_id: str, repository: Repository):
    """Remove a broker from the catalog. Existing requests are kept."""
    deleted = await repository.delete_broker(broker_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Broker not found")
    return {"status": "deleted", "id": broker_id}


@router.post("/search", response_model=list[BrokerMatchResponse])
async def search_brokers(search: BrokerSearch, repository: Repository):
    """Brokers most likely to hold data for an email address, best match first."""
    matches = await repository.find_brokers_for_email(search.email)
    return [
        BrokerMatchResponse(
            **m.broker.to_dict(),
            match_score=m.score,
            has_user_data=m.has_user_data,
        )
        for m in matches
    ]
