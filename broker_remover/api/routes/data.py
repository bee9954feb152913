"""Dataset export, import and wipe routes."""

from typing import Any

from fastapi import APIRouter

from broker_remover.api.deps import DataTransfer

router = APIRouter()


@router.get("/export")
async def export_data(data_transfer: DataTransfer):
    """Export all brokers and requests as one JSON document."""
    return await data_transfer.export_data()


@router.post("/import")
async def import_data(payload: dict[str, Any], data_transfer: DataTransfer):
    """Import a document produced by the export endpoint."""
    counts = await data_transfer.import_data(payload)
    return {"status": "imported", "imported": counts}


@router.delete("/")
async def wipe_data(data_transfer: DataTransfer, include_brokers: bool = False):
    """Delete all requests, and the broker catalog too if asked."""
    counts = await data_transfer.wipe_data(include_brokers=include_brokers)
    return {"status": "wiped", "deleted": counts}
