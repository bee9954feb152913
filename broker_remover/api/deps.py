"""API dependencies.

Services are built once in the application lifespan and kept on
``app.state``; these dependencies hand them to the routes.
"""

from typing import Annotated

from fastapi import Depends, Request

from broker_remover.db.repository import BrokerRepository
from broker_remover.services.automation import AutomationEngine
from broker_remover.services.data_transfer import DataTransferService
from broker_remover.services.progress import ProgressTracker
from broker_remover.services.request_manager import RequestManager


def get_repository(request: Request) -> BrokerRepository:
    return request.app.state.repository


def get_engine(request: Request) -> AutomationEngine:
    return request.app.state.engine


def get_tracker(request: Request) -> ProgressTracker:
    return request.app.state.tracker


def get_manager(request: Request) -> RequestManager:
    return request.app.state.manager


def get_data_transfer(request: Request) -> DataTransferService:
    return request.app.state.data_transfer


Repository = Annotated[BrokerRepository, Depends(get_repository)]
Engine = Annotated[AutomationEngine, Depends(get_engine)]
Tracker = Annotated[ProgressTracker, Depends(get_tracker)]
Manager = Annotated[RequestManager, Depends(get_manager)]
DataTransfer = Annotated[DataTransferService, Depends(get_data_transfer)]
