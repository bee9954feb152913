"""Removal progress tracking.

Each request carries a four-step progress record in its metadata::

    request_creation -> validation -> broker_communication -> confirmation

Steps are advanced from the request status. Advancing is idempotent: a step
that is already completed keeps its timestamps, and a step that is already
running is not restarted.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import Any, Callable

from broker_remover.db.database import utcnow
from broker_remover.db.repository import BrokerRepository
from broker_remover.exceptions import NotFoundError
from broker_remover.models.metadata import (
    STEP_ORDER,
    ProgressStep,
    RemovalProgress,
    StepName,
    StepStatus,
)
from broker_remover.models.request import STATUS_ORDER, RequestStatus

logger = logging.getLogger(__name__)

CATEGORY_BASE_DAYS = {
    "people-search": 14,
    "credit-reporting": 30,
    "marketing": 21,
    "background-check": 25,
    "social-media": 10,
    "other": 21,
}

DIFFICULTY_FACTORS = {
    "easy": 0.7,
    "medium": 1.0,
    "hard": 1.5,
}


def estimate_completion(created_at: datetime, category: str | None, difficulty: str | None) -> datetime:
    base_days = CATEGORY_BASE_DAYS.get(category or "other", CATEGORY_BASE_DAYS["other"])
    factor = DIFFICULTY_FACTORS.get(difficulty or "medium", 1.0)
    # round half up
    days = math.floor(base_days * factor + 0.5)
    return created_at + timedelta(days=days)


def initial_progress(created_at: datetime) -> RemovalProgress:
    steps = [ProgressStep(name=name) for name in STEP_ORDER]
    steps[0].status = StepStatus.COMPLETED
    steps[0].started_at = created_at
    steps[0].completed_at = created_at
    return RemovalProgress(steps=steps, overall_status=StepStatus.IN_PROGRESS, last_updated=created_at)


def _start(step: ProgressStep, now: datetime) -> None:
    if step.status == StepStatus.PENDING:
        step.status = StepStatus.IN_PROGRESS
        step.started_at = now


def _complete(step: ProgressStep, now: datetime) -> None:
    if step.status != StepStatus.COMPLETED:
        step.status = StepStatus.COMPLETED
        step.started_at = step.started_at or now
        step.completed_at = now


def overall_status(progress: RemovalProgress) -> StepStatus:
    statuses = [step.status for step in progress.steps]
    if all(status == StepStatus.COMPLETED for status in statuses):
        return StepStatus.COMPLETED
    if any(status == StepStatus.FAILED for status in statuses):
        return StepStatus.FAILED
    return StepStatus.IN_PROGRESS


def advance_progress(progress: RemovalProgress, status: str, now: datetime) -> RemovalProgress:
    """Advance ``progress`` in place for a request in ``status``.

    Statuses apply cumulatively: a ``responded`` request also gets the
    ``sent`` transitions.
    """
    order = [member.value for member in STATUS_ORDER]
    rank = order.index(status) if status in order else 0

    if rank >= order.index(RequestStatus.SENT.value):
        _complete(progress.step(StepName.VALIDATION), now)
        _start(progress.step(StepName.BROKER_COMMUNICATION), now)
    if rank >= order.index(RequestStatus.RESPONDED.value):
        _complete(progress.step(StepName.BROKER_COMMUNICATION), now)
        _start(progress.step(StepName.CONFIRMATION), now)
    if rank >= order.index(RequestStatus.COMPLETED.value):
        for step in progress.steps:
            _complete(step, now)

    progress.overall_status = overall_status(progress)
    return progress


class ProgressTracker:
    """Computes and persists removal progress for requests."""

    def __init__(self, repository: BrokerRepository, clock: Callable[[], datetime] = utcnow):
        self.repository = repository
        self.clock = clock

    async def track_progress(self, request_id: Any) -> RemovalProgress:
        request = await self.repository.get_request_by_id(request_id)
        if request is None:
            raise NotFoundError("Request", request_id)

        # Brokers may have been deleted since the request was made
        broker = await self.repository.get_broker_by_name(request.broker_name)
        category = broker.category if broker else "other"
        difficulty = broker.difficulty if broker else "medium"
        now = self.clock()
        tracked = {}

        def update(current, metadata):
            if metadata.progress is not None:
                progress = metadata.progress.model_copy(deep=True)
            else:
                progress = initial_progress(current.created_at)
            if progress.estimated_completion is None:
                progress.estimated_completion = estimate_completion(current.created_at, category, difficulty)

            advance_progress(progress, current.status, now)
            progress.last_updated = now
            tracked["progress"] = progress
            return {}, {"progress": progress}

        updated = await self.repository.modify_request(request.id, update)
        if updated is None:
            raise NotFoundError("Request", request_id)

        progress = tracked["progress"]
        logger.debug("Request %s progress: %s", request.id, progress.overall_status.value)
        return progress
