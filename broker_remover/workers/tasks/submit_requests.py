"""Request submission tasks."""

import asyncio
import logging

from celery import shared_task

from broker_remover.config import get_settings
from broker_remover.db.database import create_engine, create_session_factory, init_db
from broker_remover.db.repository import BrokerRepository
from broker_remover.logging_config import configure_logging
from broker_remover.services.automation import AutomationEngine
from broker_remover.services.progress import ProgressTracker
from broker_remover.services.request_manager import RequestManager

logger = logging.getLogger(__name__)


async def _run_with_manager(func):
    """Build services for one task run and dispose of the engine afterwards."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)

    db_engine = create_engine(settings.database_url)
    try:
        session_factory = create_session_factory(db_engine)
        await init_db(db_engine, session_factory, seed=settings.seed_brokers)

        repository = BrokerRepository(
            session_factory,
            strict_transitions=settings.strict_status_transitions,
            match_limit=settings.match_limit,
        )
        manager = RequestManager(
            repository,
            AutomationEngine.from_settings(settings),
            ProgressTracker(repository),
            concurrency=settings.orchestrator_concurrency,
        )
        return await func(manager)
    finally:
        await db_engine.dispose()


@shared_task(bind=True)
def process_pending_requests(self):
    """Process all pending removal requests."""
    return asyncio.run(_process_pending_requests_async())


async def _process_pending_requests_async():
    async def run(manager):
        summary = await manager.process_pending_requests()
        return summary.to_dict()

    return await _run_with_manager(run)


@shared_task(bind=True, max_retries=3)
def submit_single_request(self, request_id: str):
    """Submit a single removal request."""
    return asyncio.run(_submit_single_request_async(request_id))


async def _submit_single_request_async(request_id: str):
    async def run(manager):
        result = await manager.submit_request(request_id)
        if result is None:
            return {"request_id": request_id, "error": "No opt-out URL"}
        return {"request_id": request_id, **result.to_dict()}

    return await _run_with_manager(run)


@shared_task(bind=True)
def queue_requests_for_email(self, email: str):
    """Create pending requests for every broker likely to hold ``email``."""
    return asyncio.run(_queue_requests_for_email_async(email))


async def _queue_requests_for_email_async(email: str):
    async def run(manager):
        requests = await manager.queue_requests_for_email(email)
        logger.info("Queued %d requests for %s", len(requests), email)
        return {"email": email, "queued": len(requests), "request_ids": [str(r.id) for r in requests]}

    return await _run_with_manager(run)
