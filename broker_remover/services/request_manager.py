"""Request manager service for driving opt-out submissions."""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from broker_remover.brokers import FormField
from broker_remover.db.repository import BrokerRepository, validate_email
from broker_remover.exceptions import NotFoundError
from broker_remover.models.metadata import AutomationAttempt, parse_metadata
from broker_remover.models.request import RemovalRequest, RequestStatus
from broker_remover.services.automation import AutomationEngine, AutomationResult
from broker_remover.services.progress import ProgressTracker

logger = logging.getLogger(__name__)

REQUEST_TYPE = "Data Deletion Request"
OPEN_STATUSES = {RequestStatus.PENDING.value, RequestStatus.SENT.value, RequestStatus.RESPONDED.value}


@dataclass
class ProcessingSummary:
    """Counters for one bulk processing run."""
    processed: int = 0
    successes: int = 0
    failures: int = 0
    skipped: int = 0

    def to_dict(self) -> dict:
        return {
            "processed": self.processed,
            "successes": self.successes,
            "failures": self.failures,
            "skipped": self.skipped,
        }


@dataclass
class AutomationOutcome:
    request: RemovalRequest
    result: AutomationResult
    fields: list[FormField] = field(default_factory=list)


def derive_name(email: str) -> str:
    """Best-effort display name from the local part of an address.

    ``john.doe42@example.com`` becomes ``John Doe``.
    """
    local = email.partition("@")[0]
    local = re.sub(r"\d+", "", local)
    local = re.sub(r"[._+\-]+", " ", local)
    return " ".join(part.capitalize() for part in local.split())


def build_form_payload(email: str) -> dict[str, str]:
    return {
        "email": email,
        "name": derive_name(email),
        "request_type": REQUEST_TYPE,
        "consent": "true",
    }


class RequestManager:
    """Runs removal requests through the automation engine and progress tracker."""

    def __init__(
        self,
        repository: BrokerRepository,
        engine: AutomationEngine,
        tracker: ProgressTracker,
        concurrency: int = 1,
    ):
        self.repository = repository
        self.engine = engine
        self.tracker = tracker
        self.concurrency = max(1, concurrency)

    async def process_pending_requests(self) -> ProcessingSummary:
        """Process all pending requests (called by the Celery worker).

        A request without an opt-out URL is skipped. An error on one request
        is logged and counted as a failure; the rest of the batch continues.
        """
        requests = await self.repository.get_requests(status=RequestStatus.PENDING.value)
        summary = ProcessingSummary()
        semaphore = asyncio.Semaphore(self.concurrency)

        async def process_one(request: RemovalRequest):
            async with semaphore:
                # another run may have handled it since the batch was listed
                request = await self.repository.get_request_by_id(request.id)
                if request is None or request.status != RequestStatus.PENDING.value:
                    summary.skipped += 1
                    return

                metadata = parse_metadata(request.metadata_json, request.id)
                if not metadata.opt_out_url:
                    logger.warning("Skipping request %s: no opt-out URL in metadata", request.id)
                    summary.skipped += 1
                    return

                summary.processed += 1
                try:
                    result = await self.engine.send_request(
                        metadata.opt_out_url, build_form_payload(request.user_email)
                    )
                    await self._record_result(request.id, result)
                except Exception:
                    logger.exception("Error processing request %s", request.id)
                    summary.failures += 1
                    return

                if result.success:
                    summary.successes += 1
                else:
                    summary.failures += 1

        await asyncio.gather(*[process_one(request) for request in requests])

        logger.info(
            "Processed %d pending requests: %d succeeded, %d failed, %d skipped",
            summary.processed, summary.successes, summary.failures, summary.skipped,
        )
        return summary

    async def submit_request(self, request_id: Any) -> AutomationResult | None:
        """Submit one stored request. None if it has no opt-out URL."""
        request = await self.repository.get_request_by_id(request_id)
        if request is None:
            raise NotFoundError("Request", request_id)

        metadata = parse_metadata(request.metadata_json, request.id)
        if not metadata.opt_out_url:
            logger.warning("Request %s has no opt-out URL in metadata", request.id)
            return None

        result = await self.engine.send_request(metadata.opt_out_url, build_form_payload(request.user_email))
        await self._record_result(request.id, result)
        return result

    async def create_request_with_automation(
        self,
        broker_name: str,
        email: str,
        form_data: Optional[Mapping[str, Any]] = None,
        detect_fields: bool = True,
    ) -> AutomationOutcome:
        """Create one request and submit it right away."""
        email = validate_email(email)
        broker = await self.repository.get_broker_by_name(broker_name)
        if broker is None:
            raise NotFoundError("Broker", broker_name)

        request = await self.repository.create_request({
            "broker_name": broker.name,
            "user_email": email,
            "metadata": {"opt_out_url": broker.opt_out_url, "broker_id": str(broker.id)},
        })

        fields = self.engine.detect_form_fields(broker.opt_out_url) if detect_fields else []
        payload = {**build_form_payload(email), **(form_data or {})}

        result = await self.engine.send_request(broker.opt_out_url, payload)
        updated = await self._record_result(request.id, result, fields)
        return AutomationOutcome(request=updated or request, result=result, fields=fields)

    async def queue_requests_for_email(self, email: str) -> list[RemovalRequest]:
        """Create pending requests for every likely match of ``email``.

        Brokers that already have an open request for the address are left out.
        """
        email = validate_email(email)
        matches = await self.repository.find_brokers_for_email(email)

        existing = await self.repository.get_requests()
        open_brokers = {
            request.broker_name.lower()
            for request in existing
            if request.user_email.lower() == email.lower() and request.status in OPEN_STATUSES
        }

        created = []
        for match in matches:
            broker = match.broker
            if not match.has_user_data or broker.name.lower() in open_brokers:
                continue
            request = await self.repository.create_request({
                "broker_name": broker.name,
                "user_email": email,
                "metadata": {"opt_out_url": broker.opt_out_url, "broker_id": str(broker.id)},
            })
            created.append(request)

        logger.info("Queued %d removal requests for %s", len(created), email)
        return created

    async def _record_result(
        self,
        request_id: Any,
        result: AutomationResult,
        fields: Optional[list[FormField]] = None,
    ) -> RemovalRequest | None:
        """Persist an automation result, then refresh progress on success.

        Only a request that is still pending moves to sent. One that changed
        status while the submission was in flight just gets the attempt.
        """
        applied = {}

        def update(request, metadata):
            previous = metadata.last_attempt.attempts if metadata.last_attempt else 0
            attempt = AutomationAttempt(
                success=result.success,
                message=result.message,
                timestamp=result.timestamp,
                attempts=previous + 1,
            )
            patch = {"last_attempt": attempt}
            if fields:
                patch["form_fields"] = [f.name for f in fields]
            applied["sent"] = result.success and request.status == RequestStatus.PENDING.value
            if not applied["sent"]:
                return {}, patch

            patch["processed_at"] = result.timestamp
            patch["screenshot"] = result.screenshot
            return {"status": RequestStatus.SENT.value, "response_content": result.message}, patch

        updated = await self.repository.modify_request(request_id, update)
        if updated is None:
            logger.warning("Request %s disappeared before its result was stored", request_id)
            return None

        if applied["sent"]:
            await self.tracker.track_progress(request_id)
            updated = await self.repository.get_request_by_id(request_id)
        return updated
