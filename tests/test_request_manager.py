import json
import uuid

import pytest

from broker_remover.db.repository import BrokerRepository
from broker_remover.exceptions import NotFoundError, ValidationError
from broker_remover.models.metadata import StepStatus, load_metadata
from broker_remover.services.automation import AutomationEngine, AutomationResult
from broker_remover.services.progress import ProgressTracker
from broker_remover.services.request_manager import (
    REQUEST_TYPE,
    RequestManager,
    build_form_payload,
    derive_name,
)

from conftest import make_engine

SPOKEO_URL = "https://www.spokeo.com/optout"


class ExplodingEngine(AutomationEngine):
    """Raises for one URL, delegates otherwise."""

    def __init__(self, bad_url, **kwargs):
        super().__init__(**kwargs)
        self.bad_url = bad_url

    async def send_request(self, url, form_data):
        if url == self.bad_url:
            raise RuntimeError("browser crashed")
        return await super().send_request(url, form_data)


async def pending_requests(repository, urls):
    created = []
    for i, url in enumerate(urls):
        metadata = {"opt_out_url": url} if url else {"note": "imported without a URL"}
        created.append(await repository.create_request({
            "broker_name": "Spokeo",
            "user_email": f"user{i}@gmail.com",
            "metadata": metadata,
        }))
    return created


def test_derive_name():
    assert derive_name("john.doe42@example.com") == "John Doe"
    assert derive_name("j_smith+news@example.com") == "J Smith News"
    assert derive_name("MARY-ANN@example.com") == "Mary Ann"
    assert derive_name("12345@example.com") == ""


def test_build_form_payload():
    assert build_form_payload("jane.roe@gmail.com") == {
        "email": "jane.roe@gmail.com",
        "name": "Jane Roe",
        "request_type": REQUEST_TYPE,
        "consent": "true",
    }


@pytest.mark.asyncio
async def test_bulk_processing_skips_request_without_url(repository, manager):
    requests = await pending_requests(repository, [SPOKEO_URL, SPOKEO_URL, None, SPOKEO_URL, SPOKEO_URL])

    summary = await manager.process_pending_requests()

    assert summary.to_dict() == {"processed": 4, "successes": 4, "failures": 0, "skipped": 1}
    for i, request in enumerate(requests):
        stored = await repository.get_request_by_id(request.id)
        metadata = load_metadata(stored.metadata_json)
        if i == 2:
            assert stored.status == "pending"
            assert metadata.last_attempt is None
            continue
        assert stored.status == "sent"
        assert stored.response_content.startswith("Opt-out request submitted")
        assert metadata.processed_at is not None
        assert metadata.screenshot is not None
        assert metadata.last_attempt.success is True
        assert metadata.progress.overall_status == StepStatus.IN_PROGRESS


@pytest.mark.asyncio
async def test_bulk_processing_leaves_failed_requests_pending(repository, tracker):
    await pending_requests(repository, [SPOKEO_URL, SPOKEO_URL])
    manager = RequestManager(repository, make_engine(0.99), tracker)

    summary = await manager.process_pending_requests()
    assert summary.to_dict() == {"processed": 2, "successes": 0, "failures": 2, "skipped": 0}

    # a second run counts a second attempt
    await manager.process_pending_requests()
    for request in await repository.get_requests():
        assert request.status == "pending"
        attempt = load_metadata(request.metadata_json).last_attempt
        assert attempt.success is False
        assert attempt.attempts == 2


@pytest.mark.asyncio
async def test_disallowed_url_counts_as_failure(repository, manager):
    await pending_requests(repository, ["https://evil.example.com/optout"])

    summary = await manager.process_pending_requests()

    assert summary.failures == 1
    assert summary.processed == 1


@pytest.mark.asyncio
async def test_one_crashing_request_does_not_abort_the_batch(repository, tracker):
    bad_url = "https://optout.spokeo.com/broken"
    requests = await pending_requests(repository, [SPOKEO_URL, bad_url, SPOKEO_URL])
    engine = ExplodingEngine(bad_url, rng=make_engine().rng, delay_scale=0.0)
    manager = RequestManager(repository, engine, tracker)

    summary = await manager.process_pending_requests()

    assert summary.to_dict() == {"processed": 3, "successes": 2, "failures": 1, "skipped": 0}
    statuses = [(await repository.get_request_by_id(r.id)).status for r in requests]
    assert statuses == ["sent", "pending", "sent"]


@pytest.mark.asyncio
async def test_only_pending_requests_are_processed(repository, manager):
    await repository.create_request({
        "broker_name": "Spokeo",
        "user_email": "jane@gmail.com",
        "status": "responded",
        "metadata": {"opt_out_url": SPOKEO_URL},
    })

    summary = await manager.process_pending_requests()

    assert summary.to_dict() == {"processed": 0, "successes": 0, "failures": 0, "skipped": 0}


@pytest.mark.asyncio
async def test_status_change_during_submission_is_kept(repository, tracker):
    [request] = await pending_requests(repository, [SPOKEO_URL])

    async def complete_meanwhile(seconds):
        if (await repository.get_request_by_id(request.id)).status == "pending":
            await repository.update_request(request.id, {"status": "completed"})

    manager = RequestManager(repository, make_engine(sleep=complete_meanwhile, delay_scale=1.0), tracker)

    summary = await manager.process_pending_requests()

    assert summary.processed == 1
    stored = await repository.get_request_by_id(request.id)
    assert stored.status == "completed"
    assert stored.response_content is None
    metadata = load_metadata(stored.metadata_json)
    assert metadata.last_attempt.success is True
    assert metadata.processed_at is None


class CompletingEngine(AutomationEngine):
    """Completes every other pending request before submitting."""

    def __init__(self, repository, **kwargs):
        super().__init__(**kwargs)
        self.repository = repository

    async def send_request(self, url, form_data):
        for request in await self.repository.get_requests(status="pending"):
            if request.user_email != form_data["email"]:
                await self.repository.update_request(request.id, {"status": "completed"})
        return await super().send_request(url, form_data)


@pytest.mark.asyncio
async def test_request_handled_before_its_turn_is_skipped(repository, tracker):
    await pending_requests(repository, [SPOKEO_URL, SPOKEO_URL])
    engine = CompletingEngine(repository, rng=make_engine().rng, delay_scale=0.0)
    manager = RequestManager(repository, engine, tracker)

    summary = await manager.process_pending_requests()

    assert summary.to_dict() == {"processed": 1, "successes": 1, "failures": 0, "skipped": 1}
    stored = {r.status: r for r in await repository.get_requests()}
    assert sorted(stored) == ["completed", "sent"]
    assert load_metadata(stored["completed"].metadata_json).last_attempt is None


@pytest.mark.asyncio
async def test_bounded_concurrency(repository, tracker):
    await pending_requests(repository, [SPOKEO_URL] * 4 + [None])
    manager = RequestManager(repository, make_engine(0.0), tracker, concurrency=2)

    summary = await manager.process_pending_requests()

    assert summary.to_dict() == {"processed": 4, "successes": 4, "failures": 0, "skipped": 1}
    assert len(await repository.get_requests(status="sent")) == 4


@pytest.mark.asyncio
async def test_submit_single_request(repository, manager):
    request, no_url = await pending_requests(repository, [SPOKEO_URL, None])

    result = await manager.submit_request(request.id)
    assert result.success is True
    assert (await repository.get_request_by_id(request.id)).status == "sent"

    assert await manager.submit_request(no_url.id) is None
    with pytest.raises(NotFoundError):
        await manager.submit_request(uuid.uuid4())


@pytest.mark.asyncio
async def test_create_request_with_automation(repository, manager):
    broker = await repository.add_broker({
        "name": "Spokeo",
        "opt_out_url": SPOKEO_URL,
        "category": "people-search",
        "difficulty": "easy",
    })

    outcome = await manager.create_request_with_automation("spokeo", "jane@gmail.com")

    assert outcome.result.success is True
    assert [f.name for f in outcome.fields] == ["url", "email"]
    assert outcome.request.status == "sent"
    assert outcome.request.broker_name == "Spokeo"
    metadata = load_metadata(outcome.request.metadata_json)
    assert metadata.opt_out_url == SPOKEO_URL
    assert metadata.broker_id == str(broker.id)
    assert metadata.form_fields == ["url", "email"]
    assert metadata.progress is not None


@pytest.mark.asyncio
async def test_create_request_with_automation_failure_keeps_request_pending(repository, tracker):
    await repository.add_broker({"name": "Spokeo", "opt_out_url": SPOKEO_URL, "category": "people-search"})
    manager = RequestManager(repository, make_engine(0.99), tracker)

    outcome = await manager.create_request_with_automation("Spokeo", "jane@gmail.com", detect_fields=False)

    assert outcome.result.success is False
    assert outcome.fields == []
    assert outcome.request.status == "pending"
    assert json.loads(outcome.request.metadata_json)["last_attempt"]["success"] is False


@pytest.mark.asyncio
async def test_form_data_overrides_generated_payload(repository, tracker):
    await repository.add_broker({"name": "Spokeo", "opt_out_url": SPOKEO_URL, "category": "people-search"})
    seen = {}

    class RecordingEngine(AutomationEngine):
        async def send_request(self, url, form_data):
            seen.update(form_data)
            return AutomationResult(success=True, message="ok")

    manager = RequestManager(repository, RecordingEngine(), tracker)
    await manager.create_request_with_automation("Spokeo", "jane@gmail.com", form_data={"name": "Jane Q. Public"})

    assert seen["name"] == "Jane Q. Public"
    assert seen["email"] == "jane@gmail.com"


@pytest.mark.asyncio
async def test_create_request_with_automation_rejects_bad_input(repository, manager):
    with pytest.raises(NotFoundError):
        await manager.create_request_with_automation("Nobody Inc", "jane@gmail.com")
    with pytest.raises(ValidationError):
        await manager.create_request_with_automation("Spokeo", "not-an-email")
    assert await repository.get_requests() == []


@pytest.mark.asyncio
async def test_queue_requests_for_email(session_factory):
    from broker_remover.db.database import seed_brokers

    await seed_brokers(session_factory)
    repository = BrokerRepository(session_factory)
    manager = RequestManager(repository, make_engine(0.0), ProgressTracker(repository))

    expected = [m.broker.name for m in await repository.find_brokers_for_email("jane@gmail.com") if m.has_user_data]
    queued = await manager.queue_requests_for_email("jane@gmail.com")

    assert expected
    assert [r.broker_name for r in queued] == expected
    for request in queued:
        assert request.status == "pending"
        assert load_metadata(request.metadata_json).opt_out_url

    # open requests are not duplicated
    assert await manager.queue_requests_for_email("jane@gmail.com") == []
