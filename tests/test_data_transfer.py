import pytest

from broker_remover.brokers.catalog import SEED_BROKERS
from broker_remover.exceptions import ValidationError
from broker_remover.models.metadata import load_metadata
from broker_remover.services.data_transfer import EXPORT_VERSION, DataTransferService


pytestmark = pytest.mark.asyncio


async def test_export_document_shape(seeded_repository):
    await seeded_repository.create_request({
        "broker_name": "Spokeo",
        "user_email": "jane@gmail.com",
        "metadata": {"opt_out_url": "https://www.spokeo.com/optout"},
    })

    document = await DataTransferService(seeded_repository).export_data()

    assert document["version"] == EXPORT_VERSION
    assert document["timestamp"]
    assert len(document["data"]["brokers"]) == len(SEED_BROKERS)
    [request] = document["data"]["requests"]
    assert request["broker_name"] == "Spokeo"
    assert request["status"] == "pending"


async def test_reimport_after_wipe(seeded_repository):
    service = DataTransferService(seeded_repository)
    request = await seeded_repository.create_request({
        "broker_name": "Spokeo",
        "user_email": "jane@gmail.com",
        "status": "sent",
        "metadata": {"opt_out_url": "https://www.spokeo.com/optout", "custom_note": "keep"},
    })
    document = await service.export_data()

    await service.wipe_data()
    counts = await service.import_data(document)

    # brokers survived the wipe and are not duplicated
    assert counts == {"brokers": 0, "requests": 1}
    [restored] = await seeded_repository.get_requests()
    assert restored.status == "sent"
    assert restored.created_at == request.created_at
    assert load_metadata(restored.metadata_json).model_extra["custom_note"] == "keep"


async def test_import_into_empty_catalog(repository):
    document = {
        "version": EXPORT_VERSION,
        "data": {
            "brokers": [
                {"name": "Spokeo", "opt_out_url": "https://www.spokeo.com/optout", "category": "people-search"},
                {"name": "spokeo", "opt_out_url": "https://www.spokeo.com/optout"},
            ],
            "requests": [
                {"broker_name": "Spokeo", "user_email": "jane@gmail.com", "metadata": {"opt_out_url": "https://www.spokeo.com/optout"}},
            ],
        },
    }

    counts = await DataTransferService(repository).import_data(document)

    assert counts == {"brokers": 1, "requests": 1}
    [request] = await repository.get_requests()
    assert load_metadata(request.metadata_json).opt_out_url == "https://www.spokeo.com/optout"


@pytest.mark.parametrize("payload", [
    [],
    {"version": EXPORT_VERSION},
    {"data": "brokers"},
    {"data": {"brokers": "Spokeo"}},
    {"data": {"requests": ["not an object"]}},
    {"data": {"requests": [{"broker_name": "Spokeo", "user_email": "x", "metadata": 42}]}},
])
async def test_import_rejects_invalid_documents(repository, payload):
    with pytest.raises(ValidationError):
        await DataTransferService(repository).import_data(payload)


async def test_import_is_all_or_nothing(repository):
    document = {
        "data": {
            "brokers": [{"name": "Spokeo", "opt_out_url": "https://www.spokeo.com/optout"}],
            "requests": [
                {"broker_name": "Spokeo", "user_email": "jane@gmail.com"},
                {"broker_name": "Spokeo", "user_email": "not-an-email"},
            ],
        },
    }

    with pytest.raises(ValidationError):
        await DataTransferService(repository).import_data(document)

    assert await repository.get_requests() == []
    assert await repository.get_brokers() == []


async def test_wipe_including_brokers(seeded_repository):
    service = DataTransferService(seeded_repository)

    counts = await service.wipe_data(include_brokers=True)

    assert counts["brokers"] == len(SEED_BROKERS)
    assert await seeded_repository.get_brokers() == []
