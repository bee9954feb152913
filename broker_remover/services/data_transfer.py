"""Export, import and wipe of the whole dataset."""

import json
import logging
from typing import Any, Mapping

from broker_remover.db.database import utcnow
from broker_remover.db.repository import BrokerRepository
from broker_remover.exceptions import ValidationError

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0.0"


class DataTransferService:
    """Moves brokers and requests in and out as one JSON document::

        {"version": "1.0.0", "timestamp": "...", "data": {"brokers": [...], "requests": [...]}}
    """

    def __init__(self, repository: BrokerRepository):
        self.repository = repository

    async def export_data(self) -> dict:
        brokers = await self.repository.get_brokers()
        requests = await self.repository.get_requests()
        logger.info("Exporting %d brokers and %d requests", len(brokers), len(requests))
        return {
            "version": EXPORT_VERSION,
            "timestamp": utcnow().isoformat(),
            "data": {
                "brokers": [broker.to_dict() for broker in brokers],
                "requests": [request.to_dict() for request in requests],
            },
        }

    async def import_data(self, payload: Any) -> dict:
        """Load an exported document. Brokers already in the catalog are kept.

        Requests are inserted as new records. Nothing is written unless the
        whole document is valid.
        """
        if not isinstance(payload, Mapping) or not isinstance(payload.get("data"), Mapping):
            raise ValidationError("Invalid import format: expected an object with a 'data' field")

        data = payload["data"]
        brokers = data.get("brokers") or []
        requests = data.get("requests") or []
        if not isinstance(brokers, list) or not isinstance(requests, list):
            raise ValidationError("Invalid import format: 'brokers' and 'requests' must be lists")
        if not all(isinstance(item, Mapping) for item in brokers + requests):
            raise ValidationError("Invalid import format: records must be objects")

        version = payload.get("version")
        if version and version != EXPORT_VERSION:
            logger.warning("Importing data exported with version %s", version)

        counts = await self.repository.import_records(brokers, [self._request_record(r) for r in requests])
        logger.info("Imported %d brokers and %d requests", counts["brokers"], counts["requests"])
        return counts

    @staticmethod
    def _request_record(record: Mapping[str, Any]) -> dict:
        record = dict(record)
        metadata = record.get("metadata")
        if isinstance(metadata, Mapping):
            record["metadata"] = json.dumps(metadata)
        elif metadata is not None and not isinstance(metadata, str):
            raise ValidationError("Invalid import format: request metadata must be an object or string")
        return record

    async def wipe_data(self, include_brokers: bool = False) -> dict:
        return await self.repository.clear_all(include_brokers=include_brokers)
