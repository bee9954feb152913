"""Repository over the broker catalog and removal requests."""

import asyncio
import logging
import uuid
import weakref
from datetime import datetime, timezone
from contextlib import asynccontextmanager
from typing import Any, Callable, Iterable, Mapping, Optional
from urllib.parse import urlsplit

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from broker_remover.db.database import utcnow
from broker_remover.exceptions import PersistenceError, ValidationError
from broker_remover.models.broker import BrokerCategory, DataBroker, Difficulty, OptOutMethod
from broker_remover.models.metadata import RequestMetadata, dump_metadata, merge_metadata, parse_metadata
from broker_remover.models.request import RemovalRequest, RequestStatus, is_backward_transition
from broker_remover.services.matching import DEFAULT_LIMIT, MatchScore, score_brokers

logger = logging.getLogger(__name__)

MAX_EMAIL_LENGTH = 256

BROKER_FIELDS = {
    "name", "domain", "category", "opt_out_url", "opt_out_method", "data_types",
    "difficulty", "response_days", "regions", "laws", "premium",
}
REQUEST_UPDATE_FIELDS = {"broker_name", "status", "user_email", "response_content"}

# (changes, metadata patch) computed from the current row
RequestMutator = Callable[[RemovalRequest, RequestMetadata], tuple[Mapping[str, Any], Optional[Mapping[str, Any]]]]


def validate_email(email: Any) -> str:
    """Reject obviously malformed addresses before any lookup."""
    if not isinstance(email, str):
        raise ValidationError("Email must be a string")
    email = email.strip()
    local, sep, _ = email.partition("@")
    if not email or len(email) > MAX_EMAIL_LENGTH:
        raise ValidationError("Email must be between 1 and 256 characters")
    if not sep or not local or any(ch.isspace() for ch in email):
        raise ValidationError(f"Invalid email address: {email!r}")
    return email


def _parse_id(value: Any) -> uuid.UUID | None:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


def _check_choice(field: str, value: Any, enum_cls) -> str:
    allowed = [member.value for member in enum_cls]
    if value not in allowed:
        raise ValidationError(f"Invalid {field} {value!r}; expected one of {', '.join(allowed)}")
    return value


class BrokerRepository:
    """Brokers, removal requests and the scoring query, behind one interface.

    Every update to a single request runs under that request's lock and in
    one transaction, so status and metadata always change together.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        strict_transitions: bool = False,
        match_limit: int = DEFAULT_LIMIT,
    ):
        self._session_factory = session_factory
        self.strict_transitions = strict_transitions
        self.match_limit = match_limit
        # entries vanish once no coroutine holds or waits on the lock
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    @asynccontextmanager
    async def _session(self):
        try:
            async with self._session_factory() as session:
                yield session
        except SQLAlchemyError as exc:
            logger.error("Database error: %s", exc)
            raise PersistenceError(str(exc)) from exc

    def lock(self, request_id: Any) -> asyncio.Lock:
        """Per-request lock serializing read-modify-write cycles."""
        return self._locks.setdefault(str(request_id), asyncio.Lock())

    # Brokers

    async def get_brokers(self) -> list[DataBroker]:
        async with self._session() as session:
            result = await session.execute(select(DataBroker).order_by(DataBroker.name))
            return list(result.scalars().all())

    async def get_broker(self, broker_id: Any) -> DataBroker | None:
        key = _parse_id(broker_id)
        if key is None:
            return None
        async with self._session() as session:
            return await session.get(DataBroker, key)

    async def get_broker_by_name(self, name: str) -> DataBroker | None:
        async with self._session() as session:
            result = await session.execute(
                select(DataBroker).where(func.lower(DataBroker.name) == name.strip().lower())
            )
            return result.scalars().first()

    def _broker_values(self, data: Mapping[str, Any]) -> dict:
        values = {key: value for key, value in data.items() if key in BROKER_FIELDS and value is not None}

        name = str(values.get("name") or "").strip()
        if not name:
            raise ValidationError("Broker name is required")
        values["name"] = name

        opt_out_url = str(values.get("opt_out_url") or "").strip()
        if not opt_out_url.startswith(("http://", "https://")):
            raise ValidationError("Broker opt-out URL must be an http(s) URL")
        values["opt_out_url"] = opt_out_url

        if "category" in values:
            _check_choice("category", values["category"], BrokerCategory)
        if "opt_out_method" in values:
            _check_choice("opt_out_method", values["opt_out_method"], OptOutMethod)
        if "difficulty" in values:
            _check_choice("difficulty", values["difficulty"], Difficulty)
        if not values.get("domain"):
            host = (urlsplit(opt_out_url).hostname or "").lower()
            values["domain"] = host[4:] if host.startswith("www.") else host
        return values

    async def add_broker(self, data: Mapping[str, Any]) -> DataBroker:
        values = self._broker_values(data)
        if await self.get_broker_by_name(values["name"]):
            raise ValidationError(f"Broker already exists: {values['name']}")

        broker = DataBroker(**values)
        async with self._session() as session:
            session.add(broker)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise ValidationError(f"Broker already exists: {values['name']}") from exc

        logger.info("Added broker %s", broker.name)
        return broker

    async def delete_broker(self, broker_id: Any) -> bool:
        key = _parse_id(broker_id)
        if key is None:
            return False
        async with self._session() as session:
            result = await session.execute(delete(DataBroker).where(DataBroker.id == key))
            await session.commit()
            return result.rowcount > 0

    async def find_brokers_for_email(self, email: str) -> list[MatchScore]:
        email = validate_email(email)
        brokers = await self.get_brokers()
        matches = score_brokers(email, brokers, self.match_limit)
        logger.info("Scored %d brokers for %s, returning %d", len(brokers), email, len(matches))
        return matches

    # Requests

    async def get_requests(self, status: str | None = None) -> list[RemovalRequest]:
        query = select(RemovalRequest).order_by(RemovalRequest.created_at, RemovalRequest.id)
        if status is not None:
            query = query.where(RemovalRequest.status == status)
        async with self._session() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def get_request_by_id(self, request_id: Any) -> RemovalRequest | None:
        key = _parse_id(request_id)
        if key is None:
            return None
        async with self._session() as session:
            return await session.get(RemovalRequest, key)

    async def create_request(self, data: Mapping[str, Any]) -> RemovalRequest:
        broker_name = str(data.get("broker_name") or "").strip()
        if not broker_name:
            raise ValidationError("Broker name is required")
        user_email = validate_email(data.get("user_email"))
        status = _check_choice("status", data.get("status") or RequestStatus.PENDING.value, RequestStatus)

        metadata = data.get("metadata")
        if isinstance(metadata, Mapping):
            metadata = dump_metadata(merge_metadata(RequestMetadata(), metadata))
        elif isinstance(metadata, RequestMetadata):
            metadata = dump_metadata(metadata)

        request = RemovalRequest(
            broker_name=broker_name,
            status=status,
            user_email=user_email,
            response_content=data.get("response_content"),
            metadata_json=metadata,
        )
        async with self._session() as session:
            session.add(request)
            await session.commit()

        logger.info("Created removal request %s for %s", request.id, broker_name)
        return request

    async def update_request(
        self,
        request_id: Any,
        changes: Mapping[str, Any],
        metadata: Mapping[str, Any] | None = None,
    ) -> RemovalRequest | None:
        """Apply ``changes`` and merge ``metadata`` into the stored metadata.

        A ``metadata`` key inside ``changes`` replaces the stored JSON when it
        is a string and is merged when it is a mapping.
        """
        return await self.modify_request(request_id, lambda request, current: (changes, metadata))

    async def modify_request(self, request_id: Any, mutator: RequestMutator) -> RemovalRequest | None:
        """Read-modify-write one request atomically. None if it does not exist."""
        key = _parse_id(request_id)
        if key is None:
            return None

        async with self.lock(key):
            async with self._session() as session:
                request = await session.get(RemovalRequest, key)
                if request is None:
                    return None

                current = parse_metadata(request.metadata_json, request.id)
                changes, patch = mutator(request, current)
                changes = dict(changes or {})

                raw = changes.pop("metadata", None)
                if isinstance(raw, str):
                    request.metadata_json = raw
                    current = parse_metadata(raw, request.id)
                elif isinstance(raw, Mapping):
                    patch = {**raw, **(patch or {})}

                self._apply_changes(request, changes)
                if patch:
                    request.metadata_json = dump_metadata(merge_metadata(current, patch))
                request.updated_at = utcnow()

                await session.commit()
                return request

    def _apply_changes(self, request: RemovalRequest, changes: Mapping[str, Any]) -> None:
        unknown = set(changes) - REQUEST_UPDATE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update request fields: {', '.join(sorted(unknown))}")

        if "status" in changes:
            status = _check_choice("status", changes["status"], RequestStatus)
            if is_backward_transition(request.status, status):
                if self.strict_transitions:
                    raise ValidationError(f"Illegal status transition {request.status} -> {status}")
                logger.warning("Request %s moved backwards: %s -> %s", request.id, request.status, status)
            request.status = status
        if "user_email" in changes:
            request.user_email = validate_email(changes["user_email"])
        if "broker_name" in changes:
            if not str(changes["broker_name"] or "").strip():
                raise ValidationError("Broker name is required")
            request.broker_name = str(changes["broker_name"]).strip()
        if "response_content" in changes:
            request.response_content = changes["response_content"]

    async def delete_request(self, request_id: Any) -> bool:
        key = _parse_id(request_id)
        if key is None:
            return False
        async with self._session() as session:
            result = await session.execute(delete(RemovalRequest).where(RemovalRequest.id == key))
            await session.commit()
        return result.rowcount > 0

    # Bulk operations

    async def import_records(
        self,
        brokers: Iterable[Mapping[str, Any]],
        requests: Iterable[Mapping[str, Any]],
    ) -> dict:
        """Insert brokers (skipping known names) and requests in one transaction."""
        broker_values = [self._broker_values(data) for data in brokers]
        request_rows = [self._request_row(data) for data in requests]

        async with self._session() as session:
            result = await session.execute(select(func.lower(DataBroker.name)))
            known = set(result.scalars().all())

            added_brokers = 0
            for values in broker_values:
                if values["name"].lower() in known:
                    continue
                known.add(values["name"].lower())
                session.add(DataBroker(**values))
                added_brokers += 1

            for row in request_rows:
                session.add(row)

            await session.commit()

        return {"brokers": added_brokers, "requests": len(request_rows)}

    def _request_row(self, data: Mapping[str, Any]) -> RemovalRequest:
        row = RemovalRequest(
            broker_name=str(data.get("broker_name") or "").strip(),
            status=_check_choice("status", data.get("status") or "pending", RequestStatus),
            user_email=validate_email(data.get("user_email")),
            response_content=data.get("response_content"),
            metadata_json=data.get("metadata"),
        )
        if not row.broker_name:
            raise ValidationError("Broker name is required")
        for field in ("created_at", "updated_at"):
            value = data.get(field)
            if value:
                try:
                    stamp = datetime.fromisoformat(str(value))
                except ValueError as exc:
                    raise ValidationError(f"Invalid {field}: {value!r}") from exc
                # stored naive, in UTC
                if stamp.tzinfo is not None:
                    stamp = stamp.astimezone(timezone.utc).replace(tzinfo=None)
                setattr(row, field, stamp)
        return row

    async def clear_all(self, include_brokers: bool = False) -> dict:
        async with self._session() as session:
            requests = await session.execute(delete(RemovalRequest))
            removed_brokers = 0
            if include_brokers:
                brokers = await session.execute(delete(DataBroker))
                removed_brokers = brokers.rowcount
            await session.commit()

        logger.warning("Wiped %d requests and %d brokers", requests.rowcount, removed_brokers)
        return {"requests": requests.rowcount, "brokers": removed_brokers}
