"""Typed view of the removal request ``metadata`` column.

The column stores JSON text. Known keys are parsed into the models below;
unknown keys are kept as pydantic extras so they survive a read-modify-write.
"""

import enum
import json
import logging
from datetime import datetime
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from broker_remover.exceptions import MetadataParseError, ValidationError

logger = logging.getLogger(__name__)

METADATA_VERSION = 1


class StepName(str, enum.Enum):
    REQUEST_CREATION = "request_creation"
    VALIDATION = "validation"
    BROKER_COMMUNICATION = "broker_communication"
    CONFIRMATION = "confirmation"


STEP_ORDER = [
    StepName.REQUEST_CREATION,
    StepName.VALIDATION,
    StepName.BROKER_COMMUNICATION,
    StepName.CONFIRMATION,
]


class StepStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    FAILED = "failed"


class ProgressStep(BaseModel):
    name: StepName
    status: StepStatus = StepStatus.PENDING
    started_at: datetime | None = None
    completed_at: datetime | None = None


class RemovalProgress(BaseModel):
    """Four-step removal state machine stored under ``metadata.progress``."""

    steps: list[ProgressStep]
    overall_status: StepStatus = StepStatus.PENDING
    last_updated: datetime | None = None
    estimated_completion: datetime | None = None

    def step(self, name: StepName) -> ProgressStep:
        for step in self.steps:
            if step.name == name:
                return step
        raise KeyError(name)


class AutomationAttempt(BaseModel):
    success: bool
    message: str
    timestamp: datetime
    attempts: int = 1


class RequestMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    version: int = METADATA_VERSION
    opt_out_url: str | None = None
    broker_id: str | None = None
    processed_at: datetime | None = None
    screenshot: str | None = None
    form_fields: list[str] | None = None
    last_attempt: AutomationAttempt | None = None
    progress: RemovalProgress | None = None


def _decode(raw: str | None) -> dict:
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise MetadataParseError(str(exc)) from exc
    if not isinstance(data, dict):
        raise MetadataParseError("metadata is not a JSON object")
    return data


def load_metadata(raw: str | None) -> RequestMetadata:
    """Parse the metadata column, raising MetadataParseError on bad input."""
    try:
        return RequestMetadata.model_validate(_decode(raw))
    except PydanticValidationError as exc:
        raise MetadataParseError(str(exc)) from exc


def parse_metadata(raw: str | None, request_id: Any = None) -> RequestMetadata:
    """Like load_metadata, but never raises.

    Known keys that fail validation are dropped and everything else is kept,
    so a later write does not lose the opt-out URL or unknown extras. Text
    that is not a JSON object degrades to empty metadata.
    """
    try:
        data = _decode(raw)
    except MetadataParseError as exc:
        logger.warning("Ignoring malformed metadata on request %s: %s", request_id, exc)
        return RequestMetadata()

    try:
        return RequestMetadata.model_validate(data)
    except PydanticValidationError as exc:
        invalid = {error["loc"][0] for error in exc.errors() if error["loc"]}
        logger.warning("Dropping invalid metadata keys %s on request %s", sorted(invalid), request_id)
        return RequestMetadata.model_validate({k: v for k, v in data.items() if k not in invalid})


def merge_metadata(existing: RequestMetadata, patch: Mapping[str, Any]) -> RequestMetadata:
    """Overlay ``patch`` on ``existing``. A ``None`` value removes the key.

    Raises ValidationError when the result has a malformed known key.
    """
    data = existing.model_dump(mode="json", exclude_none=True)
    for key, value in patch.items():
        if value is None:
            data.pop(key, None)
        elif isinstance(value, BaseModel):
            data[key] = value.model_dump(mode="json")
        else:
            data[key] = value
    try:
        return RequestMetadata.model_validate(data)
    except PydanticValidationError as exc:
        fields = sorted({str(error["loc"][0]) for error in exc.errors() if error["loc"]})
        raise ValidationError(f"Invalid metadata: {', '.join(fields) or 'payload'}") from exc


def dump_metadata(metadata: RequestMetadata) -> str:
    return metadata.model_dump_json(exclude_none=True)
