"""Database models."""

from broker_remover.models.broker import BrokerCategory, DataBroker, Difficulty, OptOutMethod
from broker_remover.models.request import RemovalRequest, RequestStatus, STATUS_ORDER
from broker_remover.models.metadata import (
    AutomationAttempt,
    ProgressStep,
    RemovalProgress,
    RequestMetadata,
    StepName,
    StepStatus,
)

__all__ = [
    "AutomationAttempt",
    "BrokerCategory",
    "DataBroker",
    "Difficulty",
    "OptOutMethod",
    "ProgressStep",
    "RemovalProgress",
    "RemovalRequest",
    "RequestMetadata",
    "RequestStatus",
    "STATUS_ORDER",
    "StepName",
    "StepStatus",
]
