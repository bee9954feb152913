"""Brokers with a curated opt-out form.

Each module describes one broker: its catalog entry and the fields of its
opt-out form. Brokers not listed here still get a catalog entry from
``catalog.py`` and the generic form fields.
"""

from broker_remover.brokers.base import BaseBroker, BrokerInfo, DEFAULT_FORM_FIELDS, FormField
from broker_remover.brokers.acxiom import AcxiomBroker
from broker_remover.brokers.beenverified import BeenVerifiedBroker
from broker_remover.brokers.fastpeoplesearch import FastPeopleSearchBroker
from broker_remover.brokers.intelius import InteliusBroker
from broker_remover.brokers.spokeo import SpokeoBroker
from broker_remover.brokers.truepeoplesearch import TruePeopleSearchBroker
from broker_remover.brokers.whitepages import WhitePagesBroker

FORM_BROKERS: tuple[type[BaseBroker], ...] = (
    AcxiomBroker,
    BeenVerifiedBroker,
    FastPeopleSearchBroker,
    InteliusBroker,
    SpokeoBroker,
    TruePeopleSearchBroker,
    WhitePagesBroker,
)


def list_brokers() -> list[BaseBroker]:
    return [cls() for cls in FORM_BROKERS]


def get_broker(host: str) -> BaseBroker | None:
    """Broker whose domain is ``host`` or a parent of it."""
    for broker in list_brokers():
        if broker.matches_host(host):
            return broker
    return None


__all__ = [
    "BaseBroker",
    "BrokerInfo",
    "DEFAULT_FORM_FIELDS",
    "FORM_BROKERS",
    "FormField",
    "get_broker",
    "list_brokers",
]
