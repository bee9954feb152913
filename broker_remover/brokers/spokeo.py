"""Spokeo data broker implementation."""

from broker_remover.brokers.base import BaseBroker, BrokerInfo, FormField


class SpokeoBroker(BaseBroker):
    """Spokeo opt-out form: listing URL plus a confirmation email."""

    @property
    def info(self) -> BrokerInfo:
        return BrokerInfo(
            name="Spokeo",
            domain="spokeo.com",
            category="people-search",
            opt_out_url="https://www.spokeo.com/optout",
            opt_out_method="form",
            difficulty="easy",
            data_types=["name", "address", "phone", "email", "relatives", "age"],
            response_days=3,
            regions=["US"],
            laws=["CCPA"],
        )

    def form_fields(self) -> list[FormField]:
        return [
            FormField("url", 'input[name="url"], input[id="url"]', "url", "Listing URL"),
            FormField("email", 'input[name="email"], input[type="email"]', "email", "Email address"),
        ]
