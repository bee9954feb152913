"""FastPeopleSearch data broker implementation."""

from broker_remover.brokers.base import BaseBroker, BrokerInfo, FormField


class FastPeopleSearchBroker(BaseBroker):
    """FastPeopleSearch removal form."""

    @property
    def info(self) -> BrokerInfo:
        return BrokerInfo(
            name="FastPeopleSearch",
            domain="fastpeoplesearch.com",
            category="people-search",
            opt_out_url="https://www.fastpeoplesearch.com/removal",
            opt_out_method="form",
            difficulty="easy",
            data_types=["name", "address", "phone", "email"],
            response_days=3,
            regions=["US"],
        )

    def form_fields(self) -> list[FormField]:
        return [
            FormField("email", 'input[name="email"], input[type="email"]', "email", "Email address"),
            FormField("consent", 'input[type="checkbox"][name="agree"]', "checkbox", "I agree to the terms of service"),
        ]
