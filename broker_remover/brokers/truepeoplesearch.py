"""TruePeopleSearch data broker implementation."""

from broker_remover.brokers.base import BaseBroker, BrokerInfo, FormField


class TruePeopleSearchBroker(BaseBroker):
    """TruePeopleSearch removal form."""

    @property
    def info(self) -> BrokerInfo:
        return BrokerInfo(
            name="TruePeopleSearch",
            domain="truepeoplesearch.com",
            category="people-search",
            opt_out_url="https://www.truepeoplesearch.com/removal",
            opt_out_method="form",
            difficulty="easy",
            data_types=["name", "address", "phone", "relatives", "age"],
            response_days=3,
            regions=["US"],
        )

    def form_fields(self) -> list[FormField]:
        return [
            FormField("email", 'input[name="email"], input[type="email"]', "email", "Email address"),
            FormField("record_url", 'input[name="recordUrl"]', "url", "Record URL", required=False),
            FormField("consent", 'input[type="checkbox"][name="terms"]', "checkbox", "I agree to the terms of service"),
        ]
