"""Intelius data broker implementation."""

from broker_remover.brokers.base import BaseBroker, BrokerInfo, FormField


class InteliusBroker(BaseBroker):
    """Intelius opt-out; also covers the PeopleConnect family of sites."""

    @property
    def info(self) -> BrokerInfo:
        return BrokerInfo(
            name="Intelius",
            domain="intelius.com",
            category="people-search",
            opt_out_url="https://intelius.com/opt-out",
            opt_out_method="form",
            difficulty="hard",
            data_types=["name", "address", "phone", "email", "employment"],
            response_days=7,
            regions=["US"],
            laws=["CCPA"],
            premium=True,
        )

    def form_fields(self) -> list[FormField]:
        return [
            FormField("email", 'input[name="email"], input[type="email"]', "email", "Email address"),
            FormField("first_name", 'input[name="firstName"]', "text", "First name"),
            FormField("last_name", 'input[name="lastName"]', "text", "Last name"),
            FormField("birth_year", 'input[name="birthYear"]', "text", "Year of birth", required=False),
            FormField("consent", 'input[type="checkbox"][name="agree"]', "checkbox", "I agree to the terms"),
        ]
