"""BeenVerified data broker implementation."""

from broker_remover.brokers.base import BaseBroker, BrokerInfo, FormField


class BeenVerifiedBroker(BaseBroker):
    """BeenVerified opt-out search form."""

    @property
    def info(self) -> BrokerInfo:
        return BrokerInfo(
            name="BeenVerified",
            domain="beenverified.com",
            category="background-check",
            opt_out_url="https://www.beenverified.com/app/optout/search",
            opt_out_method="form",
            difficulty="medium",
            data_types=["name", "address", "phone", "email", "criminal_records"],
            response_days=1,
            regions=["US"],
            laws=["CCPA", "FCRA"],
        )

    def form_fields(self) -> list[FormField]:
        return [
            FormField("first_name", 'input[name="fn"]', "text", "First name"),
            FormField("last_name", 'input[name="ln"]', "text", "Last name"),
            FormField("state", 'select[name="state"]', "select", "State", required=False),
            FormField("email", 'input[name="email"], input[type="email"]', "email", "Email address"),
        ]
