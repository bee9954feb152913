"""Acxiom data broker implementation."""

from broker_remover.brokers.base import BaseBroker, BrokerInfo, FormField


class AcxiomBroker(BaseBroker):
    """Acxiom marketing-data opt-out form."""

    @property
    def info(self) -> BrokerInfo:
        return BrokerInfo(
            name="Acxiom",
            domain="acxiom.com",
            category="marketing",
            opt_out_url="https://www.acxiom.com/optout/",
            opt_out_method="form",
            difficulty="medium",
            data_types=["name", "address", "email", "purchase_history", "demographics"],
            response_days=30,
            regions=["US", "EU"],
            laws=["CCPA", "GDPR"],
        )

    def form_fields(self) -> list[FormField]:
        return [
            FormField("first_name", 'input[name="firstName"]', "text", "First name"),
            FormField("last_name", 'input[name="lastName"]', "text", "Last name"),
            FormField("email", 'input[name="email"], input[type="email"]', "email", "Email address"),
            FormField("address", 'input[name="address1"]', "text", "Street address", required=False),
            FormField(
                "request_type",
                'select[name="requestType"]',
                "select",
                "Request type",
                options=("Opt out of marketing", "Delete my data", "Access my data"),
            ),
        ]
